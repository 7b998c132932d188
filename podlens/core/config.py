"""Configuration management for the podlens tool server."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_REPO_ROOT = Path(__file__).resolve().parents[2]
_ENV_FILE_CANDIDATES: tuple[str, ...] = (
    str(_REPO_ROOT / ".env"),
    ".env",
)

DEFAULT_KUBECONFIG = str(Path("~/.kube/config").expanduser())


class ServerSettings(BaseSettings):
    """Centralised configuration derived from environment variables and flags."""

    app_env: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_file: str | None = Field(
        None,
        description="Log file path; leave empty to log to stderr only",
    )

    kubeconfig: str | None = Field(
        DEFAULT_KUBECONFIG,
        description="Path to the kubeconfig file; empty means in-cluster config",
    )
    mode: Literal["stdio", "stream"] = Field("stdio", description="MCP transport mode")
    listen_address: str = Field(
        "0.0.0.0:6216", description="host:port to bind when mode is stream"
    )

    dispatch_timeout: float = Field(30.0, gt=0, description="Default tool deadline in seconds")
    cluster_http_timeout: float = Field(10.0, gt=0)
    cluster_http_max_retries: int = Field(2, ge=0)
    cluster_http_retry_backoff: float = Field(0.5, ge=0)

    model_config = SettingsConfigDict(
        env_prefix="PODLENS_",
        env_file=_ENV_FILE_CANDIDATES,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("listen_address")
    @classmethod
    def _check_listen_address(cls, value: str) -> str:
        host, sep, port = value.strip().rpartition(":")
        if not sep or not host:
            raise ValueError(f"listen address must be host:port, got {value!r}")
        if not port.isdigit() or not 0 < int(port) < 65536:
            raise ValueError(f"invalid port in listen address {value!r}")
        return value.strip()

    @property
    def listen_host(self) -> str:
        return self.listen_address.rpartition(":")[0]

    @property
    def listen_port(self) -> int:
        return int(self.listen_address.rpartition(":")[2])

    @property
    def kubeconfig_path(self) -> str | None:
        path = (self.kubeconfig or "").strip()
        return str(Path(path).expanduser()) if path else None


@lru_cache
def get_settings() -> ServerSettings:
    """Return a cached ServerSettings instance."""

    return ServerSettings()


def resolved_env_file() -> str | None:
    """Return the first readable .env file from the candidate list."""

    for candidate in _ENV_FILE_CANDIDATES:
        path = Path(candidate).expanduser()
        if path.is_file():
            return str(path)
    return None
