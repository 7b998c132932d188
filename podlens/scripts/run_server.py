"""Run the podlens MCP server.

Flags override values from ``PODLENS_*`` environment variables and ``.env``.
"""

from __future__ import annotations

import argparse
import asyncio
from typing import Any, Sequence

from pydantic import ValidationError as SettingsValidationError

from podlens.core.config import ServerSettings
from podlens.core.exceptions import ConfigurationError
from podlens.core.logging_config import configure_logging, get_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="podlens",
        description="MCP server exposing Kubernetes pod diagnostics as tools.",
    )
    parser.add_argument(
        "--kubeconfig",
        help="Path to the kubeconfig file; pass an empty string to use in-cluster config",
    )
    parser.add_argument("--mode", choices=("stdio", "stream"), help="MCP transport mode")
    parser.add_argument(
        "--addr",
        dest="listen_address",
        help="host:port to listen on in stream mode",
    )
    parser.add_argument(
        "--timeout",
        dest="dispatch_timeout",
        type=float,
        help="Default tool deadline in seconds",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        type=str.upper,
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
    )
    return parser


def load_settings(argv: Sequence[str] | None = None) -> ServerSettings:
    args = build_parser().parse_args(argv)
    overrides: dict[str, Any] = {
        key: value for key, value in vars(args).items() if value is not None
    }
    return ServerSettings(**overrides)


def main(argv: Sequence[str] | None = None) -> None:
    try:
        settings = load_settings(argv)
    except SettingsValidationError as exc:
        # the resolved settings are invalid, so log with field defaults
        configure_logging(ServerSettings.model_construct(), force=True)
        get_logger(__name__).error("invalid_configuration", error=str(exc))
        raise SystemExit(2) from exc

    configure_logging(settings, force=True)
    logger = get_logger(__name__)

    from podlens.mcp.server import serve

    try:
        asyncio.run(serve(settings))
    except ConfigurationError as exc:
        logger.error("startup_failed", error=str(exc))
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        logger.info("server_interrupted")


if __name__ == "__main__":
    main()
