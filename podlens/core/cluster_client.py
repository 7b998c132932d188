"""Async Kubernetes pod status client."""

from __future__ import annotations

import asyncio
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from typing import Any, Mapping
from urllib.parse import quote

import httpx
from kubernetes import client as k8s_client
from kubernetes import config as k8s_config

from .config import ServerSettings
from .exceptions import (
    AccessForbiddenError,
    ClusterUnavailableError,
    ConfigurationError,
    WorkloadNotFoundError,
)
from .http_client import async_http_client, build_ssl_context
from .logging_config import get_logger
from .types import ContainerStatus, TerminationState, WorkloadRef, WorkloadSnapshot

logger = get_logger(__name__)

RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.ConnectError,
    httpx.TimeoutException,
    httpx.RemoteProtocolError,
    httpx.TransportError,
)


@dataclass(frozen=True, slots=True)
class ClusterAPIConfig:
    """Connection details for the Kubernetes API server.

    When built from a kubeconfig, ``configuration`` keeps the loaded
    ``kubernetes.client.Configuration`` so credentials are resolved per
    request through its refresh hook. ``authorization`` is a fixed header
    value used when no configuration is attached.
    """

    host: str
    authorization: str | None = None
    ca_file: str | None = None
    cert_file: str | None = None
    key_file: str | None = None
    verify_ssl: bool = True
    tls_server_name: str | None = None
    proxy: str | None = None
    configuration: Any = field(default=None, compare=False, repr=False)

    def auth_headers(self) -> dict[str, str]:
        if self.configuration is not None:
            headers = {
                setting["key"]: setting["value"]
                for setting in self.configuration.auth_settings().values()
                if setting.get("in") == "header" and setting.get("value")
            }
            if headers:
                return headers
        if self.authorization:
            return {"Authorization": self.authorization}
        return {}


def load_cluster_config(kubeconfig: str | None) -> ClusterAPIConfig:
    """Resolve API server access from a kubeconfig file, or in-cluster config when empty."""

    configuration = k8s_client.Configuration()
    source = kubeconfig or "in-cluster environment"
    try:
        if kubeconfig:
            k8s_config.load_kube_config(
                config_file=kubeconfig, client_configuration=configuration
            )
        else:
            k8s_config.load_incluster_config(client_configuration=configuration)
    except (k8s_config.ConfigException, OSError) as exc:
        raise ConfigurationError(f"cannot load cluster config from {source}: {exc}") from exc

    logger.info("cluster_config_loaded", source=source, host=configuration.host)
    return ClusterAPIConfig(
        host=configuration.host,
        ca_file=configuration.ssl_ca_cert,
        cert_file=configuration.cert_file,
        key_file=configuration.key_file,
        verify_ssl=bool(configuration.verify_ssl),
        tls_server_name=getattr(configuration, "tls_server_name", None),
        proxy=getattr(configuration, "proxy", None),
        configuration=configuration,
    )


class KubernetesStatusProvider:
    """Reads pod status from the Kubernetes REST API.

    One pooled ``httpx.AsyncClient`` is opened by ``async with`` and shared by
    all concurrent inspections until the provider is closed.
    """

    def __init__(
        self,
        api_config: ClusterAPIConfig,
        *,
        timeout: float = 10.0,
        max_retries: int = 2,
        retry_backoff: float = 0.5,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_config = api_config
        self._timeout = timeout
        self._max_retries = max(0, int(max_retries))
        self._retry_backoff = max(0.0, float(retry_backoff))
        self._transport = transport
        self._exit_stack = AsyncExitStack()
        self._client: httpx.AsyncClient | None = None
        self._extensions: dict[str, Any] = {}
        if api_config.tls_server_name:
            self._extensions["sni_hostname"] = api_config.tls_server_name

    @classmethod
    def from_settings(cls, settings: ServerSettings) -> "KubernetesStatusProvider":
        return cls(
            load_cluster_config(settings.kubeconfig_path),
            timeout=settings.cluster_http_timeout,
            max_retries=settings.cluster_http_max_retries,
            retry_backoff=settings.cluster_http_retry_backoff,
        )

    async def __aenter__(self) -> "KubernetesStatusProvider":
        api = self._api_config
        # client certs are presented even when server verification is off
        verify = build_ssl_context(
            api.ca_file, api.cert_file, api.key_file, verify=api.verify_ssl
        )

        self._client = await self._exit_stack.enter_async_context(
            async_http_client(
                base_url=api.host,
                timeout=self._timeout,
                headers={"Accept": "application/json"},
                verify=verify,
                proxy=api.proxy,
                transport=self._transport,
            )
        )
        logger.debug("cluster_client_opened", host=api.host, proxy=api.proxy)
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._exit_stack.aclose()
        self._client = None
        logger.debug("cluster_client_closed")

    async def get_workload(self, namespace: str, name: str) -> WorkloadSnapshot:
        """Fetch the current status of pod ``name`` in ``namespace``."""

        ref = WorkloadRef(name=name, namespace=namespace)
        path = f"/api/v1/namespaces/{quote(namespace, safe='')}/pods/{quote(name, safe='')}"
        response = await self._get(path, ref)

        if response.status_code == httpx.codes.NOT_FOUND:
            raise WorkloadNotFoundError(f"{ref} not found")
        if response.status_code in (httpx.codes.UNAUTHORIZED, httpx.codes.FORBIDDEN):
            raise AccessForbiddenError(
                f"access to {ref} denied ({response.status_code}): {_status_message(response)}"
            )
        if response.is_error:
            raise ClusterUnavailableError(
                f"cluster API responded with {response.status_code}: {_status_message(response)}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ClusterUnavailableError(f"cluster API returned malformed JSON for {ref}") from exc
        if not isinstance(payload, dict):
            raise ClusterUnavailableError(f"unexpected pod payload for {ref}: {payload!r}")

        return snapshot_from_pod(ref, payload)

    def _auth_headers(self, ref: WorkloadRef) -> dict[str, str]:
        try:
            return self._api_config.auth_headers()
        except (k8s_config.ConfigException, OSError) as exc:
            raise AccessForbiddenError(
                f"cannot refresh cluster credentials while reading {ref}: {exc}"
            ) from exc

    async def _get(self, path: str, ref: WorkloadRef) -> httpx.Response:
        if self._client is None:
            raise RuntimeError("KubernetesStatusProvider is not open; use 'async with'")

        total_attempts = self._max_retries + 1
        last_error: Exception | None = None
        for attempt in range(1, total_attempts + 1):
            try:
                return await self._client.get(
                    path, headers=self._auth_headers(ref), extensions=self._extensions
                )
            except RETRYABLE_EXCEPTIONS as exc:
                last_error = exc
                if attempt >= total_attempts:
                    raise ClusterUnavailableError(
                        f"cluster API unreachable while reading {ref} "
                        f"after {self._max_retries} retries: {type(exc).__name__}"
                    ) from exc
                delay = self._retry_backoff * (2 ** (attempt - 1))
                logger.warning(
                    "cluster_http_retry",
                    path=path,
                    attempt=attempt,
                    max_retries=self._max_retries,
                    delay=delay,
                    error=str(exc) or type(exc).__name__,
                )
                if delay > 0:
                    await asyncio.sleep(delay)
            except httpx.HTTPError as exc:
                raise ClusterUnavailableError(
                    f"cluster API request for {ref} failed: {type(exc).__name__}: {exc}"
                ) from exc
        raise ClusterUnavailableError(
            f"cluster API request for {ref} failed without response: {last_error}"
        )


def snapshot_from_pod(ref: WorkloadRef, pod: Mapping[str, Any]) -> WorkloadSnapshot:
    """Build a WorkloadSnapshot from a v1 Pod JSON document."""

    status = pod.get("status") or {}
    spec = pod.get("spec") or {}

    raw_statuses = status.get("containerStatuses")
    container_statuses = None
    if raw_statuses is not None:
        container_statuses = tuple(_container_status(item) for item in raw_statuses)

    return WorkloadSnapshot(
        ref=ref,
        container_statuses=container_statuses,
        declared_container_count=len(spec.get("containers") or ()),
        phase=status.get("phase"),
    )


def _container_status(raw: Mapping[str, Any]) -> ContainerStatus:
    terminated = (raw.get("lastState") or {}).get("terminated")
    last_termination = None
    if terminated:
        last_termination = TerminationState(
            reason=terminated.get("reason"),
            exit_code=_safe_int(terminated.get("exitCode")),
            signal=_safe_int(terminated.get("signal")),
            message=terminated.get("message"),
            finished_at=terminated.get("finishedAt"),
        )
    return ContainerStatus(
        name=str(raw.get("name") or "<unnamed>"),
        restart_count=max(0, _safe_int(raw.get("restartCount")) or 0),
        last_termination=last_termination,
    )


def _status_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.text[:200] or response.reason_phrase


def _safe_int(value: Any) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
