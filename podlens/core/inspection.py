"""Pod health inspection.

Turns a pod's container statuses into a human-readable verdict. Every
container is classified in the order the cluster reported them, and every
restarted container is listed in the verdict.
"""

from __future__ import annotations

from .exceptions import ErrorKind, ProviderError
from .logging_config import get_logger
from .types import (
    ClusterStatusProvider,
    ContainerStatus,
    ErrorResult,
    TextResult,
    ToolResult,
    WorkloadRef,
    WorkloadSnapshot,
)

logger = get_logger(__name__)


async def inspect(ref: WorkloadRef, provider: ClusterStatusProvider) -> ToolResult:
    """Fetch the pod behind ``ref`` and report on container restarts."""

    logger.debug("pod_inspect_fetching", name=ref.name, namespace=ref.namespace)
    try:
        snapshot = await provider.get_workload(ref.namespace, ref.name)
    except ProviderError as exc:
        logger.warning(
            "pod_inspect_fetch_failed",
            name=ref.name,
            namespace=ref.namespace,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        return ErrorResult(ErrorKind.PROVIDER_ERROR, f"failed to inspect {ref}: {exc}")

    return TextResult(render_verdict(ref, snapshot))


def render_verdict(ref: WorkloadRef, snapshot: WorkloadSnapshot) -> str:
    """Classify the snapshot's containers and describe the outcome."""

    subject = f"Pod {ref.name} in namespace {ref.namespace}"
    statuses = snapshot.container_statuses

    if statuses is None:
        verdict = f"{subject} has no reported container statuses"
        if snapshot.phase:
            verdict += f" (phase {snapshot.phase})"
        return verdict

    if not statuses:
        return (
            f"{subject} has zero containers reporting status "
            f"({snapshot.declared_container_count} declared)"
        )

    restarted = [status for status in statuses if status.restart_count > 0]
    if not restarted:
        declared = snapshot.declared_container_count
        noun = "container" if declared == 1 else "containers"
        return f"{subject} has {declared} {noun} and no restarts"

    details = "; ".join(_describe_restart(status) for status in restarted)
    return (
        f"{subject} has {len(restarted)} of {len(statuses)} containers restarted: {details}"
    )


def _describe_restart(status: ContainerStatus) -> str:
    times = "time" if status.restart_count == 1 else "times"
    if status.last_termination is None:
        last = "last termination unknown"
    else:
        last = f"last termination {status.last_termination.describe()}"
    return f"container {status.name} restarted {status.restart_count} {times} ({last})"
