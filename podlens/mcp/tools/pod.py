"""Pod inspection tool."""

from __future__ import annotations

from ...core.inspection import inspect
from ...core.types import (
    ClusterStatusProvider,
    Handler,
    ParameterKind,
    ParameterSpec,
    ToolResult,
    ToolSpec,
    WorkloadRef,
)
from ..registry import ToolRegistry

POD_INSPECT_TOOL = ToolSpec(
    name="pod_inspect",
    description=(
        "Collect pod status to help figure out what is wrong with the pod. "
        "Reports every container that restarted together with its last termination reason."
    ),
    parameters=(
        ParameterSpec(
            name="name",
            kind=ParameterKind.STRING,
            required=True,
            description="Name of the pod to inspect",
        ),
        ParameterSpec(
            name="namespace",
            kind=ParameterKind.STRING,
            required=True,
            description="Namespace of the pod to inspect",
        ),
    ),
)


def make_pod_inspect_handler(provider: ClusterStatusProvider) -> Handler:
    """Bind the inspection engine to ``provider``."""

    async def pod_inspect(name: str, namespace: str) -> ToolResult:
        return await inspect(WorkloadRef(name=name, namespace=namespace), provider)

    return pod_inspect


def register(registry: ToolRegistry, provider: ClusterStatusProvider) -> None:
    registry.register(POD_INSPECT_TOOL, make_pod_inspect_handler(provider))
