"""Shared type definitions."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, Union

from .exceptions import ErrorKind, ValidationError


class ParameterKind(str, Enum):
    """Value kinds a tool parameter may declare."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"

    def accepts(self, value: Any) -> bool:
        # bool is a subclass of int, keep it out of NUMBER
        if self is ParameterKind.BOOLEAN:
            return isinstance(value, bool)
        if self is ParameterKind.NUMBER:
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        return isinstance(value, str)


@dataclass(frozen=True, slots=True)
class ParameterSpec:
    name: str
    kind: ParameterKind = ParameterKind.STRING
    required: bool = False
    description: str = ""


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """Name, description and ordered parameters of a tool."""

    name: str
    description: str
    parameters: tuple[ParameterSpec, ...] = ()

    def input_schema(self) -> dict[str, Any]:
        """Render the parameters as a JSON Schema object."""

        properties = {
            param.name: {"type": param.kind.value, "description": param.description}
            for param in self.parameters
        }
        schema: dict[str, Any] = {"type": "object", "properties": properties}
        required = [param.name for param in self.parameters if param.required]
        if required:
            schema["required"] = required
        return schema


@dataclass(frozen=True, slots=True)
class ToolInvocation:
    """A decoded request to run one tool."""

    tool_name: str
    arguments: Mapping[str, Any] = field(default_factory=dict)
    timeout: float | None = None


@dataclass(frozen=True, slots=True)
class TextResult:
    text: str


@dataclass(frozen=True, slots=True)
class ErrorResult:
    kind: ErrorKind
    message: str

    def render(self) -> str:
        return f"{self.kind.value}: {self.message}"


ToolResult = Union[TextResult, ErrorResult]

Handler = Callable[..., Awaitable[Union[str, TextResult, ErrorResult]]]


@dataclass(frozen=True, slots=True)
class WorkloadRef:
    """Identifies a pod by name and namespace."""

    name: str
    namespace: str

    def __post_init__(self) -> None:
        for field_name in ("name", "namespace"):
            value = getattr(self, field_name)
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"pod {field_name} must be a non-empty string")

    def __str__(self) -> str:
        return f"pod {self.name} in namespace {self.namespace}"


@dataclass(frozen=True, slots=True)
class TerminationState:
    """Details of a container's last termination."""

    reason: str | None = None
    exit_code: int | None = None
    signal: int | None = None
    message: str | None = None
    finished_at: str | None = None

    def describe(self) -> str:
        parts = [f"reason {self.reason or 'unknown'}"]
        if self.exit_code is not None:
            parts.append(f"exit code {self.exit_code}")
        if self.signal is not None:
            parts.append(f"signal {self.signal}")
        if self.finished_at:
            parts.append(f"finished at {self.finished_at}")
        return ", ".join(parts)


@dataclass(frozen=True, slots=True)
class ContainerStatus:
    name: str
    restart_count: int = 0
    last_termination: TerminationState | None = None


@dataclass(frozen=True, slots=True)
class WorkloadSnapshot:
    """Point-in-time status of a pod.

    ``container_statuses`` is ``None`` when the cluster reported no
    per-container detail at all, and an empty tuple when the list is present
    but empty. Its length may differ from ``declared_container_count``.
    """

    ref: WorkloadRef
    container_statuses: tuple[ContainerStatus, ...] | None
    declared_container_count: int = 0
    phase: str | None = None


class ClusterStatusProvider(Protocol):
    """Source of pod status used by the inspection engine."""

    async def get_workload(self, namespace: str, name: str) -> WorkloadSnapshot:
        ...
