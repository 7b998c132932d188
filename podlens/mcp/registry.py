"""Tool registry shared by the dispatcher and the transport adapter."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..core.exceptions import DuplicateToolError, RegistryClosedError, UnknownToolError
from ..core.logging_config import get_logger
from ..core.types import Handler, ToolSpec

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class RegisteredTool:
    spec: ToolSpec
    handler: Handler


class ToolRegistry:
    """Maps tool names to their spec and handler.

    Registration happens once at startup; ``seal`` is called before the
    transport starts serving, after which the registry is read-only and
    lookups need no locking.
    """

    def __init__(self) -> None:
        self._tools: dict[str, RegisteredTool] = {}
        self._sealed = False

    def register(self, spec: ToolSpec, handler: Handler) -> None:
        if self._sealed:
            raise RegistryClosedError(f"cannot register {spec.name!r}: registry is sealed")
        if not spec.name or not spec.name.strip():
            raise ValueError("tool name must be a non-empty string")
        if spec.name in self._tools:
            raise DuplicateToolError(f"tool {spec.name!r} is already registered")

        self._tools[spec.name] = RegisteredTool(spec=spec, handler=handler)
        logger.debug("tool_registered", name=spec.name, parameters=len(spec.parameters))

    def seal(self) -> None:
        self._sealed = True
        logger.info("tool_registry_sealed", tools=list(self._tools))

    @property
    def sealed(self) -> bool:
        return self._sealed

    def get(self, name: str) -> RegisteredTool:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(f"unknown tool: {name}") from None

    def lookup(self, name: str) -> Handler:
        return self.get(name).handler

    def specs(self) -> list[ToolSpec]:
        return [tool.spec for tool in self._tools.values()]

    def tools_schema(self) -> list[dict[str, Any]]:
        """Describe the registered tools in function-calling schema form."""

        return [
            {
                "type": "function",
                "function": {
                    "name": spec.name,
                    "description": spec.description,
                    "parameters": spec.input_schema(),
                },
            }
            for spec in self.specs()
        ]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
