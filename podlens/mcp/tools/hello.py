"""Smoke-test greeting tool."""

from __future__ import annotations

from ...core.exceptions import ValidationError
from ...core.types import ParameterKind, ParameterSpec, ToolSpec
from ..registry import ToolRegistry

HELLO_TOOL = ToolSpec(
    name="hello_world",
    description="Say hello to someone",
    parameters=(
        ParameterSpec(
            name="name",
            kind=ParameterKind.STRING,
            required=True,
            description="Name of the person to greet",
        ),
    ),
)


async def hello_world(name: str) -> str:
    if not name.strip():
        raise ValidationError("name must be a non-empty string")
    return f"Hello, {name}!, this is greeting from mcp."


def register(registry: ToolRegistry) -> None:
    registry.register(HELLO_TOOL, hello_world)
