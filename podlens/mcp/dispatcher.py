"""Validate tool invocations and run their handlers under a deadline."""

from __future__ import annotations

import asyncio
import time
from typing import Any

from ..core.exceptions import (
    DispatchTimeoutError,
    ErrorKind,
    PodlensToolError,
    ValidationError,
)
from ..core.logging_config import get_logger
from ..core.types import ErrorResult, TextResult, ToolInvocation, ToolResult, ToolSpec
from .registry import ToolRegistry

logger = get_logger(__name__)

DEFAULT_DISPATCH_TIMEOUT = 30.0


class Dispatcher:
    """Turns a ToolInvocation into a ToolResult.

    Every failure, including unexpected handler faults, comes back as an
    ``ErrorResult``. Only caller cancellation propagates.
    """

    def __init__(
        self, registry: ToolRegistry, *, default_timeout: float = DEFAULT_DISPATCH_TIMEOUT
    ) -> None:
        self._registry = registry
        self._default_timeout = default_timeout

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    async def dispatch(self, invocation: ToolInvocation) -> ToolResult:
        started = time.perf_counter()
        timeout = (
            invocation.timeout if invocation.timeout is not None else self._default_timeout
        )
        logger.debug(
            "tool_dispatch",
            name=invocation.tool_name,
            arguments=invocation.arguments,
            timeout=timeout,
        )

        try:
            tool = self._registry.get(invocation.tool_name)
            arguments = validate_arguments(tool.spec, invocation.arguments)
            try:
                outcome = await asyncio.wait_for(tool.handler(**arguments), timeout=timeout)
            except asyncio.TimeoutError as exc:
                raise DispatchTimeoutError(
                    f"tool {invocation.tool_name} did not finish within {timeout:g}s "
                    f"({_describe_arguments(invocation.arguments)})"
                ) from exc
        except PodlensToolError as exc:
            result: ToolResult = ErrorResult(exc.kind, str(exc))
        except Exception as exc:  # noqa: BLE001 - handler faults become error results
            logger.exception("tool_handler_crashed", name=invocation.tool_name)
            result = ErrorResult(
                ErrorKind.HANDLER_ERROR,
                f"tool {invocation.tool_name} failed "
                f"({_describe_arguments(invocation.arguments)}): {type(exc).__name__}: {exc}",
            )
        else:
            if isinstance(outcome, (TextResult, ErrorResult)):
                result = outcome
            else:
                result = TextResult(str(outcome))

        latency_ms = round((time.perf_counter() - started) * 1000, 2)
        if isinstance(result, ErrorResult):
            logger.info(
                "tool_dispatch_failed",
                name=invocation.tool_name,
                kind=result.kind.value,
                error=result.message,
                latency_ms=latency_ms,
            )
        else:
            logger.info("tool_dispatch_completed", name=invocation.tool_name, latency_ms=latency_ms)
        return result


def validate_arguments(spec: ToolSpec, arguments: Any) -> dict[str, Any]:
    """Check ``arguments`` against ``spec`` and return only the declared values.

    Raises ValidationError naming the first offending parameter, in declared
    order.
    """

    if arguments is None:
        arguments = {}
    if not hasattr(arguments, "get"):
        raise ValidationError(f"arguments for tool {spec.name} must be an object")

    validated: dict[str, Any] = {}
    for param in spec.parameters:
        value = arguments.get(param.name)
        if value is None:
            if param.required:
                raise ValidationError(
                    f"missing required argument {param.name!r} for tool {spec.name}"
                )
            continue
        if not param.kind.accepts(value):
            raise ValidationError(
                f"argument {param.name!r} for tool {spec.name} must be a {param.kind.value}, "
                f"got {type(value).__name__}"
            )
        validated[param.name] = value
    return validated


def _describe_arguments(arguments: Any) -> str:
    if not arguments:
        return "no arguments"
    if not hasattr(arguments, "items"):
        return repr(arguments)
    return ", ".join(f"{key}={value!r}" for key, value in arguments.items())
