import asyncio

import pytest

from podlens.core.exceptions import DispatchTimeoutError, ErrorKind, ValidationError
from podlens.core.types import (
    ErrorResult,
    ParameterKind,
    ParameterSpec,
    TextResult,
    ToolInvocation,
    ToolSpec,
)
from podlens.mcp.dispatcher import Dispatcher, validate_arguments
from podlens.mcp.registry import ToolRegistry
from podlens.mcp.tools import register_all

SCALE_TOOL = ToolSpec(
    name="scale",
    description="test tool",
    parameters=(
        ParameterSpec("replicas", ParameterKind.NUMBER, required=True),
        ParameterSpec("dry_run", ParameterKind.BOOLEAN),
    ),
)


def _dispatcher(provider, **kwargs):
    return Dispatcher(register_all(ToolRegistry(), provider), **kwargs)


@pytest.mark.asyncio
async def test_unknown_tool_returns_error_result(fake_provider):
    dispatcher = _dispatcher(fake_provider())

    result = await dispatcher.dispatch(ToolInvocation("restart_pod", {"name": "x"}))

    assert isinstance(result, ErrorResult)
    assert result.kind is ErrorKind.UNKNOWN_TOOL
    assert "restart_pod" in result.message


@pytest.mark.asyncio
async def test_missing_required_argument_names_field(fake_provider):
    provider = fake_provider()
    dispatcher = _dispatcher(provider)

    result = await dispatcher.dispatch(ToolInvocation("pod_inspect", {"name": "web-7f"}))

    assert result.kind is ErrorKind.VALIDATION_ERROR
    assert "'namespace'" in result.message
    assert provider.calls == []


@pytest.mark.asyncio
async def test_first_offending_field_is_reported(fake_provider):
    dispatcher = _dispatcher(fake_provider())

    result = await dispatcher.dispatch(ToolInvocation("pod_inspect", {}))

    assert result.kind is ErrorKind.VALIDATION_ERROR
    assert "'name'" in result.message
    assert "'namespace'" not in result.message


@pytest.mark.asyncio
async def test_wrong_kind_is_rejected(fake_provider):
    dispatcher = _dispatcher(fake_provider())

    result = await dispatcher.dispatch(
        ToolInvocation("pod_inspect", {"name": 42, "namespace": "prod"})
    )

    assert result.kind is ErrorKind.VALIDATION_ERROR
    assert "'name'" in result.message
    assert "string" in result.message


@pytest.mark.asyncio
async def test_pod_inspect_dispatch_end_to_end(oom_snapshot, fake_provider):
    dispatcher = _dispatcher(fake_provider(snapshot=oom_snapshot))

    result = await dispatcher.dispatch(
        ToolInvocation("pod_inspect", {"name": "web-7f", "namespace": "prod", "verbose": True})
    )

    assert isinstance(result, TextResult)
    assert "container app restarted 3 times" in result.text


@pytest.mark.asyncio
async def test_blank_namespace_is_a_validation_error(fake_provider):
    provider = fake_provider()
    dispatcher = _dispatcher(provider)

    result = await dispatcher.dispatch(
        ToolInvocation("pod_inspect", {"name": "web-7f", "namespace": "  "})
    )

    assert result.kind is ErrorKind.VALIDATION_ERROR
    assert "namespace" in result.message
    assert provider.calls == []


@pytest.mark.asyncio
async def test_handler_fault_becomes_handler_error():
    registry = ToolRegistry()

    async def broken(replicas, dry_run=False):
        raise RuntimeError("kaboom")

    registry.register(SCALE_TOOL, broken)
    dispatcher = Dispatcher(registry)

    result = await dispatcher.dispatch(ToolInvocation("scale", {"replicas": 3}))

    assert result.kind is ErrorKind.HANDLER_ERROR
    assert "kaboom" in result.message
    assert "replicas=3" in result.message


@pytest.mark.asyncio
async def test_slow_handler_times_out(fake_provider, oom_snapshot):
    dispatcher = _dispatcher(fake_provider(snapshot=oom_snapshot, delay=5), default_timeout=0.05)

    result = await dispatcher.dispatch(
        ToolInvocation("pod_inspect", {"name": "web-7f", "namespace": "prod"})
    )

    assert result.kind is ErrorKind.TIMEOUT
    assert "pod_inspect" in result.message
    assert "web-7f" in result.message


@pytest.mark.asyncio
async def test_invocation_timeout_overrides_default(fake_provider, oom_snapshot):
    dispatcher = _dispatcher(fake_provider(snapshot=oom_snapshot, delay=5), default_timeout=60)

    result = await dispatcher.dispatch(
        ToolInvocation("pod_inspect", {"name": "web-7f", "namespace": "prod"}, timeout=0.05)
    )

    assert result.kind is ErrorKind.TIMEOUT


@pytest.mark.asyncio
async def test_caller_cancellation_reaches_handler():
    registry = ToolRegistry()
    started = asyncio.Event()
    cancelled = asyncio.Event()

    async def waiting(replicas, dry_run=False):
        started.set()
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.set()
            raise
        return "done"

    registry.register(SCALE_TOOL, waiting)
    dispatcher = Dispatcher(registry)

    task = asyncio.create_task(dispatcher.dispatch(ToolInvocation("scale", {"replicas": 1})))
    await started.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert cancelled.is_set()


@pytest.mark.asyncio
async def test_concurrent_dispatches_are_independent(fake_provider, oom_snapshot):
    provider = fake_provider(snapshot=oom_snapshot, delay=0.01)
    dispatcher = _dispatcher(provider)

    results = await asyncio.gather(
        *(
            dispatcher.dispatch(
                ToolInvocation("pod_inspect", {"name": "web-7f", "namespace": "prod"})
            )
            for _ in range(10)
        )
    )

    assert len({result.text for result in results}) == 1
    assert len(provider.calls) == 10


def test_validate_arguments_kinds():
    assert validate_arguments(SCALE_TOOL, {"replicas": 2.5, "dry_run": True}) == {
        "replicas": 2.5,
        "dry_run": True,
    }
    assert validate_arguments(SCALE_TOOL, {"replicas": 1, "other": "x"}) == {"replicas": 1}

    with pytest.raises(ValidationError, match="'replicas'"):
        validate_arguments(SCALE_TOOL, {"replicas": True})
    with pytest.raises(ValidationError, match="'dry_run'"):
        validate_arguments(SCALE_TOOL, {"replicas": 1, "dry_run": "yes"})


@pytest.mark.asyncio
async def test_zero_timeout_is_not_replaced_by_default(fake_provider, oom_snapshot):
    dispatcher = _dispatcher(fake_provider(snapshot=oom_snapshot, delay=5), default_timeout=60)

    result = await dispatcher.dispatch(
        ToolInvocation("pod_inspect", {"name": "web-7f", "namespace": "prod"}, timeout=0)
    )

    assert result.kind is ErrorKind.TIMEOUT
    assert "within 0s" in result.message


@pytest.mark.asyncio
async def test_timeout_error_kind_comes_from_dispatch_timeout_error(fake_provider, oom_snapshot):
    dispatcher = _dispatcher(fake_provider(snapshot=oom_snapshot, delay=5), default_timeout=0.05)

    result = await dispatcher.dispatch(
        ToolInvocation("pod_inspect", {"name": "web-7f", "namespace": "prod"})
    )

    assert result.kind is DispatchTimeoutError.kind
    assert result.message.startswith("tool pod_inspect did not finish within 0.05s")
