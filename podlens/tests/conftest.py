import asyncio

import pytest

from podlens.core.types import (
    ContainerStatus,
    TerminationState,
    WorkloadRef,
    WorkloadSnapshot,
)


class FakeProvider:
    """In-memory ClusterStatusProvider recording every call."""

    def __init__(self, snapshot=None, error=None, delay=0.0):
        self.snapshot = snapshot
        self.error = error
        self.delay = delay
        self.calls = []

    async def get_workload(self, namespace, name):
        self.calls.append((namespace, name))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.snapshot


@pytest.fixture
def fake_provider():
    return FakeProvider


@pytest.fixture
def web_ref():
    return WorkloadRef(name="web-7f", namespace="prod")


@pytest.fixture
def oom_snapshot(web_ref):
    return WorkloadSnapshot(
        ref=web_ref,
        container_statuses=(
            ContainerStatus(
                name="app",
                restart_count=3,
                last_termination=TerminationState(reason="OOMKilled", exit_code=137),
            ),
            ContainerStatus(name="sidecar", restart_count=0),
        ),
        declared_container_count=2,
        phase="Running",
    )
