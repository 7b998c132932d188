"""Tool definitions grouped by domain."""

from __future__ import annotations

from ...core.types import ClusterStatusProvider
from ..registry import ToolRegistry
from . import hello, pod

__all__ = ["hello", "pod", "register_all"]


def register_all(registry: ToolRegistry, provider: ClusterStatusProvider) -> ToolRegistry:
    """Register every built-in tool into ``registry``."""

    hello.register(registry)
    pod.register(registry, provider)
    return registry
