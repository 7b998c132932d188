"""FastMCP server configuration and lifecycle helpers."""

from __future__ import annotations

from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.tools.tool import Tool, ToolResult as MCPToolResult
from mcp.types import TextContent
from pydantic import Field

from ..core.cluster_client import KubernetesStatusProvider
from ..core.config import ServerSettings
from ..core.logging_config import get_logger
from ..core.types import ClusterStatusProvider, ErrorResult, ToolInvocation, ToolSpec
from .dispatcher import Dispatcher
from .registry import ToolRegistry
from .tools import register_all

logger = get_logger(__name__)

SERVER_NAME = "podlens"


class DispatchingTool(Tool):
    """FastMCP tool whose calls are routed through the Dispatcher."""

    dispatcher: Any = Field(exclude=True)

    @classmethod
    def from_spec(cls, spec: ToolSpec, dispatcher: Dispatcher) -> "DispatchingTool":
        return cls(
            name=spec.name,
            description=spec.description,
            parameters=spec.input_schema(),
            dispatcher=dispatcher,
        )

    async def run(self, arguments: dict[str, Any]) -> MCPToolResult:
        result = await self.dispatcher.dispatch(ToolInvocation(self.name, arguments or {}))
        if isinstance(result, ErrorResult):
            raise ToolError(result.render())
        return MCPToolResult(content=[TextContent(type="text", text=result.text)])


def build_dispatcher(provider: ClusterStatusProvider, settings: ServerSettings) -> Dispatcher:
    """Register the built-in tools and wrap them in a Dispatcher."""

    registry = register_all(ToolRegistry(), provider)
    return Dispatcher(registry, default_timeout=settings.dispatch_timeout)


def create_mcp_server(dispatcher: Dispatcher) -> FastMCP:
    """Expose every registered tool on a FastMCP server and seal the registry."""

    mcp = FastMCP(SERVER_NAME)
    registry: ToolRegistry = dispatcher.registry
    for spec in registry.specs():
        mcp.add_tool(DispatchingTool.from_spec(spec, dispatcher))
    registry.seal()
    logger.info("mcp_tools_ready", count=len(registry))
    return mcp


async def serve(
    settings: ServerSettings, provider: KubernetesStatusProvider | None = None
) -> None:
    """Run the MCP server until the transport closes."""

    if provider is None:
        provider = KubernetesStatusProvider.from_settings(settings)

    async with provider:
        mcp = create_mcp_server(build_dispatcher(provider, settings))
        if settings.mode == "stream":
            logger.info(
                "server_starting",
                mode=settings.mode,
                host=settings.listen_host,
                port=settings.listen_port,
            )
            await mcp.run_async(
                transport="sse", host=settings.listen_host, port=settings.listen_port
            )
        else:
            logger.info("server_starting", mode=settings.mode)
            await mcp.run_async(transport="stdio")
    logger.info("server_stopped", mode=settings.mode)
