"""MCP-facing layer: tool registry, dispatcher and FastMCP binding."""
