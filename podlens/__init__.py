"""MCP tool server for inspecting Kubernetes pod health."""

__version__ = "0.1.0"
