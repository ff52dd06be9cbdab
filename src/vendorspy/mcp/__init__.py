from .mcp_runner import MCPToolError, VendorMCPRunner

__all__ = ["MCPToolError", "VendorMCPRunner"]
