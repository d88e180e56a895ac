"""MCP tool handlers."""
