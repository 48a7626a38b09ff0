"""MCP server for journalcheck."""
