"""MCP server over stdio exposing DeepSeek chat, model listing, balance and token estimation tools."""

__version__ = "1.0.0"