"""A small Model Context Protocol server speaking JSON-RPC over line-delimited streams."""

from __future__ import annotations

import json
import sys
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, TextIO

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

LATEST_PROTOCOL_VERSION = "2025-06-18"
SUPPORTED_PROTOCOL_VERSIONS = ("2025-06-18", "2025-03-26", "2024-11-05")


@dataclass(frozen=True)
class ToolResult:
    """Text returned by a tool, possibly flagged as an error."""

    content: str
    is_error: bool = False

    @classmethod
    def text(cls, text: str) -> ToolResult:
        return cls(text)

    @classmethod
    def error(cls, text: str) -> ToolResult:
        return cls(text, is_error=True)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"content": [{"type": "text", "text": self.content}]}
        if self.is_error:
            result["isError"] = True
        return result


@dataclass(frozen=True)
class Tool:
    """A tool with a JSON schema for its arguments."""

    name: str
    description: str = ""
    properties: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    required: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        schema: dict[str, Any] = {
            "type": "object",
            "properties": {key: dict(value) for key, value in self.properties.items()},
        }
        if self.required:
            schema["required"] = list(self.required)
        return {"name": self.name, "description": self.description, "inputSchema": schema}


@dataclass(frozen=True)
class Prompt:
    """A prompt template; arguments are dicts with name, description and required."""

    name: str
    description: str = ""
    arguments: tuple[Mapping[str, Any], ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "arguments": [dict(argument) for argument in self.arguments],
        }


ToolHandler = Callable[[dict[str, Any]], ToolResult]
PromptHandler = Callable[[dict[str, str]], str]


class _RpcError(Exception):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


def _error_response(request_id: Any, code: int, message: str) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}


class McpServer:
    """Dispatches MCP requests to registered tools and prompts."""

    def __init__(self, name: str, version: str) -> None:
        self.name = name
        self.version = version
        self._tools: dict[str, tuple[Tool, ToolHandler]] = {}
        self._prompts: dict[str, tuple[Prompt, PromptHandler]] = {}

    def add_tool(self, tool: Tool, handler: ToolHandler) -> None:
        """Register a tool; its handler receives the call arguments."""
        self._tools[tool.name] = (tool, handler)

    def add_prompt(self, prompt: Prompt, handler: PromptHandler) -> None:
        """Register a prompt; its handler returns the assistant message text."""
        self._prompts[prompt.name] = (prompt, handler)

    def handle_message(self, message: Any) -> dict[str, Any] | None:
        """Answer one JSON-RPC message; notifications get no answer (None)."""
        if not isinstance(message, dict) or not isinstance(message.get("method"), str):
            request_id = message.get("id") if isinstance(message, dict) else None
            return _error_response(request_id, INVALID_REQUEST, "Invalid Request")
        if "id" not in message:
            return None
        request_id = message["id"]
        params = message.get("params") or {}
        if not isinstance(params, dict):
            return _error_response(request_id, INVALID_PARAMS, "params must be an object")
        try:
            result = self._dispatch(message["method"], params)
        except _RpcError as exc:
            return _error_response(request_id, exc.code, exc.message)
        return {"jsonrpc": "2.0", "id": request_id, "result": result}

    def _dispatch(self, method: str, params: dict[str, Any]) -> dict[str, Any]:
        if method == "initialize":
            return self._initialize(params)
        if method == "ping":
            return {}
        if method == "tools/list":
            return {"tools": [tool.to_dict() for tool, _ in sorted(self._tools.values(), key=lambda t: t[0].name)]}
        if method == "tools/call":
            return self._call_tool(params)
        if method == "prompts/list":
            return {
                "prompts": [p.to_dict() for p, _ in sorted(self._prompts.values(), key=lambda p: p[0].name)]
            }
        if method == "prompts/get":
            return self._get_prompt(params)
        raise _RpcError(METHOD_NOT_FOUND, f"Method not found: {method}")

    def _initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        requested = params.get("protocolVersion")
        version = requested if requested in SUPPORTED_PROTOCOL_VERSIONS else LATEST_PROTOCOL_VERSION
        capabilities: dict[str, Any] = {}
        if self._tools:
            capabilities["tools"] = {}
        if self._prompts:
            capabilities["prompts"] = {}
        return {
            "protocolVersion": version,
            "capabilities": capabilities,
            "serverInfo": {"name": self.name, "version": self.version},
        }

    def _call_tool(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        if name not in self._tools:
            raise _RpcError(INVALID_PARAMS, f"tool '{name}' not found")
        arguments = params.get("arguments") or {}
        if not isinstance(arguments, dict):
            raise _RpcError(INVALID_PARAMS, "arguments must be an object")
        _, handler = self._tools[name]
        try:
            return handler(arguments).to_dict()
        except Exception as exc:
            raise _RpcError(INTERNAL_ERROR, str(exc)) from exc

    def _get_prompt(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        if name not in self._prompts:
            raise _RpcError(INVALID_PARAMS, f"prompt '{name}' not found")
        arguments = params.get("arguments") or {}
        if not isinstance(arguments, dict):
            raise _RpcError(INVALID_PARAMS, "arguments must be an object")
        _, handler = self._prompts[name]
        try:
            text = handler({str(k): str(v) for k, v in arguments.items()})
        except Exception as exc:
            raise _RpcError(INTERNAL_ERROR, str(exc)) from exc
        return {
            "description": name,
            "messages": [{"role": "assistant", "content": {"type": "text", "text": text}}],
        }

    def serve(self, reader: Iterable[str], writer: TextIO) -> None:
        """Answer line-delimited JSON-RPC messages from reader until it is exhausted."""
        for line in reader:
            line = line.strip()
            if not line:
                continue
            try:
                message = json.loads(line)
            except ValueError as exc:
                response: dict[str, Any] | None = _error_response(None, PARSE_ERROR, f"Parse error: {exc}")
            else:
                response = self.handle_message(message)
            if response is not None:
                writer.write(json.dumps(response, ensure_ascii=False) + "\n")
                writer.flush()


def serve_stdio(server: McpServer) -> None:
    """Serve over standard input and output."""
    server.serve(sys.stdin, sys.stdout)