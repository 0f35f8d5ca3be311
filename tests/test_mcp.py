import io
import json

import pytest

from deepseek_mcp.mcp import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    LATEST_PROTOCOL_VERSION,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    McpServer,
    Prompt,
    Tool,
    ToolResult,
)


def _echo(arguments):
    return ToolResult.text(arguments.get("query", ""))


def _boom(arguments):
    raise RuntimeError("handler failed")


@pytest.fixture
def server():
    srv = McpServer("deepseek", "1.0.0")
    srv.add_tool(
        Tool("echo", "Echo the query", {"query": {"type": "string"}}, required=("query",)),
        _echo,
    )
    srv.add_tool(Tool("boom", "Always fails"), _boom)
    srv.add_prompt(
        Prompt("greet", "Say hi", ({"name": "who", "required": True},)),
        lambda args: "hi " + args["who"],
    )
    return srv


def _call(server, method, params=None, request_id=1):
    message = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        message["params"] = params
    return server.handle_message(message)


def test_tool_result_dicts():
    assert ToolResult.text("ok").to_dict() == {"content": [{"type": "text", "text": "ok"}]}
    assert ToolResult.error("bad").to_dict()["isError"] is True


def test_tool_schema():
    schema = Tool("t", "d", {"a": {"type": "string"}}, ("a",)).to_dict()["inputSchema"]
    assert schema == {"type": "object", "properties": {"a": {"type": "string"}}, "required": ["a"]}


def test_initialize_reports_server_info(server):
    result = _call(server, "initialize", {"protocolVersion": "unknown"})["result"]
    assert result["serverInfo"] == {"name": "deepseek", "version": "1.0.0"}
    assert result["protocolVersion"] == LATEST_PROTOCOL_VERSION
    assert set(result["capabilities"]) == {"tools", "prompts"}


def test_initialize_echoes_supported_version(server):
    result = _call(server, "initialize", {"protocolVersion": "2024-11-05"})["result"]
    assert result["protocolVersion"] == "2024-11-05"


def test_tools_list_sorted(server):
    tools = _call(server, "tools/list")["result"]["tools"]
    assert [t["name"] for t in tools] == ["boom", "echo"]


def test_tools_call(server):
    response = _call(server, "tools/call", {"name": "echo", "arguments": {"query": "abc"}}, request_id=7)
    assert response["id"] == 7
    assert response["result"] == ToolResult.text("abc").to_dict()


def test_tools_call_unknown(server):
    response = _call(server, "tools/call", {"name": "missing"})
    assert response["error"]["code"] == INVALID_PARAMS


def test_tools_call_handler_failure(server):
    response = _call(server, "tools/call", {"name": "boom"})
    assert response["error"] == {"code": INTERNAL_ERROR, "message": "handler failed"}


def test_prompts_get(server):
    result = _call(server, "prompts/get", {"name": "greet", "arguments": {"who": "there"}})["result"]
    assert result["description"] == "greet"
    assert result["messages"] == [{"role": "assistant", "content": {"type": "text", "text": "hi there"}}]


def test_prompts_get_handler_failure(server):
    response = _call(server, "prompts/get", {"name": "greet", "arguments": {}})
    assert response["error"]["code"] == INTERNAL_ERROR


def test_prompts_list(server):
    prompts = _call(server, "prompts/list")["result"]["prompts"]
    assert prompts == [Prompt("greet", "Say hi", ({"name": "who", "required": True},)).to_dict()]


def test_unknown_method(server):
    assert _call(server, "nope")["error"]["code"] == METHOD_NOT_FOUND


def test_notification_has_no_response(server):
    assert server.handle_message({"jsonrpc": "2.0", "method": "notifications/initialized"}) is None


def test_invalid_request(server):
    assert server.handle_message([1, 2])["error"]["code"] == INVALID_REQUEST


def test_serve_lines(server):
    lines = [
        json.dumps({"jsonrpc": "2.0", "id": 1, "method": "ping"}),
        "",
        "{not json",
        json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"}),
        json.dumps({"jsonrpc": "2.0", "id": 2, "method": "tools/call", "params": {"name": "echo", "arguments": {"query": "q"}}}),
    ]
    out = io.StringIO()
    server.serve(io.StringIO("\n".join(lines) + "\n"), out)
    responses = [json.loads(line) for line in out.getvalue().splitlines()]
    assert len(responses) == 3
    assert responses[0] == {"jsonrpc": "2.0", "id": 1, "result": {}}
    assert responses[1]["error"]["code"] == PARSE_ERROR
    assert responses[2]["result"]["content"][0]["text"] == "q"