import io

import pytest

from deepseek_mcp.client import (
    APIModel,
    BalanceInfo,
    BalanceResponse,
    ChatCompletionResponse,
    ChatMessage,
    DeepseekAPIError,
    estimate_token_count,
)
from deepseek_mcp.config import Config
from deepseek_mcp.logger import Logger
from deepseek_mcp.models import fallback_models
from deepseek_mcp.prompts import PROMPTS, create_task_instructions
from deepseek_mcp.server import (
    EMPTY_RESPONSE_MESSAGE,
    DeepseekServer,
    availability_status,
    format_model_name,
)


class FakeClient:
    def __init__(self, models=None, reply="answer", balance=None, chat_errors=(), models_error=None,
                 balance_error=None):
        self.models = models if models is not None else [APIModel("deepseek-chat", "deepseek")]
        self.reply = reply
        self.balance = balance
        self.chat_errors = list(chat_errors)
        self.models_error = models_error
        self.balance_error = balance_error
        self.requests = []
        self.closed = False

    def list_models(self):
        if self.models_error is not None:
            raise self.models_error
        return self.models

    def create_chat_completion(self, request):
        self.requests.append(request)
        if self.chat_errors:
            raise self.chat_errors.pop(0)
        return ChatCompletionResponse(choices=[ChatMessage("assistant", self.reply)] if self.reply else [])

    def get_balance(self):
        if self.balance_error is not None:
            raise self.balance_error
        return self.balance

    def close(self):
        self.closed = True


@pytest.fixture
def allowed(tmp_path):
    root = tmp_path / "allowed"
    root.mkdir()
    return root


def make_server(allowed, client=None, **overrides):
    settings = dict(
        api_key="placeholder",
        model="deepseek-chat",
        allowed_file_paths=[str(allowed)],
        max_retries=0,
        initial_backoff=0.0,
        max_backoff=0.0,
    )
    settings.update(overrides)
    config = Config(**settings)
    return DeepseekServer(config, client or FakeClient(), Logger("error", io.StringIO()))


def test_format_model_name():
    assert format_model_name("deepseek-chat") == "Deepseek Chat"
    assert format_model_name("x") == "X"


def test_availability_status():
    assert availability_status(True) == "✅ Available (Balance is sufficient for API calls)"
    assert availability_status(False) == "❌ Unavailable (Insufficient balance for API calls)"


def test_constructor_rejects_missing_config():
    with pytest.raises(ValueError, match="config cannot be nil"):
        DeepseekServer(None, FakeClient())
    with pytest.raises(ValueError, match="API key is required"):
        DeepseekServer(Config(api_key=""), FakeClient())


def test_discovered_models_are_available(allowed):
    client = FakeClient(models=[APIModel("deepseek-chat", "deepseek"), APIModel("deepseek-coder", "deepseek")])
    server = make_server(allowed, client)
    available = server.catalog.available()
    assert [m.id for m in available] == ["deepseek-chat", "deepseek-coder"]
    assert available[0].description == "Model provided by deepseek"
    assert available[0].name == format_model_name("deepseek-chat")


def test_discovery_failure_uses_fallback(allowed):
    client = FakeClient(models_error=DeepseekAPIError(500, "boom"))
    server = make_server(allowed, client)
    assert server.catalog.available() == fallback_models()
    with pytest.raises(DeepseekAPIError):
        server.discover_models()


def test_ask_requires_query(allowed):
    result = make_server(allowed).handle_ask({})
    assert result.is_error
    assert result.content.startswith("Missing required 'query' parameter")


def test_ask_rejects_unknown_model(allowed):
    result = make_server(allowed).handle_ask({"query": "q", "model": "nope"})
    assert result.is_error
    assert "Invalid model specified" in result.content
    assert "nope" in result.content


def test_ask_sends_query_and_system_prompt(allowed):
    client = FakeClient(reply="hello")
    server = make_server(allowed, client)
    result = server.handle_ask({"query": "why?"})
    assert not result.is_error
    assert result.content == "hello"
    request = client.requests[0]
    assert request.model == "deepseek-chat"
    assert request.messages[0].content == server.config.system_prompt
    assert request.messages[1].content == "why?"
    assert request.json_mode is False


def test_ask_custom_system_prompt(allowed):
    client = FakeClient()
    make_server(allowed, client).handle_ask({"query": "q", "systemPrompt": "be brief"})
    assert client.requests[0].messages[0].content == "be brief"


def test_ask_includes_allowed_files(allowed):
    source = allowed / "a.py"
    source.write_text("print(1)")
    client = FakeClient()
    make_server(allowed, client).handle_ask({"query": "q", "file_paths": [str(source)]})
    content = client.requests[0].messages[1].content
    assert content.startswith("q\n\n# Reference Files\n")
    assert "## a.py" in content
    assert "```python\nprint(1)\n```" in content


def test_ask_skips_files_outside_allowed_roots(allowed, tmp_path):
    outside = tmp_path / "b.py"
    outside.write_text("secret")
    client = FakeClient()
    make_server(allowed, client).handle_ask({"query": "q", "file_paths": [str(outside)]})
    assert client.requests[0].messages[1].content == "q"


def test_ask_json_mode_extracts_json(allowed):
    client = FakeClient(reply='```json\n{"a": 1}\n```')
    result = make_server(allowed, client).handle_ask({"query": "q", "json_mode": True})
    assert result.content == '{"a": 1}'
    assert client.requests[0].json_mode is True


def test_ask_json_mode_invalid(allowed):
    client = FakeClient(reply="no json here")
    result = make_server(allowed, client).handle_ask({"query": "q", "json_mode": "true"})
    assert result.is_error
    assert result.content.startswith("JSON mode validation failed")
    assert "no json here" in result.content


def test_ask_empty_response(allowed):
    client = FakeClient(reply="")
    result = make_server(allowed, client).handle_ask({"query": "q"})
    assert not result.is_error
    assert result.content == EMPTY_RESPONSE_MESSAGE


def test_ask_api_error_mentions_files(allowed):
    source = allowed / "a.py"
    source.write_text("x = 1")
    client = FakeClient(chat_errors=[DeepseekAPIError(500, "boom")])
    result = make_server(allowed, client).handle_ask({"query": "q", "file_paths": [str(source)]})
    assert result.is_error
    assert result.content.startswith("Error from DeepSeek API:")
    assert result.content.endswith("The request included 1 file(s).")


def test_ask_retries_network_errors(allowed):
    client = FakeClient(reply="ok", chat_errors=[ConnectionError("connection refused")])
    result = make_server(allowed, client, max_retries=1).handle_ask({"query": "q"})
    assert result.content == "ok"
    assert len(client.requests) == 2


def test_models_listing(allowed):
    result = make_server(allowed).handle_models({})
    assert result.content.startswith("# Available DeepSeek Models\n\n")
    assert "- ID: `deepseek-chat`\n" in result.content
    assert "## Usage\n" in result.content


def test_balance_table(allowed):
    balance = BalanceResponse(True, [BalanceInfo("USD", "10.00", "0.00", "10.00")])
    result = make_server(allowed, FakeClient(balance=balance)).handle_balance({})
    assert availability_status(True) in result.content
    assert "| USD | 10.00 | 0.00 | 10.00 |\n" in result.content


def test_balance_without_details(allowed):
    result = make_server(allowed, FakeClient(balance=BalanceResponse(False))).handle_balance({})
    assert availability_status(False) in result.content
    assert "*No balance details available*\n" in result.content


def test_balance_error(allowed):
    client = FakeClient(balance_error=DeepseekAPIError(401, "denied"))
    result = make_server(allowed, client).handle_balance({})
    assert result.is_error
    assert result.content.startswith("Error checking balance:")


def test_token_estimate_requires_input(allowed):
    result = make_server(allowed).handle_token_estimate({})
    assert result.is_error
    assert result.content == "Please provide either 'text' or 'file_path' parameter"


def test_token_estimate_text(allowed):
    text = "hello world"
    result = make_server(allowed).handle_token_estimate({"text": text})
    assert "**Source Type:** text\n" in result.content
    assert f"**Estimated Token Count:** {estimate_token_count(text)}\n" in result.content
    assert f"- **Character Count:** {len(text)} characters\n" in result.content


def test_token_estimate_file(allowed):
    source = allowed / "notes.md"
    source.write_text("# title")
    result = make_server(allowed).handle_token_estimate({"file_path": str(source)})
    assert "**Source Type:** file\n" in result.content
    assert "**Source:** notes.md\n" in result.content


def test_token_estimate_rejects_outside_file(allowed, tmp_path):
    outside = tmp_path / "x.md"
    outside.write_text("x")
    result = make_server(allowed).handle_token_estimate({"file_path": str(outside)})
    assert result.is_error
    assert result.content.startswith("File validation failed:")


def test_prompt_handler(allowed):
    prompt = PROMPTS[0]
    handler = make_server(allowed).prompt_handler(prompt)
    assert handler({"problem_statement": "fix it"}) == create_task_instructions("fix it", prompt.system_prompt)
    with pytest.raises(ValueError, match="problem_statement"):
        handler({})


def test_close_closes_client(allowed):
    client = FakeClient()
    make_server(allowed, client).close()
    assert client.closed is True