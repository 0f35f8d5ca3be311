# deepseek-mcp

A Model Context Protocol (MCP) server. It speaks line-delimited JSON-RPC on
standard input and output and forwards requests to the DeepSeek API. Point an
MCP-capable client, such as an editor or an assistant, at it. The client then
gets these tools:

| Tool | What it does |
| --- | --- |
| `deepseek_ask` | Sends a question to a DeepSeek model. Local files can be attached as context. In JSON mode it returns only the first valid JSON object or array found in the answer. |
| `deepseek_models` | Lists the models the API reported at startup. If that discovery failed, it lists three built-in fallbacks: `deepseek-chat`, `deepseek-coder` and `deepseek-reasoner`. |
| `deepseek_balance` | Shows the account balance per currency and whether the account can make calls. |
| `deepseek_token_estimate` | Gives a rough token count for a text (`text`) or for a file (`file_path`). |

It also registers eight prompts: `code_review`, `explain_code`, `debug_help`,
`refactor_suggestions`, `architecture_analysis`, `doc_generate`,
`test_generate` and `security_analysis`. Each takes a required
`problem_statement` argument. Each answers with instructions telling the
client to call `deepseek_ask` with a matching system prompt.

## Installation

```
pip install .
```

## Running

```
deepseek-mcp
```

The server reads one JSON-RPC message per line on stdin and writes one reply
per line on stdout. Log lines go to stderr.

If startup fails, the server still runs, in a degraded mode named
`deepseek-error`. Startup fails in these cases:

- the API key is missing;
- an environment variable cannot be parsed;
- the temperature given on the command line is above 1.0;
- the chosen model is not among the available models.

The degraded mode offers one tool, `startup_error`, which returns the error
message.

The command exits with status 0 when stdin is exhausted, and with 1 if serving
fails.

### Command-line options

Each option may be written with one or two leading dashes.

| Option | Meaning |
| --- | --- |
| `--deepseek-model NAME` | Default model. Overrides `DEEPSEEK_MODEL`. It must be one of the available models. |
| `--deepseek-system-prompt TEXT` | Default system prompt. Overrides the environment. |
| `--deepseek-temperature T` | Temperature from 0.0 to 1.0. A negative value leaves the configured temperature unchanged. |
| `--deepseek-allowed-file-paths A,B` | Comma-separated directories whose files may be read. |
| `--log-level LEVEL` | One of `debug`, `info`, `warn` or `error`. Any other name means `info`. |

## Configuration

Settings come from environment variables. A `.env` file in the current
working directory is loaded first.

| Variable | Default |
| --- | --- |
| `DEEPSEEK_API_KEY` | required |
| `DEEPSEEK_MODEL` | `deepseek-reasoner` |
| `DEEPSEEK_SYSTEM_PROMPT` | a built-in code-review prompt |
| `DEEPSEEK_SYSTEM_PROMPT_FILE` | read only if `DEEPSEEK_SYSTEM_PROMPT` is empty |
| `DEEPSEEK_MAX_FILE_SIZE` | `10485760` bytes |
| `DEEPSEEK_ALLOWED_FILE_TYPES` | common text and code MIME types, comma-separated |
| `DEEPSEEK_TEMPERATURE` | `0.4` |
| `DEEPSEEK_TIMEOUT` | `270` (whole seconds, or a duration such as `2m30s`) |
| `DEEPSEEK_MAX_RETRIES` | `2` |
| `DEEPSEEK_INITIAL_BACKOFF` | `1s` (a duration such as `500ms`) |
| `DEEPSEEK_MAX_BACKOFF` | `10s` |
| `DEEPSEEK_ALLOWED_FILE_PATHS` | the current working directory |
| `DEEPSEEK_LOG_LEVEL` | `info` |

A file is read only if all of these hold:

- after symlinks are resolved, it lies inside an allowed directory;
- it is not a directory;
- it is no larger than the size limit;
- the MIME type guessed from its extension is on the allowed list.

If a file attached to `deepseek_ask` fails these checks, it is skipped and
logged, and the question is still sent.

API calls are retried when the error looks like a timeout or a connection
failure. The first wait is the initial backoff plus up to 10% random jitter,
capped at the maximum backoff. The backoff doubles after each retry.

The token estimate counts 0.6 tokens per CJK ideograph and 0.3 tokens per
other character that is not whitespace, rounded up. It is an approximation,
not the API's real tokenizer.

## Example client configuration

```json
{
  "mcpServers": {
    "deepseek": {
      "command": "deepseek-mcp",
      "env": {"DEEPSEEK_API_KEY": "placeholder"}
    }
  }
}
```

## Use from Python

```python
from deepseek_mcp.config import load_config
from deepseek_mcp.logger import new_logger
from deepseek_mcp.client import DeepseekClient
from deepseek_mcp.cli import build_server
from deepseek_mcp.mcp import serve_stdio

config = load_config({"DEEPSEEK_API_KEY": "placeholder"})
logger = new_logger(config.log_level)
client = DeepseekClient(config.api_key, timeout=config.http_timeout)
server, deepseek = build_server(config, logger, client)
serve_stdio(server)
```

The package's modules:

- `deepseek_mcp.config`: `load_config`, `Config`, `ConfigError`, `parse_go_duration`.
- `deepseek_mcp.client`: `DeepseekClient`, with `create_chat_completion`, `list_models`, `get_balance` and `close`. It also has `estimate_token_count`.
- `deepseek_mcp.server`: `DeepseekServer`, the tool handlers.
- `deepseek_mcp.mcp`: `McpServer`, `Tool`, `Prompt`, `ToolResult` and `serve_stdio`.
- `deepseek_mcp.prompts`: `PROMPTS`, `PromptDefinition`, `find_prompt` and `create_task_instructions`.
- `deepseek_mcp.models`: `ModelCatalog`, `ModelInfo` and `fallback_models`.
- `deepseek_mcp.fileutil`: `validate_file_path`, `is_path_allowed`, `mime_type_for_path`, `language_for_path` and `human_readable_size`.
- `deepseek_mcp.jsonextract`: `extract_strict_json`.
- `deepseek_mcp.retry`: `retry_with_backoff` and the error classifiers.
- `deepseek_mcp.logger`: `Logger`, `LogLevel` and `new_logger`.

## Limitations

The MCP server handles these methods: `initialize`, `ping`, `tools/list`,
`tools/call`, `prompts/list` and `prompts/get`. Notifications are accepted
and ignored. It has no resources, no sampling, no progress or cancellation
messages, and no transport other than standard input and output. There is no
HTTP or SSE endpoint. The model list is fetched once at startup and not
refreshed later. Conversations are not kept between calls.

## Tests

```
pip install ".[test]"
pytest
```