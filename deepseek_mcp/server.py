"""Tool and prompt handlers backed by the DeepSeek API."""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from .client import (
    BalanceResponse,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    DeepseekClient,
    estimate_token_count,
)
from .config import Config
from .fileutil import (
    FileValidationError,
    human_readable_size,
    language_for_path,
    read_file,
    validate_file_path,
)
from .jsonextract import JSONExtractionError, extract_strict_json, truncate_string
from .logger import Logger, new_logger
from .mcp import ToolResult
from .models import InvalidModelError, ModelCatalog, ModelInfo
from .prompts import PromptDefinition
from .retry import is_retryable_error, retry_with_backoff

T = TypeVar("T")

EMPTY_RESPONSE_MESSAGE = (
    "The DeepSeek model returned an empty response. This might indicate that the model "
    "couldn't generate an appropriate response for your query. Please try rephrasing your "
    "question or providing more context."
)

_TRUE_STRINGS = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_STRINGS = {"0", "f", "F", "FALSE", "false", "False"}


def format_model_name(model_id: str) -> str:
    """Turn an identifier such as "deepseek-chat" into a readable name."""
    return " ".join(part[:1].upper() + part[1:] for part in model_id.split("-"))


def availability_status(is_available: bool) -> str:
    """Human-readable account availability line."""
    if is_available:
        return "✅ Available (Balance is sufficient for API calls)"
    return "❌ Unavailable (Insufficient balance for API calls)"


def _get_string(arguments: Mapping[str, Any], key: str, default: str = "") -> str:
    value = arguments.get(key)
    return value if isinstance(value, str) else default


def _require_string(arguments: Mapping[str, Any], key: str) -> str:
    if key not in arguments:
        raise ValueError(f'required argument "{key}" not found')
    value = arguments[key]
    if not isinstance(value, str):
        raise ValueError(f'argument "{key}" is not a string')
    return value


def _get_string_list(arguments: Mapping[str, Any], key: str) -> list[str]:
    value = arguments.get(key)
    if isinstance(value, (list, tuple)):
        return [item for item in value if isinstance(item, str)]
    return []


def _get_bool(arguments: Mapping[str, Any], key: str, default: bool = False) -> bool:
    value = arguments.get(key)
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        if value in _TRUE_STRINGS:
            return True
        if value in _FALSE_STRINGS:
            return False
        return default
    if isinstance(value, (int, float)):
        return value != 0
    return default


class DeepseekServer:
    """Answers the ask, models, balance and token-estimate tools."""

    def __init__(
        self,
        config: Config | None,
        client: Any = None,
        logger: Logger | None = None,
    ) -> None:
        if config is None:
            raise ValueError("config cannot be nil")
        if not config.api_key:
            raise ValueError("DeepSeek API key is required")
        self.config = config
        self.logger = logger if logger is not None else new_logger("info")
        self._client = (
            client
            if client is not None
            else DeepseekClient(config.api_key, timeout=config.http_timeout)
        )
        self.catalog = ModelCatalog()
        try:
            self.discover_models()
        except Exception as exc:
            self.logger.warn(
                "Failed to discover DeepSeek models, will use fallback models: %s", exc
            )

    def _retry(self, operation: Callable[[], T]) -> T:
        return retry_with_backoff(
            operation,
            self.config.max_retries,
            self.config.initial_backoff,
            self.config.max_backoff,
            is_retryable_error,
            self.logger,
        )

    def discover_models(self) -> list[ModelInfo]:
        """Fetch the model list from the API and make it the available set."""
        self.logger.info("Discovering available DeepSeek models from API")
        try:
            api_models = self._retry(self._client.list_models)
        except Exception as exc:
            self.logger.error("Failed to get models from DeepSeek API: %s", exc)
            raise
        models = [
            ModelInfo(
                id=model.id,
                name=format_model_name(model.id),
                description=f"Model provided by {model.owned_by}",
            )
            for model in api_models
        ]
        self.catalog.replace(models)
        self.logger.info("Discovered %d DeepSeek models", len(models))
        return models

    def _file_context(self, file_paths: list[str]) -> str | None:
        self.logger.info("Processing %d file_paths for context", len(file_paths))
        sections = ["\n\n# Reference Files\n"]
        total_size = 0
        for file_path in file_paths:
            try:
                validate_file_path(file_path, self.config)
            except FileValidationError as exc:
                self.logger.warn("File validation failed for %s: %s", file_path, exc)
                continue
            try:
                content = read_file(file_path)
            except OSError as exc:
                self.logger.error("Failed to read file %s: %s", file_path, exc)
                continue
            total_size += len(content)
            sections.append(
                f"\n\n## {os.path.basename(file_path)}\n\n"
                f"```{language_for_path(file_path)}\n"
                f"{content.decode('utf-8', errors='replace')}\n```"
            )
        if len(sections) == 1:
            self.logger.warn("No files were successfully read to include in the query")
            return None
        self.logger.info(
            "Including %d file(s) in the query, total size: %s",
            len(sections) - 1,
            human_readable_size(total_size),
        )
        return "".join(sections)

    def handle_ask(self, arguments: Mapping[str, Any]) -> ToolResult:
        """Send a question, optionally with file contents, to the chat model."""
        self.logger.info("Handling deepseek_ask request")
        try:
            query = _require_string(arguments, "query")
        except ValueError as exc:
            self.logger.error("Missing required 'query' parameter: %s", exc)
            return ToolResult.error(f"Missing required 'query' parameter: {exc}")

        model_name = self.config.model
        custom_model = _get_string(arguments, "model")
        if custom_model:
            try:
                self.catalog.validate_model_id(custom_model)
            except InvalidModelError as exc:
                self.logger.error("Invalid model requested: %s", exc)
                return ToolResult.error(f"Invalid model specified: {exc}")
            self.logger.info("Using request-specific model: %s", custom_model)
            model_name = custom_model

        system_prompt = self.config.system_prompt
        custom_prompt = _get_string(arguments, "systemPrompt")
        if custom_prompt:
            self.logger.info("Using request-specific system prompt")
            system_prompt = custom_prompt

        file_paths = _get_string_list(arguments, "file_paths")
        json_mode = _get_bool(arguments, "json_mode")
        if json_mode:
            self.logger.info("JSON mode is enabled via request")

        final_query = query
        if file_paths:
            context = self._file_context(file_paths)
            if context is not None:
                final_query = query + context

        request = ChatCompletionRequest(
            model=model_name,
            messages=[
                ChatMessage(role="system", content=system_prompt),
                ChatMessage(role="user", content=final_query),
            ],
            temperature=self.config.temperature,
            json_mode=json_mode,
        )
        self.logger.debug(
            "Using temperature: %s for model %s. JSON mode: %s",
            self.config.temperature,
            model_name,
            json_mode,
        )

        try:
            response: ChatCompletionResponse = self._retry(
                lambda: self._client.create_chat_completion(request)
            )
        except Exception as exc:
            self.logger.error("DeepSeek API error: %s", exc)
            message = f"Error from DeepSeek API: {exc}"
            if file_paths:
                message += f"\n\nThe request included {len(file_paths)} file(s)."
            return ToolResult.error(message)

        content = response.content
        if not content:
            self.logger.warn("DeepSeek model returned an empty response.")
            content = EMPTY_RESPONSE_MESSAGE

        if json_mode:
            try:
                return ToolResult.text(extract_strict_json(content))
            except JSONExtractionError as exc:
                self.logger.error(
                    "JSON mode validation failed: %s. Original content: %s", exc, content
                )
                return ToolResult.error(
                    f"JSON mode validation failed: {exc}. The model returned content that "
                    f"could not be parsed as valid JSON. Original preview: "
                    f"{truncate_string(content, 100)}"
                )
        return ToolResult.text(content)

    def handle_models(self, arguments: Mapping[str, Any] | None = None) -> ToolResult:
        """List the available models in Markdown."""
        self.logger.info("Listing available DeepSeek models")
        lines = ["# Available DeepSeek Models\n\n"]
        for model in self.catalog.available():
            lines.append(f"## {model.name}\n")
            lines.append(f"- ID: `{model.id}`\n")
            lines.append(f"- Description: {model.description}\n\n")
        lines.append("## Usage\n")
        lines.append(
            "You can specify a model ID in the `model` parameter when using the "
            "`deepseek_ask` tool:\n"
        )
        lines.append(
            '```json\n{\n  "query": "Your question here",\n  "model": "deepseek-chat"\n}\n```\n'
        )
        return ToolResult.text("".join(lines))

    def handle_balance(self, arguments: Mapping[str, Any] | None = None) -> ToolResult:
        """Report the account balance in Markdown."""
        self.logger.info("Checking DeepSeek API balance")
        try:
            balance: BalanceResponse = self._retry(self._client.get_balance)
        except Exception as exc:
            self.logger.error("Failed to get balance from DeepSeek API: %s", exc)
            return ToolResult.error(f"Error checking balance: {exc}")

        lines = [
            "# DeepSeek API Balance Information\n\n",
            f"**Account Status:** {availability_status(balance.is_available)}\n\n",
        ]
        if balance.balance_infos:
            lines.append("## Balance Details\n\n")
            lines.append("| Currency | Total Balance | Granted Balance | Topped-up Balance |\n")
            lines.append("|----------|--------------|----------------|------------------|\n")
            lines.extend(
                f"| {info.currency} | {info.total_balance} | {info.granted_balance} | "
                f"{info.topped_up_balance} |\n"
                for info in balance.balance_infos
            )
        else:
            lines.append("*No balance details available*\n")
        lines.append("\n## Usage Information\n\n")
        lines.append("To top up your account or check more detailed usage statistics, ")
        lines.append("please visit the [DeepSeek Platform](https://platform.deepseek.com).\n")
        return ToolResult.text("".join(lines))

    def handle_token_estimate(self, arguments: Mapping[str, Any]) -> ToolResult:
        """Estimate the token count of given text or of a file."""
        self.logger.info("Estimating token count")
        text = _get_string(arguments, "text")
        file_path = _get_string(arguments, "file_path")

        if file_path:
            try:
                validate_file_path(file_path, self.config)
            except FileValidationError as exc:
                self.logger.warn("File validation failed for %s: %s", file_path, exc)
                return ToolResult.error(f"File validation failed: {exc}")
            try:
                raw = read_file(file_path)
            except OSError as exc:
                self.logger.error(
                    "Failed to read file for token estimation %s: %s", file_path, exc
                )
                return ToolResult.error(f"Error reading file: {exc}")
            content = raw.decode("utf-8", errors="replace")
            byte_size = len(raw)
            source_type, source_name = "file", os.path.basename(file_path)
        elif text:
            content = text
            byte_size = len(text.encode("utf-8"))
            source_type, source_name = "text", "provided input"
        else:
            self.logger.warn("handle_token_estimate called without 'text' or 'file_path'")
            return ToolResult.error("Please provide either 'text' or 'file_path' parameter")

        tokens = estimate_token_count(content)
        self.logger.info("Estimated %d tokens for %s %s", tokens, source_type, source_name)
        char_count = len(content)

        lines = [
            "# Token Estimation Results\n\n",
            f"**Source Type:** {source_type}\n",
            f"**Source:** {source_name}\n",
            f"**Estimated Token Count:** {tokens}\n\n",
            "## Content Statistics\n\n",
            f"- **Byte Size:** {human_readable_size(byte_size)} ({byte_size} bytes)\n",
            f"- **Character Count:** {char_count} characters\n",
        ]
        if char_count > 0:
            lines.append(f"- **Tokens per Character Ratio:** {tokens / char_count:.2f} tokens/char\n")
        lines.append("\n## Note\n\n")
        lines.append(
            "*This is an estimation and may not exactly match the token count used by the API. "
        )
        lines.append(
            "Actual token usage can vary based on the model and specific tokenization algorithm.*\n"
        )
        return ToolResult.text("".join(lines))

    def prompt_handler(self, prompt: PromptDefinition) -> Callable[[Mapping[str, str]], str]:
        """A handler rendering the given prompt's instructions."""

        def handle(arguments: Mapping[str, str]) -> str:
            return prompt.render(arguments)

        return handle

    def close(self) -> None:
        """Release the API client."""
        close = getattr(self._client, "close", None)
        if callable(close):
            close()