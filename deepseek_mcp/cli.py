"""Command-line entry point: configure and run the MCP server over standard I/O."""

from __future__ import annotations

import argparse
import os
from collections.abc import Sequence
from typing import Any

from dotenv import load_dotenv

from .config import Config, ConfigError, load_config
from .fileutil import human_readable_size
from .logger import Logger, new_logger
from .mcp import McpServer, Prompt, Tool, ToolResult, serve_stdio
from .models import InvalidModelError
from .prompts import PROMPTS
from .server import DeepseekServer

SERVER_NAME = "deepseek"
ERROR_SERVER_NAME = "deepseek-error"
SERVER_VERSION = "1.0.0"
_PROMPT_PREVIEW_LENGTH = 50

_ASK_TOOL = Tool(
    name="deepseek_ask",
    description="Use DeepSeek's AI model to ask about complex coding problems.",
    properties={
        "query": {
            "type": "string",
            "description": "The coding problem or question for DeepSeek AI, including any relevant code.",
        },
        "model": {
            "type": "string",
            "description": (
                "Optional: Specific DeepSeek model to use (e.g., deepseek-chat, deepseek-coder). "
                "Overrides default configuration."
            ),
        },
        "systemPrompt": {
            "type": "string",
            "description": (
                "Optional: Custom system prompt to guide the AI's behavior for this request. "
                "Overrides default configuration."
            ),
        },
        "file_paths": {
            "type": "array",
            "description": (
                "Optional: Paths to files to include in the request context. "
                "Content will be appended to the query."
            ),
            "items": {"type": "string"},
        },
        "json_mode": {
            "type": "boolean",
            "description": (
                "Optional: Enable JSON mode for structured JSON responses. "
                "Set to true when expecting JSON output."
            ),
        },
    },
    required=("query",),
)

_MODELS_TOOL = Tool(
    name="deepseek_models",
    description="List available DeepSeek models with descriptions.",
)

_BALANCE_TOOL = Tool(
    name="deepseek_balance",
    description="Check your DeepSeek API account balance.",
)

_TOKEN_ESTIMATE_TOOL = Tool(
    name="deepseek_token_estimate",
    description="Estimate the number of tokens in a given text or file content.",
    properties={
        "text": {
            "type": "string",
            "description": "Text to estimate token count for. Use this or file_path.",
        },
        "file_path": {
            "type": "string",
            "description": "Path to a file to estimate token count for. Use this or text.",
        },
    },
)

_PROBLEM_STATEMENT_ARGUMENT = {
    "name": "problem_statement",
    "description": "The user's problem statement or question to be addressed.",
    "required": True,
}


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse the command-line overrides; options take one or two leading dashes."""
    parser = argparse.ArgumentParser(
        prog="deepseek-mcp",
        description="MCP server for the DeepSeek API over standard input and output.",
        allow_abbrev=False,
    )
    parser.add_argument(
        "-deepseek-model", "--deepseek-model",
        dest="deepseek_model", default="",
        help="DeepSeek model name (overrides env var)",
    )
    parser.add_argument(
        "-deepseek-system-prompt", "--deepseek-system-prompt",
        dest="deepseek_system_prompt", default="",
        help="System prompt (overrides env var)",
    )
    parser.add_argument(
        "-deepseek-temperature", "--deepseek-temperature",
        dest="deepseek_temperature", type=float, default=-1.0,
        help="Temperature setting (0.0-1.0, overrides env var)",
    )
    parser.add_argument(
        "-deepseek-allowed-file-paths", "--deepseek-allowed-file-paths",
        dest="deepseek_allowed_file_paths", default="",
        help="Comma-separated list of allowed file paths for file operations (overrides env var)",
    )
    parser.add_argument(
        "-log-level", "--log-level",
        dest="log_level", default="",
        help="Log level (debug, info, warn, error), overrides DEEPSEEK_LOG_LEVEL",
    )
    return parser.parse_args(argv)


def _format_number(value: float) -> str:
    text = repr(value)
    return text[:-2] if text.endswith(".0") else text


def _format_list(items: Sequence[str]) -> str:
    return "[" + " ".join(items) + "]"


def build_server(
    config: Config,
    logger: Logger | None = None,
    client: Any = None,
) -> tuple[McpServer, DeepseekServer]:
    """Create the MCP server with all DeepSeek tools and prompts registered."""
    if logger is None:
        logger = new_logger(config.log_level)
    try:
        deepseek_server = DeepseekServer(config, client, logger)
    except ValueError as exc:
        raise ValueError(f"failed to create DeepSeek server: {exc}") from exc

    mcp_server = McpServer(SERVER_NAME, SERVER_VERSION)
    mcp_server.add_tool(_ASK_TOOL, deepseek_server.handle_ask)
    mcp_server.add_tool(_MODELS_TOOL, deepseek_server.handle_models)
    mcp_server.add_tool(_BALANCE_TOOL, deepseek_server.handle_balance)
    mcp_server.add_tool(_TOKEN_ESTIMATE_TOOL, deepseek_server.handle_token_estimate)

    for definition in PROMPTS:
        prompt = Prompt(
            name=definition.name,
            description=definition.description,
            arguments=(_PROBLEM_STATEMENT_ARGUMENT,),
        )
        mcp_server.add_prompt(prompt, deepseek_server.prompt_handler(definition))
    logger.info("Registered %d prompts", len(PROMPTS))

    logger.info(
        "Registered DeepSeek tools and server in normal mode with model: %s", config.model
    )
    logger.info(
        "File handling: max size %s, allowed types: %s, allowed paths: %s",
        human_readable_size(config.max_file_size),
        _format_list(config.allowed_file_types),
        _format_list(config.allowed_file_paths),
    )

    preview = config.system_prompt
    if len(preview) > _PROMPT_PREVIEW_LENGTH:
        preview = preview[:_PROMPT_PREVIEW_LENGTH] + "..."
    logger.info("Using system prompt: %s", preview)

    return mcp_server, deepseek_server


def startup_error_server(message: str) -> McpServer:
    """A degraded server whose only tool reports why startup failed."""
    server = McpServer(ERROR_SERVER_NAME, SERVER_VERSION)
    tool = Tool(
        name="startup_error",
        description="Provides server startup error information",
    )
    server.add_tool(tool, lambda arguments: ToolResult.text(message))
    return server


def _serve_startup_error(logger: Logger, message: str) -> int:
    logger.error("Initialization error: %s", message)
    logger.info("Starting DeepSeek MCP server in degraded mode via Stdio")
    try:
        serve_stdio(startup_error_server(message))
    except Exception as exc:
        logger.error("Server error in degraded mode: %s", exc)
        return 1
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the server over standard I/O; returns the process exit status."""
    load_dotenv(os.path.join(os.getcwd(), ".env"))
    args = parse_args(argv)

    try:
        config = load_config()
    except ConfigError as exc:
        return _serve_startup_error(new_logger("error"), str(exc))

    logger = new_logger(config.log_level)

    if args.deepseek_model:
        logger.info("Overriding DeepSeek model with flag value: %s", args.deepseek_model)
        config.model = args.deepseek_model
    if args.deepseek_system_prompt:
        logger.info("Overriding DeepSeek system prompt with flag value")
        config.system_prompt = args.deepseek_system_prompt

    temperature = args.deepseek_temperature
    if temperature >= 0:
        if temperature > 1.0:
            logger.error(
                "Invalid temperature value: %s. Must be between 0.0 and 1.0",
                _format_number(temperature),
            )
            return _serve_startup_error(
                logger, f"invalid temperature: {_format_number(temperature)}"
            )
        logger.info("Overriding DeepSeek temperature with flag value: %s", _format_number(temperature))
        config.temperature = temperature

    if args.deepseek_allowed_file_paths:
        paths = args.deepseek_allowed_file_paths.split(",")
        logger.info("Overriding DeepSeek allowed file paths with flag values: %s", _format_list(paths))
        config.allowed_file_paths = paths

    if args.log_level:
        logger.info("Overriding log level with flag value: %s", args.log_level)
        config.log_level = args.log_level
        logger = new_logger(config.log_level)

    try:
        mcp_server, deepseek_server = build_server(config, logger)
    except ValueError as exc:
        return _serve_startup_error(logger, str(exc))

    try:
        try:
            deepseek_server.catalog.validate_model_id(config.model)
        except InvalidModelError as exc:
            logger.error("Effective model ID validation failed: %s", exc)
            message = f'effective model ID "{config.model}" is invalid: {exc}'
            logger.error("Startup error: %s", message)
            return _serve_startup_error(logger, message)

        logger.info("Starting DeepSeek MCP server via Stdio")
        try:
            serve_stdio(mcp_server)
        except Exception as exc:
            logger.error("Server error: %s", exc)
            return 1
        return 0
    finally:
        deepseek_server.close()