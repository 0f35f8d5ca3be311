"""Server configuration read from environment variables."""

from __future__ import annotations

import math
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path

DEFAULT_MODEL = "deepseek-reasoner"
DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful AI assistant that specializes in code review and software engineering. "
    "Provide thorough and insightful analysis with specific, actionable feedback. "
    "Focus on issues like bugs, security vulnerabilities, performance problems, and code quality. "
    "Include examples and explanations in your reviews."
)
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024
DEFAULT_ALLOWED_FILE_TYPES = (
    "text/plain", "text/x-go", "text/x-python", "text/javascript",
    "text/markdown", "text/x-java", "text/x-c", "text/x-c++",
    "text/csv", "application/json", "text/x-yaml", "text/x-toml",
    "text/html", "text/css", "application/xml",
)
DEFAULT_TEMPERATURE = 0.4
DEFAULT_TIMEOUT = 270.0
DEFAULT_MAX_RETRIES = 2
DEFAULT_INITIAL_BACKOFF = 1.0
DEFAULT_MAX_BACKOFF = 10.0
DEFAULT_LOG_LEVEL = "info"

_INT64_MAX = 2**63 - 1
_FLOAT32_MAX = 3.4028234663852886e38
_INTEGER = re.compile(r"[+-]?[0-9]+")
_DURATION_PART = re.compile(r"([0-9]*)(?:\.([0-9]*))?([^0-9.]*)")
_UNIT_NANOS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}


class ConfigError(ValueError):
    """The environment does not describe a usable configuration."""


@dataclass
class Config:
    """Settings for the server; durations are in seconds."""

    api_key: str = field(repr=False)
    model: str = DEFAULT_MODEL
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    allowed_file_types: list[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_FILE_TYPES))
    temperature: float = DEFAULT_TEMPERATURE
    http_timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    initial_backoff: float = DEFAULT_INITIAL_BACKOFF
    max_backoff: float = DEFAULT_MAX_BACKOFF
    allowed_file_paths: list[str] = field(default_factory=list)
    log_level: str = DEFAULT_LOG_LEVEL


def parse_go_duration(text: str) -> float:
    """Parse a duration such as "1h30m", "1.5s" or "300ms" into seconds."""
    invalid = ValueError(f'time: invalid duration "{text}"')
    rest = text
    negative = False
    if rest[:1] in ("+", "-"):
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest == "0":
        return 0.0
    if not rest:
        raise invalid

    total_ns = Decimal(0)
    while rest:
        match = _DURATION_PART.match(rest)
        whole, frac, unit = match.group(1), match.group(2), match.group(3)
        if not whole and not frac:
            raise invalid
        if not unit:
            raise ValueError(f'time: missing unit in duration "{text}"')
        if unit not in _UNIT_NANOS:
            raise ValueError(f'time: unknown unit "{unit}" in duration "{text}"')
        number = Decimal(f"{whole or '0'}.{frac or '0'}")
        total_ns += number * _UNIT_NANOS[unit]
        if total_ns > _INT64_MAX:
            raise invalid
        rest = rest[match.end():]

    nanos = int(total_ns)
    return (-nanos if negative else nanos) / 1e9


def _parse_int(text: str, name: str) -> int:
    if not _INTEGER.fullmatch(text):
        raise ConfigError(f'invalid {name}: parsing "{text}": invalid syntax')
    value = int(text)
    if not -_INT64_MAX - 1 <= value <= _INT64_MAX:
        raise ConfigError(f'invalid {name}: parsing "{text}": value out of range')
    return value


def _parse_float32(text: str, name: str) -> float:
    if text != text.strip() or "_" in text:
        raise ConfigError(f'invalid {name}: parsing "{text}": invalid syntax')
    try:
        value = float(text)
    except ValueError:
        raise ConfigError(f'invalid {name}: parsing "{text}": invalid syntax') from None
    if math.isfinite(value) and abs(value) > _FLOAT32_MAX:
        raise ConfigError(f'invalid {name}: parsing "{text}": value out of range')
    return value


def _parse_duration(text: str, name: str) -> float:
    try:
        return parse_go_duration(text)
    except ValueError as exc:
        raise ConfigError(f"invalid {name}: {exc}") from exc


def _parse_timeout(text: str) -> float:
    if _INTEGER.fullmatch(text):
        return float(_parse_int(text, "DEEPSEEK_TIMEOUT"))
    try:
        return parse_go_duration(text)
    except ValueError as exc:
        raise ConfigError(f'invalid DEEPSEEK_TIMEOUT value "{text}": {exc}') from exc


def _system_prompt(env: Mapping[str, str]) -> str:
    prompt = env.get("DEEPSEEK_SYSTEM_PROMPT", "")
    if prompt:
        return prompt
    prompt_file = env.get("DEEPSEEK_SYSTEM_PROMPT_FILE", "")
    if not prompt_file:
        return DEFAULT_SYSTEM_PROMPT
    try:
        return Path(prompt_file).read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise ConfigError(f"failed to read system prompt file: {exc}") from exc


def load_config(environ: Mapping[str, str] | None = None) -> Config:
    """Build a Config from environment variables (os.environ by default)."""
    env = os.environ if environ is None else environ

    api_key = env.get("DEEPSEEK_API_KEY", "")
    if not api_key:
        raise ConfigError("DEEPSEEK_API_KEY environment variable is required")

    raw = env.get("DEEPSEEK_MAX_FILE_SIZE", "")
    max_file_size = _parse_int(raw, "DEEPSEEK_MAX_FILE_SIZE") if raw else DEFAULT_MAX_FILE_SIZE

    raw = env.get("DEEPSEEK_ALLOWED_FILE_TYPES", "")
    allowed_types = raw.split(",") if raw else list(DEFAULT_ALLOWED_FILE_TYPES)

    raw = env.get("DEEPSEEK_TEMPERATURE", "")
    temperature = _parse_float32(raw, "DEEPSEEK_TEMPERATURE") if raw else DEFAULT_TEMPERATURE

    raw = env.get("DEEPSEEK_TIMEOUT", "")
    timeout = _parse_timeout(raw) if raw else DEFAULT_TIMEOUT

    raw = env.get("DEEPSEEK_MAX_RETRIES", "")
    max_retries = _parse_int(raw, "DEEPSEEK_MAX_RETRIES") if raw else DEFAULT_MAX_RETRIES

    raw = env.get("DEEPSEEK_INITIAL_BACKOFF", "")
    initial_backoff = (
        _parse_duration(raw, "DEEPSEEK_INITIAL_BACKOFF") if raw else DEFAULT_INITIAL_BACKOFF
    )

    raw = env.get("DEEPSEEK_MAX_BACKOFF", "")
    max_backoff = _parse_duration(raw, "DEEPSEEK_MAX_BACKOFF") if raw else DEFAULT_MAX_BACKOFF

    raw = env.get("DEEPSEEK_ALLOWED_FILE_PATHS", "")
    if raw:
        allowed_paths = raw.split(",")
    else:
        try:
            allowed_paths = [os.getcwd()]
        except OSError as exc:
            raise ConfigError(f"failed to get current working directory: {exc}") from exc

    return Config(
        api_key=api_key,
        model=env.get("DEEPSEEK_MODEL", "") or DEFAULT_MODEL,
        system_prompt=_system_prompt(env),
        max_file_size=max_file_size,
        allowed_file_types=allowed_types,
        temperature=temperature,
        http_timeout=timeout,
        max_retries=max_retries,
        initial_backoff=initial_backoff,
        max_backoff=max_backoff,
        allowed_file_paths=allowed_paths,
        log_level=env.get("DEEPSEEK_LOG_LEVEL", "") or DEFAULT_LOG_LEVEL,
    )