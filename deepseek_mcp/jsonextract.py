"""Pulling a strict JSON value out of free-form model output."""

from __future__ import annotations

import json


class JSONExtractionError(ValueError):
    """No valid JSON object or array could be extracted."""


def _reject_constant(name: str) -> None:
    raise ValueError(f"invalid literal {name}")


def _find_matching(text: str, start: int, opener: str, closer: str) -> int | None:
    if not 0 <= start < len(text) or text[start] != opener:
        return None
    depth = 0
    for index in range(start, len(text)):
        char = text[index]
        if char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return index
    return None


def find_matching_brace(text: str, start: int) -> int | None:
    """Index of the '}' closing the '{' at start, or None."""
    return _find_matching(text, start, "{", "}")


def find_matching_bracket(text: str, start: int) -> int | None:
    """Index of the ']' closing the '[' at start, or None."""
    return _find_matching(text, start, "[", "]")


def _strip_fences(text: str) -> str:
    trimmed = text.strip()
    for prefix in ("```json", "```"):
        if trimmed.startswith(prefix):
            trimmed = trimmed[len(prefix):]
    if trimmed.endswith("```"):
        trimmed = trimmed[:-3]
    return trimmed.strip()


def extract_strict_json(text: str) -> str:
    """Return the first JSON object or array found in text.

    Code fences around the value and surrounding prose are tolerated.
    Raises JSONExtractionError when no valid JSON can be found.
    """
    trimmed = _strip_fences(text)

    candidates = [pos for pos in (trimmed.find("{"), trimmed.find("[")) if pos != -1]
    if not candidates:
        raise JSONExtractionError("no JSON object or array found in the response")
    start = min(candidates)

    if trimmed[start] == "{":
        end = find_matching_brace(trimmed, start)
    else:
        end = find_matching_bracket(trimmed, start)
    if end is None:
        raise JSONExtractionError("could not find matching closing brace/bracket for JSON")

    candidate = trimmed[start:end + 1]
    try:
        json.loads(candidate, parse_constant=_reject_constant)
    except ValueError as exc:
        raise JSONExtractionError(f"extracted content is not valid JSON: {exc}") from exc
    return candidate


def truncate_string(text: str, max_len: int) -> str:
    """Cut text to max_len characters, adding an ellipsis when shortened."""
    if len(text) <= max_len:
        return text
    return text[:max_len] + "..."