"""File access checks, type detection and size formatting."""

from __future__ import annotations

import os
from pathlib import Path

from .config import DEFAULT_MAX_FILE_SIZE, Config

_MIME_TYPES = {
    ".txt": "text/plain",
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "text/javascript",
    ".json": "application/json",
    ".xml": "application/xml",
    ".yaml": "text/x-yaml",
    ".yml": "text/x-yaml",
    ".toml": "text/x-toml",
    ".pdf": "application/pdf",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".mp3": "audio/mpeg",
    ".mp4": "video/mp4",
    ".wav": "audio/wav",
    ".doc": "application/msword",
    ".docx": "application/msword",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.ms-excel",
    ".ppt": "application/vnd.ms-powerpoint",
    ".pptx": "application/vnd.ms-powerpoint",
    ".zip": "application/zip",
    ".csv": "text/csv",
    ".go": "text/x-go",
    ".py": "text/x-python",
    ".java": "text/x-java",
    ".c": "text/x-c",
    ".cpp": "text/x-c",
    ".h": "text/x-c",
    ".hpp": "text/x-c",
    ".rb": "text/plain",
    ".php": "text/plain",
    ".md": "text/markdown",
}

_LANGUAGES = {
    ".go": "go",
    ".py": "python",
    ".js": "javascript",
    ".html": "html",
    ".htm": "html",
    ".css": "css",
    ".java": "java",
    ".json": "json",
    ".xml": "xml",
    ".md": "markdown",
    ".c": "c",
    ".cpp": "cpp",
    ".hpp": "cpp",
    ".h": "c",
    ".rb": "ruby",
    ".php": "php",
    ".ts": "typescript",
    ".sh": "bash",
    ".bash": "bash",
    ".sql": "sql",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".rs": "rust",
    ".swift": "swift",
    ".kt": "kotlin",
    ".scala": "scala",
    ".groovy": "groovy",
    ".pl": "perl",
    ".r": "r",
    ".m": "matlab",
    ".ps1": "powershell",
    ".cs": "csharp",
    ".fs": "fsharp",
    ".vb": "vbnet",
    ".dart": "dart",
    ".ex": "elixir",
    ".exs": "elixir",
    ".erl": "erlang",
    ".hs": "haskell",
    ".lua": "lua",
    ".jl": "julia",
    ".clj": "clojure",
}


class FileValidationError(ValueError):
    """A file may not be used: outside allowed roots, missing, too large or of a wrong type."""


def _extension(path: str) -> str:
    name = os.path.basename(os.fspath(path))
    dot = name.rfind(".")
    return name[dot:].lower() if dot != -1 else ""


def mime_type_for_path(path: str) -> str:
    """MIME type guessed from the file extension."""
    return _MIME_TYPES.get(_extension(path), "application/octet-stream")


def language_for_path(path: str) -> str:
    """Syntax-highlighting language name guessed from the file extension."""
    return _LANGUAGES.get(_extension(path), "text")


def human_readable_size(size: int) -> str:
    """Format a byte count using binary units, e.g. "1.5 KB"."""
    unit = 1024
    if size < unit:
        return f"{size} B"
    divisor, exponent = unit, 0
    quotient = size // unit
    while quotient >= unit:
        divisor *= unit
        exponent += 1
        quotient //= unit
    return f"{size / divisor:.1f} {'KMGTPE'[exponent]}B"


def _resolve(path: str) -> Path | None:
    try:
        return Path(os.path.abspath(path)).resolve(strict=True)
    except (OSError, RuntimeError):
        return None


def is_path_allowed(path: str, allowed_dirs: list[str]) -> bool:
    """Whether path, with symlinks resolved, lies inside one of allowed_dirs."""
    target = _resolve(path)
    if target is None:
        return False

    for directory in allowed_dirs:
        if not directory.strip():
            continue
        root = _resolve(directory)
        if root is None:
            continue
        try:
            rel = os.path.normpath(os.path.relpath(target, root))
        except ValueError:
            continue
        if rel == "." or (rel != ".." and not rel.startswith(".." + os.sep)):
            return True
    return False


def validate_file_path(path: str, config: Config | None = None) -> None:
    """Raise FileValidationError unless path may be read under config's limits."""
    if config is not None and config.allowed_file_paths:
        if not is_path_allowed(path, config.allowed_file_paths):
            roots = ", ".join(config.allowed_file_paths)
            raise FileValidationError(
                f"file path is not allowed: {path}. Allowed roots are: {roots}"
            )

    try:
        info = os.stat(path)
    except OSError as exc:
        raise FileValidationError(f"file not found or not accessible: {exc}") from exc

    if os.path.isdir(path):
        raise FileValidationError(f"path is a directory, not a file: {path}")

    max_size = DEFAULT_MAX_FILE_SIZE
    if config is not None and config.max_file_size > 0:
        max_size = config.max_file_size
    if info.st_size > max_size:
        raise FileValidationError(
            f"file is too large: {path} ({human_readable_size(info.st_size)})"
        )

    allowed_types = config.allowed_file_types if config is not None else []
    if allowed_types:
        mime_type = mime_type_for_path(path)
        if mime_type not in allowed_types:
            raise FileValidationError(f"file type not allowed: {path} (type: {mime_type})")


def get_file_info(path: str) -> tuple[str, int]:
    """Return (MIME type, size in bytes) of path; raises OSError if it cannot be read."""
    size = os.stat(path).st_size
    return mime_type_for_path(path), size


def read_file(path: str) -> bytes:
    """Read a whole file; raises OSError naming the path on failure."""
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise OSError(exc.errno, f"failed to read file {path}: {exc.strerror}") from exc