"""File-extension to language classification."""

from __future__ import annotations

from pathlib import PurePosixPath

LANGUAGE_BY_SUFFIX = {
    ".ts": "typescript",
    ".tsx": "typescript",
    ".mts": "typescript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".py": "python",
    ".pyi": "python",
    ".java": "java",
    ".kt": "kotlin",
    ".kts": "kotlin",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".hpp": "cpp",
    ".cs": "csharp",
    ".php": "php",
    ".rb": "ruby",
    ".go": "go",
    ".rs": "rust",
    ".swift": "swift",
    ".scala": "scala",
    ".sh": "bash",
    ".html": "html",
    ".css": "css",
    ".scss": "sass",
    ".sass": "sass",
    ".vue": "vue",
    ".svelte": "svelte",
    ".dart": "dart",
    ".ex": "elixir",
    ".exs": "elixir",
    ".erl": "erlang",
    ".hs": "haskell",
    ".lua": "lua",
    ".jl": "julia",
    ".r": "r",
    ".m": "objective-c",
    ".groovy": "groovy",
    ".sql": "sql",
    ".ps1": "powershell",
    ".zig": "zig",
    ".sol": "solidity",
}


def detect_language(path: str) -> str | None:
    """Return the language implied by a file's extension, if any."""
    suffix = PurePosixPath(path).suffix.lower()
    return LANGUAGE_BY_SUFFIX.get(suffix)


__all__ = ["LANGUAGE_BY_SUFFIX", "detect_language"]
