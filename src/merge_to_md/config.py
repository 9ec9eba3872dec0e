from __future__ import annotations

from enum import StrEnum, auto
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from collections.abc import Iterable


class InvocationMode(StrEnum):
    """Where the candidate paths of a run come from."""

    EXPLICIT_PATHS = auto()
    GIT_CHANGED = auto()


EXT2LANG: dict[str, str] = {
    ".cjs": "javascript",
    ".css": "css",
    ".html": "html",
    ".js": "javascript",
    ".json": "json",
    ".jsx": "jsx",
    ".md": "markdown",
    ".mdx": "mdx",
    ".mjs": "javascript",
    ".py": "python",
    ".scss": "scss",
    ".sh": "shell",
    ".sql": "sql",
    ".ts": "typescript",
    ".tsx": "tsx",
    ".yaml": "yaml",
    ".yml": "yaml",
}

DEFAULT_EXCLUDE_SEGMENTS: frozenset[str] = frozenset(
    {
        ".git",
        "node_modules",
        "temp",
        "tmp",
        ".tmp",
        ".temp",
        "vendor",
        ".venv",
        ".turbo",
        "dist",
        "__pycache__",
    },
)

DEFAULT_OUT_DIR = "temp/llm-context"
GIT_CHANGED_NAME = "git-changed"
MERGED_NAME = "merged"


def language_for(rel: str) -> str:
    """Get the code fence language for a relative path.

    Args:
        rel (str): the relative path of the file

    Returns:
        str: the fence language, or an empty string if the extension is unknown
    """
    return EXT2LANG.get(PurePosixPath(rel).suffix, "")


def split_patterns(value: str | Iterable[str] | None) -> tuple[str, ...]:
    """Split comma lists into a flat tuple of cleaned patterns.

    Accepts a single string or a sequence of strings (e.g. repeated CLI options),
    strips whitespace, drops empty items and normalizes backslashes to slashes.

    Args:
        value (str | Iterable[str] | None): a string, strings (e.g. repeated options), or None

    Returns:
        tuple[str, ...]: the cleaned patterns in order of appearance
    """
    if value is None:
        return ()
    items = [value] if isinstance(value, str) else list(value)
    out: list[str] = []
    for item in items:
        for part in str(item).split(","):
            p = part.strip()
            if p:
                out.append(p.replace("\\", "/"))
    return tuple(out)


class FilterConfig(BaseModel):
    """Include/exclude patterns applied after the default segment exclusion.

    Attributes:
        include_patterns: only paths matching one of these are kept (empty keeps all).
        exclude_patterns: paths matching any of these are dropped.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    include_patterns: tuple[str, ...] = Field(default=(), description="Include patterns.")
    exclude_patterns: tuple[str, ...] = Field(default=(), description="Exclude patterns.")

    @field_validator("include_patterns", "exclude_patterns", mode="before")
    @classmethod
    def _split(cls, value: str | list[str] | None) -> tuple[str, ...]:
        return split_patterns(value)
