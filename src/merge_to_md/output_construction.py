from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, computed_field

from merge_to_md.config import GIT_CHANGED_NAME, MERGED_NAME, InvocationMode, language_for
from merge_to_md.logging import logger

if TYPE_CHECKING:
    from collections.abc import Sequence

FENCE = "```"

INDEX_PREAMBLE: tuple[str, ...] = (
    "# File Index",
    "",
    "| Path | Start | End |",
    "|------|-------|-----|",
)


class FileEntry(BaseModel):
    """A selected file and its content, read once.

    Attributes:
        rel: Path relative to the working directory, with POSIX separators.
        content: The file content, copied verbatim into the output.
        language: Code fence language derived from the extension (may be empty).
    """

    model_config = ConfigDict(frozen=True)

    rel: str = Field(..., description="File path relative to the working directory")
    content: str = Field(..., description="Raw file content")

    @computed_field
    @property
    def language(self) -> str:
        """Get the code fence language based on the file extension."""
        return language_for(self.rel)


class IndexRow(BaseModel):
    """Line range (1-based, inclusive) occupied by a file's block in the document."""

    model_config = ConfigDict(frozen=True)

    path: str
    start_line: int = Field(..., ge=1)
    end_line: int = Field(..., ge=1)


class Document(BaseModel):
    """An assembled document and the rows of its File Index."""

    model_config = ConfigDict(frozen=True)

    text: str
    rows: tuple[IndexRow, ...]

    def block_text(self, row: IndexRow) -> str:
        """Extract the lines recorded for `row` from the document text.

        Args:
            row (IndexRow): a row of this document's index

        Returns:
            str: the lines `row.start_line` to `row.end_line`, joined with newlines
        """
        lines = self.text.split("\n")
        return "\n".join(lines[row.start_line - 1 : row.end_line])


def read_file_entries(paths: Sequence[str], root: Path) -> list[FileEntry]:
    """Read the selected files.

    Bytes are decoded as UTF-8 (undecodable bytes are replaced) and line endings are
    left untouched.

    Args:
        paths (Sequence[str]): the relative paths to read
        root (Path): the directory the paths are relative to

    Returns:
        list[FileEntry]: one entry per path, in the same order
    """
    return [
        FileEntry(rel=rel, content=(root / rel).read_bytes().decode("utf-8", errors="replace"))
        for rel in paths
    ]


def render_block(entry: FileEntry) -> str:
    """Render a file as a fenced block labelled with its language and path.

    Args:
        entry (FileEntry): the file to render

    Returns:
        str: the block, from the opening fence to the closing fence (no trailing newline)
    """
    opening = f"{entry.language} {entry.rel}" if entry.language else entry.rel
    return f"{FENCE}{opening}\n{entry.content}\n{FENCE}"


def count_lines(text: str) -> int:
    """Count newline-delimited lines; the last line needs no trailing newline."""
    return text.count("\n") + 1


def assemble(entries: Sequence[FileEntry]) -> Document:
    """Build the merged document: the File Index table followed by every block.

    The index occupies the preamble, one row per file and a blank line, so the first
    block starts right after it. Each block ends on its closing fence and is followed
    by exactly one blank line before the next block.

    Args:
        entries (Sequence[FileEntry]): the files, in output order

    Returns:
        Document: the text and the index rows whose line numbers refer to that text
    """
    blocks = [render_block(e) for e in entries]

    current = len(INDEX_PREAMBLE) + len(blocks) + 1 + 1
    rows: list[IndexRow] = []
    for entry, block in zip(entries, blocks, strict=True):
        end = current + count_lines(block) - 1
        rows.append(IndexRow(path=entry.rel, start_line=current, end_line=end))
        current = end + 2

    index_lines = [*INDEX_PREAMBLE, *(f"| {r.path} | {r.start_line} | {r.end_line} |" for r in rows)]
    text = "\n".join(index_lines) + "\n\n" + "\n\n".join(blocks) + "\n"
    return Document(text=text, rows=tuple(rows))


def output_basename(
    mode: InvocationMode,
    explicit_name: str | None,
    path_args: Sequence[str],
) -> str:
    """Choose the output file name (without extension).

    Args:
        mode (InvocationMode): where the paths came from
        explicit_name (str | None): the name given by the user, used verbatim if set
        path_args (Sequence[str]): the path arguments of the invocation

    Returns:
        str: ``git-changed`` in git mode, a name derived from the path when a
            single path was given (``apps/web/src`` gives ``apps-web-src``),
            ``merged`` otherwise
    """
    if explicit_name:
        return explicit_name
    if mode is InvocationMode.GIT_CHANGED:
        return GIT_CHANGED_NAME
    if len(path_args) == 1:
        derived = path_args[0].replace("\\", "-").replace("/", "-").strip("-")
        return derived or MERGED_NAME
    return MERGED_NAME


def write_document(out_dir: Path, basename: str, text: str) -> Path:
    """Write the document to ``<out_dir>/<basename>.md``.

    The content goes to a temporary file in `out_dir` first and is then moved in
    place, so a failure never leaves a truncated output behind.

    Args:
        out_dir (Path): the output directory, created with its parents if missing
        basename (str): the file name without extension
        text (str): the document text

    Returns:
        Path: the path of the written file
    """
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / f"{basename}.md"
    fd, tmp_name = tempfile.mkstemp(dir=out_dir, prefix=f".{basename}.", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        tmp_path.chmod(0o644)
        tmp_path.replace(out_path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    logger.info("Wrote document %s", out_path)
    return out_path
