from __future__ import annotations

import os
import re
import stat
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from merge_to_md.config import DEFAULT_EXCLUDE_SEGMENTS
from merge_to_md.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from merge_to_md.config import FilterConfig

_SEGMENT_SPLIT = re.compile(r"[/\\]")


def relpath(path: Path | str, root: Path) -> str:
    """Send the relative path of path from root.

    The path is normalized lexically (``..`` and ``.`` are collapsed, symlinks are not
    resolved), so arguments pointing outside of root keep their ``../`` prefix.

    Args:
        path (Path | str): the path to "relativise"
        root (Path): the root to relativise from

    Returns:
        str: the relative path from root to path, with POSIX separators.
            An empty string is returned when path is root itself.
    """
    rel = os.path.relpath(os.path.normpath(root / path), root)
    if rel == os.curdir:
        return ""
    return rel.replace("\\", "/")


def is_regular_file(path: Path) -> bool:
    """Check if a file is regular.

    Args:
        path (Path): path to test.

    Returns:
        bool: True if the file is regular, False otherwise.
    """
    try:
        st = path.stat()
    except OSError:
        return False
    return stat.S_ISREG(st.st_mode)


def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Compile a glob pattern into an anchored regular expression.

    ``**`` matches any sequence of characters including ``/`` and ``*`` matches any
    sequence of characters except ``/``. Every other character is matched literally.

    Args:
        pattern (str): the glob pattern

    Returns:
        re.Pattern[str]: the compiled pattern, meant to be used with ``fullmatch``
    """
    globstar_parts = []
    for chunk in pattern.split("**"):
        globstar_parts.append("[^/]*".join(re.escape(lit) for lit in chunk.split("*")))
    return re.compile(".*".join(globstar_parts))


def matches_glob(rel: str, pattern: str) -> bool:
    """Check if a relative path matches a single pattern.

    A pattern without ``*`` matches the exact path, any path ending with
    ``/<pattern>`` or any file whose name is the pattern, so ``README.md`` matches
    that file at every depth. A pattern with ``*`` is a glob matched against the
    whole path (see `glob_to_regex`).

    Args:
        rel (str): the relative path to check, with POSIX separators
        pattern (str): the pattern to match against

    Returns:
        bool: True if `rel` matches `pattern`, False otherwise
    """
    p = pattern.strip()
    if not p:
        return False
    if "*" not in p:
        return rel == p or rel.endswith("/" + p) or PurePosixPath(rel).name == p
    return glob_to_regex(p).fullmatch(rel) is not None


def match_any_glob(rel: str, patterns: Iterable[str]) -> bool:
    """Check if a relative path matches any of the provided patterns.

    Args:
        rel (str): the relative path to check
        patterns (Iterable[str]): the patterns to match against

    Returns:
        bool: True if `rel` matches any pattern in `patterns`, False otherwise
    """
    return any(matches_glob(rel, p) for p in patterns)


def is_default_excluded(rel: str, segments: frozenset[str] = DEFAULT_EXCLUDE_SEGMENTS) -> bool:
    """Check if one of the path segments is in the excluded segments.

    Args:
        rel (str): the relative path to check, ``/`` or ``\\`` separated
        segments (frozenset[str]): directory or file names that are always excluded

    Returns:
        bool: True if the path is in the default excludes, False otherwise
    """
    return any(seg in segments for seg in _SEGMENT_SPLIT.split(rel) if seg)


def walk_files(directory: Path) -> list[str]:
    """Walk the directory tree rooted at `directory` and return all regular files.

    Symlinked directories are listed but not descended into.

    Args:
        directory (Path): the directory to walk

    Returns:
        list[str]: the files found, relative to `directory` with POSIX separators
    """
    results: list[str] = []
    for root, _dirs, files in os.walk(directory):
        base = Path(root)
        for f in files:
            p = base / f
            if p.is_file():
                results.append(p.relative_to(directory).as_posix())
    return results


def collect_paths(path_args: Sequence[str], root: Path) -> list[str]:
    """Collect the files designated by a mix of file and folder arguments.

    Folders are traversed recursively. Missing paths and paths that are neither a
    file nor a directory are reported and skipped.

    Args:
        path_args (Sequence[str]): file or folder paths, relative to `root` or absolute
        root (Path): the working directory the arguments are resolved against

    Returns:
        list[str]: the deduplicated paths relative to `root`, sorted
    """
    seen: set[str] = set()
    collected: list[str] = []

    def add(rel: str) -> None:
        if rel not in seen:
            seen.add(rel)
            collected.append(rel)

    for arg in path_args:
        resolved = Path(os.path.normpath(root / arg))
        if not resolved.exists():
            logger.warning("Skipping missing path: %s", arg)
            continue
        if resolved.is_file():
            add(relpath(resolved, root))
        elif resolved.is_dir():
            dir_rel = relpath(resolved, root)
            for f in walk_files(resolved):
                add(f"{dir_rel}/{f}" if dir_rel else f)
        else:
            logger.warning("Skipping non-file non-dir path: %s", arg)

    return sorted(collected)


def apply_filters(
    paths: Sequence[str],
    *,
    root: Path,
    filter_config: FilterConfig,
    exclude_segments: frozenset[str] = DEFAULT_EXCLUDE_SEGMENTS,
) -> list[str]:
    """Apply the filtering pipeline to a list of relative paths.

    Stages, in order:
    1) drop paths containing one of `exclude_segments`, regardless of includes;
    2) if include patterns are set, keep only the paths matching one of them;
    3) drop the paths matching any exclude pattern;
    4) drop the paths that are not (or no longer) regular files under `root`.

    The order of `paths` is preserved.

    Args:
        paths (Sequence[str]): the relative paths to filter
        root (Path): the directory the paths are relative to
        filter_config (FilterConfig): the include/exclude patterns
        exclude_segments (frozenset[str]): segments that are always excluded

    Returns:
        list[str]: the filtered list of relative paths
    """
    inc = filter_config.include_patterns
    exc = filter_config.exclude_patterns

    out = [r for r in paths if not is_default_excluded(r, exclude_segments)]
    if inc:
        out = [r for r in out if match_any_glob(r, inc)]
    if exc:
        out = [r for r in out if not match_any_glob(r, exc)]
    return [r for r in out if is_regular_file(root / r)]
