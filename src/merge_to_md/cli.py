"""
merge_to_md — Merge files and folders into a single Markdown file with a File Index.

Overview
--------
The output document starts with a **File Index** table (``Path | Start | End``)
giving the line range of every file in the document, followed by one fenced code
block per file. An LLM can read the index and jump to the lines it needs instead
of reading the whole document.

Paths can be files or folders; folders are traversed recursively and the result is
deduplicated and sorted. With ``--git`` the added/modified files of the git work
tree are used instead. Some directories are always skipped: ``.git``,
``node_modules``, ``temp``, ``tmp``, ``.tmp``, ``.temp``, ``vendor``, ``.venv``,
``.turbo``, ``dist`` and ``__pycache__``.

Filtering
---------
Order: collect paths → default excludes → ``--include`` (if any) → ``--except``.

- Exact path: ``apps/web/foo.ts`` matches that file.
- Basename: ``foo.ts`` matches any file named ``foo.ts``.
- Glob: ``*`` is any characters except ``/``, ``**`` is any characters including ``/``.

Output name (when ``--name`` is not given)
------------------------------------------
- ``--git``: ``git-changed``
- single path: derived from the path (``apps/web/src`` → ``apps-web-src``)
- several paths: ``merged``

Usage
-----
    merge-to-md apps/web/src/inngest
    merge-to-md --except "**/*.test.ts,**/*.spec.ts" apps/web/src
    merge-to-md --include "**/*.ts,**/*.tsx" --name web-ts apps/web/src
    merge-to-md --git --except "**/*.test.ts" --out temp --name changed
    merge-git-changed-to-md --out temp/llm-context
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from merge_to_md import __version__
from merge_to_md.changeset import GitStatusProvider
from merge_to_md.config import DEFAULT_OUT_DIR
from merge_to_md.exceptions import ConfigFileError, GitCommandError
from merge_to_md.file_manipulation import apply_filters, collect_paths, relpath
from merge_to_md.logging import logger, setup_logging
from merge_to_md.output_construction import assemble, output_basename, read_file_entries, write_document
from merge_to_md.settings import FileConfig, Settings, load_config_file

if TYPE_CHECKING:
    from collections.abc import Sequence

    from merge_to_md.changeset import ChangedPathsProvider

USAGE = (
    "Usage: merge-to-md [options] <path1> [path2] ...\n"
    "  Use --git for git changed files, or provide file/folder paths.\n"
)

PASS_THROUGH_OPTIONS = ("--out", "--name", "--except", "--include")


def build_parser() -> argparse.ArgumentParser:
    """Build the parser of the ``merge-to-md`` command.

    Returns:
        argparse.ArgumentParser: Configured parser.
    """
    p = argparse.ArgumentParser(
        prog="merge-to-md",
        description="Merge files and folders into a single Markdown file with a File Index.",
    )
    p.add_argument("paths", nargs="*", help="Files or folders, relative to the current directory.")
    p.add_argument("--out", type=str, default=None, help=f"Output directory (default: {DEFAULT_OUT_DIR}).")
    p.add_argument("--name", type=str, default=None, help="Output basename without .md.")
    p.add_argument(
        "--except",
        dest="except_patterns",
        action="append",
        default=[],
        help="Comma-separated paths/globs to exclude (repeatable).",
    )
    p.add_argument(
        "--include",
        dest="include_patterns",
        action="append",
        default=[],
        help="Comma-separated paths/globs to include; if omitted, all are included (repeatable).",
    )
    p.add_argument(
        "--git",
        action="store_true",
        help="Use git changed files (added/modified) as input; ignores path arguments.",
    )
    p.add_argument("--config", type=Path, default=None, help="YAML file with out/name/except/include defaults.")
    p.add_argument("--log-file", type=str, default="", help="Log file path.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def parse_args(argv: Sequence[str] | None = None, cwd: Path | None = None) -> Settings:
    """Parse command line arguments, merged with the optional configuration file.

    ``--out`` and ``--name`` override the configuration file, ``--except`` and
    ``--include`` patterns are added to the ones it lists.

    Args:
        argv (Sequence[str] | None): Optional CLI arguments.
        cwd (Path | None): Working directory; defaults to the current directory.

    Raises:
        ConfigFileError: if the configuration file is invalid.

    Returns:
        Settings: the settings of this invocation
    """
    args = build_parser().parse_intermixed_args(argv)
    root = cwd or Path.cwd()
    file_config = load_config_file(root / args.config) if args.config else FileConfig()
    return Settings(
        cwd=root,
        paths=args.paths,
        out=args.out or file_config.out or DEFAULT_OUT_DIR,
        name=args.name or file_config.name,
        except_patterns=[*file_config.except_patterns, *args.except_patterns],
        include_patterns=[*file_config.include_patterns, *args.include_patterns],
        git=args.git,
        config_file=args.config,
        log_file=args.log_file,
    )


def merge(settings: Settings, provider: ChangedPathsProvider | None = None) -> int:
    """Run a merge for already parsed settings.

    Args:
        settings (Settings): the invocation settings
        provider (ChangedPathsProvider | None): source of paths in git mode;
            defaults to `GitStatusProvider` on the working directory

    Returns:
        int: Process exit code.
    """
    root = settings.cwd
    if settings.git:
        provider = provider or GitStatusProvider(root)
        try:
            paths = provider.get_changed_paths()
        except GitCommandError as e:
            sys.stderr.write(f"Error: {e}\n")
            return 1
    else:
        if not settings.paths:
            sys.stderr.write(USAGE)
            return 1
        paths = collect_paths(settings.paths, root)
    logger.info("Collected %d candidate paths (mode=%s)", len(paths), settings.mode)

    selected = apply_filters(paths, root=root, filter_config=settings.filter_config)
    if not selected:
        print("No files to merge after filtering.")
        return 0

    document = assemble(read_file_entries(selected, root))
    basename = output_basename(settings.mode, settings.name, settings.paths)
    out_path = write_document(settings.out_dir, basename, document.text)

    print(f"Wrote {len(selected)} files to {relpath(out_path, root)}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Merge files and folders into a single Markdown file.

    Args:
        argv (Sequence[str] | None): Optional CLI arguments.

    Returns:
        int: Process exit code.
    """
    try:
        settings = parse_args(argv)
    except ConfigFileError as e:
        sys.stderr.write(f"Error: {e}\n")
        return 1
    if settings.log_file:
        setup_logging(settings.log_file)
    return merge(settings)


def git_changed_argv(argv: Sequence[str]) -> list[str]:
    """Keep the options understood by the git-changed shortcut and force ``--git``.

    Only ``--out``, ``--name``, ``--except`` and ``--include`` followed by a value
    are forwarded; anything else is dropped.

    Args:
        argv (Sequence[str]): the arguments given to the shortcut

    Returns:
        list[str]: the arguments for `main`
    """
    forwarded = ["--git"]
    i = 0
    while i < len(argv):
        if argv[i] in PASS_THROUGH_OPTIONS and i + 1 < len(argv):
            forwarded.extend(argv[i : i + 2])
            i += 2
        else:
            i += 1
    return forwarded


def git_changed_main(argv: Sequence[str] | None = None) -> int:
    """Merge the git added/modified files into a single Markdown file.

    Args:
        argv (Sequence[str] | None): Optional CLI arguments.

    Returns:
        int: Process exit code.
    """
    return main(git_changed_argv(sys.argv[1:] if argv is None else argv))


if __name__ == "__main__":
    raise SystemExit(main())
