import logging
from pathlib import Path

import pytest
from pytest_mock import MockerFixture

from merge_to_md import changeset, cli
from merge_to_md import logging as merge_logging


def _touch(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


@pytest.mark.integration
def test_main_merges_folder_with_filters(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    _touch(tmp_path / "apps" / "web" / "src" / "a.ts", "export const a = 1;\n")
    _touch(tmp_path / "apps" / "web" / "src" / "a.test.ts", "test('a');\n")
    _touch(tmp_path / "apps" / "web" / "src" / "b.tsx", "<B />")
    _touch(tmp_path / "apps" / "web" / "src" / "notes.txt", "notes")
    _touch(tmp_path / "apps" / "web" / "src" / "node_modules" / "dep.ts", "dep")

    exit_code = cli.main(
        [
            "--include",
            "**/*.ts,**/*.tsx",
            "--except",
            "**/*.test.ts",
            "apps/web/src",
        ],
    )

    assert exit_code == 0
    content = (tmp_path / "temp" / "llm-context" / "apps-web-src.md").read_text(encoding="utf-8")
    assert content.startswith("# File Index\n\n| Path | Start | End |\n|------|-------|-----|\n")
    assert "| apps/web/src/a.ts | 8 | 11 |\n| apps/web/src/b.tsx | 13 | 15 |\n" in content
    assert "```typescript apps/web/src/a.ts\nexport const a = 1;\n\n```" in content
    assert "```tsx apps/web/src/b.tsx\n<B />\n```\n" in content
    assert "a.test.ts" not in content
    assert "notes.txt" not in content
    assert "dep.ts" not in content


@pytest.mark.integration
def test_main_git_mode_with_mocked_git(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    mocker: MockerFixture,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.chdir(tmp_path)
    _touch(tmp_path / "src" / "new.ts", "new")
    _touch(tmp_path / "src" / "mod.py", "mod")
    mocker.patch.object(
        changeset.GitStatusProvider,
        "_run",
        side_effect=["\n", " M src/mod.py\0D  src/removed.ts\0R  src/new.ts\0src/old.ts\0"],
    )

    exit_code = cli.main(["--git", "--out", "ctx", "ignored"])

    assert exit_code == 0
    content = (tmp_path / "ctx" / "git-changed.md").read_text(encoding="utf-8")
    assert "| src/mod.py | 8 | 10 |\n| src/new.ts | 12 | 14 |\n" in content
    assert "removed.ts" not in content
    assert "old.ts" not in content
    assert "Wrote 2 files to ctx/git-changed.md" in capsys.readouterr().out


@pytest.mark.integration
def test_main_multiple_paths_defaults_to_merged(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    _touch(tmp_path / "one.md", "# one")
    _touch(tmp_path / "lib" / "two.py", "two = 2")

    exit_code = cli.main(["lib", "one.md", "missing.ts"])

    assert exit_code == 0
    content = (tmp_path / "temp" / "llm-context" / "merged.md").read_text(encoding="utf-8")
    assert "| lib/two.py | 8 | 10 |\n| one.md | 12 | 14 |\n" in content


@pytest.mark.integration
def test_main_log_file_receives_each_record_once(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(merge_logging, "_FILE_HANDLER", None)
    _touch(tmp_path / "a.ts", "a")
    argv = ["--log-file", "run.log", "--out", "ctx", "missing.ts", "a.ts"]

    try:
        assert cli.main(argv) == 0
        assert cli.main(argv) == 0
        handlers = [h for h in logging.getLogger("merge_to_md").handlers if isinstance(h, logging.FileHandler)]
        assert len(handlers) == 1
    finally:
        handler = merge_logging._FILE_HANDLER  # noqa: SLF001
        if handler is not None:
            logging.getLogger("merge_to_md").removeHandler(handler)
            handler.close()

    lines = (tmp_path / "run.log").read_text(encoding="utf-8").splitlines()
    assert sum("Skipping missing path: missing.ts" in line for line in lines) == 2
