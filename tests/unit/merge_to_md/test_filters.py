from pathlib import Path

import pytest

from merge_to_md.config import FilterConfig
from merge_to_md.file_manipulation import apply_filters


def _make(root: Path, *rels: str) -> list[str]:
    for rel in rels:
        p = root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(rel, encoding="utf-8")
    return list(rels)


@pytest.mark.unit
def test_apply_filters_without_patterns_keeps_everything(tmp_path: Path) -> None:
    paths = _make(tmp_path, "b.ts", "a.md")

    assert apply_filters(paths, root=tmp_path, filter_config=FilterConfig()) == ["b.ts", "a.md"]


@pytest.mark.unit
def test_default_exclusion_wins_over_include(tmp_path: Path) -> None:
    paths = _make(tmp_path, "node_modules/x.ts", "src/y.ts")

    selected = apply_filters(
        paths,
        root=tmp_path,
        filter_config=FilterConfig(include_patterns=["**/*.ts", "x.ts"]),
    )

    assert selected == ["src/y.ts"]


@pytest.mark.unit
def test_except_removes_included_paths(tmp_path: Path) -> None:
    paths = _make(tmp_path, "a.ts", "b.ts", "c.md")

    selected = apply_filters(
        paths,
        root=tmp_path,
        filter_config=FilterConfig(include_patterns="*.ts", exclude_patterns="a.ts"),
    )

    assert selected == ["b.ts"]


@pytest.mark.unit
def test_except_comma_list(tmp_path: Path) -> None:
    paths = _make(tmp_path, "src/a.ts", "src/a.test.ts", "src/a.spec.ts", "src/README.md")

    selected = apply_filters(
        paths,
        root=tmp_path,
        filter_config=FilterConfig(exclude_patterns="**/*.test.ts, **/*.spec.ts,README.md"),
    )

    assert selected == ["src/a.ts"]


@pytest.mark.unit
def test_apply_filters_drops_directories_and_missing(tmp_path: Path) -> None:
    paths = _make(tmp_path, "new/a.ts")

    selected = apply_filters(
        ["new", "gone.ts", *paths],
        root=tmp_path,
        filter_config=FilterConfig(),
    )

    assert selected == ["new/a.ts"]


@pytest.mark.unit
def test_apply_filters_preserves_input_order(tmp_path: Path) -> None:
    paths = _make(tmp_path, "z.ts", "a.ts", "m.ts")

    assert apply_filters(paths, root=tmp_path, filter_config=FilterConfig()) == ["z.ts", "a.ts", "m.ts"]


@pytest.mark.unit
def test_apply_filters_custom_segments(tmp_path: Path) -> None:
    paths = _make(tmp_path, "build/out.js", "node_modules/dep.js")

    selected = apply_filters(
        paths,
        root=tmp_path,
        filter_config=FilterConfig(),
        exclude_segments=frozenset({"build"}),
    )

    assert selected == ["node_modules/dep.js"]
