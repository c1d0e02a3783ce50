from __future__ import annotations

from pathlib import Path

from argtrim.config import RewriteSettings
from argtrim.rewrite.engine import RewriteEngine, apply_plan


def _project(tmp_path: Path, write_module) -> Path:
    write_module(tmp_path, "src/pkg/__init__.py", "")
    write_module(
        tmp_path,
        "src/pkg/util.py",
        """
        def scale(value, factor=1):
            return value * factor
        """,
    )
    return write_module(
        tmp_path,
        "src/pkg/app.py",
        """
        from pkg.util import scale
        from . import util
        from .util import scale as s2

        a = scale(3, 1)
        b = util.scale(3, 1)
        c = s2(3, 1)
        """,
    )


def test_plan_file_resolves_project_imports(tmp_path: Path, write_module) -> None:
    app = _project(tmp_path, write_module)
    plan = RewriteEngine(project_root=tmp_path).plan_file(app)
    assert not plan.errors
    (edit,) = plan.edits
    assert edit.path == str(app)
    assert edit.start == (0, 0)
    assert "a = scale(3)\n" in edit.replacement
    assert "b = util.scale(3)\n" in edit.replacement
    assert "c = s2(3)\n" in edit.replacement
    assert [record.positions for record in plan.removals] == [(1,), (1,), (1,)]
    assert {record.callee for record in plan.removals} == {"scale", "util.scale", "s2"}


def test_import_resolution_can_be_disabled(tmp_path: Path, write_module) -> None:
    app = _project(tmp_path, write_module)
    engine = RewriteEngine(
        project_root=tmp_path, settings=RewriteSettings(resolve_imports=False)
    )
    plan = engine.plan_file(app)
    assert not plan.edits
    assert not plan.errors


def test_unparseable_dependency_is_not_resolved(tmp_path: Path, write_module) -> None:
    write_module(tmp_path, "broken.py", "def scale(value, factor=1:\n")
    app = write_module(
        tmp_path,
        "main.py",
        """
        from broken import scale

        scale(3, 1)
        """,
    )
    plan = RewriteEngine(project_root=tmp_path).plan_file(app)
    assert not plan.edits
    assert not plan.errors


def test_plan_file_reports_read_and_parse_errors(tmp_path: Path, write_module) -> None:
    engine = RewriteEngine(project_root=tmp_path)
    missing = engine.plan_file(tmp_path / "missing.py")
    assert missing.errors[0].startswith("Failed to read")

    bad = write_module(tmp_path, "bad.py", "def f(:\n")
    broken = engine.plan_file(bad)
    assert broken.errors[0].startswith("LibCST parse failed")
    assert not broken.edits


def test_unchanged_file_has_empty_plan(tmp_path: Path, write_module) -> None:
    path = write_module(tmp_path, "clean.py", "print('hi')\n")
    plan = RewriteEngine(project_root=tmp_path).plan_file(path)
    assert not plan.changed
    assert not plan.removals


def test_plan_paths_walks_directories_and_honours_excludes(
    tmp_path: Path, write_module
) -> None:
    source = """
    def f(a=1):
        return a

    f(1)
    """
    kept = write_module(tmp_path, "lib/core.py", source)
    write_module(tmp_path, "lib/generated/out.py", source)
    write_module(tmp_path, "lib/api_pb2.py", source)
    write_module(tmp_path, "lib/notes.txt", "f(1)\n")
    engine = RewriteEngine(
        project_root=tmp_path,
        settings=RewriteSettings(exclude=("generated", "*_pb2.py")),
    )
    plan = engine.plan_paths([tmp_path / "lib"])
    assert [edit.path for edit in plan.edits] == [str(kept)]
    assert not plan.warnings


def test_plan_paths_warns_when_nothing_matches(tmp_path: Path) -> None:
    plan = RewriteEngine(project_root=tmp_path).plan_paths([tmp_path])
    assert plan.warnings == ["No Python files found."]


def test_apply_plan_writes_replacements(tmp_path: Path, write_module) -> None:
    path = write_module(
        tmp_path,
        "mod.py",
        """
        def f(a=1, b=2):
            return a

        f(5, 2)
        """,
    )
    plan = RewriteEngine(project_root=tmp_path).plan_file(path)
    apply_plan(plan)
    assert path.read_text(encoding="utf-8").endswith("f(5)\n")
    assert not RewriteEngine(project_root=tmp_path).plan_file(path).changed


def test_max_passes_stops_at_fixed_point() -> None:
    source = "def f(a=1):\n    return a\n\nf(1)\nf(1)\n"
    single = RewriteEngine().rewrite_source(source)
    assert single.passes == 1
    assert single.changed
    assert len(single.removals) == 2

    repeated = RewriteEngine(settings=RewriteSettings(max_passes=5)).rewrite_source(source)
    assert repeated.passes == 2
    assert repeated.code == single.code
    assert len(repeated.removals) == 2

    untouched = RewriteEngine(settings=RewriteSettings(max_passes=5)).rewrite_source("x = 1\n")
    assert untouched.passes == 1
    assert not untouched.changed


def test_relative_paths_prefer_working_directory(
    tmp_path: Path, write_module, monkeypatch
) -> None:
    source = """
    def f(a=1):
        return a

    f(1)
    """
    write_module(tmp_path, "proj/pkg/mod.py", source)
    monkeypatch.chdir(tmp_path)
    engine = RewriteEngine(project_root=Path("proj"))
    from_cwd = engine.plan_paths([Path("proj/pkg")])
    assert [edit.path for edit in from_cwd.edits] == [str(Path("proj/pkg/mod.py"))]
    from_root = engine.plan_paths([Path("pkg")])
    assert [edit.path for edit in from_root.edits] == [str(Path("proj/pkg/mod.py"))]
