from __future__ import annotations

import difflib
import json
import logging
from pathlib import Path
from typing import List, Optional

import libcst as cst
import typer

from argtrim.config import TomlTable, load_settings
from argtrim.json_types import JSONObject
from argtrim.rewrite.engine import RewriteEngine, apply_plan
from argtrim.rewrite.model import RewritePlan
from argtrim.rewrite.rule import CallDecision
from argtrim.schema import CallDecisionDTO, ExplainResponseDTO, RewriteResponseDTO

app = typer.Typer(add_completion=False)

EXIT_OK = 0
EXIT_CHANGES = 1
EXIT_ERRORS = 2

_STDOUT_ALIAS = "-"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _split_csv(value: Optional[str]) -> list[str] | None:
    if value is None:
        return None
    return [part.strip() for part in value.split(",") if part.strip()]


def build_overrides(
    *,
    exclude: Optional[List[str]] = None,
    builtins_csv: Optional[str] = None,
    max_passes: Optional[int] = None,
    strict_mutable_defaults: Optional[bool] = None,
    resolve_imports: Optional[bool] = None,
) -> TomlTable:
    return {
        "exclude": list(exclude) if exclude else None,
        "builtins": _split_csv(builtins_csv),
        "max_passes": max_passes,
        "strict_mutable_defaults": strict_mutable_defaults,
        "resolve_imports": resolve_imports,
    }


def _write_text_to_target(target: Path, payload: str) -> None:
    if str(target) == _STDOUT_ALIAS:
        typer.echo(payload)
        return
    target.parent.mkdir(parents=True, exist_ok=True)
    if payload and not payload.endswith("\n"):
        payload += "\n"
    target.write_text(payload, encoding="utf-8")


def _exit_code(plan: RewritePlan, *, check: bool) -> int:
    if plan.errors:
        return EXIT_ERRORS
    if check and plan.changed:
        return EXIT_CHANGES
    return EXIT_OK


def build_rewrite_response(plan: RewritePlan, *, exit_code: int) -> JSONObject:
    payload = {
        "exit_code": exit_code,
        "changed_files": [edit.path for edit in plan.edits],
        "removals": [
            {
                "path": record.path,
                "line": record.line,
                "column": record.column,
                "callee": record.callee,
                "positions": list(record.positions),
            }
            for record in plan.removals
        ],
        "edits": [
            {
                "path": edit.path,
                "start": list(edit.start),
                "end": list(edit.end),
                "replacement": edit.replacement,
            }
            for edit in plan.edits
        ],
        "warnings": list(plan.warnings),
        "errors": list(plan.errors),
    }
    return RewriteResponseDTO.model_validate(payload).model_dump()


def render_diff(plan: RewritePlan) -> str:
    chunks: list[str] = []
    for edit in plan.edits:
        try:
            before = Path(edit.path).read_text(encoding="utf-8")
        except OSError:
            before = ""
        chunks.extend(
            difflib.unified_diff(
                before.splitlines(keepends=True),
                edit.replacement.splitlines(keepends=True),
                fromfile=f"a/{edit.path}",
                tofile=f"b/{edit.path}",
            )
        )
    return "".join(chunks)


def render_summary(plan: RewritePlan, *, write: bool) -> list[str]:
    lines = []
    for record in plan.removals:
        positions = ", ".join(str(position) for position in record.positions)
        lines.append(
            f"{record.path}:{record.line}:{record.column + 1}: "
            f"removed default argument(s) at position {positions} of {record.callee}(...)"
        )
    for warning in plan.warnings:
        lines.append(f"warning: {warning}")
    for error in plan.errors:
        lines.append(f"error: {error}")
    verb = "Rewrote" if write else "Would rewrite"
    lines.append(
        f"{verb} {len(plan.edits)} file(s); {len(plan.removals)} call(s) trimmed."
    )
    return lines


@app.command("rewrite")
def rewrite(
    paths: List[Path] = typer.Argument(None, help="Files or directories to rewrite."),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
    write: bool = typer.Option(False, "--write/--no-write", help="Write changes in place."),
    check: bool = typer.Option(
        False, "--check", help="Exit with status 1 when any file would change."
    ),
    diff: bool = typer.Option(False, "--diff", help="Print a unified diff."),
    json_output: bool = typer.Option(False, "--json", help="Print a JSON report."),
    output: Optional[Path] = typer.Option(
        None, "--output", help="Write the JSON report to this path ('-' for stdout)."
    ),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude"),
    builtins_csv: Optional[str] = typer.Option(
        None, "--builtins", help="Comma separated names to treat as builtins."
    ),
    max_passes: Optional[int] = typer.Option(None, "--max-passes", min=1),
    strict_mutable_defaults: Optional[bool] = typer.Option(
        None, "--strict-mutable-defaults/--no-strict-mutable-defaults"
    ),
    resolve_imports: Optional[bool] = typer.Option(
        None, "--resolve-imports/--no-resolve-imports"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Remove trailing call arguments that repeat their parameter default."""
    _configure_logging(verbose)
    root = root.resolve()
    overrides = build_overrides(
        exclude=exclude,
        builtins_csv=builtins_csv,
        max_passes=max_passes,
        strict_mutable_defaults=strict_mutable_defaults,
        resolve_imports=resolve_imports,
    )
    settings = load_settings(root=root, config_path=config, overrides=overrides)
    engine = RewriteEngine(project_root=root, settings=settings)
    plan = engine.plan_paths([path.resolve() for path in paths] if paths else [root])
    exit_code = _exit_code(plan, check=check)
    if diff:
        typer.echo(render_diff(plan), nl=False)
    if write:
        apply_plan(plan)
    if json_output or output is not None:
        rendered = json.dumps(
            build_rewrite_response(plan, exit_code=exit_code), indent=2, sort_keys=True
        )
        if output is None:
            typer.echo(rendered)
        else:
            _write_text_to_target(output, rendered)
    if not json_output:
        for line in render_summary(plan, write=write):
            typer.echo(line, err=line.startswith("error:"))
    raise typer.Exit(code=exit_code)


def _decision_payload(decision: CallDecision) -> JSONObject:
    return CallDecisionDTO.model_validate(
        {
            "line": decision.line,
            "column": decision.column,
            "callee": decision.callee,
            "kind": decision.kind,
            "eligible": decision.eligible,
            "arguments": [
                {
                    "position": argument.position,
                    "argument": argument.argument,
                    "default": argument.default,
                    "status": argument.status,
                }
                for argument in decision.arguments
            ],
            "plan": list(decision.plan.positions),
        }
    ).model_dump()


def render_decision(decision: CallDecision) -> list[str]:
    verdict = "eligible" if decision.eligible else "not eligible"
    lines = [f"{decision.callee}(...) [{decision.kind}, {verdict}] at column {decision.column + 1}"]
    for argument in decision.arguments:
        default = argument.default if argument.default is not None else "-"
        lines.append(
            f"  [{argument.position}] {argument.argument}  default={default}  {argument.status}"
        )
    return lines


@app.command("explain")
def explain(
    path: Path = typer.Argument(..., help="Python file to inspect."),
    line: int = typer.Argument(..., min=1, help="1-based line where the call starts."),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
    json_output: bool = typer.Option(False, "--json"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Show how each argument of the calls on a line is decided."""
    _configure_logging(verbose)
    root = root.resolve()
    path = path.resolve()
    settings = load_settings(root=root, config_path=config)
    engine = RewriteEngine(project_root=root, settings=settings)
    try:
        source = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise typer.BadParameter(f"Failed to read {path}: {exc}") from exc
    try:
        decisions = engine.explain(source, line=line, path=path)
    except cst.ParserSyntaxError as exc:
        raise typer.BadParameter(f"LibCST parse failed for {path}: {exc}") from exc
    if json_output:
        response = ExplainResponseDTO.model_validate(
            {
                "path": str(path),
                "line": line,
                "calls": [_decision_payload(decision) for decision in decisions],
            }
        )
        typer.echo(json.dumps(response.model_dump(), indent=2, sort_keys=True))
        return
    if not decisions:
        typer.echo(f"No calls start on line {line} of {path}.")
        return
    for decision in decisions:
        for rendered in render_decision(decision):
            typer.echo(rendered)


def main() -> None:  # pragma: no cover
    app()
