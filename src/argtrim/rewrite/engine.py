from __future__ import annotations

import fnmatch
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List

import libcst as cst

from argtrim.config import RewriteSettings
from argtrim.rewrite.model import RemovalRecord, RewritePlan, TextEdit
from argtrim.rewrite.rule import CallDecision, TrailingDefaultTransformer
from argtrim.rewrite.signatures import SignatureIndex, collect_module_signatures, module_name

logger = logging.getLogger(__name__)


@dataclass
class SourceRewrite:
    source: str
    code: str
    removals: List[RemovalRecord] = field(default_factory=list)
    passes: int = 0

    @property
    def changed(self) -> bool:
        return self.code != self.source


class RewriteEngine:
    def __init__(
        self,
        project_root: Path | None = None,
        settings: RewriteSettings | None = None,
    ) -> None:
        self.project_root = project_root
        self.settings = settings or RewriteSettings()
        self.index = SignatureIndex(
            project_root, resolve_imports=self.settings.resolve_imports
        )

    def _module_identity(self, path: Path | None) -> tuple[str, bool]:
        if path is None:
            return "", False
        if self.project_root is None:
            return path.stem, path.name == "__init__.py"
        return module_name(path, self.project_root)

    def _transformer(
        self, module: cst.Module, path: Path | None, *, record_decisions: bool = False
    ) -> TrailingDefaultTransformer:
        name, is_package = self._module_identity(path)
        signatures = collect_module_signatures(module, name, is_package=is_package)
        if name:
            self.index.register(signatures)
        return TrailingDefaultTransformer(
            index=self.index,
            module=signatures,
            path=str(path) if path is not None else "<string>",
            builtins=self.settings.builtins,
            strict_mutable_defaults=self.settings.strict_mutable_defaults,
            record_decisions=record_decisions,
        )

    def rewrite_source(self, source: str, *, path: Path | None = None) -> SourceRewrite:
        """Rewrite one module's source; raises ``libcst.ParserSyntaxError``."""
        module = cst.parse_module(source)
        result = SourceRewrite(source=source, code=source)
        for _ in range(self.settings.max_passes):
            transformer = self._transformer(module, path)
            updated = cst.MetadataWrapper(module).visit(transformer)
            result.passes += 1
            if not transformer.changed:
                break
            result.removals.extend(transformer.removals)
            module = updated
        result.code = module.code
        return result

    def explain(self, source: str, *, line: int, path: Path | None = None) -> List[CallDecision]:
        module = cst.parse_module(source)
        transformer = self._transformer(module, path, record_decisions=True)
        cst.MetadataWrapper(module).visit(transformer)
        return [decision for decision in transformer.decisions if decision.line == line]

    def _locate(self, path: Path) -> Path:
        # Paths that exist as given are relative to the working directory.
        if self.project_root is None or path.is_absolute() or path.exists():
            return path
        return self.project_root / path

    def plan_file(self, path: Path) -> RewritePlan:
        path = self._locate(path)
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            return RewritePlan(errors=[f"Failed to read {path}: {exc}"])
        try:
            result = self.rewrite_source(source, path=path)
        except cst.ParserSyntaxError as exc:
            logger.warning("skipping %s: %s", path, exc)
            return RewritePlan(errors=[f"LibCST parse failed for {path}: {exc}"])
        if not result.changed:
            return RewritePlan()
        end_line = len(source.splitlines())
        return RewritePlan(
            edits=[
                TextEdit(
                    path=str(path),
                    start=(0, 0),
                    end=(end_line, 0),
                    replacement=result.code,
                )
            ],
            removals=result.removals,
        )

    def _excluded(self, path: Path) -> bool:
        if not self.settings.exclude:
            return False
        candidates = [path.as_posix(), path.name]
        if self.project_root is not None:
            try:
                candidates.append(path.resolve().relative_to(self.project_root.resolve()).as_posix())
            except ValueError:
                pass
        return any(
            fnmatch.fnmatch(candidate, pattern)
            for pattern in self.settings.exclude
            for candidate in candidates
        ) or any(part in self.settings.exclude for part in path.parts)

    def iter_python_files(self, paths: Iterable[Path]) -> List[Path]:
        files: List[Path] = []
        seen: set[Path] = set()
        for path in paths:
            path = self._locate(path)
            if path.is_dir():
                candidates = sorted(path.rglob("*.py"))
            else:
                candidates = [path]
            for candidate in candidates:
                if candidate.suffix != ".py" or candidate in seen:
                    continue
                if self._excluded(candidate):
                    logger.debug("excluded %s", candidate)
                    continue
                seen.add(candidate)
                files.append(candidate)
        return files

    def plan_paths(self, paths: Iterable[Path]) -> RewritePlan:
        plan = RewritePlan()
        files = self.iter_python_files(paths)
        if not files:
            plan.warnings.append("No Python files found.")
        for path in files:
            plan.extend(self.plan_file(path))
        return plan


def apply_plan(plan: RewritePlan) -> None:
    for edit in plan.edits:
        Path(edit.path).write_text(edit.replacement, encoding="utf-8")
