"""Signature tables built from module sources.

Only bindings made directly in a module body (or directly in a class body)
are recorded. A name bound more than once, or bound inside a compound
statement such as ``if``/``try``, is recorded as ambiguous and never
resolved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Tuple, Union

import libcst as cst

logger = logging.getLogger(__name__)

_BINDING_DECORATORS = {"staticmethod", "classmethod"}


@dataclass(frozen=True)
class Parameter:
    name: str
    default: cst.BaseExpression | None = None


@dataclass(frozen=True)
class Signature:
    qualname: str
    positional: Tuple[Parameter, ...]
    binding: str = "function"

    def defaults(self, *, offset: int = 0, limit: int | None = None) -> Dict[int, cst.BaseExpression]:
        params = self.positional[offset:] if offset >= 0 else ()
        if limit is not None:
            params = params[:limit]
        return {
            position: param.default
            for position, param in enumerate(params)
            if param.default is not None
        }


@dataclass(frozen=True)
class ImportRef:
    module: str
    attr: str | None = None


@dataclass
class ClassInfo:
    qualname: str
    bases: Tuple[str | None, ...] = ()
    methods: Dict[str, Signature | None] = field(default_factory=dict)
    reliable: bool = True
    owner: ModuleSignatures | None = field(default=None, repr=False, compare=False)


Binding = Union[Signature, ClassInfo, ImportRef]


@dataclass
class ModuleSignatures:
    name: str
    is_package: bool = False
    bindings: Dict[str, Binding | None] = field(default_factory=dict)

    def get(self, name: str) -> Binding | None:
        return self.bindings.get(name)

    def resolve_relative(self, level: int, module: str | None) -> str | None:
        if level == 0:
            return module
        parts = self.name.split(".") if self.name else []
        if not self.is_package:
            parts = parts[:-1]
        drop = level - 1
        if drop > len(parts):
            return None
        if drop:
            parts = parts[:-drop]
        if module:
            parts.append(module)
        return ".".join(parts) or None


def dotted_name(expr: cst.BaseExpression | None) -> str | None:
    if isinstance(expr, cst.Name):
        return expr.value
    if isinstance(expr, cst.Attribute):
        base = dotted_name(expr.value)
        if base is None:
            return None
        return f"{base}.{expr.attr.value}"
    return None


def decorator_names(node: cst.FunctionDef | cst.ClassDef) -> list[str | None]:
    names: list[str | None] = []
    for decorator in node.decorators:
        target = decorator.decorator
        if isinstance(target, cst.Call):
            names.append(None)
            continue
        name = dotted_name(target)
        names.append(name.rsplit(".", 1)[-1] if name else None)
    return names


def signature_from_def(node: cst.FunctionDef, qualname: str) -> Signature | None:
    binding = "function"
    for name in decorator_names(node):
        if name not in _BINDING_DECORATORS or binding != "function":
            # Arbitrary decorators may replace the signature.
            return None
        binding = name
    params = [*node.params.posonly_params, *node.params.params]
    return Signature(
        qualname=qualname,
        positional=tuple(
            Parameter(name=param.name.value, default=param.default) for param in params
        ),
        binding=binding,
    )


def _bind(table: Dict[str, Binding | None], name: str, value: Binding | None) -> None:
    if name in table:
        table[name] = None
    else:
        table[name] = value


def _target_names(target: cst.BaseExpression) -> Iterable[str]:
    if isinstance(target, cst.Name):
        yield target.value
    elif isinstance(target, (cst.Tuple, cst.List)):
        for element in target.elements:
            yield from _target_names(element.value)
    elif isinstance(target, cst.StarredElement):
        yield from _target_names(target.value)


class _BoundNameCollector(cst.CSTVisitor):
    """Collects every name bound anywhere inside a compound statement."""

    def __init__(self) -> None:
        self.names: set[str] = set()

    def visit_FunctionDef(self, node: cst.FunctionDef) -> bool:
        self.names.add(node.name.value)
        return False

    def visit_ClassDef(self, node: cst.ClassDef) -> bool:
        self.names.add(node.name.value)
        return False

    def visit_AssignTarget(self, node: cst.AssignTarget) -> None:
        self.names.update(_target_names(node.target))

    def visit_AnnAssign(self, node: cst.AnnAssign) -> None:
        self.names.update(_target_names(node.target))

    def visit_AugAssign(self, node: cst.AugAssign) -> None:
        self.names.update(_target_names(node.target))

    def visit_For(self, node: cst.For) -> None:
        self.names.update(_target_names(node.target))

    def visit_AsName(self, node: cst.AsName) -> None:
        self.names.update(_target_names(node.name))

    def visit_ImportAlias(self, node: cst.ImportAlias) -> None:
        if node.asname is None:
            name = dotted_name(node.name)
            if name:
                self.names.add(name.split(".")[0])

    def visit_NamedExpr(self, node: cst.NamedExpr) -> None:
        self.names.update(_target_names(node.target))


def _collect_small_statement(
    table: Dict[str, Binding | None],
    stmt: cst.BaseSmallStatement,
    module: ModuleSignatures | None,
) -> None:
    if isinstance(stmt, cst.Import):
        for alias in stmt.names:
            name = dotted_name(alias.name)
            if name is None:
                continue
            if alias.asname is not None:
                local = dotted_name(alias.asname.name)
                if local:
                    _bind(table, local, ImportRef(module=name))
            else:
                root = name.split(".")[0]
                _bind(table, root, ImportRef(module=root))
        return
    if isinstance(stmt, cst.ImportFrom):
        if isinstance(stmt.names, cst.ImportStar):
            return
        source = dotted_name(stmt.module) if stmt.module is not None else None
        if stmt.relative:
            source = module.resolve_relative(len(stmt.relative), source) if module else None
        for alias in stmt.names:
            attr = dotted_name(alias.name)
            local = dotted_name(alias.asname.name) if alias.asname is not None else attr
            if not attr or not local:
                continue
            _bind(table, local, ImportRef(module=source, attr=attr) if source else None)
        return
    collector = _BoundNameCollector()
    stmt.visit(collector)
    for name in collector.names:
        _bind(table, name, None)


def _collect_body(
    table: Dict[str, Binding | None],
    body: Iterable[cst.CSTNode],
    *,
    prefix: str,
    module: ModuleSignatures | None,
    in_class: bool,
) -> None:
    for stmt in body:
        if isinstance(stmt, cst.FunctionDef):
            name = stmt.name.value
            _bind(table, name, signature_from_def(stmt, f"{prefix}{name}"))
        elif isinstance(stmt, cst.ClassDef):
            name = stmt.name.value
            _bind(table, name, None if in_class else class_info_from_def(stmt, f"{prefix}{name}", module))
        elif isinstance(stmt, cst.SimpleStatementLine):
            for small in stmt.body:
                _collect_small_statement(table, small, module)
        else:
            collector = _BoundNameCollector()
            stmt.visit(collector)
            for name in collector.names:
                _bind(table, name, None)


def class_info_from_def(
    node: cst.ClassDef, qualname: str, module: ModuleSignatures | None = None
) -> ClassInfo:
    bases: list[str | None] = []
    reliable = not node.decorators
    for arg in node.bases:
        if arg.keyword is not None or arg.star:
            reliable = False
            continue
        base = dotted_name(arg.value)
        if base == "object":
            continue
        bases.append(base)
    if node.keywords:
        reliable = False
    methods: Dict[str, Binding | None] = {}
    _collect_body(methods, node.body.body, prefix=f"{qualname}.", module=module, in_class=True)
    return ClassInfo(
        qualname=qualname,
        bases=tuple(bases),
        methods={
            name: value if isinstance(value, Signature) else None
            for name, value in methods.items()
        },
        reliable=reliable,
        owner=module,
    )


def collect_module_signatures(
    module: cst.Module, name: str = "", *, is_package: bool = False
) -> ModuleSignatures:
    signatures = ModuleSignatures(name=name, is_package=is_package)
    _collect_body(signatures.bindings, module.body, prefix="", module=signatures, in_class=False)
    return signatures


def module_name(path: Path, project_root: Path | None) -> tuple[str, bool]:
    rel = path.with_suffix("")
    if project_root is not None:
        try:
            rel = rel.relative_to(project_root)
        except ValueError:
            pass
    parts = list(rel.parts)
    if parts and parts[0] == "src":
        parts = parts[1:]
    is_package = bool(parts) and parts[-1] == "__init__"
    if is_package:
        parts = parts[:-1]
    return ".".join(parts), is_package


class SignatureIndex:
    """Per-run cache of module signature tables.

    Modules other than the one being rewritten are parsed lazily from the
    project root the first time an import refers to them; the table for a
    module name never changes afterwards.
    """

    def __init__(self, project_root: Path | None = None, *, resolve_imports: bool = True) -> None:
        self.project_root = project_root
        self.resolve_imports = resolve_imports
        self._cache: Dict[str, ModuleSignatures | None] = {}

    def register(self, signatures: ModuleSignatures) -> None:
        self._cache[signatures.name] = signatures

    def _module_path(self, name: str) -> tuple[Path, bool] | None:
        if self.project_root is None:
            return None
        parts = name.split(".")
        for base in (self.project_root / "src", self.project_root):
            module_file = base.joinpath(*parts).with_suffix(".py")
            if module_file.is_file():
                return module_file, False
            package_file = base.joinpath(*parts, "__init__.py")
            if package_file.is_file():
                return package_file, True
        return None

    def module(self, name: str | None) -> ModuleSignatures | None:
        if not name:
            return None
        if name in self._cache:
            return self._cache[name]
        signatures: ModuleSignatures | None = None
        located = self._module_path(name) if self.resolve_imports else None
        if located is not None:
            path, is_package = located
            try:
                tree = cst.parse_module(path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, cst.ParserSyntaxError) as exc:
                logger.warning("cannot index %s: %s", path, exc)
            else:
                signatures = collect_module_signatures(tree, name, is_package=is_package)
                logger.debug("indexed %s from %s", name, path)
        self._cache[name] = signatures
        return signatures

    def follow(self, binding: Binding | None, *, depth: int = 0) -> Binding | ModuleSignatures | None:
        """Chase an import to the definition it names."""
        if not isinstance(binding, ImportRef):
            return binding
        if not self.resolve_imports or depth > 8:
            return None
        if binding.attr is None:
            return self.module(binding.module)
        source = self.module(binding.module)
        if source is not None:
            target = source.get(binding.attr)
            if target is not None:
                return self.follow(target, depth=depth + 1)
            if binding.attr in source.bindings:
                return None
        return self.module(f"{binding.module}.{binding.attr}")

    def resolve_class(self, owner: ModuleSignatures, base: str | None) -> ClassInfo | None:
        if base is None:
            return None
        head, *rest = base.split(".")
        target = self.follow(owner.get(head))
        for part in rest:
            if not isinstance(target, ModuleSignatures):
                return None
            target = self.follow(target.get(part))
        if isinstance(target, ClassInfo) and target.reliable:
            return target
        return None

    def _lookup(
        self, info: ClassInfo, name: str, seen: frozenset[int]
    ) -> tuple[bool, Signature | None]:
        if name in info.methods:
            return True, info.methods[name]
        if id(info) in seen or info.owner is None:
            return True, None
        seen = seen | {id(info)}
        for base in info.bases:
            base_info = self.resolve_class(info.owner, base)
            if base_info is None:
                # An unknown base earlier in the MRO may define the method.
                return True, None
            found, signature = self._lookup(base_info, name, seen)
            if found:
                return True, signature
        return False, None

    def find_method(self, info: ClassInfo, name: str) -> Signature | None:
        return self._lookup(info, name, frozenset())[1]

    def defines(self, info: ClassInfo, name: str) -> bool:
        """Whether ``name`` is (or may be) defined anywhere in the class's MRO."""
        return self._lookup(info, name, frozenset())[0]

    def _known_classes(self, extra: ModuleSignatures | None) -> Iterable[ClassInfo]:
        modules = [module for module in self._cache.values() if module is not None]
        if extra is not None and all(module is not extra for module in modules):
            modules.append(extra)
        for module in modules:
            for binding in module.bindings.values():
                if isinstance(binding, ClassInfo):
                    yield binding

    def _derives_from(self, info: ClassInfo, ancestor: ClassInfo, seen: set[int]) -> bool:
        if info.owner is None:
            return False
        for base in info.bases:
            base_info = self.resolve_class(info.owner, base)
            if base_info is None or id(base_info) in seen:
                continue
            if base_info is ancestor:
                return True
            seen.add(id(base_info))
            if self._derives_from(base_info, ancestor, seen):
                return True
        return False

    def overridden(
        self, info: ClassInfo, name: str, *, within: ModuleSignatures | None = None
    ) -> bool:
        """Whether a known subclass of ``info`` redefines ``name``.

        Known classes are those of ``within`` and of every module indexed so
        far; a subclass the index has never seen is not detected.
        """
        for candidate in self._known_classes(within):
            if candidate is info or name not in candidate.methods:
                continue
            if self._derives_from(candidate, info, set()):
                return True
        return False
