"""Default value resolution for call sites.

Bindings are resolved with libcst's scope analysis: a callee only has a
signature when its name has exactly one visible assignment, that assignment
is made in the module's global scope, and the module's signature table holds
an unambiguous definition for it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Tuple

import libcst as cst
from libcst.metadata import (
    Assignment,
    BuiltinAssignment,
    GlobalScope,
    ParentNodeProvider,
    ScopeProvider,
)

from argtrim.rewrite.model import Argument, CallExpression, ExprKind
from argtrim.rewrite.signatures import (
    ClassInfo,
    ModuleSignatures,
    Signature,
    SignatureIndex,
    decorator_names,
)

MetadataGetter = Callable[..., object]

_INSTANCE = "instance"
_CLASS = "class"


@dataclass(frozen=True)
class CallTarget:
    signature: Signature
    offset: int = 0


def call_arguments(call: cst.Call) -> Tuple[Argument[cst.BaseExpression], ...]:
    return tuple(
        Argument(
            position=position,
            value=arg.value,
            keyword=arg.keyword.value if arg.keyword is not None else None,
            star=arg.star if isinstance(arg.star, str) else "",
        )
        for position, arg in enumerate(call.args)
    )


class DefaultValueResolver:
    def __init__(
        self,
        index: SignatureIndex,
        module: ModuleSignatures,
        metadata: MetadataGetter,
        *,
        builtins: Iterable[str] = (),
    ) -> None:
        self.index = index
        self.module = module
        self._metadata = metadata
        self._builtins = frozenset(builtins)

    def _assignments(self, node: cst.Name) -> set:
        scope = self._metadata(ScopeProvider, node, None)
        if scope is None:
            return set()
        return set(scope[node.value])

    def _parent(self, node: cst.CSTNode | None) -> cst.CSTNode | None:
        if node is None:
            return None
        return self._metadata(ParentNodeProvider, node, None)

    def _global_binding(self, node: cst.Name):
        assignments = self._assignments(node)
        if len(assignments) != 1:
            return None
        (assignment,) = assignments
        if not isinstance(assignment, Assignment):
            return None
        if not isinstance(assignment.scope, GlobalScope):
            return None
        return self.index.follow(self.module.get(node.value))

    def _enclosing_class(self, receiver: cst.Name) -> tuple[ClassInfo, str] | None:
        """Class and receiver role when ``receiver`` is a method's first parameter."""
        assignments = self._assignments(receiver)
        if len(assignments) != 1:
            return None
        (assignment,) = assignments
        param = assignment.node if isinstance(assignment, Assignment) else None
        if not isinstance(param, cst.Param):
            return None
        params = self._parent(param)
        function = self._parent(params)
        if not isinstance(params, cst.Parameters) or not isinstance(function, cst.FunctionDef):
            return None
        positional = [*params.posonly_params, *params.params]
        if not positional or positional[0] is not param:
            return None
        class_def = self._parent(self._parent(function))
        if not isinstance(class_def, cst.ClassDef):
            return None
        if not isinstance(self._parent(class_def), cst.Module):
            return None
        info = self.module.get(class_def.name.value)
        if not isinstance(info, ClassInfo):
            return None
        decorators = decorator_names(function)
        if "staticmethod" in decorators:
            return None
        if "classmethod" in decorators:
            return info, _CLASS
        return info, _INSTANCE

    def _classify(
        self, func: cst.BaseExpression
    ) -> tuple[ExprKind, str | None, str | None, CallTarget | None]:
        if isinstance(func, cst.Name):
            return ExprKind.FUNCTION_CALL, func.value, None, self._callable_target(
                self._global_binding(func)
            )
        if not isinstance(func, cst.Attribute):
            return ExprKind.FUNCTION_CALL, None, None, None
        attr = func.attr.value
        receiver = func.value
        if not isinstance(receiver, cst.Name):
            return ExprKind.METHOD_CALL, attr, None, None
        enclosing = self._enclosing_class(receiver)
        if enclosing is not None:
            info, role = enclosing
            if self.index.overridden(info, attr, within=self.module):
                # self/cls may be an instance of the overriding subclass.
                kind = ExprKind.METHOD_CALL if role == _INSTANCE else ExprKind.STATIC_CALL
                return kind, attr, receiver.value, None
            if role == _INSTANCE:
                return ExprKind.METHOD_CALL, attr, receiver.value, self._method_target(
                    info, attr, instance=True
                )
            return ExprKind.STATIC_CALL, attr, receiver.value, self._method_target(
                info, attr, instance=False
            )
        binding = self._global_binding(receiver)
        if isinstance(binding, ClassInfo):
            return ExprKind.STATIC_CALL, attr, receiver.value, self._method_target(
                binding, attr, instance=False
            )
        if isinstance(binding, ModuleSignatures):
            return ExprKind.FUNCTION_CALL, attr, receiver.value, self._callable_target(
                self.index.follow(binding.get(attr))
            )
        return ExprKind.METHOD_CALL, attr, receiver.value, None

    def _callable_target(self, binding) -> CallTarget | None:
        if isinstance(binding, Signature):
            if binding.binding != "function":
                return None
            return CallTarget(binding)
        if isinstance(binding, ClassInfo) and binding.reliable:
            if self.index.defines(binding, "__new__"):
                return None
            init = self.index.find_method(binding, "__init__")
            if init is None or init.binding != "function":
                return None
            return CallTarget(init, offset=1)
        return None

    def _method_target(self, info: ClassInfo, name: str, *, instance: bool) -> CallTarget | None:
        signature = self.index.find_method(info, name)
        if signature is None:
            return None
        if signature.binding == "staticmethod":
            return CallTarget(signature)
        if signature.binding == "classmethod" or instance:
            return CallTarget(signature, offset=1)
        # A plain function looked up on the class takes the instance explicitly.
        return CallTarget(signature)

    def describe(
        self, original: cst.Call, updated: cst.Call | None = None
    ) -> CallExpression[cst.BaseExpression]:
        kind, callee, receiver, _ = self._classify(original.func)
        return CallExpression(
            kind=kind,
            callee=callee,
            arguments=call_arguments(updated if updated is not None else original),
            receiver=receiver,
            node=original,
        )

    def target(self, call: CallExpression) -> CallTarget | None:
        if not isinstance(call.node, cst.Call):
            return None
        return self._classify(call.node.func)[3]

    def resolve_defaults(self, call: CallExpression) -> Dict[int, cst.BaseExpression]:
        target = self.target(call)
        if target is None:
            return {}
        return target.signature.defaults(
            offset=target.offset, limit=call.first_non_positional()
        )

    def is_builtin_symbol(self, name: str, *, at: cst.CSTNode | None = None) -> bool:
        if name in self._builtins:
            return True
        if not isinstance(at, cst.Name) or at.value != name:
            return False
        assignments = self._assignments(at)
        return bool(assignments) and all(
            isinstance(assignment, BuiltinAssignment) for assignment in assignments
        )

    def has_known_signature(self, name: str, *, at: cst.CSTNode | None = None) -> bool:
        if not isinstance(at, cst.Name) or at.value != name:
            return False
        return self._callable_target(self._global_binding(at)) is not None
