from __future__ import annotations

import libcst as cst
import pytest

from argtrim.exceptions import NeverThrown
from argtrim.rewrite.model import RemovalPlan
from argtrim.rewrite.mutator import remove_argument_at, remove_arguments

_MODULE = cst.Module(body=[])


def _call(source: str) -> cst.Call:
    node = cst.parse_expression(source)
    assert isinstance(node, cst.Call)
    return node


def _code(node: cst.CSTNode) -> str:
    return _MODULE.code_for_node(node)


def test_remove_last_argument_drops_separator() -> None:
    assert _code(remove_argument_at(_call("f(5, 2)"), 1)) == "f(5)"


def test_remove_interior_argument() -> None:
    assert _code(remove_argument_at(_call("f(5, 2)"), 0)) == "f(2)"
    assert _code(remove_argument_at(_call("f(1, x=2)"), 0)) == "f(x=2)"


def test_remove_whole_plan_in_descending_order() -> None:
    call = remove_arguments(_call("f(1, 2, 3)"), RemovalPlan((1, 2)))
    assert _code(call) == "f(1)"
    assert _code(remove_arguments(_call("f(1, 2)"), RemovalPlan((0, 1)))) == "f()"


def test_trailing_comma_layout_is_preserved() -> None:
    source = "f(\n    5,\n    2,\n)"
    assert _code(remove_argument_at(_call(source), 1)) == "f(\n    5,\n)"


def test_emptied_multiline_call_collapses() -> None:
    source = "f(\n    1,\n)"
    assert _code(remove_argument_at(_call(source), 0)) == "f()"


def test_each_removal_shrinks_arity_by_one() -> None:
    call = _call("g(a, b, c, d)")
    for expected in (3, 2, 1, 0):
        call = remove_argument_at(call, len(call.args) - 1)
        assert len(call.args) == expected


def test_out_of_range_position_is_an_invariant_violation() -> None:
    with pytest.raises(NeverThrown) as excinfo:
        remove_argument_at(_call("f(1)"), 3)
    assert excinfo.value.env["position"] == 3
    assert excinfo.value.env_dict == {"arity": "1", "position": "3"}
