from __future__ import annotations

import operator

import pytest

from argtrim.rewrite.analyzer import last_must_keep, must_keep_positions, plan_removal
from argtrim.rewrite.model import Argument, CallExpression, ExprKind, RemovalPlan


def _call(*values: object, keywords: dict[int, str] | None = None, stars: dict[int, str] | None = None) -> CallExpression:
    keywords = keywords or {}
    stars = stars or {}
    return CallExpression(
        kind=ExprKind.FUNCTION_CALL,
        callee="f",
        arguments=tuple(
            Argument(
                position=position,
                value=value,
                keyword=keywords.get(position),
                star=stars.get(position, ""),
            )
            for position, value in enumerate(values)
        ),
    )


def _apply(call: CallExpression, plan: RemovalPlan) -> CallExpression:
    kept = [argument.value for argument in call.arguments if argument.position not in plan]
    return _call(*kept)


def test_full_match_removes_every_argument() -> None:
    plan = plan_removal(_call(1, 2), {0: 1, 1: 2}, equal=operator.eq)
    assert plan.positions == (0, 1)
    assert _apply(_call(1, 2), plan).arity == 0


def test_partial_tail_keeps_leading_mismatch() -> None:
    call = _call(5, 2)
    plan = plan_removal(call, {0: 1, 1: 2}, equal=operator.eq)
    assert plan.positions == (1,)
    assert [argument.value for argument in _apply(call, plan).arguments] == [5]


def test_unknown_default_blocks_removal() -> None:
    call = _call(1, 2)
    assert last_must_keep(call, {0: 1}, equal=operator.eq) == 1
    assert plan_removal(call, {0: 1}, equal=operator.eq) == RemovalPlan()


def test_last_argument_mismatch_empties_plan() -> None:
    plan = plan_removal(_call(1, 2, 9), {0: 1, 1: 2, 2: 3}, equal=operator.eq)
    assert not plan


def test_interior_match_is_never_removed() -> None:
    plan = plan_removal(_call(1, 7, 3), {0: 1, 1: 2, 2: 3}, equal=operator.eq)
    assert plan.positions == (2,)


def test_no_known_defaults_or_no_arguments() -> None:
    assert not plan_removal(_call(1, 2), {}, equal=operator.eq)
    assert not plan_removal(_call(), {0: 1}, equal=operator.eq)


def test_keyword_and_star_arguments_are_must_keep() -> None:
    call = _call(1, 2, keywords={1: "b"})
    assert must_keep_positions(call, {0: 1, 1: 2}, equal=operator.eq) == [1]
    assert not plan_removal(call, {0: 1, 1: 2}, equal=operator.eq)

    starred = _call((), 3, stars={0: "*"})
    assert must_keep_positions(starred, {0: (), 1: 3}, equal=operator.eq) == [0]


def test_undecidable_comparison_keeps_argument() -> None:
    def refuse(left: object, right: object) -> bool:
        raise TypeError("cannot compare")

    assert not plan_removal(_call(1), {0: 1}, equal=refuse)


def test_plan_is_idempotent_and_reversible() -> None:
    defaults = {0: 1, 1: 2, 2: 3}
    for values in [(1, 2, 3), (4, 2, 3), (4, 5, 3), (4, 5, 6), (1, 5, 3)]:
        call = _call(*values)
        plan = plan_removal(call, defaults, equal=operator.eq)
        trimmed = _apply(call, plan)
        assert not plan_removal(trimmed, defaults, equal=operator.eq)
        restored = [argument.value for argument in trimmed.arguments]
        restored.extend(defaults[position] for position in sorted(plan.positions))
        assert restored == list(values)


def test_call_expression_rejects_non_call_kinds() -> None:
    with pytest.raises(ValueError):
        CallExpression(kind=ExprKind.LITERAL, callee=None)


def test_removal_plan_suffix_filters_unknown_positions() -> None:
    assert RemovalPlan.suffix(1, 4).positions == (1, 2, 3)
    assert RemovalPlan.suffix(1, 4, known=[0, 3]).positions == (3,)
    assert RemovalPlan((1, 3, 2)).descending() == [3, 2, 1]
