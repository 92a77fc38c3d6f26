import pytest

from tagsmith.engine import Scalar, evaluate_condition
from tagsmith.engine.expressions import Binary, Logical, Unary, parse_expression


def _scope(**values: str) -> dict:
    return {key: Scalar(value) for key, value in values.items()}


def test_equality_against_substituted_prop() -> None:
    assert evaluate_condition('(page == "main")', _scope(page="main")) is True
    assert evaluate_condition('(page == "main")', _scope(page="login")) is False
    assert evaluate_condition("(page != 'main')", _scope(page="login")) is True


def test_logical_operators() -> None:
    scope = _scope(a="x", b="z")

    assert evaluate_condition('a == "x" || b == "y"', scope) is True
    assert evaluate_condition('a == "x" && b == "y"', scope) is False
    assert evaluate_condition('!(a == "y")', scope) is True


@pytest.mark.parametrize(
    "condition",
    ["page ==", '"unterminated', "page === ", "(page == 'x'", "missing == 'x'", "1 / 0", "page @ 2", ""],
)
def test_unevaluable_conditions_are_false(condition: str) -> None:
    assert evaluate_condition(condition, _scope(page="x")) is False


def test_numeric_and_string_comparisons() -> None:
    scope = _scope(count="10")

    assert evaluate_condition("count > 3", scope) is True
    # Two strings compare lexicographically.
    assert evaluate_condition('count > "9"', scope) is False
    assert evaluate_condition("count * 2 == 20", scope) is True
    assert evaluate_condition("count == 10", scope) is True
    assert evaluate_condition("count === 10", scope) is False


def test_boolean_ish_props_as_bare_conditions() -> None:
    assert evaluate_condition("show", _scope(show="true")) is True
    assert evaluate_condition("show", _scope(show="false")) is False
    assert evaluate_condition("show", _scope(show="")) is False
    assert evaluate_condition("!show", _scope(show="FALSE")) is True
    assert evaluate_condition("true && !false", {}) is True


def test_string_concatenation() -> None:
    scope = _scope(first="a", second="b")

    assert evaluate_condition('first + second == "ab"', scope) is True
    assert evaluate_condition('first + 1 == "a1"', scope) is True


def test_parse_builds_tagged_tree() -> None:
    tree = parse_expression('a == "b" && !c')

    assert isinstance(tree, Logical)
    assert tree.op == "&&"
    assert isinstance(tree.left, Binary)
    assert tree.left.op == "=="
    assert isinstance(tree.right, Unary)


def test_precedence_of_arithmetic_over_comparison() -> None:
    assert evaluate_condition("1 + 2 * 3 == 7", {}) is True
    assert evaluate_condition("(1 + 2) * 3 == 9", {}) is True
    assert evaluate_condition("-2 < 1 && 7 % 4 == 3", {}) is True
