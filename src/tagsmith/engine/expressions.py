"""
A small expression language for ``{% if %}`` conditions.

Conditions are tokenized, identifiers naming a prop are replaced by string
literals holding the prop value, and the token stream is parsed into a tree
of ``Literal``/``Name``/``Unary``/``Binary``/``Logical`` nodes which is then
walked directly. Nothing is compiled or handed to ``eval``.

Supported operators, loosest binding first::

    ||   &&   == != === !==   < <= > >=   + -   * / %   ! - + (unary)
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Union

from .errors import ExpressionError
from .props import PropValue

logger = logging.getLogger(__name__)

_TOKEN_PATTERN = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<number>\d+(?:\.\d*)?|\.\d+)
  | (?P<string>"[^"]*"|'[^']*')
  | (?P<name>[A-Za-z_$][\w$]*)
  | (?P<op>===|!==|==|!=|<=|>=|&&|\|\||[<>!+\-*/%])
  | (?P<lparen>\()
  | (?P<rparen>\))
    """,
    re.VERBOSE,
)

_KEYWORDS = {"true": True, "false": False, "null": None}


@dataclass(frozen=True)
class Token:
    kind: str
    value: Any


@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class Name:
    name: str


@dataclass(frozen=True)
class Unary:
    op: str
    operand: "Node"


@dataclass(frozen=True)
class Binary:
    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Logical:
    op: str
    left: "Node"
    right: "Node"


Node = Union[Literal, Name, Unary, Binary, Logical]


def tokenize(source: str) -> List[Token]:
    tokens: List[Token] = []
    position = 0
    while position < len(source):
        match = _TOKEN_PATTERN.match(source, position)
        if match is None:
            raise ExpressionError(f"Unexpected character {source[position]!r} at {position}")
        position = match.end()
        kind = match.lastgroup
        text = match.group(0)
        if kind == "ws":
            continue
        if kind == "number":
            value: Any = float(text) if "." in text else int(text)
            tokens.append(Token("literal", value))
        elif kind == "string":
            tokens.append(Token("literal", text[1:-1]))
        elif kind == "name" and text in _KEYWORDS:
            tokens.append(Token("literal", _KEYWORDS[text]))
        else:
            tokens.append(Token(kind, text))
    return tokens


def substitute_names(tokens: List[Token], scope: Mapping[str, PropValue]) -> List[Token]:
    """Replace identifier tokens that name a prop with that prop's text."""
    substituted: List[Token] = []
    for token in tokens:
        if token.kind == "name" and token.value in scope:
            substituted.append(Token("literal", scope[token.value].as_text()))
        else:
            substituted.append(token)
    return substituted


class _Parser:
    _BINARY_LEVELS = (
        ("==", "!=", "===", "!=="),
        ("<", "<=", ">", ">="),
        ("+", "-"),
        ("*", "/", "%"),
    )

    def __init__(self, tokens: List[Token]) -> None:
        self.tokens = tokens
        self.index = 0

    def parse(self) -> Node:
        if not self.tokens:
            raise ExpressionError("Empty expression")
        node = self._logical("||")
        if self._peek() is not None:
            raise ExpressionError(f"Unexpected token {self._peek().value!r}")
        return node

    def _peek(self) -> Optional[Token]:
        if self.index < len(self.tokens):
            return self.tokens[self.index]
        return None

    def _advance(self) -> Token:
        token = self._peek()
        if token is None:
            raise ExpressionError("Unexpected end of expression")
        self.index += 1
        return token

    def _match_op(self, ops) -> Optional[str]:
        token = self._peek()
        if token is not None and token.kind == "op" and token.value in ops:
            self.index += 1
            return token.value
        return None

    def _logical(self, op: str) -> Node:
        descend = (lambda: self._logical("&&")) if op == "||" else (lambda: self._binary(0))
        node = descend()
        while self._match_op((op,)):
            node = Logical(op, node, descend())
        return node

    def _binary(self, level: int) -> Node:
        if level == len(self._BINARY_LEVELS):
            return self._unary()
        node = self._binary(level + 1)
        while True:
            op = self._match_op(self._BINARY_LEVELS[level])
            if op is None:
                return node
            node = Binary(op, node, self._binary(level + 1))

    def _unary(self) -> Node:
        op = self._match_op(("!", "-", "+"))
        if op is not None:
            return Unary(op, self._unary())
        return self._primary()

    def _primary(self) -> Node:
        token = self._advance()
        if token.kind == "literal":
            return Literal(token.value)
        if token.kind == "name":
            return Name(token.value)
        if token.kind == "lparen":
            node = self._logical("||")
            closing = self._advance()
            if closing.kind != "rparen":
                raise ExpressionError("Expected ')'")
            return node
        raise ExpressionError(f"Unexpected token {token.value!r}")


def parse_expression(source: str, scope: Optional[Mapping[str, PropValue]] = None) -> Node:
    tokens = tokenize(source)
    if scope:
        tokens = substitute_names(tokens, scope)
    return _Parser(tokens).parse()


def is_truthy(value: Any) -> bool:
    """
    Truthiness of a condition value.

    The string ``"false"`` is false so boolean-ish props can be tested bare.
    """
    if value is None or value is False:
        return False
    if isinstance(value, str):
        return value != "" and value.lower() != "false"
    if isinstance(value, (int, float)):
        return value != 0 and not math.isnan(value)
    return bool(value)


def _to_number(value: Any) -> Union[int, float]:
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    text = str(value).strip()
    if not text:
        return 0
    try:
        number = float(text)
    except ValueError as exc:
        raise ExpressionError(f"Cannot use {value!r} as a number") from exc
    return int(number) if number.is_integer() and "." not in text and "e" not in text.lower() else number


def _to_string(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _same_kind(left: Any, right: Any) -> bool:
    def kind(value: Any) -> str:
        if value is None:
            return "null"
        if isinstance(value, bool):
            return "bool"
        if isinstance(value, (int, float)):
            return "number"
        return "string"

    return kind(left) == kind(right)


def _loose_equal(left: Any, right: Any) -> bool:
    if _same_kind(left, right):
        return left == right
    if left is None or right is None:
        return False
    try:
        return _to_number(left) == _to_number(right)
    except ExpressionError:
        return False


def _compare(op: str, left: Any, right: Any) -> bool:
    if not (isinstance(left, str) and isinstance(right, str)):
        left, right = _to_number(left), _to_number(right)
    if op == "<":
        return left < right
    if op == "<=":
        return left <= right
    if op == ">":
        return left > right
    return left >= right


def _arithmetic(op: str, left: Any, right: Any) -> Any:
    if op == "+" and (isinstance(left, str) or isinstance(right, str)):
        return _to_string(left) + _to_string(right)
    left, right = _to_number(left), _to_number(right)
    if op == "+":
        return left + right
    if op == "-":
        return left - right
    if op == "*":
        return left * right
    if right == 0:
        raise ExpressionError("Division by zero")
    if op == "/":
        return left / right
    return math.fmod(left, right)


def evaluate(node: Node) -> Any:
    """Walk an expression tree and return its value."""
    if isinstance(node, Literal):
        return node.value
    if isinstance(node, Name):
        raise ExpressionError(f"Unbound identifier {node.name!r}")
    if isinstance(node, Unary):
        operand = evaluate(node.operand)
        if node.op == "!":
            return not is_truthy(operand)
        number = _to_number(operand)
        return -number if node.op == "-" else number
    if isinstance(node, Logical):
        left = evaluate(node.left)
        if node.op == "&&":
            return evaluate(node.right) if is_truthy(left) else left
        return left if is_truthy(left) else evaluate(node.right)
    if isinstance(node, Binary):
        left, right = evaluate(node.left), evaluate(node.right)
        if node.op == "==":
            return _loose_equal(left, right)
        if node.op == "!=":
            return not _loose_equal(left, right)
        if node.op == "===":
            return _same_kind(left, right) and left == right
        if node.op == "!==":
            return not (_same_kind(left, right) and left == right)
        if node.op in ("<", "<=", ">", ">="):
            return _compare(node.op, left, right)
        return _arithmetic(node.op, left, right)
    raise ExpressionError(f"Unknown node {node!r}")


def evaluate_condition(source: str, scope: Mapping[str, PropValue]) -> bool:
    """
    Evaluate a condition against a prop scope.

    Malformed or unevaluable conditions are false; this never raises.
    """
    try:
        return is_truthy(evaluate(parse_expression(source, scope)))
    except (ExpressionError, RecursionError) as exc:
        logger.debug("Condition %r evaluated as false: %s", source, exc)
        return False
