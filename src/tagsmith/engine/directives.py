"""
Evaluation of ``{% if %}`` and ``{% for %}`` directive blocks.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence, Tuple

from .expressions import evaluate_condition
from .props import PropValue

logger = logging.getLogger(__name__)

_DIRECTIVE_PATTERN = re.compile(r"\{%\s*(if|elif|else|endif|for|endfor)\b(.*?)%\}")
_LOOP_HEADER_PATTERN = re.compile(r"^([A-Za-z_]\w*)\s+in\s+([A-Za-z_][\w-]*)$")

_CONDITIONAL_KINDS = ("if", "elif", "else", "endif")
_LOOP_KINDS = ("for", "endfor")


@dataclass(frozen=True)
class Directive:
    kind: str
    argument: str
    start: int
    end: int


@dataclass(frozen=True)
class Branch:
    kind: str
    condition: str
    body: str


def _directives(text: str, kinds: Sequence[str]) -> List[Directive]:
    return [
        Directive(kind=m.group(1), argument=m.group(2).strip(), start=m.start(), end=m.end())
        for m in _DIRECTIVE_PATTERN.finditer(text)
        if m.group(1) in kinds
    ]


def _find_block(directives: List[Directive], index: int, opener: str, closer: str, separators: Sequence[str] = ()) -> Tuple[Optional[int], List[int]]:
    """
    Locate the closer matching ``directives[index]``.

    Returns:
        Index of the matching closer (None when unterminated) and the
        indices of separator directives at the same nesting level.
    """
    depth = 0
    boundaries: List[int] = []
    for position in range(index + 1, len(directives)):
        kind = directives[position].kind
        if kind == opener:
            depth += 1
        elif kind == closer:
            if depth == 0:
                return position, boundaries
            depth -= 1
        elif depth == 0 and kind in separators:
            boundaries.append(position)
    return None, boundaries


def split_branches(text: str, directives: List[Directive], opening: int, closing: int, separators: List[int]) -> List[Branch]:
    """Split a conditional block into one body per branch, in declaration order."""
    markers = [opening, *separators, closing]
    branches: List[Branch] = []
    for current, following in zip(markers, markers[1:]):
        directive = directives[current]
        body = text[directive.end:directives[following].start]
        branches.append(Branch(kind=directive.kind, condition=directive.argument, body=body))
    return branches


def choose_branch(branches: List[Branch], scope: Mapping[str, PropValue]) -> str:
    """
    Pick the body of the first branch whose condition holds.

    The ``else`` body is used when no condition holds; with no ``else`` the
    result is empty.
    """
    fallback: Optional[str] = None
    for branch in branches:
        if branch.kind == "else":
            if fallback is None:
                fallback = branch.body
            continue
        if fallback is None and evaluate_condition(branch.condition, scope):
            return branch.body.strip()
    return fallback.strip() if fallback is not None else ""


def evaluate_conditionals(text: str, scope: Mapping[str, PropValue]) -> str:
    """
    Replace every outermost conditional block with its chosen branch.

    Conditionals nested inside the chosen branch are evaluated as well.
    Unterminated blocks and stray ``elif``/``else``/``endif`` directives are
    left as literal text.
    """
    directives = _directives(text, _CONDITIONAL_KINDS)
    if not directives:
        return text

    parts: List[str] = []
    cursor = 0
    index = 0
    while index < len(directives):
        directive = directives[index]
        if directive.kind != "if":
            logger.debug("Ignoring stray {%% %s %%} at offset %d", directive.kind, directive.start)
            index += 1
            continue
        closing, separators = _find_block(directives, index, "if", "endif", ("elif", "else"))
        if closing is None:
            logger.debug("Unterminated {%% if %%} at offset %d left as text", directive.start)
            break
        branches = split_branches(text, directives, index, closing, separators)
        parts.append(text[cursor:directive.start])
        parts.append(evaluate_conditionals(choose_branch(branches, scope), scope))
        cursor = directives[closing].end
        index = closing + 1
    parts.append(text[cursor:])
    return "".join(parts)


def _loop_items(list_name: str, scope: Mapping[str, PropValue]) -> List[str]:
    value = scope.get(list_name)
    if value is None:
        logger.debug("Loop list %r is not bound; emitting nothing", list_name)
        return []
    return value.items()


def expand_loops(text: str, scope: Mapping[str, PropValue]) -> str:
    """
    Expand every outermost ``{% for item in list %}`` block.

    The body is repeated once per element with ``{{item}}`` replaced by the
    element, and the repetitions are joined with no separator. Loops nested
    in a body are not expanded by this step.
    """
    directives = _directives(text, _LOOP_KINDS)
    if not directives:
        return text

    parts: List[str] = []
    cursor = 0
    index = 0
    while index < len(directives):
        directive = directives[index]
        if directive.kind != "for":
            index += 1
            continue
        closing, _ = _find_block(directives, index, "for", "endfor")
        if closing is None:
            logger.debug("Unterminated {%% for %%} at offset %d left as text", directive.start)
            break
        end = directives[closing]
        header = _LOOP_HEADER_PATTERN.match(directive.argument)
        if header is None:
            logger.debug("Malformed loop header %r left as text", directive.argument)
            index = closing + 1
            continue
        item_name, list_name = header.groups()
        body = text[directive.end:end.start]
        placeholder = "{{" + item_name + "}}"
        parts.append(text[cursor:directive.start])
        parts.extend(body.replace(placeholder, item) for item in _loop_items(list_name, scope))
        cursor = end.end
        index = closing + 1
    parts.append(text[cursor:])
    return "".join(parts)
