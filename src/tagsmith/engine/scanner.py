"""
Locating self-closing component tags outside of HTML comments.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)

_COMMENT_PATTERN = re.compile(r"<!--.*?-->", re.DOTALL)
_PLACEHOLDER_PATTERN = re.compile("\x00(\\d+)\x00")

_DOCUMENT_NAME = r"[A-Za-z_][A-Za-z0-9_]*"
_NESTED_NAME = r"[A-Za-z_][A-Za-z0-9_]*(?:/[A-Za-z0-9_]+)*"
_TAG_TEMPLATE = r"<(?P<name>{name})(?P<attrs>(?:\s[^>]*?)?)\s*/>"

DOCUMENT_TAG_PATTERN = re.compile(_TAG_TEMPLATE.format(name=_DOCUMENT_NAME))
NESTED_TAG_PATTERN = re.compile(_TAG_TEMPLATE.format(name=_NESTED_NAME))


@dataclass(frozen=True)
class Tag:
    """A candidate component tag found in a document."""

    name: str
    attributes: str
    text: str


def protect_comments(text: str) -> Tuple[str, List[str]]:
    """
    Replace every ``<!-- ... -->`` region with a positional placeholder.

    Returns:
        The protected text and the extracted comments, in order.
    """
    comments: List[str] = []

    def _stash(match: re.Match) -> str:
        comments.append(match.group(0))
        return f"\x00{len(comments) - 1}\x00"

    return _COMMENT_PATTERN.sub(_stash, text), comments


def restore_comments(text: str, comments: List[str]) -> str:
    """Put back the comments extracted by ``protect_comments``."""
    if not comments:
        return text

    def _restore(match: re.Match) -> str:
        index = int(match.group(1))
        if index < len(comments):
            return comments[index]
        return match.group(0)

    return _PLACEHOLDER_PATTERN.sub(_restore, text)


def is_void_element(name: str) -> bool:
    return name.lower() in VOID_ELEMENTS


class TagScanner:
    """
    Finds ``<name attr="v" .../>`` tags while skipping comments and void elements.

    The document variant accepts plain identifiers. The nested variant, used
    inside component templates, also accepts ``/``-qualified names such as
    ``ui/card``.
    """

    def __init__(self, nested: bool = False) -> None:
        self.nested = nested
        self.pattern = NESTED_TAG_PATTERN if nested else DOCUMENT_TAG_PATTERN

    def find_tags(self, text: str) -> List[Tag]:
        protected, _ = protect_comments(text)
        return [
            Tag(name=m.group("name"), attributes=m.group("attrs"), text=m.group(0))
            for m in self.pattern.finditer(protected)
            if not is_void_element(m.group("name"))
        ]

    def expand(self, text: str, replace: Callable[[Tag], Optional[str]]) -> str:
        """
        Substitute every candidate tag with the result of ``replace``.

        ``replace`` returning None keeps the original tag text. Replacement
        output is not rescanned.
        """
        protected, comments = protect_comments(text)

        def _substitute(match: re.Match) -> str:
            name = match.group("name")
            if is_void_element(name):
                return match.group(0)
            result = replace(Tag(name=name, attributes=match.group("attrs"), text=match.group(0)))
            return match.group(0) if result is None else result

        expanded = self.pattern.sub(_substitute, protected)
        return restore_comments(expanded, comments)
