"""
Attribute parsing for component tags.
"""

from __future__ import annotations

import re
from typing import Dict

from .props import Scalar

# The lookbehind keeps ``data-id="1"`` from also yielding a partial ``id``.
_ATTRIBUTE_PATTERN = re.compile(r'(?<![\w-])([A-Za-z_][\w-]*)\s*=\s*"([^"]*)"')


def parse_attributes(raw: str) -> Dict[str, Scalar]:
    """
    Extract every ``name="value"`` pair from a raw attribute string.

    Text that does not match is ignored without error. Values are taken
    verbatim; quotes are neither escaped nor unescaped.

    Args:
        raw: The text between the tag name and its self-closing slash.

    Returns:
        Mapping of attribute name to value, in order of appearance.
    """
    props: Dict[str, Scalar] = {}
    for match in _ATTRIBUTE_PATTERN.finditer(raw or ""):
        props[match.group(1)] = Scalar(match.group(2))
    return props
