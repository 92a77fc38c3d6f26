"""
Prop values and the deterministic serialization used for cache keys.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Tuple, Union


@dataclass(frozen=True)
class Scalar:
    """A plain text prop, as every tag attribute is."""

    text: str

    def as_text(self) -> str:
        return self.text

    def items(self) -> List[str]:
        # No escaping for embedded commas.
        if not self.text:
            return []
        return self.text.split(",")


@dataclass(frozen=True)
class ListValue:
    """An already-structured sequence, only produced by Python callers."""

    values: Tuple[str, ...]

    def as_text(self) -> str:
        return ",".join(self.values)

    def items(self) -> List[str]:
        return list(self.values)


PropValue = Union[Scalar, ListValue]
Props = Dict[str, PropValue]


def coerce_value(value: object) -> PropValue:
    """
    Wrap a raw Python value as a prop value.

    Strings become `Scalar`; lists and tuples become `ListValue`; existing
    prop values pass through. Anything else is stringified.
    """
    if isinstance(value, (Scalar, ListValue)):
        return value
    if isinstance(value, str):
        return Scalar(value)
    if isinstance(value, (list, tuple)):
        return ListValue(tuple(str(item) for item in value))
    return Scalar(str(value))


def coerce_props(values: Mapping[str, object] | None) -> Props:
    """Coerce a mapping of raw values into props, keeping insertion order."""
    if not values:
        return {}
    return {str(key): coerce_value(value) for key, value in values.items()}


def _serialize_value(value: PropValue) -> Tuple[str, object]:
    if isinstance(value, ListValue):
        return "list", list(value.values)
    return "scalar", value.text


def serialize_props(name: str, props: Mapping[str, PropValue]) -> str:
    """
    Collapse a component name and its props into a single cache key.

    Key order follows the insertion order of ``props``, so two invocations
    that pass the same attributes in a different order produce different keys.
    """
    entries: Iterable[list] = ([key, *_serialize_value(value)] for key, value in props.items())
    return json.dumps([name, list(entries)], separators=(",", ":"), ensure_ascii=False)
