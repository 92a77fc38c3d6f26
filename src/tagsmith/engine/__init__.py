"""
The template expansion engine: components, directives, resolution and caching.
"""

from .attributes import parse_attributes
from .cache import ExpansionCache, FailureRecord, FailureSummary
from .directives import evaluate_conditionals, expand_loops
from .errors import (
    ComponentsDirectoryMissing,
    CyclicComponentError,
    ExpressionError,
    SourceDirectoryMissing,
    TagsmithError,
)
from .expressions import evaluate_condition
from .props import ListValue, Props, Scalar, coerce_props, serialize_props
from .resolver import BuildContext, ComponentResolver, strip_trace_markers
from .scanner import TagScanner
from .store import ComponentStore

__all__ = [
    "BuildContext",
    "ComponentResolver",
    "ComponentStore",
    "ComponentsDirectoryMissing",
    "CyclicComponentError",
    "ExpansionCache",
    "ExpressionError",
    "FailureRecord",
    "FailureSummary",
    "ListValue",
    "Props",
    "Scalar",
    "SourceDirectoryMissing",
    "TagScanner",
    "TagsmithError",
    "coerce_props",
    "evaluate_condition",
    "evaluate_conditionals",
    "expand_loops",
    "parse_attributes",
    "serialize_props",
    "strip_trace_markers",
]
