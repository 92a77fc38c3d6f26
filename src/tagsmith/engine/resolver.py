"""
Recursive component resolution and the per-build context that owns its state.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Tuple

from .attributes import parse_attributes
from .cache import ExpansionCache, FailureRecord
from .directives import evaluate_conditionals, expand_loops
from .errors import CyclicComponentError
from .props import Props, coerce_props, serialize_props
from .scanner import TagScanner
from .store import DEFAULT_COMPONENT_EXTENSIONS, ComponentStore

logger = logging.getLogger(__name__)

TRACE_START = "\n<!-- Component components/{name} -->\n"
TRACE_END = "\n<!-- End component components/{name} -->\n"
_TRACE_PATTERN = re.compile(r"\n<!-- (?:End component|Component) components/[^\n]*? -->\n")


def substitute_props(template: str, props: Mapping[str, object]) -> str:
    """Replace every literal ``{{key}}`` with the prop's text."""
    for key, value in coerce_props(props).items():
        template = template.replace("{{" + key + "}}", value.as_text())
    return template


def wrap_fragment(name: str, text: str) -> str:
    return f"{TRACE_START.format(name=name)}{text}{TRACE_END.format(name=name)}"


def strip_trace_markers(text: str) -> str:
    """Remove the comment pairs that ``wrap_fragment`` adds."""
    return _TRACE_PATTERN.sub("", text)


class ComponentResolver:
    """
    Expands component invocations into fragments.

    Resolution never raises for a missing component: the failure is tallied
    and None is returned so the caller keeps the original tag text. A
    component that includes itself, directly or through others, raises
    ``CyclicComponentError``.
    """

    def __init__(
        self,
        store: ComponentStore,
        cache: ExpansionCache,
        failures: FailureRecord,
        *,
        trace_markers: bool = True,
    ) -> None:
        self.store = store
        self.cache = cache
        self.failures = failures
        self.trace_markers = trace_markers
        self.document_scanner = TagScanner(nested=False)
        self.nested_scanner = TagScanner(nested=True)

    def cache_key(self, name: str, props: Props) -> str:
        # Scoped by store generation so a reload never serves a stale fragment.
        return f"{self.store.generation}:{serialize_props(name, props)}"

    def resolve(
        self,
        tag_name: str,
        props: Mapping[str, object],
        originating_file: str,
        _stack: Tuple[str, ...] = (),
        _missing: Optional[List[str]] = None,
    ) -> Optional[str]:
        """
        Expand one component invocation.

        Args:
            tag_name: Component name, e.g. ``card`` or ``ui/card``.
            props: Prop values; plain strings and lists are coerced.
            originating_file: Document being built, for diagnostics.

        Returns:
            The wrapped fragment, or None when the component does not exist.

        Raises:
            CyclicComponentError: If ``tag_name`` is already being expanded.
        """
        if tag_name in _stack:
            start = _stack.index(tag_name)
            raise CyclicComponentError([*_stack[start:], tag_name])

        scope = coerce_props(props)
        key = self.cache_key(tag_name, scope)
        cached = self.cache.get(key)
        if cached is not None:
            # Misses inside a cached fragment still count for this file.
            inherited = self.cache.missing(key)
            for name in inherited:
                self.failures.record(name, originating_file)
            if _missing is not None:
                _missing.extend(inherited)
            return cached

        template = self.store.get(tag_name)
        if template is None:
            self.failures.record(tag_name, originating_file)
            if _missing is not None:
                _missing.append(tag_name)
            logger.warning("Component not found: %s (in %s)", tag_name, originating_file)
            return None

        text = substitute_props(template, scope)
        text = evaluate_conditionals(text, scope)
        text = expand_loops(text, scope)
        nested_missing: List[str] = []
        text = self.expand_tags(
            text, originating_file, nested=True, stack=(*_stack, tag_name), missing=nested_missing
        )
        if _missing is not None:
            _missing.extend(nested_missing)
        fragment = wrap_fragment(tag_name, text) if self.trace_markers else text
        return self.cache.put(key, fragment, tuple(nested_missing))

    def expand_tags(
        self,
        text: str,
        originating_file: str,
        *,
        nested: bool,
        stack: Tuple[str, ...] = (),
        missing: Optional[List[str]] = None,
    ) -> str:
        scanner = self.nested_scanner if nested else self.document_scanner
        return scanner.expand(
            text,
            lambda tag: self.resolve(tag.name, parse_attributes(tag.attributes), originating_file, stack, missing),
        )


class BuildContext:
    """
    All mutable state of one build: components, fragment cache and failures.

    Separate contexts never share state, so a server can keep serving one
    build while another is produced.
    """

    def __init__(
        self,
        components_root: Path | str,
        *,
        component_extensions: Iterable[str] = DEFAULT_COMPONENT_EXTENSIONS,
        trace_markers: bool = True,
    ) -> None:
        self.store = ComponentStore(components_root, component_extensions)
        self.cache = ExpansionCache()
        self.failures = FailureRecord()
        self.resolver = ComponentResolver(self.store, self.cache, self.failures, trace_markers=trace_markers)

    def load_components(self) -> int:
        """(Re)load every template and drop fragments built from the old ones."""
        count = self.store.load()
        self.cache.clear()
        return count

    def reset(self) -> None:
        """Forget cached fragments and failures before a new build."""
        self.cache.clear()
        self.failures.reset()

    def resolve(self, tag_name: str, props: Mapping[str, object], originating_file: str) -> Optional[str]:
        return self.resolver.resolve(tag_name, props, originating_file)

    def render_document(
        self,
        text: str,
        originating_file: str,
        variables: Optional[Mapping[str, object]] = None,
    ) -> str:
        """
        Expand a whole document.

        Global ``variables`` fill ``{{name}}`` placeholders and serve as the
        scope of top-level directives; component tags are expanded last.
        Text with no placeholders, directives or tags comes back unchanged.
        """
        scope = coerce_props(variables)
        if scope:
            text = substitute_props(text, scope)
        text = evaluate_conditionals(text, scope)
        text = expand_loops(text, scope)
        return self.resolver.expand_tags(text, originating_file, nested=False)
