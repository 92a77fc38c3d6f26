"""
Exception types raised by the expansion engine.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence


class TagsmithError(RuntimeError):
    """Base class for every error tagsmith raises on purpose."""


class ComponentsDirectoryMissing(TagsmithError):
    """Raised when the components root does not exist."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Components directory not found: {path}")
        self.path = path


class SourceDirectoryMissing(TagsmithError):
    """Raised when the source tree to build does not exist."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Source directory not found: {path}")
        self.path = path


class CyclicComponentError(TagsmithError):
    """
    Raised when a component includes itself, directly or transitively.

    Attributes:
        cycle: Component names from the first occurrence to the repeated one.
    """

    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = tuple(cycle)
        super().__init__(f"Cyclic component inclusion: {' -> '.join(self.cycle)}")


class ExpressionError(TagsmithError):
    """Raised by the condition evaluator; never escapes a directive."""
