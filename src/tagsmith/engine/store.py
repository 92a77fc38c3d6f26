"""
Loading and indexing of component templates.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..util import read_text_file
from .errors import ComponentsDirectoryMissing

logger = logging.getLogger(__name__)

DEFAULT_COMPONENT_EXTENSIONS = (".html",)


def component_name(path: Path, root: Path) -> str:
    """
    Derive the component identifier for a template file.

    ``<root>/ui/card.html`` becomes ``ui/card``.
    """
    relative = path.relative_to(root)
    return relative.with_suffix("").as_posix()


class ComponentStore:
    """
    Registry of component templates keyed by their relative name.

    Attributes:
        root: Directory scanned for templates.
        extensions: File suffixes treated as templates.
        generation: Incremented by every successful ``load()``.
    """

    def __init__(self, root: Path | str, extensions: Iterable[str] = DEFAULT_COMPONENT_EXTENSIONS) -> None:
        self.root = Path(root).expanduser().resolve()
        self.extensions = tuple(ext.lower() for ext in extensions)
        self.generation = 0
        self._templates: Dict[str, str] = {}

    def load(self) -> int:
        """
        Scan the root and replace every registered template.

        Returns:
            Number of templates registered.

        Raises:
            ComponentsDirectoryMissing: If the root does not exist.
        """
        if not self.root.is_dir():
            raise ComponentsDirectoryMissing(self.root)

        logger.debug("Loading components from %s", self.root)
        templates: Dict[str, str] = {}
        for path in sorted(self.root.rglob("*")):
            if not path.is_file() or path.suffix.lower() not in self.extensions:
                continue
            name = component_name(path, self.root)
            try:
                templates[name] = read_text_file(path)
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Skipping unreadable component %s (%s)", path, exc)
                continue
            logger.debug("Loaded component: %s", name)

        self._templates = templates
        self.generation += 1
        logger.info("Loaded %d component(s) from %s", len(templates), self.root)
        return len(templates)

    def get(self, name: str) -> Optional[str]:
        return self._templates.get(name)

    def names(self) -> List[str]:
        return sorted(self._templates)

    def owns(self, path: Path | str) -> bool:
        """Return True if ``path`` lies inside the components root."""
        try:
            Path(path).expanduser().resolve().relative_to(self.root)
        except ValueError:
            return False
        return True

    def __contains__(self, name: object) -> bool:
        return name in self._templates

    def __len__(self) -> int:
        return len(self._templates)
