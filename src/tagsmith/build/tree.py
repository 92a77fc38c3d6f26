"""
Directory traversal for builds: picking documents and copying everything else.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from ..util import copy_file, is_relative_to

logger = logging.getLogger(__name__)


def document_depth(path: Path, root: Path) -> int:
    """Number of directories between ``root`` and ``path`` (root files are 0)."""
    return len(path.relative_to(root).parts) - 1


def _excluded(path: Path, exclude: Sequence[Path]) -> bool:
    return any(path == item or is_relative_to(path, item) for item in exclude)


def is_document(
    path: Path,
    root: Path,
    *,
    depth: Optional[int] = None,
    names: Optional[Iterable[str]] = None,
    extensions: Sequence[str] = (".html",),
    exclude: Sequence[Path] = (),
) -> bool:
    """
    Decide whether ``path`` is a document to expand rather than copy.

    Files deeper than ``depth`` or whose stem is not in ``names`` are not
    documents.
    """
    if path.suffix.lower() not in extensions:
        return False
    if not is_relative_to(path, root) or _excluded(path, exclude):
        return False
    if depth is not None and document_depth(path, root) > depth:
        return False
    if names is not None and path.stem not in set(names):
        return False
    return True


def _walk(root: Path, exclude: Sequence[Path]):
    for current, dirnames, filenames in os.walk(root):
        current_path = Path(current)
        dirnames[:] = sorted(d for d in dirnames if not _excluded(current_path / d, exclude))
        yield current_path, dirnames, sorted(filenames)


def iter_documents(
    root: Path,
    *,
    depth: Optional[int] = None,
    names: Optional[Iterable[str]] = None,
    extensions: Sequence[str] = (".html",),
    exclude: Sequence[Path] = (),
) -> List[Path]:
    """
    Collect the documents under ``root`` that a build should expand.

    Returns:
        Sorted list of absolute document paths.
    """
    name_filter = set(names) if names is not None else None
    documents: List[Path] = []
    for current, dirnames, filenames in _walk(root, exclude):
        if depth is not None and len(current.relative_to(root).parts) >= depth:
            # Files in subdirectories of this one would be too deep.
            dirnames[:] = []
        for filename in filenames:
            path = current / filename
            if is_document(path, root, depth=depth, names=name_filter, extensions=extensions, exclude=exclude):
                documents.append(path)
    return documents


def copy_tree(root: Path, output: Path, *, exclude: Sequence[Path] = ()) -> int:
    """
    Copy every file and directory under ``root`` into ``output`` verbatim.

    Depth limits do not apply here: deep files are still copied.

    Returns:
        Number of files copied.
    """
    copied = 0
    output.mkdir(parents=True, exist_ok=True)
    for current, dirnames, filenames in _walk(root, exclude):
        relative = current.relative_to(root)
        for dirname in dirnames:
            (output / relative / dirname).mkdir(parents=True, exist_ok=True)
        for filename in filenames:
            copy_file(current / filename, output / relative / filename)
            copied += 1
    logger.debug("Copied %d file(s) from %s to %s", copied, root, output)
    return copied
