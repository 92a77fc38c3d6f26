"""
Filesystem helpers shared by the build and watch modules.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock

logger = logging.getLogger(__name__)


def _ensure_parent(target: Path) -> None:
    """Ensure the parent directory for target exists."""
    if target.parent and not target.parent.exists():
        target.parent.mkdir(parents=True, exist_ok=True)


def is_relative_to(path: Path, base: Path) -> bool:
    """Return True if path is under base."""
    try:
        path.relative_to(base)
    except ValueError:
        return False
    return True


def safe_unlink(path: Path | str, *, base_dir: Path | str) -> bool:
    """Delete a file only when it lies within base_dir."""
    target = Path(path).expanduser().resolve()
    base = Path(base_dir).expanduser().resolve()
    if not is_relative_to(target, base):
        logger.warning("Refusing to delete %s (outside %s)", target, base)
        return False
    try:
        target.unlink()
        return True
    except FileNotFoundError:
        return False
    except OSError as exc:
        logger.debug("Failed to delete %s (%s)", target, exc)
        return False


@contextmanager
def file_lock(path: Path | str, timeout: float = -1):
    """
    Context manager for a filesystem lock file alongside the target.

    ``site_processed`` is guarded by ``site_processed.lock``.
    """
    target = Path(path).expanduser().resolve()
    lock_path = target.with_name(f"{target.name}.lock")
    _ensure_parent(lock_path)
    with FileLock(str(lock_path), timeout=timeout):
        yield


def _atomic_write_text(target: Path, content: str, encoding: str) -> None:
    """Write text atomically by staging a temp file and renaming."""
    _ensure_parent(target)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, target)
    finally:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        except OSError:
            pass


def read_text_file(path: Path | str, encoding: str = "utf-8", errors: str = "strict") -> str:
    """Read text with line endings left exactly as stored on disk."""
    return Path(path).read_bytes().decode(encoding, errors)


def write_text_file(path: Path | str, content: str, encoding: str = "utf-8") -> Path:
    """
    Write text to a file atomically, creating parent directories as needed.

    Readers (such as the dev server) never observe a half-written file.
    """
    target = Path(path).expanduser().resolve()
    _atomic_write_text(target, content, encoding=encoding)
    return target


def copy_file(source: Path, target: Path) -> Path:
    """Copy a single file verbatim, preserving metadata."""
    _ensure_parent(target)
    shutil.copy2(source, target)
    return target
