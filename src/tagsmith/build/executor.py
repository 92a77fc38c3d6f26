"""
Build executor: copies the source tree and expands documents concurrently.
"""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from ..config import BuildConfig, ConfigError
from ..engine import BuildContext, FailureSummary, SourceDirectoryMissing, TagsmithError
from ..util import copy_file, file_lock, is_relative_to, read_text_file, safe_unlink, write_text_file
from .tree import copy_tree, is_document, iter_documents

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class BuildReport:
    """
    Outcome of one full build.

    Attributes:
        source: Source root that was built.
        output: Output root that was written.
        written: Output documents produced.
        failed: Documents that could not be expanded, with the reason.
        files_copied: Files copied verbatim before expansion.
        components: Number of component templates loaded.
        missing: Unresolved components (name, first file, occurrences).
        cache_entries: Fragments cached during the build.
        cache_hits: Cache lookups that returned a fragment.
        elapsed: Wall-clock seconds.
    """
    source: Path
    output: Path
    written: List[Path] = field(default_factory=list)
    failed: Dict[Path, str] = field(default_factory=dict)
    files_copied: int = 0
    components: int = 0
    missing: List[FailureSummary] = field(default_factory=list)
    cache_entries: int = 0
    cache_hits: int = 0
    elapsed: float = 0.0

    def summary_rows(self) -> Iterable[tuple[str, str]]:
        yield ("Source", str(self.source))
        yield ("Output", str(self.output))
        yield ("Components loaded", str(self.components))
        yield ("Files copied", str(self.files_copied))
        yield ("Documents processed", str(len(self.written)))
        yield ("Documents failed", str(len(self.failed)))
        yield ("Missing components", str(len(self.missing)))
        yield ("Cached fragments", f"{self.cache_entries} ({self.cache_hits} hits)")
        yield ("Elapsed", f"{self.elapsed:.2f}s")


def partition(items: Sequence[T], count: int) -> List[List[T]]:
    """Split ``items`` round-robin into at most ``count`` non-empty partitions."""
    count = max(1, count)
    return [list(items[index::count]) for index in range(count) if items[index::count]]


class SiteBuilder:
    """
    Builds one source tree into one output tree.

    The builder owns a single ``BuildContext`` which it resets before every
    build, so repeated builds (watch mode) never reuse stale fragments.
    """

    def __init__(self, config: BuildConfig) -> None:
        self.config = config
        self.source = config.source_dir()
        self.output = config.output_dir()
        if self.output == self.source:
            raise ConfigError("Output directory must differ from the source directory.")
        self.components_root = config.components_dir()
        self.context = BuildContext(
            self.components_root,
            component_extensions=config.component_extensions,
            trace_markers=config.trace_markers,
        )
        self._loaded = False

    @property
    def workers(self) -> int:
        return self.config.workers or os.cpu_count() or 1

    def _traversal_exclusions(self) -> List[Path]:
        if not is_relative_to(self.output, self.source):
            return []
        return [self.output, self.output.with_name(f"{self.output.name}.lock")]

    def _document_exclusions(self) -> List[Path]:
        exclusions = self._traversal_exclusions()
        if is_relative_to(self.components_root, self.source):
            exclusions.append(self.components_root)
        return exclusions

    def output_path(self, path: Path) -> Path:
        return self.output / path.resolve().relative_to(self.source)

    def is_document(self, path: Path) -> bool:
        return is_document(
            path.resolve(),
            self.source,
            depth=self.config.depth,
            names=self.config.names,
            extensions=self.config.extensions,
            exclude=self._document_exclusions(),
        )

    def load_components(self) -> int:
        count = self.context.load_components()
        self._loaded = True
        return count

    def process_directory(self) -> BuildReport:
        """
        Reload components, copy the source tree and expand every matched document.

        Raises:
            SourceDirectoryMissing: If the source root does not exist.
            ComponentsDirectoryMissing: If the components root does not exist.
        """
        if not self.source.is_dir():
            raise SourceDirectoryMissing(self.source)

        started = time.perf_counter()
        self.context.reset()
        self.load_components()

        report = BuildReport(source=self.source, output=self.output, components=len(self.context.store))
        with file_lock(self.output):
            report.files_copied = copy_tree(self.source, self.output, exclude=self._traversal_exclusions())
            documents = iter_documents(
                self.source,
                depth=self.config.depth,
                names=self.config.names,
                extensions=self.config.extensions,
                exclude=self._document_exclusions(),
            )
            logger.info("Expanding %d document(s) with %d worker(s)", len(documents), self.workers)
            for path, target, error in self._render_all(documents):
                if error is None:
                    report.written.append(target)
                else:
                    report.failed[path] = error

        report.missing = self.context.failures.summary()
        report.cache_entries = len(self.context.cache)
        report.cache_hits = self.context.cache.hits
        report.elapsed = time.perf_counter() - started
        logger.info("Processing complete. Output directory: %s", self.output)
        return report

    def _render_all(self, documents: List[Path]) -> List[Tuple[Path, Optional[Path], Optional[str]]]:
        partitions = partition(documents, self.workers)
        if len(partitions) <= 1:
            return [result for chunk in partitions for result in self._render_partition(chunk)]
        with ThreadPoolExecutor(max_workers=len(partitions), thread_name_prefix="tagsmith") as pool:
            chunks = list(pool.map(self._render_partition, partitions))
        return [result for chunk in chunks for result in chunk]

    def _render_partition(self, paths: List[Path]) -> List[Tuple[Path, Optional[Path], Optional[str]]]:
        results = []
        for path in paths:
            try:
                target = self.render_file(path)
            except (TagsmithError, OSError, UnicodeDecodeError) as exc:
                logger.error("Failed to process %s: %s", path, exc)
                results.append((path, None, str(exc)))
            else:
                results.append((path, target, None))
        return results

    def render_file(self, path: Path) -> Path:
        """Expand one document and write it to its mirrored output path."""
        relative = path.resolve().relative_to(self.source).as_posix()
        text = read_text_file(path)
        rendered = self.context.render_document(text, relative, self.config.variables)
        target = write_text_file(self.output_path(path), rendered)
        logger.debug("Processed: %s -> %s", path, target)
        return target

    def process_file(self, path: Path) -> Optional[Path]:
        """
        Bring a single changed source file up to date in the output.

        Documents are re-expanded with a fresh fragment cache; other files are
        copied verbatim. I/O and expansion errors are logged and the update is
        skipped.
        """
        path = path.resolve()
        if not is_relative_to(path, self.source) or any(is_relative_to(path, p) for p in self._traversal_exclusions()):
            return None
        if not self._loaded:
            self.load_components()
        try:
            if self.is_document(path):
                self.context.cache.clear()
                return self.render_file(path)
            return copy_file(path, self.output_path(path))
        except (TagsmithError, OSError, UnicodeDecodeError) as exc:
            logger.error("Skipping update of %s: %s", path, exc)
            return None

    def remove_file(self, path: Path) -> bool:
        """Delete the output counterpart of a removed source file."""
        path = path.resolve()
        if not is_relative_to(path, self.source):
            return False
        return safe_unlink(self.output / path.relative_to(self.source), base_dir=self.output)


def process_directory(config: BuildConfig) -> BuildReport:
    """
    Run a complete build for ``config``.
    """
    return SiteBuilder(config).process_directory()
