"""Orchestrator: discover → extract (concurrently) → store."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor, wait
from pathlib import Path

from archdeps.config import Settings, load_settings
from archdeps.discovery import discover_project
from archdeps.extractors import Extractor, create_extractor
from archdeps.noise import NoisePolicy, filter_dependencies
from archdeps.store import ArchitectureStore

logger = logging.getLogger(__name__)


class ExtractionPipeline:
    """Runs an extractor over many files and writes each result into a store.

    A file that fails to extract is logged and skipped; it never aborts the
    run and never leaves a partial entry behind.
    """

    def __init__(
        self,
        store: ArchitectureStore,
        extractor: Extractor,
        *,
        max_workers: int | None = None,
        noise_policy: NoisePolicy | None = None,
    ):
        self.store = store
        self.extractor = extractor
        self.max_workers = max_workers
        self.noise_policy = noise_policy
        self.failed_files: dict[str, Exception] = {}
        self._failures_lock = threading.Lock()

    def run(
        self,
        classpath: list[str],
        sourcepath: list[str],
        files: Iterable[str],
    ) -> None:
        """Extract every file in *files*; blocks until all have been attempted."""
        files = list(files)
        self.failed_files = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [
                executor.submit(self._process, f, classpath, sourcepath) for f in files
            ]
            wait(futures)
        logger.debug(
            "Extracted %d/%d files (%d failed)",
            len(files) - len(self.failed_files),
            len(files),
            len(self.failed_files),
        )

    def _process(self, file: str, classpath: list[str], sourcepath: list[str]) -> None:
        try:
            result = self.extractor.extract_one(file, classpath, sourcepath)
            dependencies = result.dependencies
            if self.noise_policy is not None:
                dependencies = filter_dependencies(dependencies, self.noise_policy)
            self.store.put(result.class_name, dependencies)
            self.store.add_type_descriptor(result.type_descriptor)
        except Exception as e:
            logger.error("Cannot handle file %s due to error: %s", file, e, exc_info=True)
            with self._failures_lock:
                self.failed_files[file] = e


def analyze(
    project_dir: Path,
    *,
    settings: Settings | None = None,
    extractor: Extractor | None = None,
    store: ArchitectureStore | None = None,
) -> ArchitectureStore:
    """Build the dependency model of the project at *project_dir*."""
    project_dir = Path(project_dir).resolve()
    settings = settings or load_settings(project_dir)
    layout = discover_project(project_dir, exclude=settings.exclude)
    extractor = extractor or create_extractor(settings.frontend)
    store = store if store is not None else ArchitectureStore()

    for name, description in settings.modules.items():
        store.describe_module(name, description)

    logger.debug("Front-end: %s, files: %d", getattr(extractor, "name", extractor), len(layout.files))

    pipeline = ExtractionPipeline(
        store,
        extractor,
        max_workers=settings.max_workers,
        noise_policy=settings.noise_policy() if settings.filter_noise else None,
    )
    pipeline.run(layout.classpath, layout.sourcepath, layout.files)

    if pipeline.failed_files:
        logger.warning(
            "%d of %d files could not be analysed",
            len(pipeline.failed_files),
            len(layout.files),
        )
    return store
