"""Extractor protocol: the per-file front-end capability consumed by the pipeline."""

from __future__ import annotations

from typing import Protocol

from archdeps.model import ExtractionResult


class Extractor(Protocol):
    """Protocol for per-file dependency extractors.

    ``extract_one`` parses and resolves a single source file and reports the
    file's class name, its dependencies, and a type descriptor.  It raises
    :class:`archdeps.errors.ExtractionError` when the file cannot be handled.
    """

    name: str

    def extract_one(
        self,
        file: str,
        classpath: list[str],
        sourcepath: list[str],
    ) -> ExtractionResult:
        ...
