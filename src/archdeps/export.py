"""Flat relation-line export of stored dependencies."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum
from pathlib import Path

from archdeps.model import Dependency
from archdeps.noise import NoisePolicy, filter_dependencies
from archdeps.store import ArchitectureStore

logger = logging.getLogger(__name__)

# Rendered in place of a line number the front-end could not determine.
ABSENT_LINE = "null"


def _type_value(dependency_type) -> str:
    if isinstance(dependency_type, Enum):
        return str(dependency_type.value)
    return str(dependency_type)


def to_relation_line(dep: Dependency) -> str:
    """Render *dep* as ``A,TYPE,B,LINE``."""
    line = ABSENT_LINE if dep.line_number is None else str(dep.line_number)
    return f"{dep.class_name_a},{_type_value(dep.dependency_type)},{dep.class_name_b},{line}"


def export_all(store: ArchitectureStore, policy: NoisePolicy | None = None) -> set[str]:
    """Return every stored dependency as a relation line, de-duplicated.

    With a *policy*, edges it classifies as noise are left out.
    """
    deps = store.all_dependencies()
    if policy is not None:
        deps = filter_dependencies(deps, policy)
    return {to_relation_line(d) for d in deps}


def write_relations(lines: Iterable[str], path: Path) -> None:
    """Write relation lines to *path*, sorted, one per line."""
    ordered = sorted(lines)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        for line in ordered:
            f.write(line + "\n")
    logger.debug("Wrote %d relations to %s", len(ordered), path)
