"""Thread-safe in-memory store of class dependencies for one analysis run."""

from __future__ import annotations

import logging
import threading
from collections.abc import Hashable, Iterable

from archdeps.model import Dependency

logger = logging.getLogger(__name__)


class ArchitectureStore:
    """Maps class names to their dependency edges.

    Also carries the auxiliary module-description map and the accumulated
    type descriptors.  Every write is a whole-entry replace or a single
    append, so readers never see a partially written entry.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._classes: dict[str, tuple[Dependency, ...]] = {}
        self._modules: dict[str, str] = {}
        self._type_descriptors: list = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._classes)

    def __contains__(self, class_name: object) -> bool:
        with self._lock:
            return class_name in self._classes

    def put(self, class_name: str, dependencies: Iterable[Dependency]) -> None:
        """Replace (or create) the entry for *class_name*."""
        snapshot = tuple(dependencies)
        for dep in snapshot:
            if dep.class_name_a != class_name:
                raise ValueError(
                    f"dependency {dep!r} does not belong to class {class_name!r}"
                )
        with self._lock:
            if class_name in self._classes:
                logger.debug("Replacing dependencies of %s", class_name)
            self._classes[class_name] = snapshot

    update_dependencies = put

    def get(self, class_name: str) -> tuple[Dependency, ...] | None:
        with self._lock:
            return self._classes.get(class_name)

    def class_names(self) -> set[str]:
        with self._lock:
            return set(self._classes)

    def all_dependencies(self) -> list[Dependency]:
        """Every stored dependency, across all classes, unfiltered."""
        with self._lock:
            entries = list(self._classes.values())
        return [dep for deps in entries for dep in deps]

    def find_dependency(
        self,
        class_name_a: str,
        class_name_b: str,
        line_number_a: int | None,
        dependency_type: Hashable,
    ) -> Dependency | None:
        """Return the first edge of *class_name_a* matching target, type and line.

        A None *line_number_a* only matches edges without a line number.
        All three conditions must hold for a candidate to match.
        """
        dependencies = self.get(class_name_a)
        if dependencies is None:
            return None
        for d in dependencies:
            if (
                d.line_number == line_number_a
                and d.class_name_b == class_name_b
                and d.dependency_type == dependency_type
            ):
                return d
        return None

    def add_type_descriptor(self, descriptor) -> None:
        with self._lock:
            self._type_descriptors.append(descriptor)

    def type_descriptors(self) -> list:
        with self._lock:
            return list(self._type_descriptors)

    def describe_module(self, name: str, description: str) -> None:
        with self._lock:
            self._modules[name] = description

    def modules(self) -> dict[str, str]:
        with self._lock:
            return dict(self._modules)
