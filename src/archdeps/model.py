"""Language-agnostic data model for class-level dependency edges."""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class DependencyType(str, Enum):
    """Relationship kinds emitted by the bundled Java front-ends."""

    EXTENDS = "EXTENDS"
    IMPLEMENTS = "IMPLEMENTS"
    FIELD = "FIELD"
    PARAMETER = "PARAMETER"
    RETURN = "RETURN"
    LOCAL_VARIABLE = "LOCAL_VARIABLE"
    METHOD_INVOCATION = "METHOD_INVOCATION"
    ANNOTATION = "ANNOTATION"
    INSTANTIATION = "INSTANTIATION"
    THROWS = "THROWS"
    CATCH = "CATCH"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Dependency:
    """A directed, typed edge from one class to another.

    ``class_name_a`` is the declaring/using class, ``class_name_b`` the
    referenced one.  ``line_number`` is 1-based, or None when the front-end
    could not determine it.
    """

    class_name_a: str
    class_name_b: str
    dependency_type: Hashable
    line_number: int | None = None

    def __post_init__(self) -> None:
        if not self.class_name_a:
            raise ValueError("class_name_a must be a non-empty name")
        if not self.class_name_b:
            raise ValueError("class_name_b must be a non-empty name")


@dataclass(frozen=True)
class TypeDescriptor:
    """Resolved description of a declared type, beyond the flat edges."""

    qualified_name: str
    kind: str  # "class", "interface", "enum", "annotation"
    superclass: str | None = None
    interfaces: tuple[str, ...] = ()
    modifiers: frozenset[str] = frozenset()
    line: int | None = None
    source_file: str | None = None


@dataclass
class ExtractionResult:
    """What a front-end reports for one source file."""

    class_name: str
    dependencies: list[Dependency] = field(default_factory=list)
    type_descriptor: Any = None


@dataclass
class ProjectLayout:
    """Ordered class path, ordered source path, and the files to analyse."""

    classpath: list[str] = field(default_factory=list)
    sourcepath: list[str] = field(default_factory=list)
    files: set[str] = field(default_factory=set)
