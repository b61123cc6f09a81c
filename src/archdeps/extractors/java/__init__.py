"""Java front-ends."""

from __future__ import annotations

from archdeps.extractors.java.resolve import ClassIndex, TypeResolver

__all__ = [
    "ClassIndex",
    "TypeResolver",
]
