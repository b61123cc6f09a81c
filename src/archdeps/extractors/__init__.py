"""Front-ends that turn one source file into dependency edges."""

from __future__ import annotations

from archdeps.errors import ConfigError
from archdeps.extractors.base import Extractor

FRONTENDS = ("javalang", "tree-sitter")


def create_extractor(name: str = "javalang") -> Extractor:
    """Return a new extractor for the front-end called *name*."""
    if name == "javalang":
        from archdeps.extractors.java.javalang_frontend import JavalangExtractor

        return JavalangExtractor()
    if name == "tree-sitter":
        from archdeps.extractors.java.treesitter_frontend import TreeSitterExtractor

        return TreeSitterExtractor()
    raise ConfigError(f"Unknown front-end {name!r} (expected one of {', '.join(FRONTENDS)})")


__all__ = ["FRONTENDS", "Extractor", "create_extractor"]
