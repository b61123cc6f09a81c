"""Exception hierarchy for archdeps."""

from __future__ import annotations


class ArchDepsError(Exception):
    """Base class for all archdeps errors."""


class ExtractionError(ArchDepsError):
    """Raised when a front-end cannot parse or resolve a single source file."""

    def __init__(self, file: str, reason: str):
        self.file = file
        self.reason = reason
        super().__init__(f"{file}: {reason}")


class DiscoveryError(ArchDepsError):
    """Raised when a project root cannot be turned into a project layout."""


class ConfigError(ArchDepsError):
    """Raised for malformed archdeps configuration."""


class FrontendUnavailableError(ArchDepsError):
    """Raised when a front-end cannot be initialised (e.g. a missing library)."""
