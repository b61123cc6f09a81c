"""Whole-project class dependency model for Java codebases."""

from __future__ import annotations

from archdeps.export import export_all, to_relation_line
from archdeps.model import Dependency, DependencyType, ExtractionResult, TypeDescriptor
from archdeps.noise import DEFAULT_NOISE_POLICY, NoisePolicy, filter_dependencies
from archdeps.pipeline import ExtractionPipeline, analyze
from archdeps.store import ArchitectureStore

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_NOISE_POLICY",
    "ArchitectureStore",
    "Dependency",
    "DependencyType",
    "ExtractionPipeline",
    "ExtractionResult",
    "NoisePolicy",
    "TypeDescriptor",
    "analyze",
    "export_all",
    "filter_dependencies",
    "to_relation_line",
]
