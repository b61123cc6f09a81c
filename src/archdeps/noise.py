"""Policy for excluding edges to ubiquitous types (primitives, boxed wrappers, ...)."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from archdeps.model import Dependency

_PRIMITIVES = ("boolean", "char", "byte", "short", "int", "long", "float", "double")

_BOXED = (
    "java.lang.Boolean",
    "java.lang.Character",
    "java.lang.Byte",
    "java.lang.Short",
    "java.lang.Integer",
    "java.lang.Long",
    "java.lang.Float",
    "java.lang.Double",
    "java.lang.String",
    "java.lang.Object",
)

_MARKERS = (
    "java.lang.Deprecated",
    "java.lang.Override",
    "java.lang.SuppressWarnings",
    "java.lang.SafeVarargs",
)

_MISC = ("java.lang.Class", "java.util.Vector", "java.util.Iterator")


def _with_arrays(names: Iterable[str]) -> set[str]:
    """Return *names* plus their one- and two-dimensional array forms."""
    result: set[str] = set()
    for name in names:
        result.update((name, f"{name}[]", f"{name}[][]"))
    return result


@dataclass(frozen=True)
class NoisePolicy:
    """Denylist made of an exact-match set and a prefix-match set."""

    exact: frozenset[str] = frozenset()
    prefixes: tuple[str, ...] = ()

    def matches(self, name: str) -> bool:
        return name in self.exact or name.startswith(self.prefixes)

    def is_noise(self, dep: Dependency) -> bool:
        """True if either endpoint of *dep* is a denylisted type."""
        return self.matches(dep.class_name_a) or self.matches(dep.class_name_b)

    def extended(
        self,
        exact: Iterable[str] = (),
        prefixes: Iterable[str] = (),
    ) -> NoisePolicy:
        return NoisePolicy(
            exact=self.exact | frozenset(exact),
            prefixes=self.prefixes + tuple(p for p in prefixes if p not in self.prefixes),
        )


DEFAULT_NOISE_POLICY = NoisePolicy(
    exact=frozenset(set(_PRIMITIVES) | _with_arrays(_BOXED) | set(_MARKERS) | set(_MISC)),
    # Any parametrization or array form of ArrayList.
    prefixes=("java.util.ArrayList",),
)


def filter_dependencies(
    dependencies: Iterable[Dependency],
    policy: NoisePolicy = DEFAULT_NOISE_POLICY,
) -> list[Dependency]:
    """Return a new list holding the dependencies of *dependencies* that are not noise."""
    return [d for d in dependencies if not policy.is_noise(d)]
