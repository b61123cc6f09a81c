"""Per-project settings read from .archdeps.toml or pyproject.toml."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from archdeps.errors import ConfigError
from archdeps.extractors import FRONTENDS
from archdeps.noise import DEFAULT_NOISE_POLICY, NoisePolicy

logger = logging.getLogger(__name__)

CONFIG_FILE = ".archdeps.toml"


@dataclass
class Settings:
    """Knobs for one analysis run."""

    frontend: str = "javalang"
    max_workers: int | None = None  # None: executor default
    filter_noise: bool = False
    exclude: list[str] = field(default_factory=list)
    noise_types: list[str] = field(default_factory=list)
    noise_prefixes: list[str] = field(default_factory=list)
    modules: dict[str, str] = field(default_factory=dict)

    def noise_policy(self) -> NoisePolicy:
        return DEFAULT_NOISE_POLICY.extended(self.noise_types, self.noise_prefixes)

    @classmethod
    def from_mapping(cls, data: dict) -> Settings:
        """Build settings from a parsed ``[archdeps]`` table."""
        settings = cls()
        unknown = set(data) - {
            "frontend",
            "max_workers",
            "filter_noise",
            "exclude",
            "noise_types",
            "noise_prefixes",
            "modules",
        }
        if unknown:
            raise ConfigError(f"Unknown archdeps settings: {', '.join(sorted(unknown))}")

        frontend = data.get("frontend", settings.frontend)
        if frontend not in FRONTENDS:
            raise ConfigError(f"frontend must be one of {', '.join(FRONTENDS)}, got {frontend!r}")
        settings.frontend = frontend

        max_workers = data.get("max_workers")
        if max_workers is not None and (
            not isinstance(max_workers, int) or isinstance(max_workers, bool) or max_workers < 1
        ):
            raise ConfigError(f"max_workers must be a positive integer, got {max_workers!r}")
        settings.max_workers = max_workers

        filter_noise = data.get("filter_noise", False)
        if not isinstance(filter_noise, bool):
            raise ConfigError(f"filter_noise must be a boolean, got {filter_noise!r}")
        settings.filter_noise = filter_noise

        for key in ("exclude", "noise_types", "noise_prefixes"):
            value = data.get(key, [])
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ConfigError(f"{key} must be a list of strings")
            setattr(settings, key, list(value))

        modules = data.get("modules", {})
        if not isinstance(modules, dict) or not all(
            isinstance(v, str) for v in modules.values()
        ):
            raise ConfigError("modules must map module names to descriptions")
        settings.modules = dict(modules)
        return settings


def _load_toml(path: Path) -> dict | None:
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore[no-redef]

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except OSError as e:
        logger.warning("Could not read %s: %s", path, e)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e
    return None


def load_settings(project_dir: Path) -> Settings:
    """Read settings from .archdeps.toml, else [tool.archdeps] in pyproject.toml."""
    config_path = project_dir / CONFIG_FILE
    if config_path.exists():
        data = _load_toml(config_path)
        if data is not None:
            logger.debug("Settings from %s", config_path)
            return Settings.from_mapping(data.get("archdeps", {}))

    pyproject = project_dir / "pyproject.toml"
    if pyproject.exists():
        data = _load_toml(pyproject)
        if data is not None:
            table = data.get("tool", {}).get("archdeps")
            if table is not None:
                logger.debug("Settings from %s", pyproject)
                return Settings.from_mapping(table)

    return Settings()
