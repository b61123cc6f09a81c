"""Turn a project root into class path, source path, and files to analyse."""

from __future__ import annotations

import fnmatch
import logging
import re
from collections.abc import Iterable
from pathlib import Path

from archdeps.errors import DiscoveryError
from archdeps.extractors.java.resolve import SKIP_FILES
from archdeps.model import ProjectLayout

logger = logging.getLogger(__name__)

# Directories conventionally holding dependency jars.
_LIB_DIRS = ("lib", "libs", "target/dependency")

# Compiled classes directories for Maven and Gradle builds.
_CLASSES_DIRS = ("target/classes", "build/classes/java/main")

# Arguments of include(...) calls, possibly spanning lines, or of a bare
# Groovy include statement running to the end of the line.
_GRADLE_INCLUDE_RE = re.compile(r"\binclude\b\s*(?:\(([^)]*)\)|([^\n]*))")
_QUOTED_RE = re.compile(r"""["']([^"']+)["']""")
_LINE_COMMENT_RE = re.compile(r"//[^\n]*")


def _maven_modules(project_dir: Path) -> list[str]:
    """Module directories listed under <modules> in the root pom.xml."""
    pom_path = project_dir / "pom.xml"
    if not pom_path.exists():
        return []
    try:
        from jgo.maven import POM
    except ImportError:
        logger.debug("jgo not installed, cannot discover Maven modules")
        return []
    try:
        modules = POM(pom_path).values("modules/module")
    except (OSError, ValueError, KeyError) as e:
        logger.debug("Could not read modules from %s: %s", pom_path, e)
        return []
    return [m.strip() for m in modules if m and m.strip()]


def _gradle_project_dir(project_path: str) -> str:
    # ":lib:core" lives in lib/core
    return project_path.strip(":").replace(":", "/")


def _gradle_subprojects(project_dir: Path) -> list[str]:
    """Subproject directories included by settings.gradle(.kts)."""
    for name in ("settings.gradle.kts", "settings.gradle"):
        settings_path = project_dir / name
        if not settings_path.exists():
            continue
        try:
            text = settings_path.read_text(encoding="utf-8")
        except OSError as e:
            logger.debug("Could not read %s: %s", settings_path, e)
            return []
        text = _LINE_COMMENT_RE.sub("", text)
        subprojects = []
        for call_args, statement_args in _GRADLE_INCLUDE_RE.findall(text):
            for project_path in _QUOTED_RE.findall(call_args or statement_args):
                subprojects.append(_gradle_project_dir(project_path))
        return subprojects
    return []


def _module_dirs(project_dir: Path) -> list[Path]:
    """Module roots of a multi-module build, or just the project root."""
    modules = list(dict.fromkeys(_maven_modules(project_dir) or _gradle_subprojects(project_dir)))
    dirs = [project_dir / m for m in modules if (project_dir / m).is_dir()]
    if dirs:
        logger.debug("Modules: %s", modules)
        return dirs
    return [project_dir]


def _source_root(module_dir: Path) -> Path:
    """Find the Java source root of one module."""
    src_main_java = module_dir / "src" / "main" / "java"
    if src_main_java.is_dir():
        return src_main_java
    src = module_dir / "src"
    if src.is_dir():
        return src
    return module_dir


def _classpath_entries(module_dir: Path) -> list[Path]:
    entries: list[Path] = []
    for rel in _CLASSES_DIRS:
        candidate = module_dir / rel
        if candidate.is_dir():
            entries.append(candidate)
    for rel in _LIB_DIRS:
        lib_dir = module_dir / rel
        if lib_dir.is_dir():
            entries.extend(sorted(lib_dir.glob("*.jar")))
    return entries


def _is_excluded(path: Path, project_dir: Path, exclude: Iterable[str]) -> bool:
    relative = path.relative_to(project_dir).as_posix()
    return any(fnmatch.fnmatch(relative, pattern) for pattern in exclude)


def _unique(items: Iterable[Path]) -> list[str]:
    return list(dict.fromkeys(str(p) for p in items))


def discover_project(project_dir: Path, exclude: Iterable[str] = ()) -> ProjectLayout:
    """Return the ordered class path, ordered source path, and Java files of *project_dir*."""
    project_dir = Path(project_dir).resolve()
    if not project_dir.is_dir():
        raise DiscoveryError(f"Project directory not found: {project_dir}")
    exclude = list(exclude)

    module_dirs = _module_dirs(project_dir)
    source_roots = [_source_root(m) for m in module_dirs]

    classpath: list[Path] = []
    for module_dir in dict.fromkeys([project_dir, *module_dirs]):
        classpath.extend(_classpath_entries(module_dir))

    files: set[str] = set()
    for root in source_roots:
        for java_file in root.rglob("*.java"):
            if java_file.name in SKIP_FILES:
                continue
            if exclude and _is_excluded(java_file, project_dir, exclude):
                continue
            files.add(str(java_file))

    layout = ProjectLayout(
        classpath=_unique(classpath),
        sourcepath=_unique(source_roots),
        files=files,
    )
    logger.debug(
        "Discovered %d files, %d source roots, %d class path entries",
        len(layout.files),
        len(layout.sourcepath),
        len(layout.classpath),
    )
    return layout
