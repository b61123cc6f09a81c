"""Resolve simple Java type names to fully-qualified names."""

from __future__ import annotations

import logging
import threading
import zipfile
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

JAVA_PRIMITIVES = frozenset(
    {"boolean", "char", "byte", "short", "int", "long", "float", "double"}
)

# Files that never declare a type of their own.
SKIP_FILES = {"package-info.java", "module-info.java"}

# java.lang is imported implicitly; the JDK itself is rarely on the class path.
_JAVA_LANG = (
    "AssertionError", "AutoCloseable", "Boolean", "Byte", "CharSequence",
    "Character", "Class", "ClassCastException", "ClassLoader",
    "CloneNotSupportedException", "Cloneable", "Comparable", "Deprecated",
    "Double", "Enum", "Error", "Exception", "Float", "FunctionalInterface",
    "IllegalArgumentException", "IllegalStateException",
    "IndexOutOfBoundsException", "Integer", "InterruptedException",
    "Iterable", "Long", "Math", "NullPointerException", "Number",
    "NumberFormatException", "Object", "Override", "Process",
    "ProcessBuilder", "Record", "Runnable", "Runtime", "RuntimeException",
    "SafeVarargs", "SecurityException", "Short", "String", "StringBuffer",
    "StringBuilder", "SuppressWarnings", "System", "Thread", "ThreadLocal",
    "Throwable", "UnsupportedOperationException", "Void",
)

# Well-known JDK types, used to resolve on-demand imports of JDK packages.
_JDK_PACKAGES = {
    "java.lang": _JAVA_LANG,
    "java.util": (
        "AbstractList", "AbstractMap", "ArrayDeque", "ArrayList", "Arrays",
        "BitSet", "Calendar", "Collection", "Collections", "Comparator",
        "Date", "Deque", "EnumMap", "EnumSet", "HashMap", "HashSet",
        "Iterator", "LinkedHashMap", "LinkedHashSet", "LinkedList", "List",
        "ListIterator", "Locale", "Map", "NavigableMap", "NoSuchElementException",
        "Objects", "Optional", "PriorityQueue", "Properties", "Queue",
        "Random", "Scanner", "Set", "SortedMap", "SortedSet", "Stack",
        "TreeMap", "TreeSet", "UUID", "Vector", "WeakHashMap",
    ),
    "java.util.function": (
        "BiConsumer", "BiFunction", "BinaryOperator", "BooleanSupplier",
        "Consumer", "Function", "IntFunction", "Predicate", "Supplier",
        "UnaryOperator",
    ),
    "java.util.stream": ("Collector", "Collectors", "IntStream", "Stream"),
    "java.util.concurrent": (
        "Callable", "ConcurrentHashMap", "ConcurrentMap", "CopyOnWriteArrayList",
        "CountDownLatch", "ExecutionException", "ExecutorService", "Executors",
        "Future", "TimeUnit", "TimeoutException",
    ),
    "java.io": (
        "BufferedReader", "BufferedWriter", "ByteArrayInputStream",
        "ByteArrayOutputStream", "Closeable", "File", "FileInputStream",
        "FileNotFoundException", "FileOutputStream", "FileReader",
        "FileWriter", "IOException", "InputStream", "InputStreamReader",
        "OutputStream", "PrintStream", "PrintWriter", "Reader",
        "Serializable", "UncheckedIOException", "Writer",
    ),
    "java.nio.file": ("Files", "Path", "Paths"),
    "java.math": ("BigDecimal", "BigInteger"),
}

JDK_TYPES = frozenset(
    f"{package}.{name}" for package, names in _JDK_PACKAGES.items() for name in names
)


def _class_file_name(relative: str) -> str | None:
    """Convert ``a/b/C$D.class`` to ``a.b.C.D``; None for non-type entries."""
    if not relative.endswith(".class"):
        return None
    stem = relative[: -len(".class")]
    if stem.endswith("module-info") or stem.endswith("package-info"):
        return None
    return stem.replace("\\", "/").replace("/", ".").replace("$", ".")


def _source_names(root: Path) -> Iterator[str]:
    for java_file in root.rglob("*.java"):
        if java_file.name in SKIP_FILES:
            continue
        relative = java_file.relative_to(root).with_suffix("")
        yield ".".join(relative.parts)


def _classpath_names(entry: Path) -> Iterator[str]:
    if entry.is_dir():
        for class_file in entry.rglob("*.class"):
            name = _class_file_name(class_file.relative_to(entry).as_posix())
            if name:
                yield name
    elif entry.suffix == ".jar" and entry.is_file():
        try:
            with zipfile.ZipFile(entry) as jar:
                entries = jar.namelist()
        except (OSError, zipfile.BadZipFile) as e:
            logger.debug("Could not read %s: %s", entry, e)
            return
        for item in entries:
            name = _class_file_name(item)
            if name:
                yield name


class ClassIndex:
    """Set of fully-qualified type names known to exist."""

    def __init__(self, names: Iterable[str] = ()):
        self._names = frozenset(names) | JDK_TYPES

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __len__(self) -> int:
        return len(self._names)

    @classmethod
    def build(cls, classpath: Iterable[str], sourcepath: Iterable[str]) -> ClassIndex:
        names: set[str] = set()
        for root in sourcepath:
            root_path = Path(root)
            if root_path.is_dir():
                names.update(_source_names(root_path))
        for entry in classpath:
            names.update(_classpath_names(Path(entry)))
        logger.debug("Class index: %d names", len(names))
        return cls(names)


class ClassIndexCache:
    """Builds each (classpath, sourcepath) index once and shares it across threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._indexes: dict[tuple[tuple[str, ...], tuple[str, ...]], ClassIndex] = {}

    def get(self, classpath: Iterable[str], sourcepath: Iterable[str]) -> ClassIndex:
        key = (tuple(classpath), tuple(sourcepath))
        with self._lock:
            index = self._indexes.get(key)
            if index is None:
                index = ClassIndex.build(*key)
                self._indexes[key] = index
            return index


class TypeResolver:
    """Resolves type names as they appear in one compilation unit.

    Lookup order: types declared in the file, single-type imports, the
    file's own package, ``java.lang``, on-demand imports.  Unknown names
    fall back to the file's package, or stay unqualified when the file has
    on-demand imports they might come from.  Type variables resolve to None.
    """

    def __init__(
        self,
        package: str,
        index: ClassIndex,
        single_imports: dict[str, str] | None = None,
        on_demand_imports: Iterable[str] = (),
        local_types: dict[str, str] | None = None,
    ):
        self.package = package
        self.index = index
        self.single_imports = dict(single_imports or {})
        self.on_demand_imports = list(on_demand_imports)
        self.local_types = dict(local_types or {})
        self._type_variables: list[set[str]] = []

    def qualify(self, simple_name: str) -> str:
        return f"{self.package}.{simple_name}" if self.package else simple_name

    @contextmanager
    def type_variables(self, names: Iterable[str]):
        self._type_variables.append(set(names))
        try:
            yield
        finally:
            self._type_variables.pop()

    def is_type_variable(self, name: str) -> bool:
        return any(name in scope for scope in self._type_variables)

    def resolve(self, name: str) -> str | None:
        name = name.strip()
        if name in JAVA_PRIMITIVES:
            return name
        head, _, rest = name.partition(".")
        if not rest:
            if self.is_type_variable(name):
                return None
            return self._resolve_simple(name, fallback=True)
        # Outer.Inner where Outer is visible by simple name.
        base = self._resolve_simple(head, fallback=False)
        if base is not None:
            return f"{base}.{rest}"
        return name

    def _resolve_simple(self, name: str, *, fallback: bool) -> str | None:
        if name in self.local_types:
            return self.local_types[name]
        if name in self.single_imports:
            return self.single_imports[name]
        same_package = self.qualify(name)
        if same_package in self.index:
            return same_package
        java_lang = f"java.lang.{name}"
        if java_lang in self.index:
            return java_lang
        for package in self.on_demand_imports:
            candidate = f"{package}.{name}"
            if candidate in self.index:
                return candidate
        if not fallback:
            return None
        if self.on_demand_imports:
            # Could come from any of the wildcard imports.
            return name
        return same_package

    def qualifier_type(self, qualifier: str) -> str | None:
        """Type named by the qualifier of a static member access, if any.

        ``Foo`` and ``Foo.BAR`` name ``Foo``; ``java.util.Collections``
        names itself.  Lower-case qualifiers that are not a qualified type
        name (variables, fields) return None.
        """
        parts = qualifier.split(".")
        if parts[0][:1].isupper():
            return self.resolve(parts[0])
        for i, part in enumerate(parts):
            if part[:1].isupper():
                return ".".join(parts[: i + 1])
        return None
