"""Extract class-level dependencies from one Java source file via javalang.

javalang records positions on declarations, statements and a few
expressions, so an edge takes the line of the nearest positioned node
enclosing it.  A catch clause reports the line of its `try` statement, and
an instantiation in a field initialiser reports the line of the field
declaration.  The tree-sitter front-end reports the line of the exact node
instead.
"""

from __future__ import annotations

import logging
from pathlib import Path

import javalang

from archdeps.errors import ExtractionError
from archdeps.extractors.java.resolve import ClassIndexCache, TypeResolver
from archdeps.model import Dependency, DependencyType, ExtractionResult, TypeDescriptor

logger = logging.getLogger(__name__)

_TYPE_DECLS = (
    javalang.tree.ClassDeclaration,
    javalang.tree.InterfaceDeclaration,
    javalang.tree.EnumDeclaration,
    javalang.tree.AnnotationDeclaration,
)


def _kind(decl) -> str:
    if isinstance(decl, javalang.tree.InterfaceDeclaration):
        return "interface"
    if isinstance(decl, javalang.tree.EnumDeclaration):
        return "enum"
    if isinstance(decl, javalang.tree.AnnotationDeclaration):
        return "annotation"
    return "class"


def _members(decl) -> list:
    body = getattr(decl, "body", None)
    if body is None:
        return []
    if isinstance(body, javalang.tree.EnumBody):
        return list(body.declarations or [])
    return list(body)


def _line(node) -> int | None:
    position = getattr(node, "position", None)
    return position.line if position else None


def _collect_local_types(decl, prefix: str, out: dict[str, str]) -> None:
    """Map simple names of *decl* and its member types to qualified names."""
    qualified = f"{prefix}.{decl.name}" if prefix else decl.name
    out.setdefault(decl.name, qualified)
    for member in _members(decl):
        if isinstance(member, _TYPE_DECLS):
            _collect_local_types(member, qualified, out)


def _primary_type(types: list, file_stem: str):
    """Pick the declaration the file is named after, else the first public one."""
    for decl in types:
        if decl.name == file_stem:
            return decl
    for decl in types:
        if "public" in (decl.modifiers or set()):
            return decl
    return types[0]


def _type_parameter_names(node) -> list[str]:
    return [p.name for p in (getattr(node, "type_parameters", None) or [])]


class _DependencyVisitor:
    """Walk one compilation unit, attributing every edge to *class_name*."""

    def __init__(self, class_name: str, resolver: TypeResolver):
        self.class_name = class_name
        self.resolver = resolver
        self.dependencies: list[Dependency] = []
        self._scopes: list[dict[str, str]] = []
        self._fields: list[dict[str, str]] = []

    # -- emission --------------------------------------------------------

    def _add(self, target: str | None, kind: DependencyType, line: int | None) -> None:
        if target:
            self.dependencies.append(Dependency(self.class_name, target, kind, line))

    def _type_names(self, type_node) -> list[str]:
        """Resolved names referenced by a type, including its type arguments."""
        if type_node is None:
            return []
        dims = len(type_node.dimensions or [])
        if isinstance(type_node, javalang.tree.BasicType):
            return [type_node.name + "[]" * dims]
        if not isinstance(type_node, javalang.tree.ReferenceType):
            return []

        parts: list[str] = []
        arguments: list = []
        current = type_node
        while current is not None:
            parts.append(current.name)
            arguments.extend(current.arguments or [])
            dims = max(dims, len(current.dimensions or []))
            current = current.sub_type

        names: list[str] = []
        resolved = self.resolver.resolve(".".join(parts))
        if resolved:
            names.append(resolved + "[]" * dims)
        for argument in arguments:
            names.extend(self._type_names(getattr(argument, "type", None)))
        return names

    def _add_type(self, type_node, kind: DependencyType, line: int | None) -> None:
        for name in self._type_names(type_node):
            self._add(name, kind, line)

    def _declare(self, name: str, type_node) -> None:
        names = self._type_names(type_node)
        if names and self._scopes:
            self._scopes[-1][name] = names[0]

    def _variable_type(self, name: str) -> str | None:
        for scope in reversed(self._scopes):
            if name in scope:
                return scope[name]
        return None

    def _field_type(self, name: str) -> str | None:
        for fields in reversed(self._fields):
            if name in fields:
                return fields[name]
        return None

    # -- traversal -------------------------------------------------------

    def visit(self, node, line: int | None = None) -> None:
        if isinstance(node, (list, tuple, set)):
            for item in node:
                self.visit(item, line)
            return
        if not isinstance(node, javalang.ast.Node):
            return

        line = _line(node) or line

        if isinstance(node, _TYPE_DECLS):
            self._visit_type(node, line)
        elif isinstance(node, (javalang.tree.MethodDeclaration, javalang.tree.ConstructorDeclaration)):
            self._visit_method(node, line)
        else:
            self._visit_other(node, line)
            for child in node.children:
                self.visit(child, line)

    def _visit_type(self, decl, line: int | None) -> None:
        if isinstance(decl, javalang.tree.ClassDeclaration):
            self._add_type(decl.extends, DependencyType.EXTENDS, line)
            for iface in decl.implements or []:
                self._add_type(iface, DependencyType.IMPLEMENTS, line)
        elif isinstance(decl, javalang.tree.InterfaceDeclaration):
            for parent in decl.extends or []:
                self._add_type(parent, DependencyType.EXTENDS, line)
        elif isinstance(decl, javalang.tree.EnumDeclaration):
            for iface in decl.implements or []:
                self._add_type(iface, DependencyType.IMPLEMENTS, line)

        self.visit(decl.annotations, line)

        fields: dict[str, str] = {}
        self._scopes.append(fields)
        self._fields.append(fields)
        with self.resolver.type_variables(_type_parameter_names(decl)):
            for member in _members(decl):
                if isinstance(member, javalang.tree.FieldDeclaration):
                    for declarator in member.declarators:
                        self._declare(declarator.name, member.type)
            self.visit(decl.body, line)
        self._scopes.pop()
        self._fields.pop()

    def _visit_method(self, method, line: int | None) -> None:
        self._scopes.append({})
        with self.resolver.type_variables(_type_parameter_names(method)):
            self.visit(method.annotations, line)
            if isinstance(method, javalang.tree.MethodDeclaration):
                self._add_type(method.return_type, DependencyType.RETURN, line)
            for param in method.parameters or []:
                self._add_type(param.type, DependencyType.PARAMETER, _line(param) or line)
                self._declare(param.name, param.type)
                self.visit(param.annotations, line)
            for thrown in method.throws or []:
                self._add(self.resolver.resolve(thrown), DependencyType.THROWS, line)
            self.visit(method.body, line)
        self._scopes.pop()

    def _visit_other(self, node, line: int | None) -> None:
        tree = javalang.tree
        if isinstance(node, tree.FieldDeclaration):
            self._add_type(node.type, DependencyType.FIELD, line)
        elif isinstance(node, (tree.VariableDeclaration, tree.TryResource)):
            self._add_type(node.type, DependencyType.LOCAL_VARIABLE, line)
            if isinstance(node, tree.TryResource):
                self._declare(node.name, node.type)
            else:
                for declarator in node.declarators:
                    self._declare(declarator.name, node.type)
        elif isinstance(node, tree.CatchClauseParameter):
            for name in node.types or []:
                self._add(self.resolver.resolve(name), DependencyType.CATCH, line)
        elif isinstance(node, tree.Annotation):
            self._add(self.resolver.resolve(node.name), DependencyType.ANNOTATION, line)
        elif isinstance(node, (tree.ClassCreator, tree.ArrayCreator)):
            self._add_type(node.type, DependencyType.INSTANTIATION, line)
        elif isinstance(node, tree.MethodInvocation):
            self._add(self._receiver_type(node.qualifier), DependencyType.METHOD_INVOCATION, line)
        elif isinstance(node, tree.This):
            # this.field.method(...)
            selectors = node.selectors or []
            if (
                len(selectors) >= 2
                and isinstance(selectors[0], tree.MemberReference)
                and isinstance(selectors[1], tree.MethodInvocation)
            ):
                self._add(
                    self._field_type(selectors[0].member), DependencyType.METHOD_INVOCATION, line
                )

    def _receiver_type(self, qualifier: str | None) -> str | None:
        # Unqualified calls target the enclosing class itself.
        if not qualifier:
            return None
        head = qualifier.split(".")[0]
        variable_type = self._variable_type(head)
        if variable_type is not None:
            return variable_type if head == qualifier else None
        return self.resolver.qualifier_type(qualifier)


class JavalangExtractor:
    """Default Java front-end built on javalang."""

    name = "javalang"

    def __init__(self) -> None:
        self._indexes = ClassIndexCache()

    def extract_one(
        self,
        file: str,
        classpath: list[str],
        sourcepath: list[str],
    ) -> ExtractionResult:
        path = Path(file)
        try:
            source = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise ExtractionError(file, f"cannot read file: {e}") from e

        try:
            tree = javalang.parse.parse(source)
        except javalang.parser.JavaSyntaxError as e:
            raise ExtractionError(file, f"syntax error: {e.description} at {e.at}") from e
        except javalang.tokenizer.LexerError as e:
            raise ExtractionError(file, f"lexer error: {e}") from e

        types = [t for t in tree.types or [] if isinstance(t, _TYPE_DECLS)]
        if not types:
            raise ExtractionError(file, "no type declaration found")

        package = tree.package.name if tree.package else ""
        single_imports: dict[str, str] = {}
        on_demand: list[str] = []
        for imp in tree.imports or []:
            if imp.static:
                continue
            if imp.wildcard:
                on_demand.append(imp.path)
            else:
                single_imports[imp.path.rsplit(".", 1)[-1]] = imp.path

        local_types: dict[str, str] = {}
        for decl in types:
            _collect_local_types(decl, package, local_types)
        resolver = TypeResolver(
            package,
            self._indexes.get(classpath, sourcepath),
            single_imports=single_imports,
            on_demand_imports=on_demand,
            local_types=local_types,
        )

        primary = _primary_type(types, path.stem)
        class_name = local_types[primary.name]

        visitor = _DependencyVisitor(class_name, resolver)
        for decl in types:
            visitor.visit(decl)

        dependencies = list(dict.fromkeys(visitor.dependencies))
        logger.debug("%s: %s, %d dependencies", file, class_name, len(dependencies))
        return ExtractionResult(
            class_name=class_name,
            dependencies=dependencies,
            type_descriptor=_describe(primary, resolver, class_name, file),
        )


def _describe(decl, resolver: TypeResolver, class_name: str, file: str) -> TypeDescriptor:
    superclass = None
    interfaces: list = []
    if isinstance(decl, javalang.tree.ClassDeclaration):
        if decl.extends is not None:
            superclass = decl.extends
        interfaces = decl.implements or []
    elif isinstance(decl, javalang.tree.InterfaceDeclaration):
        interfaces = decl.extends or []
    elif isinstance(decl, javalang.tree.EnumDeclaration):
        interfaces = decl.implements or []

    def _name(ref) -> str | None:
        parts = []
        while ref is not None:
            parts.append(ref.name)
            ref = ref.sub_type
        return resolver.resolve(".".join(parts))

    return TypeDescriptor(
        qualified_name=class_name,
        kind=_kind(decl),
        superclass=_name(superclass) if superclass is not None else None,
        interfaces=tuple(n for n in (_name(i) for i in interfaces) if n),
        modifiers=frozenset(decl.modifiers or ()),
        line=_line(decl),
        source_file=file,
    )
