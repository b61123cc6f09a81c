"""Extract class-level dependencies from one Java source file via tree-sitter."""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from archdeps.errors import ExtractionError, FrontendUnavailableError
from archdeps.extractors.java.resolve import ClassIndexCache, TypeResolver
from archdeps.model import Dependency, DependencyType, ExtractionResult, TypeDescriptor

logger = logging.getLogger(__name__)

# tree-sitter node types that represent Java type declarations.
_TYPE_DECL_TYPES = {
    "class_declaration": "class",
    "interface_declaration": "interface",
    "enum_declaration": "enum",
    "annotation_type_declaration": "annotation",
    "record_declaration": "record",
}

# tree-sitter node types that represent method-like declarations.
_METHOD_DECL_TYPES = {
    "method_declaration",
    "constructor_declaration",
    "compact_constructor_declaration",
}

_PRIMITIVE_TYPES = {"integral_type", "floating_point_type", "boolean_type"}

_ANNOTATION_TYPES = {"marker_annotation", "annotation"}

# Receivers whose text can name a variable or a type.
_NAME_RECEIVERS = {"identifier", "field_access", "scoped_identifier"}


def _text(node) -> str:
    return node.text.decode("utf-8")


def _line(node) -> int:
    return node.start_point[0] + 1  # 1-indexed


def _body_members(node) -> list:
    body = node.child_by_field_name("body")
    if body is None:
        return []
    members = []
    for child in body.named_children:
        if child.type == "enum_body_declarations":
            members.extend(child.named_children)
        else:
            members.append(child)
    return members


def _type_parameter_names(node) -> list[str]:
    params = node.child_by_field_name("type_parameters")
    if params is None:
        return []
    names = []
    for param in params.named_children:
        for child in param.named_children:
            if child.type in ("type_identifier", "identifier"):
                names.append(_text(child))
                break
    return names


def _modifiers(node):
    for child in node.children:
        if child.type == "modifiers":
            return child
    return None


def _collect_local_types(node, prefix: str, out: dict[str, str]) -> None:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return
    simple_name = _text(name_node)
    qualified = f"{prefix}.{simple_name}" if prefix else simple_name
    out.setdefault(simple_name, qualified)
    for member in _body_members(node):
        if member.type in _TYPE_DECL_TYPES:
            _collect_local_types(member, qualified, out)


class _DependencyVisitor:
    """Walk one parse tree, attributing every edge to *class_name*."""

    def __init__(self, class_name: str, resolver: TypeResolver):
        self.class_name = class_name
        self.resolver = resolver
        self.dependencies: list[Dependency] = []
        self._scopes: list[dict[str, str]] = []
        self._fields: list[dict[str, str]] = []

    def _add(self, target: str | None, kind: DependencyType, line: int) -> None:
        if target:
            self.dependencies.append(Dependency(self.class_name, target, kind, line))

    def _type_names(self, node) -> list[str]:
        """Resolved names referenced by a type node, including type arguments."""
        if node is None:
            return []
        kind = node.type
        if kind in _PRIMITIVE_TYPES:
            return [_text(node)]
        if kind == "array_type":
            dims_node = node.child_by_field_name("dimensions")
            dims = _text(dims_node).count("[") if dims_node is not None else 1
            names = self._type_names(node.child_by_field_name("element"))
            if names:
                names[0] += "[]" * dims
            return names
        if kind == "generic_type":
            base: list[str] = []
            arguments: list[str] = []
            for child in node.named_children:
                if child.type == "type_arguments":
                    for argument in child.named_children:
                        arguments.extend(self._type_names(argument))
                else:
                    base.extend(self._type_names(child))
            return base + arguments
        if kind == "wildcard":
            names = []
            for child in node.named_children:
                names.extend(self._type_names(child))
            return names
        if kind in ("type_identifier", "scoped_type_identifier"):
            resolved = self.resolver.resolve("".join(_text(node).split()))
            return [resolved] if resolved else []
        return []

    def _add_type(self, node, kind: DependencyType, line: int) -> None:
        for name in self._type_names(node):
            self._add(name, kind, line)

    def _declare(self, name_node, type_node) -> None:
        if name_node is None or not self._scopes:
            return
        names = self._type_names(type_node)
        if names:
            self._scopes[-1][_text(name_node)] = names[0]

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

    def visit(self, node) -> None:
        line = _line(node)
        if node.type in _TYPE_DECL_TYPES:
            self._visit_type(node, line)
        elif node.type in _METHOD_DECL_TYPES:
            self._visit_method(node, line)
        else:
            self._visit_other(node, line)
            for child in node.named_children:
                self.visit(child)

    def _visit_type(self, node, line: int) -> None:
        for child in node.children:
            if child.type == "superclass":
                for type_node in child.named_children:
                    self._add_type(type_node, DependencyType.EXTENDS, line)
            elif child.type in ("super_interfaces", "extends_interfaces"):
                kind = (
                    DependencyType.EXTENDS
                    if child.type == "extends_interfaces"
                    else DependencyType.IMPLEMENTS
                )
                for type_list in child.named_children:
                    for type_node in type_list.named_children:
                        self._add_type(type_node, kind, line)

        modifiers = _modifiers(node)
        if modifiers is not None:
            self.visit(modifiers)

        fields: dict[str, str] = {}
        self._scopes.append(fields)
        self._fields.append(fields)
        with self.resolver.type_variables(_type_parameter_names(node)):
            # Record components are fields.
            components = node.child_by_field_name("parameters")
            if components is not None:
                for component in components.named_children:
                    type_node = component.child_by_field_name("type")
                    self._add_type(type_node, DependencyType.FIELD, _line(component))
                    self._declare(component.child_by_field_name("name"), type_node)
            for member in _body_members(node):
                if member.type == "field_declaration":
                    type_node = member.child_by_field_name("type")
                    for declarator in member.children_by_field_name("declarator"):
                        self._declare(declarator.child_by_field_name("name"), type_node)
            body = node.child_by_field_name("body")
            if body is not None:
                self.visit(body)
        self._scopes.pop()
        self._fields.pop()

    def _visit_method(self, node, line: int) -> None:
        self._scopes.append({})
        with self.resolver.type_variables(_type_parameter_names(node)):
            modifiers = _modifiers(node)
            if modifiers is not None:
                self.visit(modifiers)
            if node.type == "method_declaration":
                self._add_type(node.child_by_field_name("type"), DependencyType.RETURN, line)

            params = node.child_by_field_name("parameters")
            for param in params.named_children if params is not None else []:
                type_node, name_node = self._parameter_parts(param)
                if type_node is None:
                    continue
                self._add_type(type_node, DependencyType.PARAMETER, _line(param))
                self._declare(name_node, type_node)
                param_modifiers = _modifiers(param)
                if param_modifiers is not None:
                    self.visit(param_modifiers)

            for child in node.children:
                if child.type == "throws":
                    for type_node in child.named_children:
                        self._add_type(type_node, DependencyType.THROWS, line)

            body = node.child_by_field_name("body")
            if body is not None:
                self.visit(body)
        self._scopes.pop()

    @staticmethod
    def _parameter_parts(param):
        if param.type == "formal_parameter":
            return param.child_by_field_name("type"), param.child_by_field_name("name")
        if param.type == "spread_parameter":
            type_node = name_node = None
            for child in param.named_children:
                if child.type == "variable_declarator":
                    name_node = child.child_by_field_name("name")
                elif child.type != "modifiers" and type_node is None:
                    type_node = child
            return type_node, name_node
        return None, None

    def _visit_other(self, node, line: int) -> None:
        kind = node.type
        if kind == "field_declaration":
            self._add_type(node.child_by_field_name("type"), DependencyType.FIELD, line)
        elif kind == "local_variable_declaration":
            type_node = node.child_by_field_name("type")
            self._add_type(type_node, DependencyType.LOCAL_VARIABLE, line)
            for declarator in node.children_by_field_name("declarator"):
                self._declare(declarator.child_by_field_name("name"), type_node)
        elif kind in ("enhanced_for_statement", "resource"):
            type_node = node.child_by_field_name("type")
            if type_node is not None:
                self._add_type(type_node, DependencyType.LOCAL_VARIABLE, line)
                self._declare(node.child_by_field_name("name"), type_node)
        elif kind == "catch_formal_parameter":
            for child in node.named_children:
                if child.type == "catch_type":
                    for type_node in child.named_children:
                        self._add_type(type_node, DependencyType.CATCH, line)
        elif kind in _ANNOTATION_TYPES:
            name_node = node.child_by_field_name("name")
            if name_node is not None:
                self._add(self.resolver.resolve(_text(name_node)), DependencyType.ANNOTATION, line)
        elif kind in ("object_creation_expression", "array_creation_expression"):
            self._add_type(node.child_by_field_name("type"), DependencyType.INSTANTIATION, line)
        elif kind == "method_invocation":
            receiver = node.child_by_field_name("object")
            if receiver is not None and receiver.type in _NAME_RECEIVERS:
                self._add(self._receiver_type(_text(receiver)), DependencyType.METHOD_INVOCATION, line)

    def _receiver_type(self, qualifier: str) -> str | None:
        qualifier = "".join(qualifier.split())
        if qualifier.startswith("this."):
            member = qualifier[len("this.") :]
            if "." in member:
                return None
            return self._field_type(member)
        head = qualifier.split(".")[0]
        variable_type = self._variable_type(head)
        if variable_type is not None:
            return variable_type if head == qualifier else None
        return self.resolver.qualifier_type(qualifier)


class TreeSitterExtractor:
    """Alternative Java front-end built on tree-sitter-java."""

    name = "tree-sitter"

    def __init__(self) -> None:
        try:
            import tree_sitter_java as tsjava
            from tree_sitter import Language
        except ImportError as e:
            raise FrontendUnavailableError(
                "tree-sitter / tree-sitter-java not installed. "
                "Install with: pip install archdeps[tree-sitter]"
            ) from e

        self._language = Language(tsjava.language())
        self._local = threading.local()
        self._indexes = ClassIndexCache()

    def _parser(self):
        # Parsers are not shared between threads.
        parser = getattr(self._local, "parser", None)
        if parser is None:
            from tree_sitter import Parser

            parser = Parser(self._language)
            self._local.parser = parser
        return parser

    def extract_one(
        self,
        file: str,
        classpath: list[str],
        sourcepath: list[str],
    ) -> ExtractionResult:
        path = Path(file)
        try:
            source = path.read_bytes()
        except OSError as e:
            raise ExtractionError(file, f"cannot read file: {e}") from e

        root = self._parser().parse(source).root_node
        if root.has_error:
            raise ExtractionError(file, "syntax error")

        package = ""
        single_imports: dict[str, str] = {}
        on_demand: list[str] = []
        types = []
        for child in root.named_children:
            if child.type == "package_declaration":
                for part in child.named_children:
                    if part.type in ("scoped_identifier", "identifier"):
                        package = _text(part)
            elif child.type == "import_declaration":
                if any(c.type == "static" for c in child.children):
                    continue
                target = next(
                    (c for c in child.named_children if c.type in ("scoped_identifier", "identifier")),
                    None,
                )
                if target is None:
                    continue
                if any(c.type == "asterisk" for c in child.children):
                    on_demand.append(_text(target))
                else:
                    imported = _text(target)
                    single_imports[imported.rsplit(".", 1)[-1]] = imported
            elif child.type in _TYPE_DECL_TYPES:
                types.append(child)

        if not types:
            raise ExtractionError(file, "no type declaration found")

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
        class_name = local_types[_text(primary.child_by_field_name("name"))]

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


def _modifier_words(node) -> frozenset[str]:
    modifiers = _modifiers(node)
    if modifiers is None:
        return frozenset()
    return frozenset(
        _text(c) for c in modifiers.children if c.type not in _ANNOTATION_TYPES
    )


def _primary_type(types: list, file_stem: str):
    for decl in types:
        name_node = decl.child_by_field_name("name")
        if name_node is not None and _text(name_node) == file_stem:
            return decl
    for decl in types:
        if "public" in _modifier_words(decl):
            return decl
    return types[0]


def _describe(node, resolver: TypeResolver, class_name: str, file: str) -> TypeDescriptor:
    superclass = None
    interfaces: list[str] = []
    for child in node.children:
        if child.type == "superclass":
            for type_node in child.named_children:
                superclass = _erased_name(type_node, resolver)
        elif child.type in ("super_interfaces", "extends_interfaces"):
            for type_list in child.named_children:
                for type_node in type_list.named_children:
                    name = _erased_name(type_node, resolver)
                    if name:
                        interfaces.append(name)
    return TypeDescriptor(
        qualified_name=class_name,
        kind=_TYPE_DECL_TYPES[node.type],
        superclass=superclass,
        interfaces=tuple(interfaces),
        modifiers=_modifier_words(node),
        line=_line(node),
        source_file=file,
    )


def _erased_name(type_node, resolver: TypeResolver) -> str | None:
    if type_node.type == "generic_type":
        type_node = type_node.named_children[0]
    return resolver.resolve("".join(_text(type_node).split()))
