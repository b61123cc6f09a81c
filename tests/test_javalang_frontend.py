"""Tests for the javalang-based Java front-end."""

from __future__ import annotations

import pytest
from conftest import write_jar, write_java

from archdeps.errors import ExtractionError
from archdeps.extractors.java.javalang_frontend import JavalangExtractor
from archdeps.model import DependencyType as T

ORDER_SERVICE = """package com.shop.service;

import java.io.IOException;
import java.util.Collections;
import java.util.List;
import java.util.Map;
import com.shop.model.Order;
import com.shop.model.Repository;

@Deprecated
public class OrderService extends BaseService implements Runnable, Comparable<OrderService> {
    private Repository<Order> repository;
    private Map<String, Order> cache = new java.util.HashMap<>();
    private int retries;

    public OrderService(Repository<Order> repository) {
        this.repository = repository;
    }

    @Override
    public void run() {
        List<Order> orders = repository.findAll();
        Collections.sort(orders);
        Helper helper = new Helper();
        helper.assist(orders);
        try {
            save(orders);
        } catch (IllegalStateException e) {
            System.out.println(e);
        }
    }

    public Order first(List<Order> orders) throws IOException {
        return orders.get(0);
    }

    private void save(List<Order> orders) {
    }

    public int compareTo(OrderService other) {
        return 0;
    }
}
"""

BOX = """package com.shop.util;

public class Box<T> {
    private T value;
    private Inner inner;

    public <R> R map(java.util.function.Function<T, R> fn) {
        return fn.apply(value);
    }

    static class Inner {
        private Box<String> owner;
    }
}
"""


@pytest.fixture
def extractor() -> JavalangExtractor:
    return JavalangExtractor()


def _targets(result, kind) -> set[str]:
    return {d.class_name_b for d in result.dependencies if d.dependency_type == kind}


class TestOrderService:
    @pytest.fixture
    def result(self, temp_dir, extractor):
        src = temp_dir / "src"
        path = write_java(src, "com.shop.service.OrderService", ORDER_SERVICE)
        write_java(src, "com.shop.service.Helper", "package com.shop.service;\nclass Helper {}\n")
        return extractor.extract_one(str(path), [], [str(src)])

    def test_class_name_is_qualified(self, result):
        assert result.class_name == "com.shop.service.OrderService"

    def test_every_edge_belongs_to_the_class(self, result):
        assert {d.class_name_a for d in result.dependencies} == {result.class_name}

    def test_inheritance(self, result):
        assert _targets(result, T.EXTENDS) == {"com.shop.service.BaseService"}
        assert _targets(result, T.IMPLEMENTS) == {
            "java.lang.Runnable",
            "java.lang.Comparable",
            "com.shop.service.OrderService",
        }

    def test_fields_include_type_arguments(self, result):
        assert _targets(result, T.FIELD) == {
            "com.shop.model.Repository",
            "com.shop.model.Order",
            "java.util.Map",
            "java.lang.String",
            "int",
        }

    def test_parameters_and_returns(self, result):
        assert "com.shop.model.Repository" in _targets(result, T.PARAMETER)
        assert "java.util.List" in _targets(result, T.PARAMETER)
        assert "com.shop.service.OrderService" in _targets(result, T.PARAMETER)
        assert _targets(result, T.RETURN) == {"com.shop.model.Order", "int"}

    def test_local_variables(self, result):
        assert _targets(result, T.LOCAL_VARIABLE) == {
            "java.util.List",
            "com.shop.model.Order",
            "com.shop.service.Helper",
        }

    def test_annotations(self, result):
        assert _targets(result, T.ANNOTATION) == {"java.lang.Deprecated", "java.lang.Override"}

    def test_instantiations(self, result):
        assert _targets(result, T.INSTANTIATION) == {
            "java.util.HashMap",
            "com.shop.service.Helper",
        }

    def test_method_invocations_resolve_receivers(self, result):
        invoked = _targets(result, T.METHOD_INVOCATION)
        assert "com.shop.model.Repository" in invoked  # field receiver
        assert "java.util.Collections" in invoked  # static call
        assert "com.shop.service.Helper" in invoked  # local receiver
        assert "java.util.List" in invoked  # parameter receiver
        assert "java.lang.System" in invoked

    def test_throws_and_catch(self, result):
        assert _targets(result, T.THROWS) == {"java.io.IOException"}
        assert _targets(result, T.CATCH) == {"java.lang.IllegalStateException"}

    def test_catch_takes_line_of_try_statement(self, result):
        lines = {d.line_number for d in result.dependencies if d.dependency_type == T.CATCH}
        assert lines == {26}

    def test_lines_are_positive_or_absent(self, result):
        for dep in result.dependencies:
            assert dep.line_number is None or dep.line_number > 0

    def test_no_duplicate_edges(self, result):
        assert len(result.dependencies) == len(set(result.dependencies))

    def test_type_descriptor(self, result):
        descriptor = result.type_descriptor
        assert descriptor.qualified_name == "com.shop.service.OrderService"
        assert descriptor.kind == "class"
        assert descriptor.superclass == "com.shop.service.BaseService"
        assert descriptor.interfaces == ("java.lang.Runnable", "java.lang.Comparable")
        assert "public" in descriptor.modifiers
        assert descriptor.source_file.endswith("OrderService.java")


FIELD_RECEIVERS = """package p;

public class Engine {
    private Pump pump;
    private Valve valve = new Valve();

    void start(String pump) {
        this.pump.run();
        pump.trim();
    }

    void stop() {
        valve.close();
        this.valve.toString().trim();
    }
}
"""


class TestFieldReceivers:
    @pytest.fixture
    def result(self, temp_dir, extractor):
        path = write_java(temp_dir, "p.Engine", FIELD_RECEIVERS)
        write_java(temp_dir, "p.Pump", "package p;\nclass Pump {}\n")
        write_java(temp_dir, "p.Valve", "package p;\nclass Valve {}\n")
        return extractor.extract_one(str(path), [], [str(temp_dir)])

    def test_call_through_this_uses_field_type(self, result):
        assert "p.Pump" in _targets(result, T.METHOD_INVOCATION)

    def test_parameter_shadowing_field(self, result):
        # pump.trim() goes to the String parameter, this.pump.run() to the field
        calls = {
            (d.class_name_b, d.line_number)
            for d in result.dependencies
            if d.dependency_type == T.METHOD_INVOCATION
        }
        assert ("p.Pump", 8) in calls
        assert ("java.lang.String", 9) in calls

    def test_plain_field_receiver(self, result):
        assert _targets(result, T.METHOD_INVOCATION) == {"p.Pump", "p.Valve", "java.lang.String"}


class TestGenericsAndNesting:
    @pytest.fixture
    def result(self, temp_dir, extractor):
        path = write_java(temp_dir, "com.shop.util.Box", BOX)
        return extractor.extract_one(str(path), [], [str(temp_dir)])

    def test_type_variables_are_not_dependencies(self, result):
        targets = {d.class_name_b for d in result.dependencies}
        assert "com.shop.util.T" not in targets
        assert "com.shop.util.R" not in targets

    def test_nested_types_resolve_to_outer_class(self, result):
        assert "com.shop.util.Box.Inner" in _targets(result, T.FIELD)

    def test_nested_type_edges_are_attributed_to_file_class(self, result):
        assert result.class_name == "com.shop.util.Box"
        assert {d.class_name_a for d in result.dependencies} == {"com.shop.util.Box"}
        # Box<String> inside Inner
        assert "com.shop.util.Box" in _targets(result, T.FIELD)
        assert "java.lang.String" in _targets(result, T.FIELD)

    def test_qualified_type_names_are_kept(self, result):
        assert "java.util.function.Function" in _targets(result, T.PARAMETER)


class TestResolutionThroughPaths:
    def test_on_demand_import_from_source_path(self, temp_dir, extractor):
        src = temp_dir / "src"
        write_java(src, "com.other.Widget", "package com.other;\npublic class Widget {}\n")
        path = write_java(
            src,
            "com.app.Screen",
            "package com.app;\nimport com.other.*;\npublic class Screen {\n    Widget widget;\n}\n",
        )
        result = extractor.extract_one(str(path), [], [str(src)])
        assert _targets(result, T.FIELD) == {"com.other.Widget"}

    def test_on_demand_import_from_jar(self, temp_dir, extractor):
        jar = write_jar(temp_dir / "lib" / "things.jar", ["org.lib.Thing", "org.lib.Thing$Part"])
        path = write_java(
            temp_dir / "src",
            "com.app.User",
            "package com.app;\nimport org.lib.*;\npublic class User {\n    Thing thing;\n}\n",
        )
        result = extractor.extract_one(str(path), [str(jar)], [str(temp_dir / "src")])
        assert _targets(result, T.FIELD) == {"org.lib.Thing"}

    def test_unknown_name_falls_back_to_own_package(self, temp_dir, extractor):
        path = write_java(
            temp_dir,
            "com.app.Lonely",
            "package com.app;\npublic class Lonely {\n    Mystery mystery;\n}\n",
        )
        result = extractor.extract_one(str(path), [], [])
        assert _targets(result, T.FIELD) == {"com.app.Mystery"}

    def test_unlisted_type_from_wildcard_import_is_not_put_in_own_package(self, temp_dir, extractor):
        path = write_java(
            temp_dir,
            "com.app.Counter",
            "package com.app;\nimport java.util.concurrent.atomic.*;\npublic class Counter {\n    AtomicInteger count;\n}\n",
        )
        result = extractor.extract_one(str(path), [], [])
        assert _targets(result, T.FIELD) == {"AtomicInteger"}

    def test_default_package(self, temp_dir, extractor):
        path = write_java(temp_dir, "Plain", "public class Plain {\n    Other other;\n}\n")
        result = extractor.extract_one(str(path), [], [])
        assert result.class_name == "Plain"
        assert _targets(result, T.FIELD) == {"Other"}


class TestFileLevelCases:
    def test_interface_extends(self, temp_dir, extractor):
        path = write_java(
            temp_dir,
            "p.Shape",
            "package p;\nimport java.io.Serializable;\npublic interface Shape extends Serializable, Comparable<Shape> {\n    double area();\n}\n",
        )
        result = extractor.extract_one(str(path), [], [])
        assert _targets(result, T.EXTENDS) == {"java.io.Serializable", "java.lang.Comparable", "p.Shape"}
        assert _targets(result, T.RETURN) == {"double"}
        assert result.type_descriptor.kind == "interface"

    def test_enum_implements(self, temp_dir, extractor):
        path = write_java(
            temp_dir,
            "p.Color",
            "package p;\npublic enum Color implements Runnable {\n    RED, GREEN;\n    private Palette palette;\n    public void run() {}\n}\n",
        )
        result = extractor.extract_one(str(path), [], [])
        assert _targets(result, T.IMPLEMENTS) == {"java.lang.Runnable"}
        assert _targets(result, T.FIELD) == {"p.Palette"}
        assert result.type_descriptor.kind == "enum"

    def test_primary_type_is_named_after_file(self, temp_dir, extractor):
        path = write_java(
            temp_dir,
            "p.Main",
            "package p;\nclass Support {}\npublic class Main {}\n",
        )
        result = extractor.extract_one(str(path), [], [])
        assert result.class_name == "p.Main"

    def test_syntax_error(self, temp_dir, extractor):
        path = write_java(temp_dir, "p.Broken", "package p;\npublic class Broken {\n    int x = ;\n")
        with pytest.raises(ExtractionError) as excinfo:
            extractor.extract_one(str(path), [], [])
        assert excinfo.value.file == str(path)

    def test_file_without_type(self, temp_dir, extractor):
        path = temp_dir / "Empty.java"
        path.write_text("package p;\n")
        with pytest.raises(ExtractionError, match="no type declaration"):
            extractor.extract_one(str(path), [], [])

    def test_missing_file(self, temp_dir, extractor):
        with pytest.raises(ExtractionError, match="cannot read"):
            extractor.extract_one(str(temp_dir / "Nope.java"), [], [])
