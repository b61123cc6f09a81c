"""Tests for the tree-sitter Java front-end (skipped without tree-sitter-java)."""

from __future__ import annotations

import pytest
from conftest import write_java

pytest.importorskip("tree_sitter")
pytest.importorskip("tree_sitter_java")

from archdeps.errors import ExtractionError  # noqa: E402
from archdeps.extractors.java.treesitter_frontend import TreeSitterExtractor  # noqa: E402
from archdeps.model import DependencyType as T  # noqa: E402

SOURCE = """package com.zoo;

import java.util.List;

public class Keeper extends Person implements Runnable {
    private List<Animal> animals;

    public Keeper(Animal first) {
    }

    public Animal feed(Food food) throws java.io.IOException {
        Bucket bucket = new Bucket();
        return null;
    }

    public void run() {
    }
}
"""


def _targets(result, kind) -> set[str]:
    return {d.class_name_b for d in result.dependencies if d.dependency_type == kind}


@pytest.fixture
def result(temp_dir):
    path = write_java(temp_dir, "com.zoo.Keeper", SOURCE)
    return TreeSitterExtractor().extract_one(str(path), [], [str(temp_dir)])


def test_class_name(result):
    assert result.class_name == "com.zoo.Keeper"


def test_inheritance(result):
    assert _targets(result, T.EXTENDS) == {"com.zoo.Person"}
    assert _targets(result, T.IMPLEMENTS) == {"java.lang.Runnable"}


def test_members(result):
    assert _targets(result, T.FIELD) == {"java.util.List", "com.zoo.Animal"}
    assert _targets(result, T.PARAMETER) == {"com.zoo.Animal", "com.zoo.Food"}
    assert _targets(result, T.RETURN) == {"com.zoo.Animal"}
    assert _targets(result, T.LOCAL_VARIABLE) == {"com.zoo.Bucket"}
    assert _targets(result, T.INSTANTIATION) == {"com.zoo.Bucket"}
    assert _targets(result, T.THROWS) == {"java.io.IOException"}


def test_every_edge_has_a_line(result):
    assert all(d.line_number and d.line_number > 0 for d in result.dependencies)


def test_field_line(result):
    lines = {d.line_number for d in result.dependencies if d.dependency_type == T.FIELD}
    assert lines == {6}


def test_syntax_error(temp_dir):
    path = write_java(temp_dir, "p.Broken", "package p;\npublic class Broken {\n    int x = ;\n")
    with pytest.raises(ExtractionError):
        TreeSitterExtractor().extract_one(str(path), [], [])


FIELD_RECEIVERS = """package p;

public class Engine {
    private Pump pump;

    void start(String pump) {
        this.pump.run();
        pump.trim();
        try {
            pump.wait();
        } catch (InterruptedException e) {
        }
    }
}
"""


@pytest.fixture
def engine(temp_dir):
    path = write_java(temp_dir, "p.Engine", FIELD_RECEIVERS)
    return TreeSitterExtractor().extract_one(str(path), [], [str(temp_dir)])


def test_call_through_this_uses_field_type(engine):
    calls = {
        (d.class_name_b, d.line_number)
        for d in engine.dependencies
        if d.dependency_type == T.METHOD_INVOCATION
    }
    assert ("p.Pump", 7) in calls
    assert ("java.lang.String", 8) in calls


def test_catch_takes_line_of_catch_clause(engine):
    lines = {d.line_number for d in engine.dependencies if d.dependency_type == T.CATCH}
    assert lines == {11}
