"""Shared fixtures for archdeps tests."""

from __future__ import annotations

import zipfile
from pathlib import Path

import pytest


def write_java(root: Path, qualified_name: str, source: str) -> Path:
    """Write *source* to the file a Java compiler expects for *qualified_name*."""
    path = root.joinpath(*qualified_name.split(".")).with_suffix(".java")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(source, encoding="utf-8")
    return path


def write_jar(path: Path, class_names: list[str]) -> Path:
    """Write a jar holding empty class file entries for *class_names*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as jar:
        jar.writestr("META-INF/MANIFEST.MF", "Manifest-Version: 1.0\n")
        for name in class_names:
            jar.writestr(name.replace(".", "/") + ".class", b"")
    return path


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    return tmp_path


@pytest.fixture
def maven_project(tmp_path: Path) -> Path:
    """A single-module project in Maven source layout with three classes."""
    project = tmp_path / "shop"
    src = project / "src" / "main" / "java"
    write_java(
        src,
        "com.shop.Order",
        """package com.shop;

import java.util.List;

public class Order {
    private Customer customer;
    private List<Item> items;

    public Customer getCustomer() {
        return customer;
    }
}
""",
    )
    write_java(
        src,
        "com.shop.Customer",
        """package com.shop;

public class Customer {
    private String name;
}
""",
    )
    write_java(
        src,
        "com.shop.Item",
        """package com.shop;

public class Item {
    private long price;
}
""",
    )
    write_java(src, "com.shop.package-info", "package com.shop;\n")
    return project
