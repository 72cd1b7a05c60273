"""Tests for package-level conventions."""

import importlib
import pkgutil

import pytest

import turing_screen


@pytest.mark.parametrize(
    "name", [m.name for m in pkgutil.iter_modules(turing_screen.__path__)]
)
def test_module_has_docstring(name):
    module = importlib.import_module(f"turing_screen.{name}")
    assert module.__doc__ and module.__doc__.strip()
