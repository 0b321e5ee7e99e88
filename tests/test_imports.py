"""Every module of the package imports cleanly."""

import importlib

import pytest

from gong_mcp.models import PageAccumulator


MODULES = [
    "gong_mcp.auth",
    "gong_mcp.catalog",
    "gong_mcp.config",
    "gong_mcp.errors",
    "gong_mcp.executors",
    "gong_mcp.logging",
    "gong_mcp.main",
    "gong_mcp.models",
    "gong_mcp.openapi",
    "gong_mcp.pagination",
    "gong_mcp.server",
    "gong_mcp.service",
    "gong_mcp.tool_registry",
    "gong_mcp.validation",
]


@pytest.mark.parametrize("module", MODULES)
def test_module_imports(module):
    assert importlib.import_module(module)


def test_page_accumulator_defaults_are_independent():
    first, second = PageAccumulator(), PageAccumulator()
    first.additional_pages.append({"page": 2})

    assert second.additional_pages == []
    assert first.merge_field is None
    assert first.page_count == 0
