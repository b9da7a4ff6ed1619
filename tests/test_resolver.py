"""
Tests for the dependency resolver and catalog validation.
"""

import pytest

from onboard.core.data.catalog import TOOL_CATALOG
from onboard.core.engine.resolver import (
    default_tools,
    ensure_valid_catalog,
    extended_tools,
    parse_tool_ids,
    resolve,
    validate_catalog,
)
from onboard.core.errors import CatalogError, UnknownToolError
from onboard.core.models.tool import Phase



class TestResolve:
    def test_chain_resolves_prerequisites_first(self, chain_catalog):
        assert resolve(["D"], chain_catalog) == ["A", "B", "C", "D"]

    def test_duplicates_are_placed_once(self, chain_catalog):
        assert resolve(["B", "D", "B", "A"], chain_catalog) == ["A", "B", "C", "D"]

    def test_request_order_breaks_ties(self, make_catalog):
        catalog = make_catalog(
            ("x", (), Phase.PUBLIC),
            ("y", (), Phase.PUBLIC),
            ("z", (), Phase.PUBLIC),
        )
        assert resolve(["z", "x", "y"], catalog) == ["z", "x", "y"]

    def test_declared_prerequisite_order(self, make_catalog):
        catalog = make_catalog(
            ("p1", (), Phase.PUBLIC),
            ("p2", (), Phase.PUBLIC),
            ("t", ("p2", "p1"), Phase.PRIVATE),
        )
        assert resolve(["t"], catalog) == ["p2", "p1", "t"]

    def test_empty_request(self, chain_catalog):
        assert resolve([], chain_catalog) == []

    def test_idempotent(self):
        once = resolve(["gnoc_helper", "hops_cli"])
        assert resolve(once) == once

    def test_closure_over_real_catalog(self):
        plan = resolve(["gnoc_helper"])
        for tool_id in plan:
            for dep in TOOL_CATALOG[tool_id].requires:
                assert dep in plan
                assert plan.index(dep) < plan.index(tool_id)

    def test_unknown_tool_raises_key_error(self, chain_catalog):
        with pytest.raises(UnknownToolError) as exc_info:
            resolve(["A", "nope"], chain_catalog)
        assert isinstance(exc_info.value, KeyError)
        assert "nope" in str(exc_info.value)


class TestSelections:
    def test_default_tools(self):
        assert default_tools() == [
            "iterm2", "xcode", "homebrew", "pyenv", "python313", "python396",
            "pyenv_venv_ncpcli", "allproxy", "sparta_pki", "hops_cli",
        ]

    def test_extended_tools(self):
        assert extended_tools() == [
            "xcode", "homebrew", "pyenv", "python396", "pyenv_venv_ncpcli",
            "python313", "allproxy", "gnoc_helper", "stencil", "silencer",
            "ncpcli", "jit_pass",
        ]


class TestValidateCatalog:
    def test_real_catalog_is_valid(self):
        assert validate_catalog(TOOL_CATALOG) == []
        ensure_valid_catalog(TOOL_CATALOG)

    def test_detects_cycle(self, make_catalog):
        catalog = make_catalog(
            ("a", ("c",), Phase.PUBLIC),
            ("b", ("a",), Phase.PUBLIC),
            ("c", ("b",), Phase.PUBLIC),
            ("ok", (), Phase.PUBLIC),
        )
        errors = validate_catalog(catalog)
        assert any("cycle" in e.lower() for e in errors)
        with pytest.raises(CatalogError):
            ensure_valid_catalog(catalog)

    def test_detects_unknown_prerequisite(self, make_catalog):
        catalog = make_catalog(("a", ("ghost",), Phase.PUBLIC))
        errors = validate_catalog(catalog)
        assert any("ghost" in e for e in errors)


class TestParseToolIds:
    def test_splits_known_and_unknown(self):
        known, unknown = parse_tool_ids("homebrew, bogus,pyenv,,")
        assert known == ["homebrew", "pyenv"]
        assert unknown == ["bogus"]

    def test_all_unknown(self):
        known, unknown = parse_tool_ids("unknownTool")
        assert known == []
        assert unknown == ["unknownTool"]
