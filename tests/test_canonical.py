"""Tests for badge canonicalization."""

from __future__ import annotations

import re

import pytest

from autotag.canonical import (
    MAX_BADGE_LENGTH,
    UNKNOWN_BADGE,
    AliasTable,
    Canonicalizer,
    normalize,
    unwrap_scope,
)
from autotag.config import ConfigError

_BADGE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


@pytest.fixture(scope="module")
def canonicalizer() -> Canonicalizer:
    return Canonicalizer(AliasTable.load())


def test_documented_examples(canonicalizer: Canonicalizer) -> None:
    assert canonicalizer.canonicalize("@types/react") == "react"
    assert canonicalizer.canonicalize("@babel/core") == "core"
    assert canonicalizer.canonicalize("Next.js") == "next-js"
    assert canonicalizer.canonicalize("node-red-dashboard") == "node-red"


def test_aliases_fold_sub_packages_into_umbrella(canonicalizer: Canonicalizer) -> None:
    assert canonicalizer.canonicalize("@radix-ui/react-dialog") == "radix-ui"
    assert canonicalizer.canonicalize("react-dom") == "react"
    assert canonicalizer.canonicalize("tailwind-merge") == "tailwind-css"
    assert canonicalizer.canonicalize("@testing-library/react") == "testing-library"


def test_plugin_prefixes_collapse_to_base(canonicalizer: Canonicalizer) -> None:
    assert canonicalizer.canonicalize("gatsby-plugin-image") == "gatsby"
    assert canonicalizer.canonicalize("pytest-cov") == "pytest"
    assert canonicalizer.canonicalize("node-red") == "node-red"


def test_never_returns_empty(canonicalizer: Canonicalizer) -> None:
    assert canonicalizer.canonicalize("") == UNKNOWN_BADGE
    assert canonicalizer.canonicalize("@@@") == UNKNOWN_BADGE
    assert canonicalizer.canonicalize("---") == UNKNOWN_BADGE


def test_truncates_long_names(canonicalizer: Canonicalizer) -> None:
    badge = canonicalizer.canonicalize("x" * 30 + "-" + "y" * 30)
    assert len(badge) <= MAX_BADGE_LENGTH
    assert not badge.endswith("-")

    assert canonicalizer.canonicalize("a" * 38 + "-b") == "a" * 38


@pytest.mark.parametrize(
    "raw",
    [
        "@types/react",
        "@babel/core",
        "Next.js",
        "node-red-dashboard",
        "React_DOM",
        "tailwindcss",
        "C++",
        "C#",
        "socket.io-client",
        "@vitejs/plugin-react",
        "eslint-plugin-vue",
        "  Spaced   Name  ",
        "a" * 80,
        "",
    ],
)
def test_canonicalization_is_idempotent(canonicalizer: Canonicalizer, raw: str) -> None:
    badge = canonicalizer.canonicalize(raw)
    assert canonicalizer.canonicalize(badge) == badge
    assert _BADGE.match(badge)


def test_resolve_returns_umbrella_name_for_lookup(canonicalizer: Canonicalizer) -> None:
    assert canonicalizer.resolve("@radix-ui/react-tabs") == "Radix UI"
    assert canonicalizer.resolve("@babel/core") == "core"
    assert canonicalizer.resolve("express") == "express"


def test_overrides_extend_bundled_table() -> None:
    table = AliasTable.load(
        aliases={"my-internal-ui": "Design System"},
        plugin_prefixes={"acme-": "acme"},
    )
    canonicalizer = Canonicalizer(table)

    assert canonicalizer.canonicalize("my-internal-ui") == "design-system"
    assert canonicalizer.canonicalize("acme-widgets") == "acme"
    assert canonicalizer.canonicalize("lucide-react") == "lucide"


def test_unwrap_scope_variants() -> None:
    assert unwrap_scope("@types/node") == "node"
    assert unwrap_scope("@angular/core") == "core"
    assert unwrap_scope("@scope") == "@scope"
    assert unwrap_scope("plain") == "plain"


def test_normalize_rules() -> None:
    assert normalize("Vue.JS") == "vue-js"
    assert normalize("c++") == "c"
    assert normalize("foo__bar  baz") == "foo-bar-baz"
    assert normalize("ümlaut!") == "mlaut"


def test_alias_cycle_is_rejected() -> None:
    with pytest.raises(ConfigError, match="alias cycle"):
        AliasTable.load(aliases={"alpha": "beta", "beta": "alpha"})


def test_cycle_through_plugin_prefix_is_rejected() -> None:
    with pytest.raises(ConfigError, match="alias cycle"):
        AliasTable(aliases={"acme": "acme-core"}, plugin_prefixes={"acme-": "acme"})


def test_self_alias_is_not_a_cycle() -> None:
    canonicalizer = Canonicalizer(AliasTable(aliases={"Vue": "vue"}))

    assert canonicalizer.canonicalize("Vue") == "vue"
