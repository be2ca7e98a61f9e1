"""Tests for manifest parser discovery."""

from __future__ import annotations

from types import SimpleNamespace
from typing import List

import pytest

from autotag.extractors import FilenameParser, ManifestParser, discover_parsers


class MixParser(ManifestParser):
    """Test parser used for plugin discovery validation."""

    name = "mix"

    def matches(self, filename: str) -> bool:
        return filename == "mix.exs"

    def parse(self, content: str) -> List[str]:
        return ["phoenix"]


def _patch_entry_points(monkeypatch: pytest.MonkeyPatch, entries: list) -> None:
    class DummyEntryPoints(list):
        def select(self, **kwargs):
            if kwargs.get("group") == "autotag.parsers":
                return self
            return []

    monkeypatch.setattr(
        "autotag.extractors.metadata.entry_points",
        lambda: DummyEntryPoints(entries),
    )


def test_discover_parsers_returns_builtin_parsers(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_entry_points(monkeypatch, [])
    parsers = discover_parsers()
    names = {parser.name for parser in parsers}

    assert {"npm", "pip", "go", "cargo", "composer", "bundler", "maven", "gradle"} <= names
    assert all(isinstance(parser, FilenameParser) for parser in parsers)


def test_discover_parsers_respects_enabled_filter(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_entry_points(monkeypatch, [])
    parsers = discover_parsers(["NPM", "go"])

    assert [parser.name for parser in parsers] == ["npm", "go"]


def test_discover_parsers_loads_entry_points(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_entry_points(monkeypatch, [SimpleNamespace(name="mix", load=lambda: MixParser)])

    parsers = discover_parsers(["mix"])

    assert len(parsers) == 1
    assert isinstance(parsers[0], MixParser)
    assert parsers[0].parse("") == ["phoenix"]


def test_discover_parsers_rejects_unknown_names(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_entry_points(monkeypatch, [])
    with pytest.raises(ValueError) as excinfo:
        discover_parsers(["npm", "nuget"])
    assert "nuget" in str(excinfo.value)


def test_filename_parser_matches_globs() -> None:
    parser = FilenameParser("pip", ["requirements*.txt"], lambda content: [])

    assert parser.matches("requirements.txt")
    assert parser.matches("requirements-dev.txt")
    assert not parser.matches("constraints.txt")
