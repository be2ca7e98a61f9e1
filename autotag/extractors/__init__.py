"""Manifest parser implementations and discovery utilities."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Iterable, List, Sequence, Set

from .base import FilenameParser, ManifestParser
from .manifests import (
    parse_build_gradle,
    parse_cargo_toml,
    parse_composer_json,
    parse_gemfile,
    parse_go_mod,
    parse_package_json,
    parse_pipfile,
    parse_pom_xml,
    parse_pyproject_toml,
    parse_requirements,
)

_ENTRY_POINT_GROUP = "autotag.parsers"


def _factory(
    name: str, patterns: Sequence[str], parse: Callable[[str], List[str]]
) -> Callable[[], ManifestParser]:
    return lambda: FilenameParser(name, patterns, parse)


_BUILTIN_FACTORIES: dict[str, Callable[[], ManifestParser]] = {
    "npm": _factory("npm", ["package.json"], parse_package_json),
    "pip": _factory("pip", ["requirements.txt", "requirements*.txt"], parse_requirements),
    "go": _factory("go", ["go.mod"], parse_go_mod),
    "cargo": _factory("cargo", ["Cargo.toml"], parse_cargo_toml),
    "composer": _factory("composer", ["composer.json"], parse_composer_json),
    "bundler": _factory("bundler", ["Gemfile"], parse_gemfile),
    "maven": _factory("maven", ["pom.xml"], parse_pom_xml),
    "gradle": _factory("gradle", ["build.gradle", "build.gradle.kts"], parse_build_gradle),
    "pyproject": _factory("pyproject", ["pyproject.toml"], parse_pyproject_toml),
    "pipenv": _factory("pipenv", ["Pipfile"], parse_pipfile),
}


def discover_parsers(enabled: Sequence[str] | None = None) -> List[ManifestParser]:
    """Return instantiated manifest parsers, honoring optional enabled names."""

    enabled_set: Set[str] | None = None
    if enabled is not None:
        enabled_set = {name.lower() for name in enabled}

    parsers: List[ManifestParser] = []
    seen: Set[str] = set()

    def _add(name: str, factory: Callable[[], ManifestParser]) -> None:
        key = name.lower()
        if enabled_set is not None and key not in enabled_set:
            return
        if key in seen:
            return
        instance = factory()
        if not isinstance(instance, ManifestParser):
            raise TypeError(f"Parser factory for '{name}' did not return a ManifestParser instance")
        parsers.append(instance)
        seen.add(key)
        if enabled_set is not None:
            enabled_set.discard(key)

    for name, factory in _BUILTIN_FACTORIES.items():
        _add(name, factory)

    for entry in _iter_entry_points():
        name = entry.name
        try:
            loaded = entry.load()
        except Exception as exc:  # pragma: no cover - depends on installed plugins
            raise RuntimeError(f"Failed to load parser entry point '{name}': {exc}") from exc

        def _plugin_factory(obj: object = loaded) -> ManifestParser:
            return _coerce_parser(obj)

        _add(name, _plugin_factory)

    if enabled_set:
        missing = ", ".join(sorted(enabled_set))
        raise ValueError(f"Unknown manifest parsers requested: {missing}")

    return parsers


def _coerce_parser(obj: object) -> ManifestParser:
    if isinstance(obj, ManifestParser):
        return obj
    if isinstance(obj, type) and issubclass(obj, ManifestParser):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, ManifestParser):
            return instance
    raise TypeError("Parser entry point must be a ManifestParser subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "FilenameParser",
    "ManifestParser",
    "discover_parsers",
]
