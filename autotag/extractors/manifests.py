"""Dependency extraction rules for each supported manifest format."""

from __future__ import annotations

import json
import re
import tomllib
import xml.etree.ElementTree as ET
from typing import Any, Dict, Iterable, List

_REQUIREMENT_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*")
_GO_REQUIRE = re.compile(r"^\s*(?:require\s+)?([A-Za-z0-9._~\-/]+)\s+v\d")
_GO_MAJOR_SUFFIX = re.compile(r"^v\d+$")
_GEM = re.compile(r"^\s*gem\s+['\"]([^'\"]+)['\"]")
_GRADLE = re.compile(
    r"\b(?:implementation|api|compile|testImplementation)\s*\(?\s*['\"]([^:'\"]+):([^:'\"]+)"
)


# JSON manifests


def parse_package_json(content: str) -> List[str]:
    """Runtime and development dependency names from package.json."""
    data = _load_json_object(content)
    return _keys(data, "dependencies") + _keys(data, "devDependencies")


def parse_composer_json(content: str) -> List[str]:
    """``require`` and ``require-dev`` package names from composer.json."""
    data = _load_json_object(content)
    return _keys(data, "require") + _keys(data, "require-dev")


# Line-oriented manifests


def parse_requirements(content: str) -> List[str]:
    """First token of each requirement line, version operators stripped."""
    packages: List[str] = []
    for line in content.splitlines():
        stripped = line.split(" #", 1)[0].strip()
        if not stripped or stripped.startswith(("#", "-")) or "://" in stripped:
            continue
        match = _REQUIREMENT_NAME.match(stripped)
        if match:
            packages.append(match.group(0))
    return packages


def parse_go_mod(content: str) -> List[str]:
    """Last path segment of each required module (``/vN`` suffixes ignored)."""
    modules: List[str] = []
    for line in content.splitlines():
        match = _GO_REQUIRE.match(line)
        if not match:
            continue
        segments = [segment for segment in match.group(1).split("/") if segment]
        if len(segments) > 1 and _GO_MAJOR_SUFFIX.match(segments[-1]):
            segments.pop()
        if segments:
            modules.append(segments[-1])
    return modules


def parse_gemfile(content: str) -> List[str]:
    gems: List[str] = []
    for line in content.splitlines():
        match = _GEM.match(line)
        if match:
            gems.append(match.group(1))
    return gems


def parse_build_gradle(content: str) -> List[str]:
    """Artifact segment of ``group:artifact[:version]`` dependency coordinates."""
    deps: List[str] = []
    for line in content.splitlines():
        stripped = line.strip()
        if stripped.startswith("//"):
            continue
        match = _GRADLE.search(stripped)
        if match:
            deps.append(match.group(2))
    return deps


# XML manifests


def parse_pom_xml(content: str) -> List[str]:
    """Text of every ``artifactId`` element, namespace-agnostic."""
    root = ET.fromstring(content)
    artifacts: List[str] = []
    for element in root.iter():
        tag = element.tag.rsplit("}", 1)[-1] if isinstance(element.tag, str) else ""
        if tag == "artifactId" and element.text and element.text.strip():
            artifacts.append(element.text.strip())
    return artifacts


# TOML manifests


def parse_cargo_toml(content: str) -> List[str]:
    data = tomllib.loads(content)
    sections = ("dependencies", "dev-dependencies", "build-dependencies")
    crates: List[str] = []
    for section in sections:
        crates.extend(_keys(data, section))

    targets = data.get("target")
    if isinstance(targets, dict):
        for target in targets.values():
            if isinstance(target, dict):
                for section in sections:
                    crates.extend(_keys(target, section))

    workspace = data.get("workspace")
    if isinstance(workspace, dict):
        crates.extend(_keys(workspace, "dependencies"))
    return crates


def parse_pyproject_toml(content: str) -> List[str]:
    """Poetry dependency tables plus PEP 621 dependency lists, minus ``python``."""
    data = tomllib.loads(content)
    packages: List[str] = []

    tool = data.get("tool")
    poetry = tool.get("poetry") if isinstance(tool, dict) else None
    if isinstance(poetry, dict):
        packages.extend(_keys(poetry, "dependencies"))
        packages.extend(_keys(poetry, "dev-dependencies"))
        groups = poetry.get("group")
        if isinstance(groups, dict):
            for group in groups.values():
                if isinstance(group, dict):
                    packages.extend(_keys(group, "dependencies"))

    project = data.get("project")
    if isinstance(project, dict):
        packages.extend(_requirement_names(project.get("dependencies")))
        optional = project.get("optional-dependencies")
        if isinstance(optional, dict):
            for values in optional.values():
                packages.extend(_requirement_names(values))

    return [name for name in packages if name.lower() != "python"]


def parse_pipfile(content: str) -> List[str]:
    data = tomllib.loads(content)
    return _keys(data, "packages") + _keys(data, "dev-packages")


# Helpers


def _load_json_object(content: str) -> Dict[str, Any]:
    data = json.loads(content)
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object at the manifest root")
    return data


def _keys(data: Dict[str, Any], key: str) -> List[str]:
    section = data.get(key)
    if isinstance(section, dict):
        return [name for name in section if isinstance(name, str)]
    return []


def _requirement_names(values: Any) -> Iterable[str]:
    if not isinstance(values, list):
        return []
    names: List[str] = []
    for value in values:
        if isinstance(value, str):
            match = _REQUIREMENT_NAME.match(value.strip())
            if match:
                names.append(match.group(0))
    return names


__all__ = [
    "parse_build_gradle",
    "parse_cargo_toml",
    "parse_composer_json",
    "parse_gemfile",
    "parse_go_mod",
    "parse_package_json",
    "parse_pipfile",
    "parse_pom_xml",
    "parse_pyproject_toml",
    "parse_requirements",
]
