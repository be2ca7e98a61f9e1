"""Canonicalization of raw technology names into tag-safe badges."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from importlib import resources
from typing import Dict, Mapping, Optional

import yaml

from .config import ConfigError

MAX_BADGE_LENGTH = 39
UNKNOWN_BADGE = "unknown"
TYPES_SCOPE = "@types"

_SEPARATORS = re.compile(r"[.+_\s#]")
_DISALLOWED = re.compile(r"[^a-z0-9-]")
_REPEATED_HYPHENS = re.compile(r"-{2,}")


def unwrap_scope(name: str) -> str:
    """Drop an npm-style ``@scope/`` prefix.

    ``@types/<pkg>`` becomes ``<pkg>``; any other scope keeps the path after
    the scope, joined with hyphens.
    """
    if not name.startswith("@"):
        return name
    parts = name.split("/")
    if len(parts) < 2:
        return name
    if parts[0].lower() == TYPES_SCOPE:
        return parts[1]
    return "-".join(parts[1:])


def normalize(name: str) -> str:
    """Lowercase, hyphenate separators and strip everything else not tag-safe."""
    value = _SEPARATORS.sub("-", name.lower())
    value = _DISALLOWED.sub("", value)
    value = _REPEATED_HYPHENS.sub("-", value)
    return value.strip("-")


def normalize_prefix(prefix: str) -> str:
    """Normalize a prefix while keeping its trailing hyphen."""
    trailing = prefix.rstrip().endswith(("-", "_", "."))
    value = normalize(prefix)
    return f"{value}-" if trailing and value else value


@dataclass
class AliasTable:
    """Data describing which raw names fold into a larger product.

    ``aliases`` maps raw identifiers to an umbrella name; ``plugin_prefixes``
    maps a badge prefix to the base product badge.
    """

    aliases: Dict[str, str] = field(default_factory=dict)
    plugin_prefixes: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._raw = {key.strip().lower(): value for key, value in self.aliases.items()}
        self._by_badge: Dict[str, str] = {}
        for key, value in self._raw.items():
            if key.startswith("@"):
                continue
            badge_key = normalize(key)
            if badge_key:
                self._by_badge[badge_key] = normalize(value)
        # Longest prefix wins when several apply.
        self._prefixes = sorted(
            ((normalize_prefix(prefix), normalize(base)) for prefix, base in self.plugin_prefixes.items()),
            key=lambda item: len(item[0]),
            reverse=True,
        )
        self._check_cycles()

    def _check_cycles(self) -> None:
        # Every cycle passes through an alias key or a prefix base.
        starts = [*self._by_badge, *(base for _, base in self._prefixes)]
        for start in starts:
            chain = [start]
            badge = self.step(start)
            while badge is not None:
                if badge in chain:
                    raise ConfigError(
                        "alias cycle: " + " -> ".join(chain[chain.index(badge):] + [badge])
                    )
                chain.append(badge)
                badge = self.step(badge)

    @classmethod
    def load(
        cls,
        aliases: Optional[Mapping[str, str]] = None,
        plugin_prefixes: Optional[Mapping[str, str]] = None,
    ) -> "AliasTable":
        """Return the bundled table with optional overrides layered on top."""
        text = resources.files("autotag").joinpath("data/aliases.yml").read_text(encoding="utf-8")
        data = yaml.safe_load(text) or {}
        merged_aliases = {str(k): str(v) for k, v in (data.get("aliases") or {}).items()}
        merged_prefixes = {str(k): str(v) for k, v in (data.get("plugin_prefixes") or {}).items()}
        merged_aliases.update(aliases or {})
        merged_prefixes.update(plugin_prefixes or {})
        return cls(aliases=merged_aliases, plugin_prefixes=merged_prefixes)

    def lookup(self, name: str) -> Optional[str]:
        return self._raw.get(name.strip().lower())

    def lookup_badge(self, badge: str) -> Optional[str]:
        return self._by_badge.get(badge)

    def plugin_base(self, badge: str) -> Optional[str]:
        for prefix, base in self._prefixes:
            if prefix and badge.startswith(prefix) and len(badge) > len(prefix):
                return base
        return None

    def step(self, badge: str) -> Optional[str]:
        """Return the next badge ``badge`` folds into, or ``None`` at a fixed point."""
        if not badge:
            return None
        base = self.plugin_base(badge)
        if base and base != badge:
            return base
        target = self.lookup_badge(badge)
        if target and target != badge:
            return target
        return None


class Canonicalizer:
    """Maps raw candidates to badges; pure once constructed."""

    def __init__(self, aliases: AliasTable | None = None) -> None:
        self.aliases = aliases if aliases is not None else AliasTable.load()

    def resolve(self, candidate: str) -> str:
        """Return the umbrella name for ``candidate`` (used for lookups)."""
        raw = candidate.strip()
        target = self.aliases.lookup(raw)
        if target is not None:
            return target
        unwrapped = unwrap_scope(raw)
        target = self.aliases.lookup(unwrapped)
        return target if target is not None else unwrapped

    def canonicalize(self, candidate: str) -> str:
        badge = self._fold(normalize(self.resolve(candidate)))
        badge = badge[:MAX_BADGE_LENGTH].strip("-")
        return badge or UNKNOWN_BADGE

    def _fold(self, badge: str) -> str:
        # The table rejects cycles at construction, so this terminates.
        while True:
            target = self.aliases.step(badge)
            if target is None:
                return badge
            badge = target


__all__ = [
    "AliasTable",
    "Canonicalizer",
    "MAX_BADGE_LENGTH",
    "UNKNOWN_BADGE",
    "normalize",
    "unwrap_scope",
]
