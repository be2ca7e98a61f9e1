"""Timestamp-partitioned ledger of verified technologies (``techs.json``)."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Set

from ..logging import get_logger

USER_KEY = "user"


class LedgerPersistenceError(RuntimeError):
    """Raised when the ledger cannot be written to its durable store."""


def generation_timestamp(now: datetime | None = None) -> str:
    """Return the ``DD-MM-YYYY-HH`` key for the current generation.

    Runs within the same hour share a partition.
    """
    moment = now or datetime.now()
    return moment.strftime("%d-%m-%Y-%H")


@dataclass
class Ledger:
    """In-memory view of the ledger file.

    ``user`` holds curated badges that are never pruned; ``partitions`` maps
    generation timestamps to badges detected in that generation.
    """

    user: List[str] = field(default_factory=list)
    partitions: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: object) -> "Ledger":
        if not isinstance(payload, dict):
            raise ValueError("ledger must be a JSON object")
        user = _string_list(payload.get(USER_KEY))
        partitions: Dict[str, List[str]] = {}
        for key, values in payload.items():
            if key == USER_KEY or not isinstance(key, str):
                continue
            if isinstance(values, list):
                partitions[key] = _string_list(values)
        return cls(user=user, partitions=partitions)

    def to_dict(self) -> Dict[str, List[str]]:
        payload: Dict[str, List[str]] = {USER_KEY: list(self.user)}
        for key, values in self.partitions.items():
            payload[key] = list(values)
        return payload

    def contains(self, badge: str) -> bool:
        return badge in self.user or any(badge in values for values in self.partitions.values())

    def all_badges(self, exclude_user: bool = False) -> Set[str]:
        badges: Set[str] = set()
        for values in self.partitions.values():
            badges.update(values)
        if not exclude_user:
            badges.update(self.user)
        return badges

    def user_badges(self) -> List[str]:
        return list(self.user)

    def add_verified(self, badges: Iterable[str], timestamp: str) -> List[str]:
        """Record badges not already present anywhere; returns what was added."""
        existing = self.all_badges()
        added: List[str] = []
        for badge in badges:
            if badge in existing:
                continue
            existing.add(badge)
            added.append(badge)
        if added:
            self.partitions.setdefault(timestamp, []).extend(added)
        return added

    def remove_detected(self, badges: Iterable[str]) -> List[str]:
        """Drop badges from every non-user partition; empty partitions go too."""
        targets = set(badges)
        removed: Set[str] = set()
        for key in list(self.partitions):
            values = self.partitions[key]
            kept = [badge for badge in values if badge not in targets]
            if len(kept) == len(values):
                continue
            removed.update(badge for badge in values if badge in targets)
            if kept:
                self.partitions[key] = kept
            else:
                del self.partitions[key]
        return sorted(removed)

    def compact(self, timestamp: str) -> None:
        """Fold every non-user partition into a single ``timestamp`` partition."""
        ordered: List[str] = []
        seen: Set[str] = set()
        for values in self.partitions.values():
            for badge in values:
                if badge not in seen:
                    seen.add(badge)
                    ordered.append(badge)
        self.partitions = {timestamp: ordered} if ordered else {}


class LedgerStore:
    """Reads and writes the ledger file, stamping generations with ``clock``."""

    def __init__(
        self,
        path: Path,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.path = path
        self._clock = clock or datetime.now
        self.logger = get_logger("ledger")

    def timestamp(self) -> str:
        return generation_timestamp(self._clock())

    def load(self) -> Ledger:
        """Return the persisted ledger, or an empty one when absent or corrupt."""
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
            ledger = Ledger.from_dict(payload)
        except FileNotFoundError:
            self.logger.info("%s not found, starting a new ledger", self.path.name)
            return Ledger()
        except (OSError, ValueError) as exc:
            self.logger.warning("%s is unreadable (%s), starting a new ledger", self.path.name, exc)
            return Ledger()
        self.logger.info(
            "Loaded %s with %d user and %d detected technologies",
            self.path.name,
            len(ledger.user),
            len(ledger.all_badges(exclude_user=True)),
        )
        return ledger

    def save(self, ledger: Ledger) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(render_ledger(ledger), encoding="utf-8")
        except OSError as exc:
            self.logger.error("Failed to save %s: %s", self.path, exc)
            raise LedgerPersistenceError(f"Failed to save {self.path}: {exc}") from exc
        self.logger.info("Saved %s with %d partitions", self.path.name, len(ledger.partitions) + 1)

    def add_verified(self, ledger: Ledger, badges: Iterable[str]) -> List[str]:
        added = ledger.add_verified(badges, self.timestamp())
        if added:
            self.logger.info("Added %d new technologies: %s", len(added), ", ".join(added))
        else:
            self.logger.info("No new technologies to add to the ledger")
        return added

    def compact(self, ledger: Ledger) -> None:
        timestamp = self.timestamp()
        ledger.compact(timestamp)
        self.logger.debug("Compacted ledger into generation %s", timestamp)


def render_ledger(ledger: Ledger) -> str:
    return json.dumps(ledger.to_dict(), indent=2) + "\n"


def _string_list(values: object) -> List[str]:
    if not isinstance(values, list):
        return []
    return [value for value in values if isinstance(value, str)]


__all__ = [
    "Ledger",
    "LedgerPersistenceError",
    "LedgerStore",
    "USER_KEY",
    "generation_timestamp",
    "render_ledger",
]
