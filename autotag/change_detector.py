"""Skip runs when neither dependencies nor the ledger changed since the last one."""

from __future__ import annotations

import hashlib
import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable, Iterable, Optional

from .logging import get_logger

LAST_RUN_FILENAME = ".github/.autotag-last-run"


def dependencies_hash(dependencies: Iterable[str]) -> str:
    joined = ",".join(sorted(set(dependencies)))
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()


class ChangeDetector:
    """Compares a dependency fingerprint and ledger mtime against saved state."""

    def __init__(
        self,
        repo_path: Path,
        ledger_path: Path,
        *,
        state_path: Path | None = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.repo_path = repo_path
        self.ledger_path = ledger_path
        self.state_path = state_path or repo_path / LAST_RUN_FILENAME
        self._clock = clock or (lambda: datetime.now(UTC))
        self.logger = get_logger("change_detector")

    def should_run(self, dependencies: Iterable[str], *, skip: bool = False) -> bool:
        if skip:
            self.logger.info("Change detection disabled, running")
            return True

        state = self._load_state()
        if state is None:
            self.logger.info("First run or unreadable run state, running")
            return True

        deps_hash, last_run = state
        if deps_hash != dependencies_hash(dependencies):
            self.logger.info("Dependencies changed since last run")
            return True

        if self._ledger_mtime() > last_run.timestamp():
            self.logger.info("Ledger modified since last run")
            return True

        self.logger.info("No changes in dependencies or ledger since last run")
        return False

    def save_last_run(self, dependencies: Iterable[str]) -> None:
        """Record the current fingerprint; failures are logged, not raised."""
        payload = {
            "deps_hash": dependencies_hash(dependencies),
            "timestamp": self._clock().isoformat().replace("+00:00", "Z"),
        }
        try:
            self.state_path.parent.mkdir(parents=True, exist_ok=True)
            self.state_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            self.logger.error("Failed to save last run data: %s", exc)
            return
        self.logger.debug("Saved last run data with hash %s", payload["deps_hash"])

    def _load_state(self) -> tuple[str, datetime] | None:
        try:
            data = json.loads(self.state_path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return None
        if not isinstance(data, dict):
            return None
        deps_hash = data.get("deps_hash")
        timestamp = data.get("timestamp")
        if not isinstance(deps_hash, str) or not isinstance(timestamp, str):
            return None
        try:
            last_run = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
        except ValueError:
            return None
        if last_run.tzinfo is None:
            last_run = last_run.replace(tzinfo=UTC)
        return deps_hash, last_run

    def _ledger_mtime(self) -> float:
        try:
            return self.ledger_path.stat().st_mtime
        except OSError:
            return 0.0


__all__ = ["ChangeDetector", "LAST_RUN_FILENAME", "dependencies_hash"]
