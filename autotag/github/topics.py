"""Reconciliation of detected badges with the repository topic list."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from ..logging import get_logger
from .client import GitHubClient, GitHubError

MAX_TOPICS = 20


class TopicSynchronizer:
    """Merges into and prunes the remote topic set using full-replace writes.

    Publication is best effort: API failures are logged as warnings and
    never propagate.
    """

    def __init__(self, backend: GitHubClient, *, max_topics: int = MAX_TOPICS) -> None:
        self.backend = backend
        self.max_topics = max_topics
        self.logger = get_logger("topics")

    async def merge(self, new_topics: Iterable[str]) -> Optional[List[str]]:
        """Union ``new_topics`` into the current topics; returns what was written."""
        try:
            current = await self.backend.get_topics()
        except GitHubError as exc:
            self._warn("read", exc)
            return None
        self.logger.info("Current topics: %s", ", ".join(current) or "(none)")

        merged = merge_topics(current, new_topics)
        if len(merged) > self.max_topics:
            self.logger.info(
                "Topics exceed maximum of %d, truncating %d entries",
                self.max_topics,
                len(merged) - self.max_topics,
            )
            merged = merged[: self.max_topics]
        self.logger.info("Merged topics: %s", ", ".join(merged))

        try:
            await self.backend.replace_topics(merged)
        except GitHubError as exc:
            self._warn("update", exc)
            return None
        self.logger.info("Topics updated successfully")
        return merged

    async def remove(self, topics_to_remove: Iterable[str]) -> bool:
        """Drop matching topics case-insensitively; True when a write happened."""
        targets = {topic.lower() for topic in topics_to_remove}
        if not targets:
            return False

        try:
            current = await self.backend.get_topics()
        except GitHubError as exc:
            self._warn("read", exc)
            return False

        remaining = [topic for topic in current if topic.lower() not in targets]
        if len(remaining) == len(current):
            self.logger.info("No matching topics to remove, skipping update")
            return False

        removed = [topic for topic in current if topic.lower() in targets]
        self.logger.info("Removing topics: %s", ", ".join(removed))
        try:
            await self.backend.replace_topics(remaining)
        except GitHubError as exc:
            self._warn("update", exc)
            return False
        return True

    def _warn(self, action: str, exc: Exception) -> None:
        self.logger.warning(
            "Could not %s repository topics: %s. Technologies were detected but topics were not updated.",
            action,
            exc,
        )


def merge_topics(current: Sequence[str], new_topics: Iterable[str]) -> List[str]:
    """Existing topics first, then new ones, without duplicates."""
    merged: List[str] = []
    seen = set()
    for topic in [*current, *new_topics]:
        if topic not in seen:
            seen.add(topic)
            merged.append(topic)
    return merged


__all__ = ["MAX_TOPICS", "TopicSynchronizer", "merge_topics"]
