"""Reconciliation of detected technologies with the ledger and repository topics."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Set

from .canonical import Canonicalizer
from .extractor import Extractor
from .github.client import GitHubClient, GitHubError
from .github.publisher import LedgerPublisher
from .github.topics import TopicSynchronizer
from .logging import get_logger
from .models import ExtractionResult, RunOutcome
from .stores.ledger import Ledger, LedgerStore
from .verifier import TechVerifier


class ReconciliationEngine:
    """Sequences extraction, verification, ledger updates and topic publication.

    Full mode trusts badges already in the ledger and accepts every new badge
    whatever the lookup says. Incremental mode re-verifies everything and
    prunes badges that fail verification or are no longer detected. Badges
    in the ledger's ``user`` list are always published and never pruned.
    """

    def __init__(
        self,
        *,
        extractor: Extractor,
        canonicalizer: Canonicalizer,
        verifier: TechVerifier,
        ledger_store: LedgerStore,
        topics: TopicSynchronizer,
        languages: GitHubClient | None = None,
        publisher: LedgerPublisher | None = None,
        request_delay: float = 0.3,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.extractor = extractor
        self.canonicalizer = canonicalizer
        self.verifier = verifier
        self.ledger_store = ledger_store
        self.topics = topics
        self.languages = languages
        self.publisher = publisher
        self.request_delay = request_delay
        self._sleep = sleep
        self.logger = get_logger("orchestrator")

    async def run(
        self,
        repo_path: str | Path,
        *,
        full: bool = False,
        extraction: ExtractionResult | None = None,
    ) -> RunOutcome:
        mode = "full" if full else "incremental"
        self.logger.info("Starting technology detection (%s mode)", mode)

        ledger = self.ledger_store.load()
        user_badges = self._user_topics(ledger)
        user_set = set(user_badges)
        previously_detected = ledger.all_badges(exclude_user=True)

        if extraction is None:
            extraction = await asyncio.to_thread(self.extractor.scan, repo_path)
        candidates = extraction.candidates | await self._remote_languages()
        outcome = RunOutcome(dependencies=list(extraction.dependencies))

        badges = self._canonicalize(candidates)
        outcome.badges = list(badges)
        if not badges:
            self.logger.info("No technologies detected, skipping ledger and topic updates")
            outcome.skipped = True
            outcome.skip_reason = "No technologies detected"
            return outcome

        accepted, rejected = await self._classify(badges, ledger, user_set, full=full)

        removals: Set[str] = set()
        if not full:
            removals.update(rejected)
            stale = previously_detected - set(badges)
            if stale:
                self.logger.info("No longer detected: %s", ", ".join(sorted(stale)))
            removals.update(stale)
            removals -= user_set
        outcome.accepted = accepted
        outcome.removed = sorted(removals)

        self.ledger_store.add_verified(ledger, accepted)
        if removals:
            removed = ledger.remove_detected(removals)
            self.logger.info("Removed %d technologies from the ledger", len(removed))
        self.ledger_store.compact(ledger)
        self.ledger_store.save(ledger)

        outcome.published = await self._publish(user_badges, accepted, outcome.removed)

        if self.publisher is not None:
            await self.publisher.commit(ledger)

        self.logger.info(
            "Detection finished: %d accepted, %d removed, %d topics published",
            len(accepted),
            len(outcome.removed),
            len(outcome.published),
        )
        return outcome

    def _user_topics(self, ledger: Ledger) -> List[str]:
        """Return the ledger's user badges in topic form, deduplicated in order."""
        topics: List[str] = []
        for name in ledger.user_badges():
            badge = self.canonicalizer.canonicalize(name)
            if badge not in topics:
                topics.append(badge)
        return topics

    def _canonicalize(self, candidates: Iterable[str]) -> Dict[str, str]:
        """Map each badge to the first candidate (in sorted order) producing it."""
        badges: Dict[str, str] = {}
        for candidate in sorted(candidates):
            badge = self.canonicalizer.canonicalize(candidate)
            badges.setdefault(badge, candidate)
        return dict(sorted(badges.items()))

    async def _classify(
        self,
        badges: Dict[str, str],
        ledger: Ledger,
        user_set: Set[str],
        *,
        full: bool,
    ) -> tuple[List[str], List[str]]:
        accepted: List[str] = []
        rejected: List[str] = []
        first_call = True

        for badge, candidate in badges.items():
            if badge in user_set:
                continue
            if full and ledger.contains(badge):
                accepted.append(badge)
                continue

            if not first_call and self.request_delay > 0:
                await self._sleep(self.request_delay)
            first_call = False

            result = await self.verifier.verify(self.canonicalizer.resolve(candidate))
            if full or result.matched:
                accepted.append(badge)
                if not result.matched:
                    self.logger.debug("Accepting unverified %s (%s)", badge, result.status.value)
            else:
                self.logger.info("Excluding %s (%s)", badge, result.status.value)
                rejected.append(badge)

        self.logger.info("Matched %d technologies", len(accepted))
        return accepted, rejected

    async def _remote_languages(self) -> Set[str]:
        if self.languages is None:
            return set()
        try:
            reported = await self.languages.list_languages()
        except GitHubError as exc:
            self.logger.warning("Could not list repository languages: %s", exc)
            return set()
        self.logger.debug("Remote languages: %s", ", ".join(reported))
        return set(reported)

    async def _publish(
        self, user_badges: List[str], accepted: List[str], removals: List[str]
    ) -> List[str]:
        to_publish: List[str] = []
        for badge in [*user_badges, *accepted]:
            if badge not in to_publish:
                to_publish.append(badge)

        published: List[str] = []
        if to_publish:
            self.logger.info("Publishing topics: %s", ", ".join(to_publish))
            merged: Optional[List[str]] = await self.topics.merge(to_publish)
            if merged is not None:
                published = [badge for badge in to_publish if badge in merged]
        else:
            self.logger.info("No technologies accepted, skipping topic merge")

        if removals:
            await self.topics.remove(removals)
        return published


__all__ = ["ReconciliationEngine"]
