"""Verification of candidate names against the external naming authority."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from .config import DEFAULT_LOOKUP_URL
from .logging import get_logger
from .models import TechMatch, VerificationResult, VerificationStatus

RATE_LIMITED = 429


class VerificationError(RuntimeError):
    """Raised inside the verifier when a lookup cannot produce an answer."""


class VerificationCache:
    """Run-scoped cache of lookups that produced an answer.

    Failures are never cached so a later call may still succeed.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, VerificationResult] = {}

    def get(self, candidate: str) -> Optional[VerificationResult]:
        return self._entries.get(candidate)

    def store(self, result: VerificationResult) -> None:
        if result.failed:
            return
        self._entries[result.candidate] = result

    def __contains__(self, candidate: object) -> bool:
        return candidate in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def backoff_delay(attempt: int, base: float = 1.0, cap: float = 30.0) -> float:
    """Delay before retry number ``attempt`` (0-based): ``base * 2**attempt``, capped."""
    if attempt < 0:
        raise ValueError("attempt must be non-negative")
    return min(base * (2**attempt), cap)


def parse_lookup_payload(payload: Any) -> List[TechMatch]:
    """Accept either a bare list of matches or a ``{"data": [...]}`` envelope."""
    if isinstance(payload, list):
        records = payload
    elif isinstance(payload, dict) and isinstance(payload.get("data"), list):
        records = payload["data"]
    else:
        raise VerificationError("Unexpected response shape from lookup service")

    matches: List[TechMatch] = []
    for record in records:
        if not isinstance(record, dict):
            continue
        title = record.get("title")
        slug = record.get("slug")
        if isinstance(title, str) and isinstance(slug, str):
            matches.append(TechMatch(title=title, slug=slug))
    return matches


def _retry_after(response: httpx.Response) -> Optional[float]:
    value = response.headers.get("retry-after")
    if value is None:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        return None


class TechVerifier:
    """Looks candidates up one at a time, with caching and 429 backoff."""

    def __init__(
        self,
        base_url: str = DEFAULT_LOOKUP_URL,
        *,
        client: httpx.AsyncClient | None = None,
        cache: VerificationCache | None = None,
        max_retries: int = 3,
        backoff_base: float = 1.0,
        backoff_cap: float = 30.0,
        timeout: float = 10.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.base_url = base_url
        self.cache = cache if cache is not None else VerificationCache()
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.backoff_cap = backoff_cap
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout
        self._sleep = sleep
        self.logger = get_logger("verifier")

    async def verify(self, candidate: str) -> VerificationResult:
        """Return matches for ``candidate``; failures come back as ``FAILED`` results."""
        cached = self.cache.get(candidate)
        if cached is not None:
            self.logger.debug("Cache hit for %s", candidate)
            return cached

        try:
            matches = await self._lookup(candidate)
        except (VerificationError, httpx.HTTPError) as exc:
            self.logger.info("Could not verify technology %s: %s", candidate, exc)
            return VerificationResult(
                candidate=candidate,
                status=VerificationStatus.FAILED,
                error=str(exc) or exc.__class__.__name__,
            )

        status = VerificationStatus.MATCHED if matches else VerificationStatus.EMPTY
        result = VerificationResult(candidate=candidate, status=status, matches=tuple(matches))
        self.cache.store(result)
        return result

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "TechVerifier":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _lookup(self, candidate: str) -> List[TechMatch]:
        client = self._get_client()
        attempt = 0
        while True:
            response = await client.get(self.base_url, params={"q": candidate})
            if response.status_code != RATE_LIMITED:
                break
            if attempt >= self.max_retries:
                raise VerificationError(
                    f"Rate limited by lookup service after {attempt + 1} attempts"
                )
            delay = backoff_delay(attempt, self.backoff_base, self.backoff_cap)
            retry_after = _retry_after(response)
            if retry_after is not None and retry_after > delay:
                delay = min(retry_after, self.backoff_cap)
            self.logger.info(
                "Rate limited while verifying %s, retrying in %.1fs (attempt %d/%d)",
                candidate,
                delay,
                attempt + 1,
                self.max_retries,
            )
            await self._sleep(delay)
            attempt += 1

        if not response.is_success:
            raise VerificationError(
                f"Lookup failed with status {response.status_code}: {response.reason_phrase}"
            )

        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            raise VerificationError(f"Expected JSON response, got {content_type or 'no content type'}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise VerificationError("Lookup service returned invalid JSON") from exc
        return parse_lookup_payload(payload)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)
        return self._client


__all__ = [
    "TechVerifier",
    "VerificationCache",
    "VerificationError",
    "backoff_delay",
    "parse_lookup_payload",
]
