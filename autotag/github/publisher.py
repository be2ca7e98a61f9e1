"""Commits the ledger file back to the repository through the contents API."""

from __future__ import annotations

from ..logging import get_logger
from ..stores.ledger import Ledger, LedgerPersistenceError, render_ledger
from .client import GitHubClient, GitHubError

DEFAULT_COMMIT_MESSAGE = "chore: update detected technologies [skip ci]"


class LedgerPublisher:
    """Writes the rendered ledger to ``path`` on the default branch."""

    def __init__(
        self,
        client: GitHubClient,
        path: str,
        *,
        message: str = DEFAULT_COMMIT_MESSAGE,
        branch: str | None = None,
    ) -> None:
        self.client = client
        self.path = path
        self.message = message
        self.branch = branch
        self.logger = get_logger("publisher")

    async def commit(self, ledger: Ledger) -> bool:
        """Commit the ledger if it differs from the remote copy.

        Returns False when the remote file already matches. Any API failure
        raises ``LedgerPersistenceError``.
        """
        content = render_ledger(ledger)
        try:
            remote = await self.client.get_file(self.path, ref=self.branch)
            if remote is not None and remote.content == content:
                self.logger.info("Remote %s already up to date", self.path)
                return False
            await self.client.put_file(
                self.path,
                content,
                message=self.message,
                sha=remote.sha if remote is not None else None,
                branch=self.branch,
            )
        except GitHubError as exc:
            raise LedgerPersistenceError(f"Failed to commit {self.path}: {exc}") from exc
        self.logger.info("Committed %s", self.path)
        return True


__all__ = ["DEFAULT_COMMIT_MESSAGE", "LedgerPublisher"]
