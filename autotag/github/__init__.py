"""GitHub integration: API client, topic synchronization and ledger commits."""

from .client import GitHubClient, GitHubError, RemoteFile
from .publisher import LedgerPublisher
from .topics import MAX_TOPICS, TopicSynchronizer

__all__ = [
    "GitHubClient",
    "GitHubError",
    "LedgerPublisher",
    "MAX_TOPICS",
    "RemoteFile",
    "TopicSynchronizer",
]
