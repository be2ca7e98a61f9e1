"""Core data models shared across autotag components."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Set, Tuple


@dataclass
class FileMeta:
    """Metadata for an individual repository file."""

    path: str
    language: Optional[str]


@dataclass
class RepoManifest:
    """Files found by the scanner, relative to the repository root."""

    root: str
    files: List[FileMeta]


@dataclass
class ExtractionResult:
    """Raw technology names found in a repository, grouped by origin."""

    dependencies: List[str] = field(default_factory=list)
    languages: Set[str] = field(default_factory=set)
    infrastructure: Set[str] = field(default_factory=set)
    manifests: List[str] = field(default_factory=list)

    @property
    def candidates(self) -> Set[str]:
        return set(self.dependencies) | self.languages | self.infrastructure


@dataclass(frozen=True)
class TechMatch:
    """A single record returned by the naming authority."""

    title: str
    slug: str


class VerificationStatus(str, Enum):
    MATCHED = "matched"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of looking a candidate up in the naming authority."""

    candidate: str
    status: VerificationStatus
    matches: Tuple[TechMatch, ...] = ()
    error: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.status is VerificationStatus.MATCHED

    @property
    def failed(self) -> bool:
        return self.status is VerificationStatus.FAILED


@dataclass
class RunOutcome:
    """Summary of one reconciliation run."""

    dependencies: List[str] = field(default_factory=list)
    badges: List[str] = field(default_factory=list)
    accepted: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    published: List[str] = field(default_factory=list)
    skipped: bool = False
    skip_reason: Optional[str] = None
