"""Candidate technology extraction from a repository working tree."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set

from .extractors import ManifestParser, discover_parsers
from .extractors.infrastructure import detect_infrastructure
from .logging import get_logger
from .models import ExtractionResult, RepoManifest
from .repo_scanner import RepoScanner


class Extractor:
    """Turns manifests, file extensions and infrastructure files into candidates.

    The extractor is read-only and never raises: unreadable files and
    unparsable manifests are logged and skipped.
    """

    def __init__(
        self,
        scanner: RepoScanner | None = None,
        parsers: Optional[Iterable[ManifestParser]] = None,
    ) -> None:
        self.scanner = scanner or RepoScanner()
        self.parsers: List[ManifestParser] = (
            list(parsers) if parsers is not None else discover_parsers()
        )
        self.logger = get_logger("extractor")

    def extract(self, root: str | Path) -> Set[str]:
        """Return the raw candidate set for the repository at ``root``."""
        return self.scan(root).candidates

    def scan(self, root: str | Path) -> ExtractionResult:
        manifest = self.scanner.scan(root)
        return self.extract_from_manifest(manifest)

    def extract_from_manifest(self, manifest: RepoManifest) -> ExtractionResult:
        root = Path(manifest.root)
        result = ExtractionResult()
        seen_dependencies: Set[str] = set()

        for file in manifest.files:
            if file.language:
                result.languages.add(file.language)
            result.infrastructure.update(detect_infrastructure(file.path))

            filename = file.path.rsplit("/", 1)[-1]
            parsers = [parser for parser in self.parsers if parser.matches(filename)]
            if not parsers:
                continue

            names = self._parse_manifest(root / file.path, file.path, parsers)
            if names is None:
                continue
            result.manifests.append(file.path)
            for name in names:
                name = name.strip()
                if name and name not in seen_dependencies:
                    seen_dependencies.add(name)
                    result.dependencies.append(name)

        self.logger.info(
            "Extracted %d dependencies from %d manifests, %d languages, %d infrastructure markers",
            len(result.dependencies),
            len(result.manifests),
            len(result.languages),
            len(result.infrastructure),
        )
        return result

    def _parse_manifest(
        self, path: Path, rel_path: str, parsers: Sequence[ManifestParser]
    ) -> List[str] | None:
        try:
            content = path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as exc:
            self.logger.debug("Skipping unreadable manifest %s: %s", rel_path, exc)
            return None

        names: List[str] = []
        parsed_any = False
        for parser in parsers:
            try:
                names.extend(parser.parse(content))
            except (ValueError, SyntaxError, RecursionError) as exc:
                self.logger.debug("Skipping %s (%s parser): %s", rel_path, parser.name, exc)
                continue
            parsed_any = True
        return names if parsed_any else None


__all__ = ["Extractor"]
