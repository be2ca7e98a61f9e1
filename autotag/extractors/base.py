"""Base classes for manifest parser plugins."""

from abc import ABC, abstractmethod
from fnmatch import fnmatchcase
from typing import Callable, List, Sequence


class ManifestParser(ABC):
    """Contract for parsers that pull dependency names out of one manifest format."""

    name: str = ""

    @abstractmethod
    def matches(self, filename: str) -> bool:
        """Return True when this parser understands files with this name."""

    @abstractmethod
    def parse(self, content: str) -> List[str]:
        """Return dependency names declared in the manifest content.

        Malformed content may raise ``ValueError`` or ``SyntaxError``; the
        extractor treats either as an unparsable manifest.
        """


class FilenameParser(ManifestParser):
    """Parser bound to a set of filename globs and a parse function."""

    def __init__(
        self,
        name: str,
        patterns: Sequence[str],
        parse: Callable[[str], List[str]],
    ) -> None:
        self.name = name
        self._patterns = tuple(patterns)
        self._parse = parse

    def matches(self, filename: str) -> bool:
        return any(fnmatchcase(filename, pattern) for pattern in self._patterns)

    def parse(self, content: str) -> List[str]:
        return self._parse(content)

    def __repr__(self) -> str:
        return f"FilenameParser(name={self.name!r}, patterns={self._patterns!r})"
