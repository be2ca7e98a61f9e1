"""Run outputs for the invoking workflow."""

from __future__ import annotations

import os
import uuid
from pathlib import Path
from typing import Dict, Iterable, Mapping

from .logging import get_logger


class ActionOutputs:
    """Writes ``name=value`` pairs to the file named by ``GITHUB_OUTPUT``.

    Without that variable the values are only logged.
    """

    def __init__(self, output_path: Path | None = None, *, environ: Mapping[str, str] | None = None) -> None:
        if output_path is None:
            env = os.environ if environ is None else environ
            value = env.get("GITHUB_OUTPUT")
            output_path = Path(value) if value else None
        self.output_path = output_path
        self.values: Dict[str, str] = {}
        self.logger = get_logger("outputs")

    def save(self, name: str, value: str) -> None:
        self.values[name] = value
        self.logger.debug("output %s=%s", name, value)
        if self.output_path is None:
            return
        with self.output_path.open("a", encoding="utf-8") as handle:
            if "\n" in value:
                delimiter = f"ghadelimiter_{uuid.uuid4()}"
                handle.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
            else:
                handle.write(f"{name}={value}\n")

    def save_detected_techs(self, techs: Iterable[str]) -> None:
        self.save("detected_techs", ",".join(techs))

    def save_created_topics(self, topics: Iterable[str]) -> None:
        self.save("created_topics", ",".join(topics))

    def set_skip_message(self, message: str) -> None:
        self.save("skip_message", message)
        self.save("skipped", "true")


__all__ = ["ActionOutputs"]
