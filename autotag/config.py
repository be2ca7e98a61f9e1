"""Configuration loading for autotag (.autotag.yml and run inputs)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

CONFIG_FILENAME = ".autotag.yml"
DEFAULT_LOOKUP_URL = "https://kind-creation-production.up.railway.app/pre-tech"
DEFAULT_LEDGER_PATH = ".github/techs.json"


class ConfigError(RuntimeError):
    """Raised when configuration or run inputs are unusable."""


@dataclass
class VerificationConfig:
    """Naming-authority lookup settings."""

    base_url: str = DEFAULT_LOOKUP_URL
    request_delay: float = 0.3
    max_retries: int = 3
    backoff_base: float = 1.0
    timeout: float = 10.0


@dataclass
class TopicsConfig:
    """Remote topic publication settings."""

    max_topics: int = 20


@dataclass
class LedgerConfig:
    """Where the technology ledger lives and whether it is committed remotely."""

    path: str = DEFAULT_LEDGER_PATH
    commit: bool = False


@dataclass
class AutotagConfig:
    """Represents the settings defined in .autotag.yml."""

    root: Path
    verification: VerificationConfig = field(default_factory=VerificationConfig)
    topics: TopicsConfig = field(default_factory=TopicsConfig)
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    aliases: Dict[str, str] = field(default_factory=dict)
    plugin_prefixes: Dict[str, str] = field(default_factory=dict)
    exclude_paths: List[str] = field(default_factory=list)
    parsers: Optional[List[str]] = None

    @property
    def ledger_path(self) -> Path:
        return self.root / self.ledger.path


@dataclass
class RunInputs:
    """Inputs supplied by the invoking workflow or command line."""

    token: str
    owner: str
    repo: str
    workspace: Path
    full: bool = False
    skip_change_detection: bool = False


def load_config(config_path: Path) -> AutotagConfig:
    """Load configuration from disk, returning defaults when the file is absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return AutotagConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    verification = VerificationConfig()
    verification_data = _as_dict(data.get("verification"))
    if verification_data:
        verification.base_url = _as_str(verification_data.get("base_url")) or verification.base_url
        verification.request_delay = _as_float(
            verification_data.get("request_delay"), verification.request_delay
        )
        verification.max_retries = _as_int(
            verification_data.get("max_retries"), verification.max_retries
        )
        verification.backoff_base = _as_float(
            verification_data.get("backoff_base"), verification.backoff_base
        )
        verification.timeout = _as_float(verification_data.get("timeout"), verification.timeout)

    topics = TopicsConfig()
    topics_data = _as_dict(data.get("topics"))
    if topics_data:
        topics.max_topics = _as_int(topics_data.get("max_topics"), topics.max_topics)
        if topics.max_topics <= 0:
            raise ConfigError("topics.max_topics must be a positive integer")

    ledger = LedgerConfig()
    ledger_data = _as_dict(data.get("ledger"))
    if ledger_data:
        ledger.path = _as_str(ledger_data.get("path")) or ledger.path
        ledger.commit = _as_bool(ledger_data.get("commit"), ledger.commit)

    parsers_value = data.get("parsers")
    parsers = _as_str_list(parsers_value) if parsers_value is not None else None

    return AutotagConfig(
        root=root,
        verification=verification,
        topics=topics,
        ledger=ledger,
        aliases=_as_str_mapping(data.get("aliases")),
        plugin_prefixes=_as_str_mapping(data.get("plugin_prefixes")),
        exclude_paths=_as_str_list(data.get("exclude_paths")),
        parsers=parsers,
    )


def resolve_run_inputs(
    *,
    path: str | None = None,
    token: str | None = None,
    repository: str | None = None,
    full: bool | None = None,
    skip_change_detection: bool | None = None,
    environ: Mapping[str, str] | None = None,
) -> RunInputs:
    """Combine explicit arguments with the workflow environment."""
    env = os.environ if environ is None else environ

    resolved_token = token or env.get("INPUT_TOKEN") or env.get("GITHUB_TOKEN")
    if not resolved_token:
        raise ConfigError(
            "GitHub token is required. Pass --token or set INPUT_TOKEN / GITHUB_TOKEN."
        )

    coordinates = repository or env.get("GITHUB_REPOSITORY") or ""
    owner, _, repo = coordinates.partition("/")
    if not owner or not repo or "/" in repo:
        raise ConfigError(
            "Repository coordinates must be given as owner/repo "
            "(--repository or GITHUB_REPOSITORY)."
        )

    workspace = path or env.get("GITHUB_WORKSPACE") or os.getcwd()

    if full is None:
        full = _as_bool(env.get("INPUT_FULL"), False)
    if skip_change_detection is None:
        skip_change_detection = _as_bool(env.get("INPUT_SKIP_CHANGE_DETECTION"), False)

    return RunInputs(
        token=resolved_token,
        owner=owner,
        repo=repo,
        workspace=Path(workspace).expanduser().resolve(),
        full=full,
        skip_change_detection=skip_change_detection,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_float(value: Any, default: float) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return default
    return default


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return default
    return default


def _as_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0", ""}:
            return False
    return default


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


def _as_str_mapping(value: Any) -> Dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {
        str(key): str(item)
        for key, item in value.items()
        if isinstance(key, str) and isinstance(item, (str, int, float))
    }
