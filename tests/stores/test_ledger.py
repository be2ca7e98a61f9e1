"""Tests for the technology ledger store."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import pytest

from autotag.stores import Ledger, LedgerPersistenceError, LedgerStore, generation_timestamp


def _clock() -> datetime:
    return datetime(2026, 10, 19, 14, 37)


def test_generation_timestamp_has_hour_resolution() -> None:
    assert generation_timestamp(datetime(2026, 3, 7, 9, 59)) == "07-03-2026-09"


def test_ledger_round_trip(tmp_path: Path) -> None:
    store = LedgerStore(tmp_path / ".github" / "techs.json", clock=_clock)
    ledger = Ledger(
        user=["graphql", "aws"],
        partitions={"01-09-2026-10": ["react", "vite"], "02-09-2026-11": ["docker"]},
    )

    store.save(ledger)
    loaded = store.load()

    assert loaded == ledger
    payload = json.loads(store.path.read_text(encoding="utf-8"))
    assert list(payload) == ["user", "01-09-2026-10", "02-09-2026-11"]


def test_load_returns_empty_ledger_when_missing_or_corrupt(tmp_path: Path) -> None:
    path = tmp_path / "techs.json"
    store = LedgerStore(path)

    assert store.load() == Ledger()

    path.write_text("{ not json", encoding="utf-8")
    assert store.load() == Ledger()

    path.write_text("[1, 2, 3]", encoding="utf-8")
    assert store.load() == Ledger()


def test_from_dict_ignores_malformed_entries() -> None:
    ledger = Ledger.from_dict({"user": ["graphql", 3], "19-10-2026-14": ["react"], "note": "text"})

    assert ledger.user == ["graphql"]
    assert ledger.partitions == {"19-10-2026-14": ["react"]}


def test_add_verified_filters_existing_and_is_idempotent(tmp_path: Path) -> None:
    store = LedgerStore(tmp_path / "techs.json", clock=_clock)
    ledger = Ledger(user=["graphql"], partitions={"01-09-2026-10": ["react"]})

    first = store.add_verified(ledger, ["react", "graphql", "vite", "docker"])
    second = store.add_verified(ledger, ["react", "graphql", "vite", "docker"])

    assert first == ["vite", "docker"]
    assert second == []
    assert ledger.partitions["19-10-2026-14"] == ["vite", "docker"]


def test_add_verified_merges_same_hour_partition() -> None:
    ledger = Ledger()
    ledger.add_verified(["react"], "19-10-2026-14")
    ledger.add_verified(["vite"], "19-10-2026-14")

    assert ledger.partitions == {"19-10-2026-14": ["react", "vite"]}


def test_remove_detected_never_touches_user_badges() -> None:
    ledger = Ledger(
        user=["graphql"],
        partitions={"01-09-2026-10": ["react", "graphql"], "02-09-2026-11": ["vue"]},
    )

    removed = ledger.remove_detected(["graphql", "vue", "angular"])

    assert removed == ["graphql", "vue"]
    assert ledger.user == ["graphql"]
    assert ledger.partitions == {"01-09-2026-10": ["react"]}
    assert ledger.contains("graphql")


def test_compact_folds_partitions_into_current_generation(tmp_path: Path) -> None:
    store = LedgerStore(tmp_path / "techs.json", clock=_clock)
    ledger = Ledger(
        user=["graphql"],
        partitions={"01-09-2026-10": ["react", "vite"], "02-09-2026-11": ["vite", "docker"]},
    )

    store.compact(ledger)

    assert ledger.user == ["graphql"]
    assert ledger.partitions == {"19-10-2026-14": ["react", "vite", "docker"]}
    assert ledger.all_badges(exclude_user=True) == {"react", "vite", "docker"}


def test_compact_of_empty_ledger_keeps_only_user() -> None:
    ledger = Ledger(user=["graphql"])
    ledger.compact("19-10-2026-14")

    assert ledger.to_dict() == {"user": ["graphql"]}


def test_save_failure_raises_persistence_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    store = LedgerStore(blocker / "techs.json")

    with pytest.raises(LedgerPersistenceError):
        store.save(Ledger(user=["graphql"]))
