"""Tests for topic synchronization."""

from __future__ import annotations

import asyncio
import logging

import pytest

from autotag.github.topics import MAX_TOPICS, TopicSynchronizer, merge_topics
from tests._fixtures.fakes import FakeGitHub


def test_merge_caps_at_maximum_keeping_existing_first() -> None:
    existing = [f"existing-{index}" for index in range(15)]
    new = [f"new-{index}" for index in range(10)]
    backend = FakeGitHub(existing)

    merged = asyncio.run(TopicSynchronizer(backend).merge(new))

    assert merged is not None
    assert len(merged) == MAX_TOPICS
    assert merged[:15] == existing
    assert merged[15:] == new[:5]
    assert backend.topics == merged


def test_merge_deduplicates() -> None:
    backend = FakeGitHub(["react", "docker"])

    merged = asyncio.run(TopicSynchronizer(backend).merge(["docker", "vite", "vite"]))

    assert merged == ["react", "docker", "vite"]


def test_merge_write_failure_is_a_warning(
    caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
) -> None:
    backend = FakeGitHub(["react"])
    backend.fail_write = True
    monkeypatch.setattr(logging.getLogger("autotag"), "propagate", True)

    with caplog.at_level(logging.WARNING, logger="autotag"):
        merged = asyncio.run(TopicSynchronizer(backend).merge(["vite"]))

    assert merged is None
    assert backend.topics == ["react"]
    assert "topics were not updated" in caplog.text


def test_merge_read_failure_skips_write() -> None:
    backend = FakeGitHub(["react"])
    backend.fail_read = True

    assert asyncio.run(TopicSynchronizer(backend).merge(["vite"])) is None
    assert backend.writes == []


def test_remove_is_case_insensitive() -> None:
    backend = FakeGitHub(["React", "docker", "Vue"])

    changed = asyncio.run(TopicSynchronizer(backend).remove(["react", "vue"]))

    assert changed is True
    assert backend.topics == ["docker"]


def test_remove_skips_write_when_nothing_matches() -> None:
    backend = FakeGitHub(["docker"])

    changed = asyncio.run(TopicSynchronizer(backend).remove(["react"]))

    assert changed is False
    assert backend.writes == []


def test_remove_write_failure_is_swallowed() -> None:
    backend = FakeGitHub(["react", "docker"])
    backend.fail_write = True

    assert asyncio.run(TopicSynchronizer(backend).remove(["react"])) is False


def test_merge_topics_helper() -> None:
    assert merge_topics(["a", "b"], ["b", "c"]) == ["a", "b", "c"]


def test_custom_maximum() -> None:
    backend = FakeGitHub(["a", "b"])

    merged = asyncio.run(TopicSynchronizer(backend, max_topics=3).merge(["c", "d"]))

    assert merged == ["a", "b", "c"]
