"""Tests for the GitHub REST client."""

from __future__ import annotations

import asyncio
import base64
import json
from typing import Callable, List

import httpx
import pytest

from autotag.github import GitHubClient, GitHubError


def _client(handler: Callable[[httpx.Request], httpx.Response]) -> GitHubClient:
    transport = httpx.MockTransport(handler)
    http = httpx.AsyncClient(base_url="https://api.github.test", transport=transport)
    return GitHubClient("secret-token", "octo", "demo", client=http)


def test_get_and_replace_topics() -> None:
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.method == "GET":
            return httpx.Response(200, json={"names": ["python", "docker"]})
        return httpx.Response(200, json=json.loads(request.content))

    client = _client(handler)

    async def scenario() -> tuple[list, list]:
        current = await client.get_topics()
        written = await client.replace_topics([*current, "react"])
        return current, written

    current, written = asyncio.run(scenario())

    assert current == ["python", "docker"]
    assert written == ["python", "docker", "react"]
    assert requests[0].url.path == "/repos/octo/demo/topics"
    assert requests[0].headers["authorization"] == "Bearer secret-token"
    assert requests[1].method == "PUT"
    assert json.loads(requests[1].content) == {"names": ["python", "docker", "react"]}


def test_list_languages_keeps_numeric_sizes() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/repos/octo/demo/languages"
        return httpx.Response(200, json={"Python": 1200, "Shell": 40, "Odd": "x"})

    languages = asyncio.run(_client(handler).list_languages())

    assert languages == {"Python": 1200, "Shell": 40}


def test_error_status_raises_github_error_with_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"message": "Resource not accessible by integration"})

    with pytest.raises(GitHubError) as excinfo:
        asyncio.run(_client(handler).replace_topics(["react"]))

    assert excinfo.value.status == 403
    assert "Resource not accessible" in str(excinfo.value)


def test_transport_error_raises_github_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(GitHubError) as excinfo:
        asyncio.run(_client(handler).get_topics())

    assert excinfo.value.status is None


def test_get_file_decodes_content_and_handles_missing() -> None:
    encoded = base64.b64encode(b'{"user": []}\n').decode("ascii")

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/missing.json"):
            return httpx.Response(404, json={"message": "Not Found"})
        return httpx.Response(200, json={"type": "file", "content": encoded, "sha": "abc123"})

    client = _client(handler)

    remote = asyncio.run(client.get_file(".github/techs.json"))
    missing = asyncio.run(client.get_file("missing.json"))

    assert remote is not None
    assert remote.content == '{"user": []}\n'
    assert remote.sha == "abc123"
    assert missing is None


@pytest.mark.parametrize(
    "encoded",
    ["abc", base64.b64encode(b"\xff\xfe\xfa").decode("ascii")],
    ids=["bad-padding", "not-utf8"],
)
def test_get_file_with_undecodable_content_raises_github_error(encoded: str) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"type": "file", "content": encoded, "sha": "abc123"})

    with pytest.raises(GitHubError, match="undecodable"):
        asyncio.run(_client(handler).get_file(".github/techs.json"))


def test_put_file_sends_base64_content_and_sha() -> None:
    bodies: List[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"content": {"sha": "def456"}})

    sha = asyncio.run(
        _client(handler).put_file(
            ".github/techs.json", "{}\n", message="chore: update", sha="abc123", branch="main"
        )
    )

    assert sha == "def456"
    assert bodies[0]["sha"] == "abc123"
    assert bodies[0]["branch"] == "main"
    assert base64.b64decode(bodies[0]["content"]) == b"{}\n"
