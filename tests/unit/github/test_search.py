"""Tests for locating the open treadmill PR."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from treadmill.config import TreadmillConfig
from treadmill.errors import (
    AmbiguousError,
    MalformedResponseError,
    NoCandidateError,
    NotOpenError,
    TitleMismatchError,
    TransportError,
)
from treadmill.github.search import (
    UpstreamQuery,
    build_search_query,
    parse_search_response,
    select_open_treadmill_pr,
)
from treadmill.types import PRState, TreadmillPR

TITLE = "DO NOT MERGE: buildah vendor treadmill"


def _edges(*nodes: dict) -> dict:
    return {"data": {"search": {"edges": [{"node": node} for node in nodes]}}}


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_single_open_match_resolves() -> None:
    prs = [
        TreadmillPR(number=100, title=TITLE, state=PRState.CLOSED),
        TreadmillPR(number=200, title="buildah vendor treadmill notes", state=PRState.OPEN),
        TreadmillPR(number=300, title=TITLE, state=PRState.OPEN),
    ]
    assert select_open_treadmill_pr(prs, TITLE).number == 300


@pytest.mark.parametrize(
    ("prs", "error"),
    [
        ([], NoCandidateError),
        ([TreadmillPR(number=1, title="vendor buildah v1.34", state=PRState.OPEN)], TitleMismatchError),
        ([TreadmillPR(number=2, title=TITLE, state=PRState.CLOSED)], NotOpenError),
        (
            [
                TreadmillPR(number=3, title=TITLE, state=PRState.OPEN),
                TreadmillPR(number=4, title=TITLE, state=PRState.OPEN),
            ],
            AmbiguousError,
        ),
    ],
)
def test_each_unresolvable_result_has_its_own_failure(prs: list[TreadmillPR], error: type[Exception]) -> None:
    with pytest.raises(error):
        select_open_treadmill_pr(prs, TITLE)


def test_failure_kinds_are_distinct() -> None:
    kinds = {cls.kind for cls in (NoCandidateError, TitleMismatchError, NotOpenError, AmbiguousError)}
    assert len(kinds) == 4


def test_query_is_single_line_and_scoped() -> None:
    query = build_search_query(TreadmillConfig(repo_root=Path("/repo")))
    assert "\n" not in query
    assert "  " not in query
    assert "repo:containers/podman" in query
    assert "buildah vendor treadmill" in query


@pytest.mark.parametrize(
    ("payload", "path"),
    [
        ({}, "data"),
        ({"data": None, "errors": [{"message": "Bad credentials"}]}, "data"),
        ({"data": {}}, "data.search"),
        ({"data": {"search": {}}}, "data.search.edges"),
    ],
)
def test_missing_paths_are_named(payload: dict, path: str) -> None:
    with pytest.raises(MalformedResponseError) as excinfo:
        parse_search_response(payload)
    assert excinfo.value.path == path


def test_non_pull_request_nodes_are_skipped() -> None:
    payload = _edges({}, {"number": 7, "state": "MERGED", "title": TITLE})
    assert parse_search_response(payload) == [TreadmillPR(number=7, title=TITLE, state=PRState.OTHER)]


def test_find_open_treadmill_pr_posts_query_with_token() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json=_edges(
                {"number": 13472, "state": "OPEN", "title": TITLE},
                {"number": 12000, "state": "CLOSED", "title": TITLE},
            ),
        )

    config = TreadmillConfig(repo_root=Path("/repo"), token="s3cret")
    number = UpstreamQuery(config, client=_client(handler)).find_open_treadmill_pr()

    assert number == 13472
    assert seen["auth"] == "bearer s3cret"
    assert seen["body"] == {"query": build_search_query(config)}


def test_missing_token_sends_no_authorization() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json=_edges({"number": 1, "state": "OPEN", "title": TITLE}))

    number = UpstreamQuery(TreadmillConfig(repo_root=Path("/repo")), client=_client(handler)).find_open_treadmill_pr()
    assert number == 1
    assert seen["auth"] is None


def test_non_200_is_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"message": "Bad credentials"})

    query = UpstreamQuery(TreadmillConfig(repo_root=Path("/repo")), client=_client(handler))
    with pytest.raises(TransportError) as excinfo:
        query.find_open_treadmill_pr()
    assert excinfo.value.status == 401
    assert excinfo.value.message == "Bad credentials"


def test_connection_failure_is_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    query = UpstreamQuery(TreadmillConfig(repo_root=Path("/repo")), client=_client(handler))
    with pytest.raises(TransportError, match="connection refused"):
        query.search()


def test_non_json_body_is_malformed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>oops</html>")

    query = UpstreamQuery(TreadmillConfig(repo_root=Path("/repo")), client=_client(handler))
    with pytest.raises(MalformedResponseError, match="not JSON"):
        query.search()


@pytest.mark.parametrize(
    "payload",
    [
        {"data": None, "errors": ["rate limited"]},
        {"data": None, "errors": "rate limited"},
    ],
)
def test_errors_that_are_not_objects_are_still_malformed(payload: dict) -> None:
    with pytest.raises(MalformedResponseError, match="rate limited") as excinfo:
        parse_search_response(payload)
    assert excinfo.value.path == "data"


@pytest.mark.parametrize("number", [None, "abc", []])
def test_unusable_pr_number_is_malformed(number: object) -> None:
    payload = _edges({"number": number, "state": "OPEN", "title": TITLE})
    with pytest.raises(MalformedResponseError) as excinfo:
        parse_search_response(payload)
    assert excinfo.value.path == "data.search.edges.node.number"


def test_default_client_has_no_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    real_client = httpx.Client
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_edges({"number": 5, "state": "OPEN", "title": TITLE}))

    def fake_client(**kwargs) -> httpx.Client:
        seen.update(kwargs)
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr("treadmill.github.search.httpx.Client", fake_client)

    assert UpstreamQuery(TreadmillConfig(repo_root=Path("/repo"))).find_open_treadmill_pr() == 5
    assert "timeout" in seen
    assert seen["timeout"] is None
