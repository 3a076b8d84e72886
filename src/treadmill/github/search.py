"""Find the one open treadmill PR through the GitHub GraphQL API."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from treadmill.config import TreadmillConfig
from treadmill.errors import (
    AmbiguousError,
    MalformedResponseError,
    NoCandidateError,
    NotOpenError,
    TitleMismatchError,
    TransportError,
)
from treadmill.types import PRState, TreadmillPR

logger = logging.getLogger(__name__)

_SEARCH_TEMPLATE = """
{
  search(
    query: "repo:%(repo)s is:pr %(product)s vendor treadmill",
    type: ISSUE,
    first: 10
  ) {
    edges {
      node {
        ... on PullRequest {
          number
          state
          title
        }
      }
    }
  }
}
"""


def build_search_query(config: TreadmillConfig) -> str:
    """GraphQL search for treadmill PRs, collapsed onto one line."""
    query = _SEARCH_TEMPLATE % {"repo": config.downstream_repo, "product": config.product}
    return " ".join(query.split())


def parse_search_response(payload: Any) -> list[TreadmillPR]:
    """Pull PRs out of ``data.search.edges``, naming the first missing path."""
    if not isinstance(payload, dict) or "data" not in payload or payload["data"] is None:
        detail = ""
        if isinstance(payload, dict) and payload.get("errors"):
            detail = _graphql_errors(payload["errors"])
        raise MalformedResponseError("data", detail)
    data = payload["data"]
    if not isinstance(data, dict) or not isinstance(data.get("search"), dict):
        raise MalformedResponseError("data.search")
    edges = data["search"].get("edges")
    if not isinstance(edges, list):
        raise MalformedResponseError("data.search.edges")

    prs: list[TreadmillPR] = []
    for edge in edges:
        node = edge.get("node") if isinstance(edge, dict) else None
        # Non-PR search hits come back as empty nodes.
        if not isinstance(node, dict) or "number" not in node:
            continue
        try:
            number = int(node["number"])
        except (TypeError, ValueError) as exc:
            raise MalformedResponseError("data.search.edges.node.number", repr(node["number"])) from exc
        prs.append(
            TreadmillPR(
                number=number,
                title=str(node.get("title", "")),
                state=PRState.parse(node.get("state")),
            )
        )
    return prs


def _graphql_errors(errors: Any) -> str:
    if not isinstance(errors, list):
        return str(errors)
    return "; ".join(str(err.get("message", err)) if isinstance(err, dict) else str(err) for err in errors)


def select_open_treadmill_pr(prs: Sequence[TreadmillPR], title: str) -> TreadmillPR:
    """Require exactly one PR with ``title`` that is still open."""
    if not prs:
        raise NoCandidateError("search returned no PRs")

    titled = [pr for pr in prs if pr.title == title]
    if not titled:
        seen = ", ".join(f"#{pr.number} {pr.title!r}" for pr in prs)
        raise TitleMismatchError(f"no PR titled {title!r} (saw: {seen})")

    open_prs = [pr for pr in titled if pr.state is PRState.OPEN]
    if not open_prs:
        seen = ", ".join(f"#{pr.number} {pr.state.value}" for pr in titled)
        raise NotOpenError(f"no open PR titled {title!r} (saw: {seen})")

    if len(open_prs) > 1:
        numbers = ", ".join(f"#{pr.number}" for pr in open_prs)
        raise AmbiguousError(f"multiple open PRs titled {title!r}: {numbers}")

    return open_prs[0]


class UpstreamQuery:
    """One POST to the GraphQL endpoint, resolved to one PR number."""

    def __init__(self, config: TreadmillConfig, client: httpx.Client | None = None):
        self.config = config
        self.client = client

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.config.token:
            headers["Authorization"] = f"bearer {self.config.token}"
        else:
            logger.info("no token in environment; GitHub API rate limits may apply")
        return headers

    def search(self) -> list[TreadmillPR]:
        body = {"query": build_search_query(self.config)}
        try:
            if self.client is not None:
                response = self.client.post(self.config.graphql_url, json=body, headers=self._headers())
            else:
                with httpx.Client(timeout=None) as client:
                    response = client.post(self.config.graphql_url, json=body, headers=self._headers())
        except httpx.HTTPError as exc:
            raise TransportError(None, str(exc)) from exc

        if response.status_code != 200:
            raise TransportError(response.status_code, _error_message(response))

        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedResponseError("data", "response body is not JSON") from exc
        return parse_search_response(payload)

    def find_open_treadmill_pr(self, title: str | None = None) -> int:
        pr = select_open_treadmill_pr(self.search(), title or self.config.treadmill_title)
        logger.info("treadmill PR is #%d", pr.number)
        return pr.number


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return response.reason_phrase
