"""GitHub lookup of the open treadmill PR."""

from treadmill.github.search import UpstreamQuery, build_search_query, select_open_treadmill_pr

__all__ = ["UpstreamQuery", "build_search_query", "select_open_treadmill_pr"]
