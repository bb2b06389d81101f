"""Monarch MCP Tools - result rendering and free-text query parsing."""

from .formatter import TaggedTransactions, format_result
from .query_parser import parse_query

__all__ = [
    "TaggedTransactions",
    "format_result",
    "parse_query",
]
