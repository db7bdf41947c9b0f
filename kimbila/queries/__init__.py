"""Aggregation queries package."""

from kimbila.queries.aggregates import LedgerQueries

__all__ = ["LedgerQueries"]
