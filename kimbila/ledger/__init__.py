"""Ledger package: record stores, ledger state and the operations that change them."""

from kimbila.ledger.operations import LedgerService
from kimbila.ledger.state import DEBTS, PRODUCTS, SALES, LedgerState
from kimbila.ledger.stores import RecordStore

__all__ = [
    "DEBTS",
    "LedgerService",
    "LedgerState",
    "PRODUCTS",
    "RecordStore",
    "SALES",
]
