"""
Ledger State

The explicit container for the three collections. It is created once per
session and handed to LedgerService and LedgerQueries; nothing in the
package keeps ledger data in module globals.
"""

from kimbila.ledger.stores import RecordStore
from kimbila.models.ledger import Debt, Product, Sale


PRODUCTS = "products"
SALES = "sales"
DEBTS = "debts"


class LedgerState:
    """Products, sales and debts for one business."""

    def __init__(self):
        self.products: RecordStore[Product] = RecordStore("Product", Product)
        self.sales: RecordStore[Sale] = RecordStore("Sale", Sale)
        self.debts: RecordStore[Debt] = RecordStore("Debt", Debt)

    def collections(self) -> dict[str, RecordStore]:
        return {
            PRODUCTS: self.products,
            SALES: self.sales,
            DEBTS: self.debts,
        }

    def counts(self) -> dict[str, int]:
        return {name: len(store) for name, store in self.collections().items()}

    def clear(self) -> None:
        for store in self.collections().values():
            store.clear()
