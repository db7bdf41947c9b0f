"""
Aggregation Queries

DESIGN DECISION: Every figure on the dashboard is recomputed from the
stores on each call. Data volumes for one shop are small, and there is
no cache to fall out of step with the ledger.

Nothing here mutates the ledger.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from kimbila.config import AppSettings, get_settings
from kimbila.ledger.state import LedgerState
from kimbila.models.ledger import (
    AdviceSnapshot,
    DashboardSummary,
    Debt,
    DebtBrief,
    Product,
    ProductBrief,
    Sale,
    SaleBrief,
)


class LedgerQueries:
    """
    Read-only views over a LedgerState.

    "Today" is the local calendar day. A sale belongs to today when the
    ISO form of its timestamp starts with today's ISO date.
    """

    def __init__(
        self,
        state: LedgerState,
        settings: Optional[AppSettings] = None,
    ):
        self._state = state
        self._settings = settings or get_settings().app

    # -------------------------------------------------------------------------
    # Sales
    # -------------------------------------------------------------------------

    def todays_sales(self, today: Optional[date] = None) -> list[Sale]:
        prefix = (today or date.today()).isoformat()
        return [
            sale for sale in self._state.sales
            if sale.date.isoformat().startswith(prefix)
        ]

    def todays_revenue(self, today: Optional[date] = None) -> Decimal:
        return sum((sale.total for sale in self.todays_sales(today)), Decimal("0"))

    def todays_profit(self, today: Optional[date] = None) -> Decimal:
        return sum((sale.profit for sale in self.todays_sales(today)), Decimal("0"))

    def recent_sales(self, limit: int = 5) -> list[Sale]:
        """Newest first."""
        if limit <= 0:
            return []
        return list(reversed(self._state.sales.values()))[:limit]

    def all_sales(self) -> list[Sale]:
        """Full sales history, newest first."""
        return list(reversed(self._state.sales.values()))

    # -------------------------------------------------------------------------
    # Debts
    # -------------------------------------------------------------------------

    def pending_debts(self) -> list[Debt]:
        return [debt for debt in self._state.debts if debt.is_pending]

    def pending_debt_total(self) -> Decimal:
        return sum((debt.amount for debt in self.pending_debts()), Decimal("0"))

    def all_debts(self) -> list[Debt]:
        """Newest first, pending and paid alike."""
        return list(reversed(self._state.debts.values()))

    # -------------------------------------------------------------------------
    # Products
    # -------------------------------------------------------------------------

    def low_stock_products(self) -> list[Product]:
        threshold = self._settings.low_stock_threshold
        return [p for p in self._state.products if p.stock < threshold]

    def low_stock_count(self) -> int:
        return len(self.low_stock_products())

    def distinct_categories(self) -> set[str]:
        return {p.category for p in self._state.products if p.category}

    def inventory_value(self) -> Decimal:
        """Stock on hand valued at sale price; oversold items count as zero."""
        return sum((p.stock_value for p in self._state.products), Decimal("0"))

    # -------------------------------------------------------------------------
    # Composite views
    # -------------------------------------------------------------------------

    def summary(self, today: Optional[date] = None) -> DashboardSummary:
        """The dashboard cards in one object."""
        todays = self.todays_sales(today)
        return DashboardSummary(
            todays_revenue=sum((s.total for s in todays), Decimal("0")),
            todays_profit=sum((s.profit for s in todays), Decimal("0")),
            todays_sale_count=len(todays),
            pending_debt_total=self.pending_debt_total(),
            low_stock_count=self.low_stock_count(),
            product_count=len(self._state.products),
            sale_count=len(self._state.sales),
        )

    def advice_snapshot(
        self,
        business_name: Optional[str] = None,
        recent_limit: Optional[int] = None,
    ) -> AdviceSnapshot:
        """
        Build the data the business advisor is allowed to see.

        Products with stock and price, the most recent sales (oldest of
        them first, as they happened), and pending debts.
        """
        limit = self._settings.recent_sales_limit if recent_limit is None else recent_limit
        recent = self._state.sales.values()[-limit:] if limit > 0 else []
        return AdviceSnapshot(
            business_name=business_name or self._settings.business_name,
            products=[
                ProductBrief(name=p.name, stock=p.stock, price=p.price)
                for p in self._state.products
            ],
            recent_sales=[
                SaleBrief(product_name=s.product_name, total=s.total)
                for s in recent
            ],
            pending_debts=[
                DebtBrief(customer_name=d.customer_name, amount=d.amount)
                for d in self.pending_debts()
            ],
        )
