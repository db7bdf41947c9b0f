"""
Core Data Models for Kimbila

These models define the strict schemas for the three ledger collections
(products, sales, debts) and the derived views built from them.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging

DESIGN DECISION: Money is Decimal everywhere. Sale totals and profits are
computed once and stored, so float drift would become permanent history.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class PaymentMethod(str, Enum):
    """How a sale was paid."""
    CASH = "cash"
    DEBT = "debt"          # On credit ("fiado"), becomes a receivable
    TRANSFER = "transfer"


class DebtStatus(str, Enum):
    """
    Debt lifecycle.

    The only transition is PENDING -> PAID.
    """
    PENDING = "pending"
    PAID = "paid"


# =============================================================================
# PRODUCTS
# =============================================================================

class ProductDraft(BaseModel):
    """
    What the user types in to create a product.

    Category may be left blank; the ledger substitutes the default
    category when it builds the Product.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Product name"
    )
    category: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Free-text category label"
    )
    cost: Decimal = Field(
        ...,
        ge=0,
        description="Unit acquisition cost"
    )
    price: Decimal = Field(
        ...,
        ge=0,
        description="Unit sale price"
    )
    stock: int = Field(
        ...,
        ge=0,
        description="Opening quantity on hand"
    )


class Product(BaseModel):
    """
    A sellable catalog item.

    Stock has no lower bound: overselling is allowed and shows up as
    negative stock rather than a rejected sale.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique product ID"
    )
    name: str = Field(..., min_length=1, max_length=200)
    category: str = Field(..., max_length=100)
    cost: Decimal = Field(..., ge=0)
    price: Decimal = Field(..., ge=0)
    stock: int

    @property
    def stock_value(self) -> Decimal:
        """Value of the stock on hand at sale price (zero when oversold)."""
        return self.price * max(self.stock, 0)


class ProductUpdate(BaseModel):
    """
    Partial catalog edit.

    Stock is deliberately absent: only sales move stock.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    category: Optional[str] = Field(default=None, max_length=100)
    cost: Optional[Decimal] = Field(default=None, ge=0)
    price: Optional[Decimal] = Field(default=None, ge=0)

    def changes(self) -> dict:
        """Only the fields the caller actually set."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


# =============================================================================
# SALES
# =============================================================================

class Sale(BaseModel):
    """
    An immutable record of one transaction.

    CRITICAL: product_name, total and profit are a snapshot taken when
    the sale was recorded. Later catalog edits or deletes never change
    them. product_id may point at a product that no longer exists.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(default_factory=uuid4)
    product_id: UUID = Field(
        ...,
        description="Product at sale time (weak reference)"
    )
    product_name: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)
    total: Decimal
    profit: Decimal
    payment_method: PaymentMethod
    customer_name: Optional[str] = Field(default=None, max_length=200)
    date: datetime = Field(
        default_factory=datetime.now,
        description="Local time the sale was recorded"
    )

    @field_validator("customer_name")
    @classmethod
    def blank_customer_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


# =============================================================================
# DEBTS
# =============================================================================

class Debt(BaseModel):
    """
    An amount a customer owes, created manually or by an on-credit sale.

    Manual debts must be positive (see DebtRequest). A debt created by a
    sale always equals the sale total, which is zero for a free item.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    customer_name: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(..., ge=0)
    description: str = Field(default="", max_length=500)
    date: datetime = Field(default_factory=datetime.now)
    status: DebtStatus = Field(default=DebtStatus.PENDING)

    @property
    def is_pending(self) -> bool:
        return self.status == DebtStatus.PENDING


class SaleReceipt(BaseModel):
    """Everything a recorded sale changed."""

    sale: Sale
    stock_after: int
    debt: Optional[Debt] = None

    @property
    def oversold(self) -> bool:
        return self.stock_after < 0


class DebtRequest(BaseModel):
    """Validated input for a manually entered debt."""
    model_config = ConfigDict(str_strip_whitespace=True)

    customer_name: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(..., gt=0)
    description: Optional[str] = Field(default=None, max_length=500)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found in user input."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'out_of_range')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


# =============================================================================
# DERIVED VIEWS
# =============================================================================

class DashboardSummary(BaseModel):
    """The numbers on the dashboard cards."""

    computed_at: datetime = Field(default_factory=datetime.now)
    todays_revenue: Decimal
    todays_profit: Decimal
    todays_sale_count: int = Field(ge=0)
    pending_debt_total: Decimal
    low_stock_count: int = Field(ge=0)
    product_count: int = Field(ge=0)
    sale_count: int = Field(ge=0)


class ProductBrief(BaseModel):
    """What the advisor sees of a product."""
    name: str
    stock: int
    price: Decimal


class SaleBrief(BaseModel):
    """What the advisor sees of a sale."""
    product_name: str
    total: Decimal


class DebtBrief(BaseModel):
    """What the advisor sees of a pending debt."""
    customer_name: str
    amount: Decimal


class AdviceSnapshot(BaseModel):
    """
    The data handed to the business advisor.

    Only names, quantities and amounts. No ids, no timestamps.
    """

    business_name: str = Field(..., min_length=1)
    products: list[ProductBrief] = Field(default_factory=list)
    recent_sales: list[SaleBrief] = Field(default_factory=list)
    pending_debts: list[DebtBrief] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.products or self.recent_sales or self.pending_debts)
