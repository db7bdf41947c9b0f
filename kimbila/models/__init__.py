"""
Data Models Package

This package contains all Pydantic models used in Kimbila.
All data flowing through the ledger must conform to these schemas.
"""

from kimbila.models.ledger import (
    AdviceSnapshot,
    DashboardSummary,
    Debt,
    DebtBrief,
    DebtRequest,
    DebtStatus,
    PaymentMethod,
    Product,
    ProductBrief,
    ProductDraft,
    ProductUpdate,
    Sale,
    SaleBrief,
    SaleReceipt,
    ValidationIssue,
)
from kimbila.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "AdviceSnapshot",
    "DashboardSummary",
    "Debt",
    "DebtBrief",
    "DebtRequest",
    "DebtStatus",
    "PaymentMethod",
    "Product",
    "ProductBrief",
    "ProductDraft",
    "ProductUpdate",
    "Sale",
    "SaleBrief",
    "SaleReceipt",
    "ValidationIssue",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
