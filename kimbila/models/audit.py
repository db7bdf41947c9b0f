"""
Audit Models for Kimbila

Every change to the ledger is logged as a structured event. This gives:
1. Traceability of every sale, stock movement and debt
2. Debugging information when a save fails
3. A way to reconstruct what happened on a given day

DESIGN DECISION: Audit events are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator


DESCRIPTION_MAX_LENGTH = 500


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Catalog
    PRODUCT_ADDED = "product_added"
    PRODUCT_UPDATED = "product_updated"
    PRODUCT_DELETED = "product_deleted"

    # Sales and credit
    SALE_RECORDED = "sale_recorded"
    DEBT_CREATED = "debt_created"
    DEBT_SETTLED = "debt_settled"

    # Input
    VALIDATION_FAILED = "validation_failed"

    # Persistence
    LEDGER_LOADED = "ledger_loaded"
    LOAD_FAILED = "load_failed"
    SAVE_FAILED = "save_failed"

    # Advisor
    ADVICE_REQUESTED = "advice_requested"
    ADVICE_GENERATED = "advice_generated"
    ADVICE_FAILED = "advice_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred (local time, like the ledger)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = Field(default=AuditSeverity.INFO)

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'product', 'sale', 'debt')"
    )
    entity_id: Optional[UUID] = None

    # Ties a sale to the debt it created
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=DESCRIPTION_MAX_LENGTH)
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    @field_validator("description", mode="before")
    @classmethod
    def truncate_description(cls, v: Any) -> Any:
        """Descriptions embed user text; an overlong one is cut, never rejected."""
        if isinstance(v, str) and len(v) > DESCRIPTION_MAX_LENGTH:
            return v[:DESCRIPTION_MAX_LENGTH - 3] + "..."
        return v

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.product_added(product_id, name)
        event = AuditEventBuilder.sale_recorded(sale_id, ..., correlation_id)
    """

    @staticmethod
    def product_added(product_id: UUID, name: str, stock: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PRODUCT_ADDED,
            entity_type="product",
            entity_id=product_id,
            description=f"Product added: {name}",
            details={"name": name, "stock": stock},
            is_user_action=True,
        )

    @staticmethod
    def product_updated(product_id: UUID, changes: dict) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PRODUCT_UPDATED,
            entity_type="product",
            entity_id=product_id,
            description=f"Product updated: {', '.join(sorted(changes)) or 'no fields'}",
            details={k: str(v) for k, v in changes.items()},
            is_user_action=True,
        )

    @staticmethod
    def product_deleted(product_id: UUID, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PRODUCT_DELETED,
            entity_type="product",
            entity_id=product_id,
            description=f"Product deleted: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def sale_recorded(
        sale_id: UUID,
        product_name: str,
        quantity: int,
        total: str,
        payment_method: str,
        stock_after: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        severity = AuditSeverity.WARNING if stock_after < 0 else AuditSeverity.INFO
        return AuditEvent(
            event_type=AuditEventType.SALE_RECORDED,
            severity=severity,
            entity_type="sale",
            entity_id=sale_id,
            correlation_id=correlation_id,
            description=f"Sale recorded: {quantity}x {product_name} = {total}",
            details={
                "product_name": product_name,
                "quantity": quantity,
                "total": total,
                "payment_method": payment_method,
                "stock_after": stock_after,
            },
            is_user_action=True,
        )

    @staticmethod
    def debt_created(
        debt_id: UUID,
        customer_name: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEBT_CREATED,
            entity_type="debt",
            entity_id=debt_id,
            correlation_id=correlation_id,
            description=f"Debt created: {customer_name} owes {amount}",
            details={"customer_name": customer_name, "amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def debt_settled(debt_id: UUID, customer_name: str, amount: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEBT_SETTLED,
            entity_type="debt",
            entity_id=debt_id,
            description=f"Debt settled: {customer_name} paid {amount}",
            details={"customer_name": customer_name, "amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(operation: str, issues: list[dict]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            description=f"{operation} rejected with {len(issues)} issues",
            details={"operation": operation, "issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def ledger_loaded(counts: dict[str, int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_LOADED,
            description="Ledger loaded from storage",
            details=counts,
        )

    @staticmethod
    def load_failed(key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOAD_FAILED,
            severity=AuditSeverity.ERROR,
            description=f"Could not load collection: {key}",
            error_message=error_message,
            details={"key": key},
        )

    @staticmethod
    def save_failed(keys: list[str], error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.WARNING,
            description=f"Could not save: {', '.join(keys)}",
            error_message=error_message,
            details={"keys": keys},
        )

    @staticmethod
    def advice_requested(business_name: str, product_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ADVICE_REQUESTED,
            description=f"Advice requested for {business_name}",
            details={"business_name": business_name, "product_count": product_count},
            is_user_action=True,
        )

    @staticmethod
    def advice_generated(length: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ADVICE_GENERATED,
            description="Advice generated",
            details={"length": length},
        )

    @staticmethod
    def advice_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ADVICE_FAILED,
            severity=AuditSeverity.WARNING,
            description="Advice generation failed, fallback returned",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )
