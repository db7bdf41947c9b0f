"""
Audit Logger

DESIGN DECISION: Every change to the ledger is logged.
This provides:
1. Complete traceability of stock and money movements
2. Debugging capability when a save fails
3. A history the owner can grep when a number looks wrong

The audit logger:
- Writes structured JSON through structlog
- Gracefully handles failures (never breaks a sale if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from kimbila.models.audit import AuditEvent, AuditEventBuilder


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Events go to the structured local log. The most recent ones are
    also kept in memory so the front end can show what just happened.
    """

    def __init__(self, keep_recent: int = 100):
        self._logger = structlog.get_logger("kimbila.audit")
        self._keep_recent = keep_recent
        self._recent: list[AuditEvent] = []

    @property
    def recent_events(self) -> list[AuditEvent]:
        """Most recent events, newest first."""
        return list(reversed(self._recent))

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if writing the log line failed; never raises.
        """
        self._recent.append(event)
        if len(self._recent) > self._keep_recent:
            del self._recent[0]

        log_dict = event.to_log_dict()
        try:
            if event.severity.value in ("error", "critical"):
                self._logger.error("audit_event", **log_dict)
            elif event.severity.value == "warning":
                self._logger.warning("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            return False
        return True

    def _emit(self, build, *args, **kwargs) -> bool:
        """Build an event and log it. A bad event is dropped, never raised."""
        try:
            event = build(*args, **kwargs)
        except Exception as e:
            self._logger.error("audit_event_dropped", builder=build.__name__, error=str(e))
            return False
        return self.log(event)

    def log_product_added(self, product_id: UUID, name: str, stock: int) -> None:
        self._emit(AuditEventBuilder.product_added, product_id, name, stock)

    def log_product_updated(self, product_id: UUID, changes: dict) -> None:
        self._emit(AuditEventBuilder.product_updated, product_id, changes)

    def log_product_deleted(self, product_id: UUID, name: str) -> None:
        self._emit(AuditEventBuilder.product_deleted, product_id, name)

    def log_sale_recorded(
        self,
        sale_id: UUID,
        product_name: str,
        quantity: int,
        total: str,
        payment_method: str,
        stock_after: int,
        correlation_id: UUID,
    ) -> None:
        """Log a sale. Oversold stock is logged at warning level."""
        self._emit(
            AuditEventBuilder.sale_recorded,
            sale_id=sale_id,
            product_name=product_name,
            quantity=quantity,
            total=total,
            payment_method=payment_method,
            stock_after=stock_after,
            correlation_id=correlation_id,
        )

    def log_debt_created(
        self,
        debt_id: UUID,
        customer_name: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self._emit(
            AuditEventBuilder.debt_created,
            debt_id=debt_id,
            customer_name=customer_name,
            amount=amount,
            correlation_id=correlation_id,
        )

    def log_debt_settled(self, debt_id: UUID, customer_name: str, amount: str) -> None:
        self._emit(AuditEventBuilder.debt_settled, debt_id, customer_name, amount)

    def log_validation_failed(self, operation: str, issues: list[dict]) -> None:
        self._emit(AuditEventBuilder.validation_failed, operation, issues)

    def log_ledger_loaded(self, counts: dict[str, int]) -> None:
        self._emit(AuditEventBuilder.ledger_loaded, counts)

    def log_load_failed(self, key: str, error_message: str) -> None:
        self._emit(AuditEventBuilder.load_failed, key, error_message)

    def log_save_failed(self, keys: list[str], error_message: str) -> None:
        self._emit(AuditEventBuilder.save_failed, keys, error_message)

    def log_advice_requested(self, business_name: str, product_count: int) -> None:
        self._emit(AuditEventBuilder.advice_requested, business_name, product_count)

    def log_advice_generated(self, length: int) -> None:
        self._emit(AuditEventBuilder.advice_generated, length)

    def log_advice_failed(self, error_message: str) -> None:
        self._emit(AuditEventBuilder.advice_failed, error_message)

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        self._emit(AuditEventBuilder.system_error, error_type, error_message, details)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    A sale and the debt it creates share one.
    """
    return uuid4()
