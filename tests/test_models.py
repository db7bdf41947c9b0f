"""
Tests for Kimbila

Test strategy:
1. Unit tests for individual components (models, validators, stores)
2. Integration tests for ledger flows (with in-memory storage)
3. No real API calls in tests (use fake models)
"""

import pytest
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from kimbila.models.ledger import (
    AdviceSnapshot,
    Debt,
    DebtStatus,
    PaymentMethod,
    Product,
    ProductBrief,
    ProductDraft,
    ProductUpdate,
    Sale,
    SaleReceipt,
    ValidationIssue,
)
from kimbila.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


def make_sale(**overrides) -> Sale:
    fields = dict(
        product_id=uuid4(),
        product_name="Soap",
        quantity=2,
        total=Decimal("1000"),
        profit=Decimal("400"),
        payment_method=PaymentMethod.CASH,
    )
    fields.update(overrides)
    return Sale(**fields)


class TestProductModels:
    """Tests for product-related Pydantic models."""

    def test_product_draft_strips_whitespace(self):
        """Test that whitespace is stripped from the product name."""
        draft = ProductDraft(name="  Soap  ", cost=Decimal("300"), price=Decimal("500"), stock=10)
        assert draft.name == "Soap"
        assert draft.category is None

    def test_product_draft_rejects_negative_price(self):
        """Test that negative prices are rejected."""
        with pytest.raises(ValueError):
            ProductDraft(name="Soap", cost=Decimal("300"), price=Decimal("-1"), stock=10)

    def test_product_draft_rejects_negative_stock(self):
        """Test that opening stock cannot be negative."""
        with pytest.raises(ValueError):
            ProductDraft(name="Soap", cost=Decimal("0"), price=Decimal("0"), stock=-1)

    def test_product_allows_negative_stock(self):
        """Test that a stored product may be oversold."""
        product = Product(
            name="Soap", category="General",
            cost=Decimal("300"), price=Decimal("500"), stock=-2,
        )
        assert product.stock == -2
        assert product.stock_value == Decimal("0")

    def test_product_gets_unique_ids(self):
        """Test that each product gets its own id."""
        a = Product(name="A", category="General", cost=Decimal("1"), price=Decimal("2"), stock=1)
        b = Product(name="B", category="General", cost=Decimal("1"), price=Decimal("2"), stock=1)
        assert a.id != b.id

    def test_stock_value(self):
        """Test stock valued at sale price."""
        product = Product(
            name="Soap", category="General",
            cost=Decimal("300"), price=Decimal("500"), stock=3,
        )
        assert product.stock_value == Decimal("1500")

    def test_product_update_only_reports_set_fields(self):
        """Test that unset fields are not treated as changes."""
        update = ProductUpdate(cost=Decimal("350"))
        assert update.changes() == {"cost": Decimal("350")}

    def test_product_update_rejects_stock(self):
        """Test that stock cannot be edited through a catalog update."""
        with pytest.raises(ValueError):
            ProductUpdate(stock=5)


class TestSaleModels:
    """Tests for sale and debt models."""

    def test_sale_is_immutable(self):
        """Test that a recorded sale cannot be changed."""
        sale = make_sale()
        with pytest.raises(ValueError):
            sale.total = Decimal("1")

    def test_sale_rejects_zero_quantity(self):
        """Test that a sale must move at least one unit."""
        with pytest.raises(ValueError):
            make_sale(quantity=0)

    def test_blank_customer_becomes_none(self):
        """Test that an empty customer name is not stored."""
        sale = make_sale(customer_name="   ")
        assert sale.customer_name is None

    def test_sale_round_trips_through_json(self):
        """Test that money survives serialization exactly."""
        sale = make_sale(total=Decimal("12.50"), profit=Decimal("0.10"))
        data = sale.model_dump(mode="json")
        assert data["total"] == "12.50"
        assert Sale.model_validate(data) == sale

    def test_debt_defaults_to_pending(self):
        """Test that a new debt is pending."""
        debt = Debt(customer_name="Ana", amount=Decimal("500"))
        assert debt.status == DebtStatus.PENDING
        assert debt.is_pending
        assert debt.description == ""

    def test_debt_requires_customer(self):
        """Test that a debt must name who owes it."""
        with pytest.raises(ValueError):
            Debt(customer_name="", amount=Decimal("500"))

    def test_receipt_reports_oversold(self):
        """Test the oversold flag on a receipt."""
        receipt = SaleReceipt(sale=make_sale(), stock_after=-1)
        assert receipt.oversold
        assert not SaleReceipt(sale=make_sale(), stock_after=0).oversold


class TestValidationModels:
    """Tests for validation-related models."""

    def test_validation_issue_creation(self):
        """Test ValidationIssue creation."""
        issue = ValidationIssue(
            field="price",
            issue_type="out_of_range",
            message="Cannot be negative",
            suggested_fix="Enter 0 or more",
        )
        assert issue.severity == "error"

    def test_validation_issue_rejects_unknown_severity(self):
        """Test that severity is limited to error, warning and info."""
        with pytest.raises(ValueError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")


class TestAdviceSnapshot:
    """Tests for the advisor input model."""

    def test_empty_snapshot(self):
        """Test that a snapshot with no data reports empty."""
        assert AdviceSnapshot(business_name="Shop").is_empty

    def test_snapshot_with_products_is_not_empty(self):
        """Test that any data makes the snapshot non-empty."""
        snapshot = AdviceSnapshot(
            business_name="Shop",
            products=[ProductBrief(name="Soap", stock=3, price=Decimal("500"))],
        )
        assert not snapshot.is_empty


class TestAuditModels:
    """Tests for audit models."""

    def test_audit_event_creation(self):
        """Test AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.PRODUCT_ADDED,
            description="Test event",
        )
        assert event.event_type == AuditEventType.PRODUCT_ADDED
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.DEBT_SETTLED,
            description="Test",
            entity_id=uuid4(),
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "debt_settled"
        assert isinstance(log_dict["entity_id"], str)
        assert isinstance(log_dict["timestamp"], str)

    def test_audit_builder_product_added(self):
        """Test AuditEventBuilder for product creation."""
        product_id = uuid4()
        event = AuditEventBuilder.product_added(product_id, "Soap", 10)
        assert event.event_type == AuditEventType.PRODUCT_ADDED
        assert event.entity_id == product_id
        assert event.is_user_action is True

    def test_audit_builder_oversold_sale_is_warning(self):
        """Test that a sale leaving negative stock is logged as a warning."""
        event = AuditEventBuilder.sale_recorded(
            sale_id=uuid4(),
            product_name="Soap",
            quantity=3,
            total="1500",
            payment_method="cash",
            stock_after=-1,
            correlation_id=uuid4(),
        )
        assert event.severity == AuditSeverity.WARNING
        assert event.details["stock_after"] == -1

    def test_long_description_is_truncated(self):
        """Test that user text in a description cannot make the event invalid."""
        event = AuditEventBuilder.advice_requested("B" * 600, 0)
        assert len(event.description) == 500
        assert event.description.endswith("...")
        assert event.details["business_name"] == "B" * 600

    def test_audit_builder_save_failed(self):
        """Test AuditEventBuilder for a failed save."""
        event = AuditEventBuilder.save_failed(["k_sales"], "disk full")
        assert event.event_type == AuditEventType.SAVE_FAILED
        assert event.error_message == "disk full"
        assert event.details["keys"] == ["k_sales"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
