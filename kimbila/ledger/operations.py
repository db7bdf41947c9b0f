"""
Ledger Operations

This module is the only place business rules are enforced. Every
mutation of products, sales and debts goes through LedgerService.

DESIGN DECISION: Each operation follows the same order:
1. Parse and validate input (nothing mutated on failure)
2. Look up referenced records (NotFoundError on failure)
3. Build every new or changed record
4. Apply all of them to the stores in one go
5. Persist the touched collections

Step 4 cannot fail half-way, so a reader never sees a sale without its
stock decrement or a debt sale without its debt. Step 5 may fail; the
in-memory ledger is then kept and the failure surfaced as a warning.
"""

import warnings
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Union
from uuid import UUID

import structlog
from pydantic import ValidationError as PydanticValidationError

from kimbila.audit import AuditLogger, create_correlation_id
from kimbila.config import AppSettings, StorageSettings, get_settings
from kimbila.errors import NotFoundError, PersistenceWarning, ValidationError
from kimbila.ledger.state import DEBTS, PRODUCTS, SALES, LedgerState
from kimbila.models.ledger import (
    Debt,
    DebtStatus,
    PaymentMethod,
    Product,
    ProductDraft,
    ProductUpdate,
    Sale,
    SaleReceipt,
)
from kimbila.services.storage import (
    CorruptDataError,
    LedgerStorageInterface,
    StorageError,
)
from kimbila.validation import (
    issues_from_pydantic,
    parse_customer_name,
    parse_debt_request,
    parse_decimal,
    parse_payment_method,
    parse_product_draft,
    parse_quantity,
    parse_record_id,
)


logger = structlog.get_logger(__name__)


class LedgerService:
    """
    Applies ledger operations to a LedgerState.

    The state and the storage backend are injected, so tests can run
    against a fresh in-memory ledger.
    """

    def __init__(
        self,
        state: Optional[LedgerState] = None,
        storage: Optional[LedgerStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[AppSettings] = None,
        storage_settings: Optional[StorageSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.state = state if state is not None else LedgerState()
        self._storage = storage
        self._audit_logger = audit_logger
        self._settings = settings or get_settings().app
        storage_settings = storage_settings or get_settings().storage
        self._keys = {
            PRODUCTS: storage_settings.products_key,
            SALES: storage_settings.sales_key,
            DEBTS: storage_settings.debts_key,
        }
        self._now = clock or datetime.now
        self.last_persistence_error: Optional[str] = None

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def load(self) -> dict[str, int]:
        """
        Load every collection from storage.

        A key that was never saved loads as an empty collection. A key
        that cannot be read leaves that collection empty for the session;
        unreadable payloads are copied aside under `<key>_unreadable`
        before the next save can overwrite them.
        """
        if self._storage is None:
            return self.state.counts()

        for name, store in self.state.collections().items():
            key = self._keys[name]
            raw = None
            try:
                raw = self._storage.load(key)
                store.loads(raw)
            except StorageError as e:
                store.clear()
                self._report_storage_failure(str(e))
                if self._audit_logger:
                    self._audit_logger.log_load_failed(key, str(e))
                if isinstance(e, CorruptDataError) and raw is not None:
                    self._set_aside(key, raw)

        counts = self.state.counts()
        if self._audit_logger:
            self._audit_logger.log_ledger_loaded(counts)
        return counts

    def _set_aside(self, key: str, raw: str) -> None:
        try:
            self._storage.save(f"{key}_unreadable", raw)
        except StorageError as e:
            logger.error("unreadable_copy_failed", key=key, error=str(e))

    def _persist(self, *names: str) -> bool:
        """Save the named collections. Returns False if any save failed."""
        if self._storage is None:
            return True

        failed_keys = []
        errors = []
        for name in names:
            key = self._keys[name]
            store = self.state.collections()[name]
            try:
                self._storage.save(key, store.dumps())
            except StorageError as e:
                failed_keys.append(key)
                errors.append(str(e))

        if failed_keys:
            message = "; ".join(errors)
            if self._audit_logger:
                self._audit_logger.log_save_failed(failed_keys, message)
            self._report_storage_failure(message)
            return False

        self.last_persistence_error = None
        return True

    def _report_storage_failure(self, message: str) -> None:
        self.last_persistence_error = message
        warnings.warn(
            f"Ledger kept in memory but storage failed: {message}",
            PersistenceWarning,
            stacklevel=4,
        )

    def _rejected(self, operation: str, error: ValidationError) -> ValidationError:
        """Audit a rejected input and hand the error back for raising."""
        error.operation = error.operation or operation
        if self._audit_logger:
            self._audit_logger.log_validation_failed(
                operation,
                [issue.model_dump() for issue in error.issues],
            )
        return error

    # -------------------------------------------------------------------------
    # Products
    # -------------------------------------------------------------------------

    def add_product(self, draft: Union[ProductDraft, Mapping[str, Any]]) -> Product:
        """
        Add a product to the catalog.

        Accepts a ProductDraft or raw form input. A blank category
        becomes the default category.
        """
        if not isinstance(draft, ProductDraft):
            try:
                draft = parse_product_draft(draft)
            except ValidationError as e:
                raise self._rejected("add_product", e)

        product = Product(
            name=draft.name,
            category=draft.category or self._settings.default_category,
            cost=draft.cost,
            price=draft.price,
            stock=draft.stock,
        )
        self.state.products.insert(product)

        if self._audit_logger:
            self._audit_logger.log_product_added(product.id, product.name, product.stock)
        self._persist(PRODUCTS)
        return product

    def update_product(
        self,
        product_id: Union[UUID, str],
        changes: Union[ProductUpdate, Mapping[str, Any]],
    ) -> Product:
        """
        Edit catalog fields (name, category, cost, price).

        Stock cannot be edited here. Existing sales keep the values
        captured when they were recorded.
        """
        record_id = parse_record_id(product_id, "Product")
        product = self.state.products.require(record_id)

        if not isinstance(changes, ProductUpdate):
            changes = dict(changes)
            issues = []
            for field in ("cost", "price"):
                if changes.get(field) is None:
                    continue
                try:
                    changes[field] = parse_decimal(changes[field], field)
                except ValidationError as e:
                    issues.extend(e.issues)
            if issues:
                raise self._rejected("update_product", ValidationError(issues))

            try:
                changes = ProductUpdate(**changes)
            except PydanticValidationError as e:
                raise self._rejected(
                    "update_product",
                    ValidationError(issues_from_pydantic(e)),
                )

        fields = changes.changes()
        if "category" in fields and not fields["category"]:
            fields["category"] = self._settings.default_category
        if not fields:
            return product

        updated = self.state.products.update(record_id, fields)

        if self._audit_logger:
            self._audit_logger.log_product_updated(record_id, fields)
        self._persist(PRODUCTS)
        return updated

    def delete_product(self, product_id: Union[UUID, str]) -> Optional[Product]:
        """
        Remove a product from the catalog.

        The caller is responsible for asking the user first. Sales that
        reference the product are left untouched. Deleting an unknown
        product is a no-op and returns None.
        """
        try:
            record_id = parse_record_id(product_id, "Product")
        except NotFoundError:
            return None

        removed = self.state.products.delete(record_id)
        if removed is None:
            return None

        if self._audit_logger:
            self._audit_logger.log_product_deleted(removed.id, removed.name)
        self._persist(PRODUCTS)
        return removed

    # -------------------------------------------------------------------------
    # Sales
    # -------------------------------------------------------------------------

    def record_sale(
        self,
        product_id: Union[UUID, str],
        quantity: Any,
        payment_method: Union[PaymentMethod, str],
        customer_name: Optional[str] = None,
    ) -> SaleReceipt:
        """
        Record a sale of a catalog product.

        - total = price x quantity, profit = total - cost x quantity,
          both frozen on the Sale
        - stock drops by quantity, even below zero
        - an on-credit sale with a customer name also opens a pending
          debt for the total

        Raises:
            ValidationError: bad quantity, payment method or customer name
            NotFoundError: the product does not exist
        """
        issues = []
        try:
            qty = parse_quantity(quantity)
        except ValidationError as e:
            issues.extend(e.issues)
        try:
            method = parse_payment_method(payment_method)
        except ValidationError as e:
            issues.extend(e.issues)
        try:
            customer = parse_customer_name(customer_name)
        except ValidationError as e:
            issues.extend(e.issues)
        if issues:
            raise self._rejected("record_sale", ValidationError(issues))

        record_id = parse_record_id(product_id, "Product")
        product = self.state.products.require(record_id)

        # Build everything first
        now = self._now()
        total = product.price * qty
        profit = total - product.cost * qty
        sale = Sale(
            product_id=product.id,
            product_name=product.name,
            quantity=qty,
            total=total,
            profit=profit,
            payment_method=method,
            customer_name=customer,
            date=now,
        )
        restocked = product.model_copy(update={"stock": product.stock - qty})

        debt = None
        if method == PaymentMethod.DEBT:
            if customer:
                debt = Debt(
                    customer_name=customer,
                    amount=total,
                    description=self._settings.debt_sale_description.format(
                        quantity=qty,
                        product_name=product.name,
                    )[:500],
                    date=now,
                )
            else:
                logger.warning(
                    "debt_sale_without_customer",
                    sale_id=str(sale.id),
                    product=product.name,
                )

        # Then apply
        self.state.sales.insert(sale)
        self.state.products.update(product.id, restocked)
        if debt is not None:
            self.state.debts.insert(debt)

        if self._audit_logger:
            correlation_id = create_correlation_id()
            self._audit_logger.log_sale_recorded(
                sale_id=sale.id,
                product_name=sale.product_name,
                quantity=qty,
                total=str(total),
                payment_method=method.value,
                stock_after=restocked.stock,
                correlation_id=correlation_id,
            )
            if debt is not None:
                self._audit_logger.log_debt_created(
                    debt_id=debt.id,
                    customer_name=debt.customer_name,
                    amount=str(debt.amount),
                    correlation_id=correlation_id,
                )

        touched = [SALES, PRODUCTS] + ([DEBTS] if debt is not None else [])
        self._persist(*touched)

        return SaleReceipt(sale=sale, stock_after=restocked.stock, debt=debt)

    # -------------------------------------------------------------------------
    # Debts
    # -------------------------------------------------------------------------

    def add_debt(
        self,
        customer_name: Any,
        amount: Any,
        description: Optional[str] = None,
    ) -> Debt:
        """
        Record money a customer owes outside of a sale.

        The amount may arrive as text ("1500") and must be above zero.
        """
        try:
            request = parse_debt_request({
                "customer_name": customer_name,
                "amount": amount,
                "description": description,
            })
        except ValidationError as e:
            raise self._rejected("add_debt", e)

        debt = Debt(
            customer_name=request.customer_name,
            amount=request.amount,
            description=request.description or "",
            date=self._now(),
        )
        self.state.debts.insert(debt)

        if self._audit_logger:
            self._audit_logger.log_debt_created(
                debt_id=debt.id,
                customer_name=debt.customer_name,
                amount=str(debt.amount),
            )
        self._persist(DEBTS)
        return debt

    def settle_debt(self, debt_id: Union[UUID, str]) -> Debt:
        """
        Mark a debt as paid.

        Settling an already-paid debt changes nothing and is not an error.

        Raises:
            NotFoundError: the debt does not exist
        """
        record_id = parse_record_id(debt_id, "Debt")
        debt = self.state.debts.require(record_id)
        if debt.status == DebtStatus.PAID:
            return debt

        settled = self.state.debts.update(record_id, {"status": DebtStatus.PAID})

        if self._audit_logger:
            self._audit_logger.log_debt_settled(
                settled.id, settled.customer_name, str(settled.amount)
            )
        self._persist(DEBTS)
        return settled
