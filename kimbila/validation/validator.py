"""
Input Validation Boundary

DESIGN DECISION: Everything the user types arrives as loosely typed form
input (text from a field, a number widget value, or nothing at all).
The functions here are the only place that input is turned into typed
values. They either return a validated value or raise ValidationError
listing every problem found, so the ledger never builds a record from
half-parsed data.

IMPORTANT: Validation NEVER silently fixes issues beyond trimming
whitespace and accepting a decimal comma. Anything else is reported.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from kimbila.errors import NotFoundError, ValidationError
from kimbila.models.ledger import (
    DebtRequest,
    PaymentMethod,
    ProductDraft,
    ValidationIssue,
)


_MISSING = object()

# Same bound as the name fields on Sale and Debt
MAX_NAME_LENGTH = 200


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _missing(field: str) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type="missing",
        message=f"{field.replace('_', ' ').capitalize()} is required",
    )


def parse_decimal(
    value: Any,
    field: str,
    *,
    positive: bool = False,
) -> Decimal:
    """
    Parse a money amount.

    Accepts Decimal, int, float and text ("500", "12.50", "12,50").
    Rejects blanks, booleans, NaN/infinity and negatives. With
    positive=True zero is rejected too.
    """
    if _is_blank(value):
        raise ValidationError([_missing(field)])

    if isinstance(value, bool):
        raise ValidationError.single(field, "invalid_format", "Must be a number")

    if isinstance(value, Decimal):
        amount = value
    else:
        text = str(value).strip() if not isinstance(value, float) else repr(value)
        if isinstance(value, str) and "," in text and "." not in text:
            text = text.replace(",", ".")
        try:
            amount = Decimal(text)
        except InvalidOperation:
            raise ValidationError.single(
                field,
                "invalid_format",
                f"'{value}' is not a number",
                suggested_fix="Use digits only, e.g. 1500 or 12.50",
            )

    if not amount.is_finite():
        raise ValidationError.single(field, "invalid_format", "Must be a finite number")

    if positive and amount <= 0:
        raise ValidationError.single(field, "out_of_range", "Must be greater than zero")
    if amount < 0:
        raise ValidationError.single(field, "out_of_range", "Cannot be negative")

    return amount


def parse_int(
    value: Any,
    field: str,
    *,
    minimum: Optional[int] = None,
) -> int:
    """Parse a whole number ("3", 3, 3.0). Fractions are rejected."""
    if _is_blank(value):
        raise ValidationError([_missing(field)])

    if isinstance(value, bool):
        raise ValidationError.single(field, "invalid_format", "Must be a whole number")

    if isinstance(value, int):
        number = value
    else:
        try:
            as_decimal = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError.single(
                field, "invalid_format", f"'{value}' is not a whole number"
            )
        if not as_decimal.is_finite() or as_decimal != as_decimal.to_integral_value():
            raise ValidationError.single(
                field, "invalid_format", f"'{value}' is not a whole number"
            )
        number = int(as_decimal)

    if minimum is not None and number < minimum:
        raise ValidationError.single(
            field, "out_of_range", f"Must be at least {minimum}"
        )

    return number


def parse_quantity(value: Any) -> int:
    """Sale quantity: a whole number, at least 1."""
    return parse_int(value, "quantity", minimum=1)


def parse_payment_method(value: Any) -> PaymentMethod:
    """Map 'cash' / 'DEBT' / PaymentMethod.TRANSFER to the enum."""
    if isinstance(value, PaymentMethod):
        return value
    if _is_blank(value):
        raise ValidationError([_missing("payment_method")])
    try:
        return PaymentMethod(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(m.value for m in PaymentMethod)
        raise ValidationError.single(
            "payment_method",
            "invalid_choice",
            f"Unknown payment method '{value}'",
            suggested_fix=f"Use one of: {allowed}",
        )


def parse_customer_name(value: Any) -> Optional[str]:
    """Optional free text; blank becomes None."""
    if _is_blank(value):
        return None
    name = str(value).strip()
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError.single(
            "customer_name",
            "out_of_range",
            f"Must be at most {MAX_NAME_LENGTH} characters",
            suggested_fix="Use a shorter name or a nickname",
        )
    return name


def parse_record_id(value: Any, collection: str) -> UUID:
    """
    Parse a record id.

    Text that is not an id cannot name an existing record, so it is
    reported as NotFoundError rather than a validation problem.
    """
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except (ValueError, AttributeError, TypeError):
        raise NotFoundError(collection, value)


def issues_from_pydantic(exc: PydanticValidationError) -> list[ValidationIssue]:
    """Translate a pydantic error into our issue list."""
    issues = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())) or "input"
        issues.append(ValidationIssue(
            field=field,
            issue_type=error.get("type", "invalid"),
            message=error.get("msg", "Invalid value"),
        ))
    return issues


def _collect(form: Mapping[str, Any], parsers: dict) -> tuple[dict, list[ValidationIssue]]:
    """Run every field parser and gather all issues, not just the first."""
    values = {}
    issues = []
    for field, parser in parsers.items():
        raw = form.get(field, _MISSING)
        if raw is _MISSING:
            raw = None
        try:
            values[field] = parser(raw)
        except ValidationError as e:
            issues.extend(e.issues)
    return values, issues


def parse_product_draft(form: Mapping[str, Any]) -> ProductDraft:
    """
    Build a ProductDraft from form input.

    Expected keys: name, category (optional), cost, price, stock.
    """
    def parse_name(raw: Any) -> str:
        if _is_blank(raw):
            raise ValidationError([_missing("name")])
        return str(raw).strip()

    values, issues = _collect(form, {
        "name": parse_name,
        "category": lambda raw: None if _is_blank(raw) else str(raw).strip(),
        "cost": lambda raw: parse_decimal(raw, "cost"),
        "price": lambda raw: parse_decimal(raw, "price"),
        "stock": lambda raw: parse_int(raw, "stock", minimum=0),
    })
    if issues:
        raise ValidationError(issues, operation="add_product")

    try:
        return ProductDraft(**values)
    except PydanticValidationError as e:
        raise ValidationError(issues_from_pydantic(e), operation="add_product")


def parse_debt_request(form: Mapping[str, Any]) -> DebtRequest:
    """
    Build a DebtRequest from form input.

    Expected keys: customer_name, amount, description (optional).
    """
    def parse_customer(raw: Any) -> str:
        name = parse_customer_name(raw)
        if name is None:
            raise ValidationError([_missing("customer_name")])
        return name

    values, issues = _collect(form, {
        "customer_name": parse_customer,
        "amount": lambda raw: parse_decimal(raw, "amount", positive=True),
        "description": lambda raw: None if _is_blank(raw) else str(raw).strip(),
    })
    if issues:
        raise ValidationError(issues, operation="add_debt")

    try:
        return DebtRequest(**values)
    except PydanticValidationError as e:
        raise ValidationError(issues_from_pydantic(e), operation="add_debt")


def summarize_issues(issues: list[ValidationIssue]) -> str:
    """
    Generate a user-friendly summary of validation issues.

    This is what the front end shows under a rejected form.
    """
    if not issues:
        return "✅ All checks passed."

    lines = ["❌ Please fix the following:"]
    for issue in issues:
        lines.append(f"   • {issue.field}: {issue.message}")
        if issue.suggested_fix:
            lines.append(f"     💡 {issue.suggested_fix}")
    return "\n".join(lines)
