"""Input validation package."""

from kimbila.validation.validator import (
    issues_from_pydantic,
    parse_customer_name,
    parse_debt_request,
    parse_decimal,
    parse_int,
    parse_payment_method,
    parse_product_draft,
    parse_quantity,
    parse_record_id,
    summarize_issues,
)

__all__ = [
    "issues_from_pydantic",
    "parse_customer_name",
    "parse_debt_request",
    "parse_decimal",
    "parse_int",
    "parse_payment_method",
    "parse_product_draft",
    "parse_quantity",
    "parse_record_id",
    "summarize_issues",
]
