"""
Ledger Exceptions

DESIGN DECISION: Every failure a caller can act on has its own type.
None of them is fatal; the user fixes the input or retries the action.

Storage exceptions live with the storage interface
(kimbila.services.storage.interface).
"""

from typing import Optional

from kimbila.models.ledger import ValidationIssue


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class ValidationError(LedgerError):
    """
    Input to an operation is malformed.

    Raised before any record is built, so nothing has been mutated.
    """

    def __init__(self, issues: list[ValidationIssue], operation: Optional[str] = None):
        self.issues = issues
        self.operation = operation
        summary = "; ".join(f"{i.field}: {i.message}" for i in issues) or "invalid input"
        super().__init__(summary)

    @classmethod
    def single(
        cls,
        field: str,
        issue_type: str,
        message: str,
        suggested_fix: Optional[str] = None,
    ) -> "ValidationError":
        return cls([ValidationIssue(
            field=field,
            issue_type=issue_type,
            message=message,
            suggested_fix=suggested_fix,
        )])


class NotFoundError(LedgerError):
    """Referenced id is not in the relevant collection."""

    def __init__(self, collection: str, record_id: object):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"{collection} not found: {record_id}")


class DuplicateIdError(LedgerError):
    """Attempted to insert a record whose id is already taken."""
    pass


class PersistenceWarning(UserWarning):
    """
    A save failed after the in-memory change was applied.

    The in-memory ledger stays authoritative for the rest of the session.
    """
    pass
