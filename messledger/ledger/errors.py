"""
Ledger Errors

Only two things are errors inside the ledger:
1. Invalid input for a new record (the store is left unchanged)
2. An operation that does not exist in the current mode

Unknown ids and unknown category names are NOT errors.
Deletes and category operations on them are silent no-ops.
"""

from pydantic import ValidationError

from messledger.models.ledger import ValidationIssue


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class RecordValidationError(LedgerError):
    """
    A record could not be created from the given fields.

    Carries one ValidationIssue per failing field so the caller
    can show the user exactly what to fix.
    """

    def __init__(self, record_type: str, issues: list[ValidationIssue]):
        self.record_type = record_type
        self.issues = issues
        summary = "; ".join(f"{i.field}: {i.message}" for i in issues)
        super().__init__(f"Invalid {record_type}: {summary}")

    @classmethod
    def from_pydantic(
        cls,
        record_type: str,
        error: ValidationError,
    ) -> "RecordValidationError":
        issues = [
            ValidationIssue(
                field=".".join(str(part) for part in err["loc"]) or record_type,
                issue_type=err["type"],
                message=err["msg"],
            )
            for err in error.errors()
        ]
        return cls(record_type, issues)

    @classmethod
    def single(
        cls,
        record_type: str,
        field: str,
        issue_type: str,
        message: str,
    ) -> "RecordValidationError":
        return cls(
            record_type,
            [ValidationIssue(field=field, issue_type=issue_type, message=message)],
        )


class UnsupportedModeError(LedgerError):
    """The operation does not apply to the ledger's mode."""
    pass
