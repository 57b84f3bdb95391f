"""Typed failures raised by the storage, reporting and export layers.

Services raise these and never swallow them; ``main.py`` maps each one to an
HTTP response with a machine-readable ``code``.
"""


class ExpenseTrackerError(Exception):
    code = "ERROR"


class EmptyExportError(ExpenseTrackerError):
    """The selected scope has no transactions, so no report is produced."""

    code = "NOTHING_TO_EXPORT"

    def __init__(self, scope: str = "this scope") -> None:
        super().__init__(f"Nothing to export for {scope}")
        self.scope = scope


class StorageUnavailableError(ExpenseTrackerError):
    """The database cannot be reached or its schema has not been created."""

    code = "STORAGE_UNAVAILABLE"


class ValidationError(ExpenseTrackerError, ValueError):
    """A submission was rejected before anything was written."""

    code = "VALIDATION_ERROR"


class InsufficientBalanceError(ValidationError):
    def __init__(self, account: str, amount_cents: int, balance_cents: int) -> None:
        super().__init__(
            f"Amount {amount_cents} is higher than the {balance_cents} "
            f"available in {account}"
        )
        self.account = account
        self.amount_cents = amount_cents
        self.balance_cents = balance_cents


class ExportDeliveryError(ExpenseTrackerError):
    """The generated report could not be written or handed over."""

    code = "EXPORT_FAILED"
