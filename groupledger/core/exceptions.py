"""Ledger error taxonomy."""


class LedgerError(Exception):
    """Base class for every error the ledger surfaces to its callers."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """Bad input: zero members, negative amount, unknown payee, ..."""

    status_code = 422


class AllocationMismatch(ValidationError):
    """Custom shares do not reconcile to the selected total."""

    def __init__(self, shares_total_cents: int, total_cents: int):
        super().__init__(
            f"Split total ({shares_total_cents}) must equal selected amount ({total_cents})"
        )
        self.shares_total_cents = shares_total_cents
        self.total_cents = total_cents


class NotFound(LedgerError):
    """Missing group, transaction, member or account."""

    status_code = 404


class NotAuthorized(LedgerError):
    status_code = 403


class StoreFailure(LedgerError):
    """The underlying persistence layer failed or timed out."""

    status_code = 503
