from django.core.exceptions import ValidationError


class LedgerError(Exception):
    """Base for every failure the ledger core reports to its callers.

    ``kind`` is the stable discriminator callers branch on;
    the message is the operator-facing reason.
    """

    kind = "LedgerError"

    def __init__(self, message=""):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return self.message


class LedgerValidationError(LedgerError, ValidationError):
    """Missing required field, non-positive amount, bad reference."""

    kind = "ValidationError"

    def __str__(self):
        return self.message


class UnbalancedJournalError(LedgerError):
    """Raised when a JournalEntry fails double-entry balance check."""

    kind = "Unbalanced"


class PeriodClosedError(LedgerError):
    kind = "PeriodClosed"


class ForeignAccountError(LedgerError):
    """A line points at an account owned by another company."""

    kind = "ForeignAccount"


class MissingAccountMappingError(LedgerError):
    kind = "MissingAccountMapping"


class NoRateCardError(LedgerError):
    """No rate card is effective on the requested date."""

    kind = "NoRateCard"


class NoPublishedRateError(LedgerError):
    """The effective rate card has no line for the depot / takeover center."""

    kind = "NoPublishedRate"


class InvalidStateTransition(LedgerError):
    kind = "InvalidStateTransition"


class PermissionDeniedError(LedgerError):
    kind = "PermissionDenied"


class AllocationMismatchError(LedgerError):
    """Settlement amount plus withholding differs from allocated total."""

    kind = "AllocationMismatch"


class NotFoundError(LedgerError):
    kind = "NotFound"
