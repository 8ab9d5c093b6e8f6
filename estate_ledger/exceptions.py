"""Custom exception hierarchy for estate-ledger."""


class EstateLedgerError(Exception):
    """Base exception for all estate-ledger errors."""


class ValidationError(EstateLedgerError):
    """Raised when input is missing or malformed. No writes were attempted."""


class InvalidAmount(ValidationError):
    """Raised when a payment amount is negative or not a number."""


class InvalidTransitionError(ValidationError):
    """Raised when a property is not in a state that allows the transition."""


class PaymentCompletedError(ValidationError):
    """Raised when a payment is offered against a fully paid ledger."""


class MissingIdentityError(EstateLedgerError):
    """Raised when a reopen cannot resolve the buyer name to unwind."""


class PersistenceError(EstateLedgerError):
    """Raised when a record store call fails."""


class RecordNotFoundError(PersistenceError):
    """Raised when a keyed record does not exist in the store."""


class ConfigurationError(EstateLedgerError):
    """Raised when configuration is invalid or missing."""


class SinkError(EstateLedgerError):
    """Raised when an event sink operation fails."""
