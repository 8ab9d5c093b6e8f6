"""Payment application service."""

from estate_ledger.payments.service import PaymentApplicationService

__all__ = ["PaymentApplicationService"]
