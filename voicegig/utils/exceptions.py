# voicegig/utils/exceptions.py
"""
Exception hierarchy shared by the wallet, payout and notification services.
Routes translate these into JSON error responses.
"""
from typing import Any, Dict, Optional

__all__ = [
    "VoiceGigError", "ValidationError", "LedgerError", "LedgerWriteError",
    "InsufficientFundsError", "PayoutInProgressError", "PayoutProviderError",
    "EmailDeliveryError",
]


class VoiceGigError(Exception):
    """Base exception for all VoiceGig backend errors."""

    status_code = 500

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(VoiceGigError):
    """Raised when request input is missing or malformed."""
    status_code = 400


class LedgerError(VoiceGigError):
    """Raised when the ledger cannot be read."""
    pass


class LedgerWriteError(LedgerError):
    """Raised when a ledger row could not be appended."""
    pass


class InsufficientFundsError(VoiceGigError):
    status_code = 400

    def __init__(self, available, requested):
        super().__init__("Insufficient funds", details=None)
        self.available = available
        self.requested = requested


class PayoutInProgressError(VoiceGigError):
    status_code = 409


class PayoutProviderError(VoiceGigError):
    """
    Raised when PayPal or Stripe rejects a payout or cannot be reached.
    status_code mirrors the provider's HTTP status where there is one.
    """
    status_code = 502


class EmailDeliveryError(VoiceGigError):
    pass
