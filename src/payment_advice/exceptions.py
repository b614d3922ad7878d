"""Error taxonomy shared by the routers, the upstream client and the storage layer."""

from __future__ import annotations


class PaymentAdviceError(Exception):
    """Base exception for payment advice errors."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidRequestError(PaymentAdviceError):
    """Raised when required parameters are missing or malformed."""

    status_code = 400
    default_message = "Missing params"


class InvalidDurationError(InvalidRequestError):
    """Raised when a maintenance duration cannot be parsed."""

    default_message = "Invalid duration. Use 'indefinite' or a value like '30m' or '2h'"


class AuthorizationError(PaymentAdviceError):
    """Raised when the maintenance key is missing or wrong."""

    status_code = 403
    default_message = "Invalid key"


class DocumentNotFoundError(PaymentAdviceError):
    """Raised when the upstream has no decodable payment advice."""

    status_code = 404
    default_message = "Payment Advice Document not available"


class ArtifactNotFoundError(PaymentAdviceError):
    """Raised when a stored artifact expired or never existed."""

    status_code = 404
    default_message = "File not found or expired"


class UpstreamUnavailableError(PaymentAdviceError):
    """Raised when the upstream call fails or answers with an unusable shape."""

    status_code = 500
    default_message = "Internal server error"


class StorageError(PaymentAdviceError):
    """Raised when an artifact sink cannot be written to or read from."""

    status_code = 500
    default_message = "Internal server error"
