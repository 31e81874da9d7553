"""Error taxonomy for the storefront backend.

Every error carries the HTTP status the API boundary answers with.
"""


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(StorefrontError):
    """Raised on malformed or empty input."""

    status_code = 400


class Unauthorized(StorefrontError):
    """Raised when no valid bearer credential is presented."""

    status_code = 401

    def __init__(self, message: str = "Not authorized, no valid token"):
        super().__init__(message)


class Forbidden(StorefrontError):
    """Raised when the requester does not own the target record."""

    status_code = 403


class NotFound(StorefrontError):
    """Raised when a record does not exist."""

    status_code = 404


class Conflict(StorefrontError):
    """Raised when a record is locked or was changed concurrently. Retryable."""

    status_code = 409

    def __init__(self, resource: str):
        self.resource = resource
        super().__init__(f"{resource} is being modified by another request, retry")


class InvalidSignature(StorefrontError):
    """Raised when a payment callback signature does not verify."""

    status_code = 400

    def __init__(self, message: str = "Invalid Payment Signature"):
        super().__init__(message)


class AlreadyPaid(StorefrontError):
    status_code = 400

    def __init__(self, message: str = "Checkout is already paid"):
        super().__init__(message)


class AlreadyFinalized(StorefrontError):
    status_code = 400

    def __init__(self, message: str = "Checkout already finalized"):
        super().__init__(message)


class NotPaid(StorefrontError):
    status_code = 400

    def __init__(self, message: str = "Checkout is not paid"):
        super().__init__(message)


class GatewayUnavailable(StorefrontError):
    """Raised when the payment processor cannot be reached or is not configured."""

    status_code = 502

    def __init__(self, message: str = "Payment gateway unavailable"):
        super().__init__(message)
