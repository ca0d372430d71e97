"""
Base exception classes for the storefront.

Every error raised on purpose by this package derives from StorefrontError
and carries the HTTP status it is reported with. The handlers registered in
main.py render them as {"error": message}.
"""

from typing import Optional


class StorefrontError(Exception):
    """
    Base exception for all storefront errors.

    Attributes:
        message: Human-readable error message
        status_code: HTTP status used when the error reaches a client
        details: Optional dict with additional context
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.__class__.__name__}('{self.message}', {details_str})"
        return f"{self.__class__.__name__}('{self.message}')"


class ConfigurationError(StorefrontError):
    """Missing or malformed deployment configuration."""

    status_code = 500


class WooCommerceError(StorefrontError):
    """Non-2xx or transport failure talking to the commerce backend."""

    status_code = 502


class IdentityProviderError(StorefrontError):
    """Failure reported by the identity provider."""

    status_code = 400


class CheckoutValidationError(StorefrontError):
    """Field-level checkout input error, reported inline."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, details={"field": field} if field else None)
        self.field = field


class InvalidTransitionError(StorefrontError):
    """Checkout step change not present in the transition table."""

    status_code = 409
