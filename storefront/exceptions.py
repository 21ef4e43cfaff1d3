"""Application exception hierarchy.

Every error carries a stable machine-readable ``code`` and the HTTP ``status``
the API layer renders it with.
"""

from typing import Any

# Default user-facing messages
_DEFAULT_USER_MSG = "An unexpected error occurred"
_INSUFFICIENT_CREDITS_MSG = "Insufficient credits"
_PACKAGE_NOT_FOUND_MSG = "Package not found"
_PACKAGE_DISABLED_MSG = "Package is not available"
_STORE_DISABLED_MSG = "The resource store is currently under maintenance. Please check back later."
_INVALID_PRICE_MSG = "Package has invalid price"
_CREDIT_DEDUCTION_MSG = "Failed to deduct credits"
_RESOURCE_ADDITION_MSG = "Failed to add resources"
_INDIVIDUAL_DISABLED_MSG = "Individual resource purchases are disabled"
_RESOURCE_NOT_FOUND_MSG = "Resource not found or disabled"


class AppError(Exception):
    """Base exception for all application errors."""

    code: str = "INTERNAL_ERROR"
    status: int = 500

    def __init__(
        self,
        message: str = "Internal error",
        user_message: str = _DEFAULT_USER_MSG,
        *,
        code: str | None = None,
        status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.user_message = user_message
        if code is not None:
            self.code = code
        if status is not None:
            self.status = status

    def details(self) -> dict[str, Any]:
        """Extra machine-readable fields rendered next to the error code."""
        return {}


class InvalidRequestError(AppError):
    """Raised when a request payload is malformed (400)."""

    status = 400

    def __init__(self, user_message: str, code: str = "INVALID_REQUEST") -> None:
        super().__init__(message=user_message, user_message=user_message, code=code)


class PackageNotFoundError(AppError):
    """Raised when the requested package id does not exist."""

    code = "PACKAGE_NOT_FOUND"
    status = 404

    def __init__(
        self,
        message: str = "Package not found",
        user_message: str = _PACKAGE_NOT_FOUND_MSG,
    ) -> None:
        super().__init__(message=message, user_message=user_message)


class PackageDisabledError(AppError):
    """Raised when the package exists but is not enabled for sale."""

    code = "PACKAGE_DISABLED"
    status = 403

    def __init__(
        self,
        message: str = "Package is disabled",
        user_message: str = _PACKAGE_DISABLED_MSG,
    ) -> None:
        super().__init__(message=message, user_message=user_message)


class StoreDisabledError(AppError):
    """Raised when the store is switched off. user_message is the maintenance text."""

    code = "STORE_DISABLED"
    status = 503

    def __init__(
        self,
        message: str = "Store is disabled",
        user_message: str = _STORE_DISABLED_MSG,
    ) -> None:
        super().__init__(message=message, user_message=user_message)


class InvalidPackagePriceError(AppError):
    """Raised when an enabled package has a non-positive price."""

    code = "INVALID_PACKAGE_PRICE"
    status = 400

    def __init__(
        self,
        message: str = "Package price must be positive",
        user_message: str = _INVALID_PRICE_MSG,
    ) -> None:
        super().__init__(message=message, user_message=user_message)


class InsufficientCreditsError(AppError):
    """Raised when the ledger refuses a debit. Nothing was deducted."""

    code = "INSUFFICIENT_CREDITS"
    status = 403

    def __init__(
        self,
        required: int | None = None,
        available: int | None = None,
        message: str = "Insufficient credit balance",
    ) -> None:
        if required is not None and available is not None:
            user_message = f"Insufficient credits. Required: {required}, Available: {available}"
        else:
            user_message = _INSUFFICIENT_CREDITS_MSG
        super().__init__(message=message, user_message=user_message)
        self.required = required
        self.available = available

    def details(self) -> dict[str, Any]:
        return {"required": self.required, "available": self.available}


class CreditDeductionError(AppError):
    """Raised when the debit itself failed for a reason other than funds."""

    code = "CREDIT_DEDUCTION_FAILED"
    status = 500

    def __init__(
        self,
        message: str = "Credit deduction failed",
        user_message: str = _CREDIT_DEDUCTION_MSG,
    ) -> None:
        super().__init__(message=message, user_message=user_message)


class ResourceAdditionError(AppError):
    """Raised when granting resources failed after the debit.

    ``refunded`` tells whether the compensating refund went through.
    """

    code = "RESOURCE_ADDITION_FAILED"
    status = 500

    def __init__(
        self,
        message: str = "Resource grant failed",
        user_message: str = _RESOURCE_ADDITION_MSG,
        *,
        refunded: bool = True,
    ) -> None:
        super().__init__(message=message, user_message=user_message)
        self.refunded = refunded

    def details(self) -> dict[str, Any]:
        return {"credits_refunded": self.refunded}


class IndividualPurchasesDisabledError(AppError):
    """Raised when per-unit resource purchases are switched off."""

    code = "INDIVIDUAL_PURCHASES_DISABLED"
    status = 503

    def __init__(
        self,
        message: str = "Individual purchases disabled",
        user_message: str = _INDIVIDUAL_DISABLED_MSG,
    ) -> None:
        super().__init__(message=message, user_message=user_message)


class ResourceNotFoundError(AppError):
    """Raised when an individual resource is missing or disabled."""

    code = "RESOURCE_NOT_FOUND"
    status = 404

    def __init__(
        self,
        message: str = "Resource not found",
        user_message: str = _RESOURCE_NOT_FOUND_MSG,
    ) -> None:
        super().__init__(message=message, user_message=user_message)


class BelowMinimumError(AppError):
    """Raised when the requested amount is under the resource minimum."""

    code = "BELOW_MINIMUM"
    status = 400

    def __init__(self, minimum: int, unit: str) -> None:
        msg = f"Minimum purchase amount is {minimum} {unit}"
        super().__init__(message=msg, user_message=msg)
        self.minimum = minimum
        self.unit = unit


class AboveMaximumError(AppError):
    """Raised when the requested amount exceeds the resource maximum."""

    code = "ABOVE_MAXIMUM"
    status = 400

    def __init__(self, maximum: int, unit: str) -> None:
        msg = f"Maximum purchase amount is {maximum} {unit}"
        super().__init__(message=msg, user_message=msg)
        self.maximum = maximum
        self.unit = unit
