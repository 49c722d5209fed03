# backend/wealth/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO HTTP knowledge.
The router layer maps them to HTTP responses (see main.py).

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    ├── NotFoundError
    │   ├── InstrumentNotFoundError
    │   └── TagNotFoundError
    ├── InvalidStateTransition
    └── ExternalLookupFailure
        ├── ProviderUnavailableError
        ├── RateLimitError
        └── IdentifierNotFoundError

Division-by-zero situations in returns and heatmap intensity are never
raised; calculators resolve them to 0 or the "no data" band.
"""


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when input fails a domain rule (non-positive amount, bad dates,
    unknown enum value). Raised before any state change.

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


# =============================================================================
# NOT FOUND ERRORS
# =============================================================================


class NotFoundError(ServiceError):
    """
    Base exception for resource not found errors.

    Attributes:
        resource_type: Type of resource (e.g., "FixedDeposit", "Tag")
        resource_id: Identifier of the resource
    """

    def __init__(
            self,
            message: str,
            resource_type: str | None = None,
            resource_id: int | str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message)


class InstrumentNotFoundError(NotFoundError):
    """Raised when an instrument id does not exist in its class."""

    def __init__(self, instrument_class: str, instrument_id: int) -> None:
        self.instrument_class = instrument_class
        self.instrument_id = instrument_id
        super().__init__(
            f"{instrument_class} {instrument_id} not found",
            resource_type=instrument_class,
            resource_id=instrument_id,
        )


class TagNotFoundError(NotFoundError):
    """Raised when a category or exclusion tag does not exist."""

    def __init__(self, tag_id: int, kind: str = "Tag") -> None:
        self.tag_id = tag_id
        super().__init__(
            f"{kind} {tag_id} not found",
            resource_type=kind,
            resource_id=tag_id,
        )


# =============================================================================
# LIFECYCLE ERRORS
# =============================================================================


class InvalidStateTransition(ServiceError):
    """
    Raised when a mutation is attempted from a state that does not allow it.

    The instrument is left unchanged.

    Attributes:
        instrument_class: Class of the instrument (e.g., "sip")
        state: Current lifecycle state
        action: The rejected action
        instrument_id: Instrument id, when known
    """

    def __init__(
            self,
            instrument_class: str,
            state: str,
            action: str,
            instrument_id: int | None = None,
    ) -> None:
        self.instrument_class = instrument_class
        self.state = state
        self.action = action
        self.instrument_id = instrument_id
        target = f"{instrument_class} {instrument_id}" if instrument_id is not None else instrument_class
        super().__init__(f"Cannot {action} {target} in state '{state}'")


# =============================================================================
# EXTERNAL PRICE / NAV LOOKUP ERRORS
# =============================================================================


class ExternalLookupFailure(ServiceError):
    """
    Base exception for price/NAV resolver failures.

    Non-fatal: bulk refreshes count these and move to the next instrument.

    Attributes:
        provider: Name of the resolver that failed
    """

    def __init__(self, message: str, provider: str | None = None) -> None:
        self.provider = provider
        super().__init__(message)


class ProviderUnavailableError(ExternalLookupFailure):
    """
    Raised when a resolver cannot be reached (timeout, connection error, 5xx).

    This is a retryable error.
    """

    def __init__(self, provider: str, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Provider '{provider}' is unavailable: {reason}", provider=provider)


class RateLimitError(ExternalLookupFailure):
    """
    Raised when the resolver's rate limit has been exceeded.

    This is a retryable error (with backoff).

    Attributes:
        retry_after: Seconds to wait before retrying (if provided by API)
    """

    def __init__(self, provider: str, retry_after: int | None = None) -> None:
        message = f"Rate limit exceeded for provider '{provider}'"
        if retry_after:
            message += f" (retry after {retry_after}s)"
        super().__init__(message, provider=provider)
        self.retry_after = retry_after


class IdentifierNotFoundError(ExternalLookupFailure):
    """
    Raised when the resolver does not recognise a scheme code or symbol.

    This is NOT a retryable error.
    """

    def __init__(self, identifier: str, provider: str) -> None:
        self.identifier = identifier
        super().__init__(f"'{identifier}' not found by {provider}", provider=provider)


__all__ = [
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "InstrumentNotFoundError",
    "TagNotFoundError",
    "InvalidStateTransition",
    "ExternalLookupFailure",
    "ProviderUnavailableError",
    "RateLimitError",
    "IdentifierNotFoundError",
]
