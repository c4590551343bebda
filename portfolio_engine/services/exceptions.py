# portfolio_engine/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO HTTP knowledge.
The host's API layer is responsible for mapping them to responses.

Missing prices and over-sells are NOT errors: they are expected steady-state
conditions, handled by the price fallback chain and by clamping, and surfaced
as flags/warnings on the summaries. Only structurally invalid input raises.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    │   ├── InvalidTransactionError
    │   └── InvalidPeriodError
    ├── NotFoundError
    │   └── AccountNotFoundError
    └── MarketDataError
        ├── ProviderUnavailableError
        ├── TickerNotFoundError
        └── RateLimitError
"""

from portfolio_engine.services.constants import VALID_PERIODS


# =============================================================================
# BASE EXCEPTION
# =============================================================================


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
    Raised when input is structurally invalid.

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class InvalidTransactionError(ValidationError):
    """
    Raised when a transaction cannot be replayed at all.

    Examples:
    - buy/sell without an asset identifier
    - buy/sell with zero or negative quantity
    - negative fee amount
    - deposit, withdrawal, interest or fee carrying an asset identifier

    Attributes:
        transaction_id: ID of the offending transaction
        reason: What is wrong with it
    """

    def __init__(self, transaction_id: str, reason: str, field: str | None = None) -> None:
        self.transaction_id = transaction_id
        self.reason = reason
        super().__init__(
            f"Invalid transaction '{transaction_id}': {reason}",
            field=field,
        )


class InvalidPeriodError(ValidationError):
    """
    Raised when an unknown period name is requested.

    Valid periods are: 1m, 3m, 1y, all
    """

    def __init__(self, period: str) -> None:
        self.period = period
        super().__init__(
            f"Invalid period: '{period}'. Valid options: {', '.join(VALID_PERIODS)}",
            field="period"
        )


# =============================================================================
# NOT FOUND ERRORS
# =============================================================================


class NotFoundError(ServiceError):
    """
    Base exception for resource not found errors.

    Attributes:
        resource_type: Type of resource (e.g., "Account")
        resource_id: Identifier of the resource
    """

    def __init__(
            self,
            message: str,
            resource_type: str | None = None,
            resource_id: str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message)


class AccountNotFoundError(NotFoundError):
    """
    Raised when the transaction source does not know an account.

    Attributes:
        account_id: ID of the account that was not found
    """

    def __init__(self, account_id: str) -> None:
        self.account_id = account_id
        super().__init__(
            f"Account {account_id} not found",
            resource_type="Account",
            resource_id=account_id,
        )


# =============================================================================
# MARKET DATA PROVIDER ERRORS
# =============================================================================


class MarketDataError(ServiceError):
    """
    Base exception for market data provider failures.

    These never reach the valuation engine: the caching price oracle turns
    them into "price unavailable".

    Attributes:
        provider: Name of the provider that failed
    """

    def __init__(self, message: str, provider: str | None = None) -> None:
        self.provider = provider
        super().__init__(message)


class ProviderUnavailableError(MarketDataError):
    """
    Raised when a market data provider is temporarily unavailable.

    Examples:
    - Network timeout
    - Server errors (500, 502, 503)

    This is a retryable error.
    """

    def __init__(self, provider: str, reason: str) -> None:
        message = f"Provider '{provider}' is unavailable: {reason}"
        super().__init__(message, provider=provider)
        self.reason = reason


class TickerNotFoundError(MarketDataError):
    """
    Raised when a provider does not know an asset.

    This is NOT a retryable error.
    """

    def __init__(self, asset_id: str, provider: str, symbol: str | None = None) -> None:
        message = f"Asset '{asset_id}' not found by {provider}"
        if symbol and symbol != asset_id:
            message += f" (symbol '{symbol}')"
        super().__init__(message, provider=provider)
        self.asset_id = asset_id
        self.symbol = symbol


class RateLimitError(MarketDataError):
    """
    Raised when the provider's rate limit has been exceeded.

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


__all__ = [
    # Base
    "ServiceError",
    # Validation
    "ValidationError",
    "InvalidTransactionError",
    "InvalidPeriodError",
    # Not Found
    "NotFoundError",
    "AccountNotFoundError",
    # Market Data
    "MarketDataError",
    "ProviderUnavailableError",
    "TickerNotFoundError",
    "RateLimitError",
]
