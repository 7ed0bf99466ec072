"""
Exception hierarchy for the fee tracker.

  FeeTrackerError
  ├── ValidationError          rejected at the handler boundary, never retried
  │   ├── InvalidInputError
  │   ├── UnsupportedChainError
  │   └── UnsupportedPriceProviderError
  ├── PoolNotFoundError        cursor read for an unregistered pool
  ├── TransientProviderError   explorer / price provider failure, retried next cycle
  │   ├── ProviderTimeoutError
  │   ├── ProviderConnectionError
  │   ├── ProviderRateLimitError
  │   └── ProviderResponseError
  └── PersistenceError         ledger / cursor store failure, left to the queue's retry
"""


class FeeTrackerError(Exception):
    """Base exception for all fee tracker errors."""

    error_code: str = "unknown_error"

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(FeeTrackerError):
    error_code = "validation_error"


class InvalidInputError(ValidationError):
    """Empty address, non-positive chain id or negative block number."""

    error_code = "invalid_input"


class UnsupportedChainError(ValidationError):
    """No handler registered for a chain type, or chain id outside a handler's set."""

    error_code = "unsupported_chain"


class UnsupportedPriceProviderError(ValidationError):
    """No price client registered under the requested provider name."""

    error_code = "unsupported_price_provider"


class PoolNotFoundError(FeeTrackerError):
    error_code = "pool_not_found"


class TransientProviderError(FeeTrackerError):
    """Network failure, 5xx or timeout from the explorer or the price provider."""

    error_code = "provider_error"


class ProviderTimeoutError(TransientProviderError):
    error_code = "provider_timeout"


class ProviderConnectionError(TransientProviderError):
    error_code = "provider_connection_failed"


class ProviderRateLimitError(TransientProviderError):
    error_code = "provider_rate_limited"

    def __init__(self, message: str, retry_after: int = 60) -> None:
        super().__init__(message, details={"retry_after_seconds": retry_after})
        self.retry_after = retry_after


class ProviderResponseError(TransientProviderError):
    """Upstream answered, but with an error status or a body we cannot read."""

    error_code = "provider_bad_response"


class PersistenceError(FeeTrackerError):
    error_code = "persistence_error"
