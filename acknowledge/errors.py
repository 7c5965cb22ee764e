"""Exception hierarchy for acknowledge."""

from __future__ import annotations


class AcknowledgeError(Exception):
    """Base class for all acknowledge errors."""


class ConfigurationError(AcknowledgeError):
    """Invalid or missing manifest, config file or command-line input."""


class CacheCorruptionError(AcknowledgeError):
    """A cache entry exists but cannot be decoded."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        super().__init__(f"corrupt cache entry {key!r}: {reason}")


class FetchError(AcknowledgeError):
    """Wraps provider-specific exceptions with context."""

    def __init__(
        self,
        provider: str,
        operation: str,
        cause: Exception | str,
        retryable: bool = False,
    ) -> None:
        self.provider = provider
        self.operation = operation
        self.retryable = retryable
        super().__init__(f"{provider} {operation} failed: {cause}")
        if isinstance(cause, Exception):
            self.__cause__ = cause


class TransientFetchError(FetchError):
    """Rate limit or network failure. Worth retrying after a delay."""

    def __init__(
        self,
        provider: str,
        operation: str,
        cause: Exception | str,
        *,
        rate_limited: bool = False,
        reset_at: float | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(provider, operation, cause, retryable=True)
        self.rate_limited = rate_limited
        self.reset_at = reset_at  # unix timestamp when the quota resets
        self.retry_after = retry_after  # seconds


class AuthFetchError(FetchError):
    """Token rejected by the provider. Every later request would fail too."""

    def __init__(self, provider: str, operation: str, cause: Exception | str) -> None:
        super().__init__(provider, operation, cause, retryable=False)
