"""
Error handling utilities for account batch operations.

This module provides the exception taxonomy used across the aggregation
pipeline and the retry classification used by the RPC account reader.
"""

from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)


class BatchError(Exception):
    """Base exception for batch operations."""
    pass


class NetworkError(BatchError):
    """Raised when network-related errors occur."""
    pass


class TransportError(NetworkError):
    """Raised when a remote account read fails as a whole."""

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage


class RateLimitError(TransportError):
    """Raised when rate limit is hit."""

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class ValidationError(BatchError):
    """Raised when input validation fails."""
    pass


class InvalidSeedsError(BatchError):
    """Raised when seeds cannot form a program-derived address."""

    def __init__(self, message: str, side: Optional[str] = None):
        super().__init__(message)
        self.side = side


class AggregationError(BatchError):
    """
    Structured pipeline failure.

    Carries the stage that failed, the index of the pool in the caller's
    input and, for tick arrays and mints, the side (left/current/right or a/b).
    """

    def __init__(
        self,
        message: str,
        stage: str,
        pool_index: Optional[int] = None,
        side: Optional[str] = None,
        address: Optional[str] = None,
    ):
        super().__init__(message)
        self.stage = stage
        self.pool_index = pool_index
        self.side = side
        self.address = address

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": type(self).__name__,
            "message": str(self),
            "stage": self.stage,
            "pool_index": self.pool_index,
            "side": self.side,
            "address": self.address,
        }


class BatchSizeExceededError(AggregationError, ValidationError):
    """Raised when more pools are requested than one batch can carry."""

    def __init__(self, requested: int, limit: int):
        super().__init__(
            f"Too many pool addresses: {requested} requested, max {limit}",
            stage="pools",
        )
        self.requested = requested
        self.limit = limit


class MissingAccountError(AggregationError):
    """Raised when an address holds no account on the remote node."""
    pass


class DecodeError(AggregationError):
    """Raised when account bytes do not match the expected layout."""

    def __init__(self, message: str, stage: str = "decode", **kwargs):
        super().__init__(message, stage, **kwargs)


class ErrorHandler:
    """
    Centralized error handling for remote reads.

    Provides classification, logging, and retry decisions
    for the errors encountered while talking to the RPC node.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def classify_error(self, error: Exception) -> str:
        """
        Classify an error into a category for appropriate handling.

        Args:
            error: Exception to classify

        Returns:
            Error category string
        """
        if isinstance(error, RateLimitError):
            return 'rate_limit'
        if isinstance(error, ValidationError):
            return 'validation'

        error_str = str(error).lower()

        if any(keyword in error_str for keyword in ['rate limit', 'too many requests', '429']):
            return 'rate_limit'

        if any(keyword in error_str for keyword in ['connection', 'timeout', 'timed out', 'network', 'dns']):
            return 'network'

        if any(keyword in error_str for keyword in ['invalid', 'bad request', '400']):
            return 'validation'

        return 'unknown'

    def should_retry(self, error: Exception, attempt: int, max_retries: int) -> bool:
        """
        Determine if an error should trigger a retry.

        Args:
            error: Exception that occurred
            attempt: Current attempt number (0-based)
            max_retries: Maximum number of attempts allowed

        Returns:
            True if operation should be retried
        """
        if attempt + 1 >= max_retries:
            return False

        return self.classify_error(error) in ['network', 'rate_limit', 'unknown']

    def get_retry_delay(self, error: Exception, attempt: int, base_delay: float = 1.0) -> float:
        """
        Calculate appropriate retry delay based on error type and attempt.

        Args:
            error: Exception that occurred
            attempt: Current attempt number (0-based)
            base_delay: Delay of the first retry in seconds

        Returns:
            Delay in seconds before retry
        """
        retry_after = getattr(error, 'retry_after', None)
        if retry_after is not None:
            return float(retry_after)

        delay = min(base_delay * (2 ** attempt), 60)  # Cap at 60 seconds

        if self.classify_error(error) == 'rate_limit':
            return delay * 2

        return delay

    def log_error(self, error: Exception, context: Dict[str, Any]):
        """
        Log error with appropriate level and context.

        Args:
            error: Exception to log
            context: Additional context for logging
        """
        error_category = self.classify_error(error)

        log_data = {
            'error_type': type(error).__name__,
            'error_category': error_category,
            'error_message': str(error),
            **context
        }

        if error_category == 'rate_limit':
            self.logger.info("Rate limit encountered", extra=log_data)
        else:
            self.logger.warning("Account read error", extra=log_data)
