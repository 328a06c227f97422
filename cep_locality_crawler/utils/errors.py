"""
Custom exception classes and error handling utilities.
"""

from typing import Optional, Dict, Any
import traceback

import structlog


class LocalityCrawlerError(Exception):
    """Base exception for all locality crawler errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(LocalityCrawlerError):
    """Exception raised for configuration-related issues."""
    pass


class ValidationError(LocalityCrawlerError):
    """Exception raised when batch input fails validation."""
    pass


class InvalidRegionError(ValidationError):
    """Raised when a region code is not one of the known UFs."""

    def __init__(self, region: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"Invalid region code: {region!r}", {"region": region, **(details or {})})
        self.region = region


class TooManyTargetsError(ValidationError):
    """Raised when a batch asks for more regions than allowed."""

    def __init__(self, requested: int, limit: int):
        super().__init__(
            f"Too many regions requested: {requested} (limit {limit})",
            {"requested": requested, "limit": limit}
        )
        self.requested = requested
        self.limit = limit


class CrawlerError(LocalityCrawlerError):
    """Exception raised during crawling operations."""
    pass


class NavigationError(CrawlerError):
    """Raised when the search page cannot be loaded."""
    pass


class SelectorTimeoutError(CrawlerError):
    """Raised when an element does not reach the expected state in time."""
    pass


class ExtractionError(CrawlerError):
    """Raised when captured markup cannot be turned into locality records."""
    pass


class PaginationLimitExceededError(CrawlerError):
    """Raised when a region keeps reporting a next page past the page limit."""
    pass


class CrawlCancelledError(CrawlerError):
    """Raised inside a session whose batch was cancelled by someone else."""
    pass


class DeadlineExceededError(LocalityCrawlerError):
    """Raised when the shared batch deadline elapses."""
    pass


def handle_error(
    error: Exception,
    logger=None,
    context: Optional[Dict[str, Any]] = None,
    reraise: bool = True
) -> None:
    """
    Handle and log errors with context information.

    Args:
        error: The exception that occurred
        logger: Structured logger to use (defaults to a structlog logger)
        context: Additional context information
        reraise: Whether to reraise the exception after logging
    """
    error_context = {
        "error_type": type(error).__name__,
        "error_message": str(error),
        "traceback": traceback.format_exc(),
        **(context or {})
    }

    if isinstance(error, LocalityCrawlerError):
        error_context.update(error.details)

    logger = logger or structlog.get_logger("cep_locality_crawler.errors")
    logger.error("Error occurred", **error_context)

    if reraise:
        raise error
