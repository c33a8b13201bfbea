"""
Reporting Errors

Store failures inside a report surface as AggregationUnavailableError.
Bad input never raises: it degrades to defaults in the filter normalizer.
"""

import functools
import uuid
from typing import Any, Awaitable, Callable, TypeVar

import structlog
from sqlalchemy.exc import SQLAlchemyError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class ReportingError(Exception):
    """Base class for reporting pipeline errors"""


class AggregationUnavailableError(ReportingError):
    """A report could not be computed because the store failed."""

    def __init__(self, report: str, cause: Exception = None):
        self.report = report
        self.cause = cause
        super().__init__(f"Aggregation unavailable: {report}")


class ProductNotFoundError(ReportingError):
    """No product with the given identifier."""

    def __init__(self, product_id: uuid.UUID):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class PricingUpdateError(ReportingError):
    """The pricing transaction failed and was rolled back."""

    def __init__(self, product_id: uuid.UUID, cause: Exception = None):
        self.product_id = product_id
        self.cause = cause
        super().__init__(f"Pricing update failed for product {product_id}")


def report(name: str) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Mark an async function as a named report.

    SQLAlchemy errors raised while it runs are logged and re-raised as
    AggregationUnavailableError. There are no retries.
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await func(*args, **kwargs)
            except SQLAlchemyError as e:
                logger.error(
                    "Report query failed",
                    report=name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise AggregationUnavailableError(name, e) from e

        wrapper.report_name = name
        return wrapper

    return decorator
