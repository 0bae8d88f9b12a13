# backend/hourgym/services/base.py
"""
Base Service for HourGym

Every application service (availability, booking, reminders, Stripe) extends
BaseService for two things: a transaction scope that commits once per
booking change, and timing of public operations.
"""

from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import Any, Callable, Iterator, TypeVar, cast

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import ServiceException

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

SLOW_OPERATION_SECONDS = 1.0


class BaseService:
    """Holds the request's session and owns its commit/rollback."""

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Commit on clean exit, roll back on any error.

        ``IntegrityError`` passes through unchanged so the booking service can
        recognise the overlap constraint. Other SQLAlchemy errors surface as
        ``ServiceException``.
        """
        try:
            yield self.db
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            self.logger.error(f"Transaction failed: {str(e)}")
            raise ServiceException(f"Database operation failed: {str(e)}") from e
        except Exception:
            self.db.rollback()
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Time a service method and warn when it runs longer than a second.

        Usage:
            @BaseService.measure_operation("cancel_booking")
            def cancel_booking(self, ...):
                ...
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
                started = time.perf_counter()
                outcome = "failed"
                try:
                    result = func(self, *args, **kwargs)
                    outcome = "ok"
                    return result
                finally:
                    elapsed = time.perf_counter() - started
                    service_logger = getattr(self, "logger", logger)
                    if elapsed > SLOW_OPERATION_SECONDS:
                        service_logger.warning(
                            f"Slow operation: {operation_name} took {elapsed:.2f}s ({outcome})"
                        )
                    else:
                        service_logger.debug(f"{operation_name} {outcome} in {elapsed * 1000:.1f}ms")

            return cast(F, wrapper)

        return decorator
