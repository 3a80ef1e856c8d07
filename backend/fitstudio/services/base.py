# backend/fitstudio/services/base.py
"""
Base service for the studio booking core.

Provides common functionality for service classes:
- Transaction management
- Logging
- Performance monitoring
- Best-effort post-commit side effects
"""

from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import Any, Callable, Iterator, Optional, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException, ServiceException
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])
R = TypeVar("R")

SLOW_OPERATION_SECONDS = 1.0


class BaseService:
    """
    Base class for all service layer components.

    Services share the request's database session and own its transaction
    boundaries; repositories only flush.
    """

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Context manager for database transactions.

        Usage:
            with self.transaction():
                self.db.add(entity)
                # commit is handled automatically

        Any exception rolls the whole transaction back. Database errors are
        re-raised as ServiceException with a generic message so lock and
        SQL details never reach API clients; domain exceptions propagate
        unchanged.
        """
        try:
            yield self.db
            self.db.commit()
            self.logger.debug("Transaction committed successfully")
        except (SQLAlchemyError, RepositoryException) as e:
            self.logger.error(f"Transaction failed: {str(e)}")
            self.db.rollback()
            raise ServiceException("Database operation failed", code="DATABASE_ERROR") from e
        except Exception as e:
            self.logger.info(f"Transaction rolled back: {type(e).__name__}: {str(e)}")
            self.db.rollback()
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Decorator to measure operation performance.

        Usage:
            @BaseService.measure_operation("create_booking")
            def create_booking(self, data):
                ...
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self: "BaseService", *args: Any, **kwargs: Any) -> Any:
                start_time = time.perf_counter()
                success = False
                error_type: Optional[str] = None
                try:
                    result = func(self, *args, **kwargs)
                    success = True
                    return result
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    elapsed = time.perf_counter() - start_time
                    if elapsed > SLOW_OPERATION_SECONDS:
                        self.logger.warning(
                            f"Slow operation detected: {operation_name} took {elapsed:.2f}s"
                        )
                    prometheus_metrics.record_service_operation(
                        service=self.__class__.__name__,
                        operation=operation_name,
                        duration=elapsed,
                        status="success" if success else "error",
                        error_type=error_type,
                    )

            return cast(F, wrapper)

        return decorator

    def log_operation(self, operation: str, **context: Any) -> None:
        """
        Log an operation with context.

        Args:
            operation: Operation name
            **context: Additional context to log
        """
        self.logger.info(f"Operation: {operation}", extra={"operation": operation, **context})

    def run_side_effect(
        self, effect: str, func: Callable[[], R], **context: Any
    ) -> Optional[R]:
        """
        Run a post-commit side effect without letting it fail the caller.

        The primary operation has already committed, so a failure here is
        logged and counted, and the session is rolled back so it stays
        usable.
        """
        try:
            return func()
        except Exception as e:
            self.logger.error(
                f"Side effect {effect} failed: {str(e)}",
                extra={"effect": effect, "error_type": type(e).__name__, **context},
                exc_info=True,
            )
            prometheus_metrics.record_side_effect_failure(effect)
            self.db.rollback()
            return None
