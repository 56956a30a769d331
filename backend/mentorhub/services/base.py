# backend/mentorhub/services/base.py
"""
Base Service Pattern for the MentorHub availability service

Provides common functionality for all service classes including:
- Transaction management
- Logging
- Error handling
- Performance monitoring
"""

from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import Any, Callable, Iterator, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import PersistenceException, RepositoryException
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class BaseService:
    """
    Base class for all service layer components.

    Provides common patterns for:
    - Database session management
    - Logging
    - Transaction handling
    - Performance monitoring
    """

    def __init__(self, db: Session):
        """
        Initialize base service.

        Args:
            db: Database session
        """
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Context manager for database transactions.

        Everything inside the block commits together or not at all. Storage
        failures roll back and surface as ``PersistenceException`` so the
        caller can retry the whole request.

        Usage:
            with self.transaction():
                # Do multiple operations
                self.repository.save_weekly_patterns(...)
                # Note: commit is handled automatically
        """
        try:
            yield self.db
            self.db.commit()
            self.logger.debug("Transaction committed successfully")
        except (SQLAlchemyError, RepositoryException) as e:
            self.logger.error(f"Transaction failed: {str(e)}")
            self.db.rollback()
            raise PersistenceException(f"Database operation failed: {str(e)}") from e
        except Exception:
            self.db.rollback()
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Decorator to measure operation performance.

        Usage:
            @BaseService.measure_operation("upsert_block")
            def upsert_block(self, ...):
                # Method implementation

        Args:
            operation_name: Name of the operation for metrics

        Returns:
            Decorator function
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self, *args, **kwargs):
                start_time = time.time()
                success = False
                error_type = None

                try:
                    result = func(self, *args, **kwargs)
                    success = True
                    return result
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    elapsed = time.time() - start_time
                    # Only log if it's actually slow
                    if elapsed > settings.slow_operation_threshold_seconds:
                        if hasattr(self, "logger"):
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

