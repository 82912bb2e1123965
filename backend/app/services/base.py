# backend/app/services/base.py
"""
Base class for the scheduler services.

Every service gets the request-scoped SQLAlchemy session, a logger named
after the class, a commit/rollback boundary and the ``measure_operation``
decorator feeding both the in-process timing table and Prometheus.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from functools import wraps
import logging
import time
from typing import Any, Callable, Dict, Iterator, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import ServiceException
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

SLOW_OPERATION_SECONDS = 1.0


@dataclass
class OperationTiming:
    count: int = 0
    failures: int = 0
    total_seconds: float = 0.0
    max_seconds: float = 0.0

    def add(self, elapsed: float, success: bool) -> None:
        self.count += 1
        self.total_seconds += elapsed
        self.max_seconds = max(self.max_seconds, elapsed)
        if not success:
            self.failures += 1


class BaseService:
    """Shared plumbing for services working on one database session."""

    # service class name -> operation -> timing
    _timings: Dict[str, Dict[str, OperationTiming]] = {}

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Commit the session when the block completes, roll back otherwise.

        SQLAlchemy failures surface as ``ServiceException``; domain exceptions
        raised inside the block propagate unchanged after the rollback.
        """
        try:
            yield self.db
            self.db.commit()
        except SQLAlchemyError as exc:
            self.logger.error("Transaction failed: %s", exc)
            self.db.rollback()
            raise ServiceException(f"Database operation failed: {exc}") from exc
        except Exception:
            self.db.rollback()
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Time a service method and record its outcome.

        Usage:
            @BaseService.measure_operation("create_session")
            def create_session(self, deal_id, data):
                ...
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self, *args, **kwargs):
                started = time.perf_counter()
                error_type = None
                try:
                    return func(self, *args, **kwargs)
                except Exception as exc:
                    error_type = type(exc).__name__
                    raise
                finally:
                    elapsed = time.perf_counter() - started
                    self._record_timing(operation_name, elapsed, error_type is None)
                    if elapsed > SLOW_OPERATION_SECONDS:
                        self.logger.warning(
                            "Slow operation detected: %s took %.2fs", operation_name, elapsed
                        )
                    prometheus_metrics.record_service_operation(
                        service=self.__class__.__name__,
                        operation=operation_name,
                        duration=elapsed,
                        status="success" if error_type is None else "error",
                        error_type=error_type,
                    )

            return cast(F, wrapper)

        return decorator

    def _record_timing(self, operation: str, elapsed: float, success: bool) -> None:
        timings = BaseService._timings.setdefault(self.__class__.__name__, {})
        timings.setdefault(operation, OperationTiming()).add(elapsed, success)

    def get_metrics(self) -> Dict[str, Dict[str, Any]]:
        """Per-operation call counts and timings recorded for this service class."""
        return {
            operation: {
                "count": timing.count,
                "avg_time": timing.total_seconds / timing.count,
                "max_time": timing.max_seconds,
                "success_count": timing.count - timing.failures,
                "failure_count": timing.failures,
            }
            for operation, timing in BaseService._timings.get(self.__class__.__name__, {}).items()
            if timing.count
        }
