# backend/app/repositories/base_repository.py
"""
Base repository for the scheduler tables.

Repositories flush but never commit; ``BaseService.transaction`` owns the
commit. Every SQLAlchemy failure is logged and re-raised as
``RepositoryException``.
"""

from contextlib import contextmanager
import logging
from typing import Any, Generic, Iterable, Iterator, List, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException

T = TypeVar("T")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[T]):
    """
    Data access for one mapped model keyed by an opaque string id.

    Attributes:
        db: SQLAlchemy session owned by the calling service
        model: Mapped class handled by this repository
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    @contextmanager
    def _wrap_errors(self, action: str) -> Iterator[None]:
        name = self.model.__name__
        try:
            yield
        except IntegrityError as exc:
            self.logger.error("Integrity error while trying to %s %s: %s", action, name, exc)
            raise RepositoryException(f"Integrity constraint violated: {exc}") from exc
        except SQLAlchemyError as exc:
            self.logger.error("Database error while trying to %s %s: %s", action, name, exc)
            raise RepositoryException(f"Failed to {action} {name}: {exc}") from exc

    def get_by_id(self, id: str) -> Optional[T]:
        with self._wrap_errors("load"):
            return self.db.get(self.model, id)

    def get_by_ids(self, ids: Iterable[str]) -> List[T]:
        """Entities whose id is in ``ids``; unknown and empty ids are ignored."""
        unique_ids = list(dict.fromkeys(i for i in ids if i))
        if not unique_ids:
            return []
        return self._execute_scalars(
            select(self.model).where(self.model.id.in_(unique_ids)), self.model.__name__
        )

    def create(self, **kwargs: Any) -> T:
        """Add a new entity and flush so defaults such as the id are populated."""
        with self._wrap_errors("create"):
            entity = self.model(**kwargs)
            self.db.add(entity)
            self.db.flush()
            return entity

    def update(self, entity: T, **kwargs: Any) -> T:
        """Apply the known attributes in ``kwargs`` to a loaded entity and flush."""
        with self._wrap_errors("update"):
            for key, value in kwargs.items():
                if hasattr(entity, key):
                    setattr(entity, key, value)
            self.db.flush()
            return entity

    def delete(self, entity: T) -> None:
        with self._wrap_errors("delete"):
            self.db.delete(entity)
            self.db.flush()

    def _execute_scalars(self, stmt: Any, what: str) -> List[Any]:
        """Run a select returning ORM entities."""
        try:
            return list(self.db.execute(stmt).scalars().all())
        except SQLAlchemyError as exc:
            self.logger.error("Query error loading %s: %s", what, exc)
            raise RepositoryException(f"Failed to load {what}: {exc}") from exc
