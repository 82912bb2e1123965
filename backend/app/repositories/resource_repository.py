# backend/app/repositories/resource_repository.py
"""
Resource catalog repository.

Read access to trainers, rooms and mobile units, plus the per-day trainer
availability overrides.
"""

from datetime import date
import logging
from typing import Iterable, List, Set

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.resource import MobileUnit, Room, Trainer, TrainerAvailability
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ResourceRepository(BaseRepository[Trainer]):
    """
    Catalog of bookable resources.

    Trainers are the primary model; rooms and units share the same queries.
    """

    def __init__(self, db: Session):
        super().__init__(db, Trainer)
        self.logger = logging.getLogger(__name__)

    def list_trainers(self, active_only: bool = False) -> List[Trainer]:
        stmt = select(Trainer).order_by(Trainer.name)
        if active_only:
            stmt = stmt.where(Trainer.active.is_(True))
        return self._execute_scalars(stmt, "trainers")

    def list_rooms(self) -> List[Room]:
        return self._execute_scalars(select(Room).order_by(Room.name), "rooms")

    def list_units(self) -> List[MobileUnit]:
        return self._execute_scalars(select(MobileUnit).order_by(MobileUnit.name), "mobile units")

    def get_trainers(self, ids: Iterable[str]) -> List[Trainer]:
        return self.get_by_ids(ids)

    def get_rooms(self, ids: Iterable[str]) -> List[Room]:
        unique_ids = list(dict.fromkeys(i for i in ids if i))
        if not unique_ids:
            return []
        return self._execute_scalars(select(Room).where(Room.id.in_(unique_ids)), "rooms")

    def get_units(self, ids: Iterable[str]) -> List[MobileUnit]:
        unique_ids = list(dict.fromkeys(i for i in ids if i))
        if not unique_ids:
            return []
        return self._execute_scalars(
            select(MobileUnit).where(MobileUnit.id.in_(unique_ids)), "mobile units"
        )

    def get_unavailable_trainer_ids(self, days: Iterable[date]) -> Set[str]:
        """
        Trainers with an explicit ``available = False`` override on any of ``days``.
        """
        day_list = sorted(set(days))
        if not day_list:
            return set()
        try:
            stmt = select(TrainerAvailability.trainer_id).where(
                TrainerAvailability.date.in_(day_list),
                TrainerAvailability.available.is_(False),
            )
            return set(self.db.execute(stmt).scalars().all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading trainer availability overrides: {str(e)}")
            raise RepositoryException(f"Failed to load trainer availability: {str(e)}")
