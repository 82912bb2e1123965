# backend/app/repositories/session_repository.py
"""
Session Repository for the training scheduler.

Loads sessions together with everything needed to resolve them into
bookings: assigned trainers and units, the room (for its site) and the deal
(for its declared site and pipeline). Cancelled sessions hold no resources
and are never returned by the booking queries.
"""

from datetime import datetime, timedelta
import logging
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, joinedload, selectinload

from ..core.enums import SessionStatus
from ..core.timezone_utils import ensure_utc
from ..models.resource import MobileUnit, Trainer
from ..models.session import TrainingSession
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

RESOURCE_HOLDING_STATUSES = (
    SessionStatus.DRAFT.value,
    SessionStatus.SCHEDULED.value,
    SessionStatus.SUSPENDED.value,
    SessionStatus.FINISHED.value,
)


def _to_db_datetime(value: datetime) -> datetime:
    return ensure_utc(value)


class SessionRepository(BaseRepository[TrainingSession]):
    """Repository for session bookings and their resource links."""

    def __init__(self, db: Session):
        super().__init__(db, TrainingSession)
        self.logger = logging.getLogger(__name__)

    def _with_relations(self, stmt):
        return stmt.options(
            joinedload(TrainingSession.deal),
            joinedload(TrainingSession.room),
            selectinload(TrainingSession.trainers),
            selectinload(TrainingSession.mobile_units),
        )

    def get_with_relations(self, session_id: str) -> Optional[TrainingSession]:
        stmt = self._with_relations(select(TrainingSession)).where(
            TrainingSession.id == session_id
        )
        rows = self._execute_scalars(stmt, "session")
        return rows[0] if rows else None

    def list_for_deal(
        self, deal_id: str, statuses: Optional[Sequence[str]] = None
    ) -> List[TrainingSession]:
        stmt = (
            self._with_relations(select(TrainingSession))
            .where(TrainingSession.deal_id == deal_id)
            .order_by(TrainingSession.start_at.is_(None), TrainingSession.start_at, TrainingSession.id)
        )
        if statuses:
            stmt = stmt.where(TrainingSession.status.in_(list(statuses)))
        return self._execute_scalars(stmt, "deal sessions")

    def _booking_query(
        self,
        start: datetime,
        end: datetime,
        margin: timedelta,
        exclude_session_id: Optional[str],
    ):
        """
        Sessions holding resources whose stored window may touch [start, end].

        ``margin`` widens the lower bound so single-instant sessions, which
        resolve to a minimum duration, are not missed.
        """
        stmt = self._with_relations(select(TrainingSession)).where(
            TrainingSession.status.in_(RESOURCE_HOLDING_STATUSES),
            or_(TrainingSession.start_at.is_not(None), TrainingSession.end_at.is_not(None)),
            func.coalesce(TrainingSession.start_at, TrainingSession.end_at)
            <= _to_db_datetime(end),
            func.coalesce(TrainingSession.end_at, TrainingSession.start_at)
            >= _to_db_datetime(start) - margin,
        )
        if exclude_session_id:
            stmt = stmt.where(TrainingSession.id != exclude_session_id)
        return stmt

    def find_for_resources(
        self,
        start: datetime,
        end: datetime,
        *,
        room_id: Optional[str] = None,
        trainer_ids: Iterable[str] = (),
        unit_ids: Iterable[str] = (),
        exclude_session_id: Optional[str] = None,
        margin: timedelta = timedelta(hours=1),
    ) -> List[TrainingSession]:
        """
        Sessions near the window that hold the room, any trainer or any unit.

        Returns an empty list when no resource is requested.
        """
        trainer_list = sorted(set(trainer_ids))
        unit_list = sorted(set(unit_ids))
        resource_filters = []
        if room_id:
            resource_filters.append(TrainingSession.room_id == room_id)
        if trainer_list:
            resource_filters.append(TrainingSession.trainers.any(Trainer.id.in_(trainer_list)))
        if unit_list:
            resource_filters.append(TrainingSession.mobile_units.any(MobileUnit.id.in_(unit_list)))
        if not resource_filters:
            return []

        stmt = self._booking_query(start, end, margin, exclude_session_id).where(
            or_(*resource_filters)
        )
        return self._execute_scalars(stmt, "sessions for conflict check")

    def find_in_range(
        self,
        start: datetime,
        end: datetime,
        *,
        exclude_session_id: Optional[str] = None,
        margin: timedelta = timedelta(hours=1),
    ) -> List[TrainingSession]:
        stmt = self._booking_query(start, end, margin, exclude_session_id)
        return self._execute_scalars(stmt, "sessions in range")

    def replace_trainers(self, session: TrainingSession, trainers: List[Trainer]) -> None:
        session.trainers = list(trainers)
        self.db.flush()

    def replace_units(self, session: TrainingSession, units: List[MobileUnit]) -> None:
        session.mobile_units = list(units)
        self.db.flush()
