# backend/app/services/session_service.py
"""
Session Service for the training scheduler.

Handles the write path of deal sessions:
1. Resolve the requested window (instants, or a day plus times of day)
2. Check that every referenced room, trainer and unit exists
3. Check that none of them is held by an overlapping booking
4. Recompute the lifecycle status, honouring manual overrides
5. Write the session row and its link rows in one transaction

Every check runs before the first write, so a failed request leaves no
partial state.
"""

from datetime import datetime
import logging
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from ..core.capabilities import SchemaCapabilities
from ..core.config import settings
from ..core.enums import SessionStatus
from ..core.exceptions import NotFoundException, ValidationException
from ..core.timezone_utils import ensure_utc
from ..domain.bookings import BookingCandidate
from ..domain.session_lifecycle import (
    coerce_status,
    compute_automatic_status,
    is_manual_status,
    keeps_undated_draft,
    pipeline_in,
    resolve_status,
)
from ..domain.time_window import normalize_stored_window, parse_time_of_day_input
from ..models.deal import Deal
from ..models.session import TrainingSession
from ..repositories import RepositoryFactory
from ..repositories.deal_repository import DealRepository
from ..repositories.session_repository import SessionRepository
from ..schemas.session import SessionCreate, SessionUpdate, SessionWindowFields
from .base import BaseService
from .conflict_checker import ConflictChecker
from .resource_catalog import ResourceCatalogService

logger = logging.getLogger(__name__)

DAY_FIELDS = {"date", "start_time", "end_time"}
INSTANT_FIELDS = {"start_at", "end_at"}


class SessionService(BaseService):
    """
    Service layer for deal sessions.

    Sessions own their lifecycle status; this service keeps it in sync with
    the assignment on every mutation.
    """

    def __init__(
        self,
        db: Session,
        capabilities: SchemaCapabilities,
        conflict_checker: Optional[ConflictChecker] = None,
        session_repository: Optional[SessionRepository] = None,
        deal_repository: Optional[DealRepository] = None,
        catalog: Optional[ResourceCatalogService] = None,
    ):
        """
        Initialize session service.

        Args:
            db: Database session
            capabilities: Shared schema capability flags
            conflict_checker: Optional ConflictChecker instance
            session_repository: Optional SessionRepository instance
            deal_repository: Optional DealRepository instance
            catalog: Optional ResourceCatalogService instance
        """
        super().__init__(db)
        self.catalog = catalog or ResourceCatalogService(db)
        self.session_repository = (
            session_repository or RepositoryFactory.create_session_repository(db)
        )
        self.deal_repository = deal_repository or RepositoryFactory.create_deal_repository(db)
        self.conflict_checker = conflict_checker or ConflictChecker(
            db,
            capabilities,
            session_repository=self.session_repository,
            catalog=self.catalog,
        )
        self.resolver = self.conflict_checker.resolver

    # Helpers

    def _resolve_window_input(
        self,
        data: SessionWindowFields,
        current_start: Optional[datetime],
        current_end: Optional[datetime],
    ) -> Tuple[Optional[datetime], Optional[datetime]]:
        fields = data.model_fields_set
        uses_day = bool(fields & DAY_FIELDS)
        uses_instants = bool(fields & INSTANT_FIELDS)
        if uses_day and uses_instants:
            raise ValidationException(
                "Send either start_at/end_at or date with times of day, not both"
            )

        if uses_day:
            start_time = parse_time_of_day_input(data.start_time, "start_time")
            end_time = parse_time_of_day_input(data.end_time, "end_time")
            if data.date is None:
                if start_time is not None or end_time is not None:
                    raise ValidationException(
                        "date is required when a time of day is sent", details={"field": "date"}
                    )
                return None, None
            window = self.resolver.resolve(data.date, start_time, end_time)
            return window.start, window.end

        start = data.start_at if "start_at" in fields else current_start
        end = data.end_at if "end_at" in fields else current_end
        start = ensure_utc(start) if start is not None else None
        end = ensure_utc(end) if end is not None else None
        if start is not None and end is not None and end < start:
            raise ValidationException(
                "end_at must not be before start_at",
                details={"start_at": start.isoformat(), "end_at": end.isoformat()},
            )
        return start, end

    @staticmethod
    def automatic_status(
        deal: Optional[Deal],
        start: Optional[datetime],
        end: Optional[datetime],
        room_id: Optional[str],
        trainer_ids: Sequence[str],
        unit_ids: Sequence[str],
    ) -> SessionStatus:
        pipeline = deal.pipeline if deal else None
        return compute_automatic_status(
            has_room=bool(room_id),
            has_trainers=bool(trainer_ids),
            has_units=bool(unit_ids),
            has_dates=start is not None and end is not None,
            site_label=deal.site_label if deal else None,
            allow_without_room=pipeline_in(pipeline, settings.pipelines_allow_scheduled_without_room),
            allow_without_dates=pipeline_in(
                pipeline, settings.pipelines_allow_scheduled_without_dates
            ),
        )

    def _ensure_available(
        self,
        start: Optional[datetime],
        end: Optional[datetime],
        room_id: Optional[str],
        trainer_ids: Sequence[str],
        unit_ids: Sequence[str],
        exclude_session_id: Optional[str] = None,
    ) -> None:
        window = normalize_stored_window(start, end)
        if window is None:
            return
        candidate = BookingCandidate.build(window, room_id, trainer_ids, unit_ids)
        self.conflict_checker.ensure_resources_available(
            candidate, exclude_session_id=exclude_session_id
        )

    def _require_deal(self, deal_id: str) -> Deal:
        deal = self.deal_repository.get_deal(deal_id)
        if not deal:
            raise NotFoundException("Deal not found", details={"deal_id": deal_id})
        return deal

    # Operations

    @BaseService.measure_operation("get_session")
    def get_session(self, session_id: str) -> TrainingSession:
        session = self.session_repository.get_with_relations(session_id)
        if not session:
            raise NotFoundException("Session not found", details={"session_id": session_id})
        return session

    @BaseService.measure_operation("list_sessions_for_deal")
    def list_sessions_for_deal(
        self, deal_id: str, status: Optional[SessionStatus] = None
    ) -> List[TrainingSession]:
        """
        Sessions of a deal with their status brought up to date.

        Automatic statuses can drift when the deal's pipeline or site changes
        upstream; they are recomputed and stored here.
        """
        self._require_deal(deal_id)
        sessions = self.session_repository.list_for_deal(deal_id)

        stale = []
        for session in sessions:
            if is_manual_status(session.status):
                continue
            if keeps_undated_draft(session.status, session.start_at, session.end_at):
                continue
            automatic = self.automatic_status(
                session.deal,
                session.start_at,
                session.end_at,
                session.room_id,
                session.trainer_ids,
                session.unit_ids,
            )
            if coerce_status(session.status) != automatic:
                stale.append((session, automatic))
        if stale:
            with self.transaction():
                for session, automatic in stale:
                    self.session_repository.update(session, status=automatic.value)

        if status is None:
            return sessions
        return [s for s in sessions if coerce_status(s.status) == status]

    @BaseService.measure_operation("create_session")
    def create_session(self, deal_id: str, data: SessionCreate) -> TrainingSession:
        """
        Create a session for a deal line item.

        Raises:
            NotFoundException: If the deal, line item or a resource does not exist
            ValidationException: If the window is malformed
            ResourceUnavailableException: If a resource is already booked
        """
        deal = self._require_deal(deal_id)
        product = self.deal_repository.get_deal_product(data.deal_product_id)
        if not product or product.deal_id != deal.id:
            raise NotFoundException(
                "Deal product not found",
                details={"deal_id": deal_id, "deal_product_id": data.deal_product_id},
            )

        start, end = self._resolve_window_input(data, None, None)
        resources = self.catalog.require_resources(data.room_id, data.trainer_ids, data.unit_ids)
        self._ensure_available(start, end, data.room_id, data.trainer_ids, data.unit_ids)

        automatic = self.automatic_status(
            deal, start, end, data.room_id, data.trainer_ids, data.unit_ids
        )
        status = SessionStatus.DRAFT if data.force_draft else automatic

        with self.transaction():
            session = self.session_repository.create(
                deal_id=deal.id,
                deal_product_id=product.id,
                name=data.name or product.display_name,
                start_at=start,
                end_at=end,
                room_id=data.room_id,
                address=data.address or deal.training_address,
                status=status.value,
            )
            self.session_repository.replace_trainers(session, resources.trainers)
            self.session_repository.replace_units(session, resources.units)

        self.logger.info(f"Created session {session.id} for deal {deal.id} with status {status.value}")
        return session

    @BaseService.measure_operation("update_session")
    def update_session(self, session_id: str, data: SessionUpdate) -> TrainingSession:
        """
        Apply a partial update.

        Fields absent from the request keep their stored value. Sessions in
        a manual status keep it unless a new status is requested; an explicit
        ``status: null`` returns them to the automatic status.

        Raises:
            NotFoundException: If the session or a resource does not exist
            ValidationException: If the window or the status change is invalid
            ResourceUnavailableException: If a resource is already booked
        """
        session = self.get_session(session_id)
        fields = data.model_fields_set

        start, end = self._resolve_window_input(data, session.start_at, session.end_at)
        room_changed = "room_id" in fields
        trainers_changed = "trainer_ids" in fields and data.trainer_ids is not None
        units_changed = "unit_ids" in fields and data.unit_ids is not None

        room_id = data.room_id if room_changed else session.room_id
        trainer_ids = list(data.trainer_ids) if trainers_changed else session.trainer_ids
        unit_ids = list(data.unit_ids) if units_changed else session.unit_ids

        resources = self.catalog.require_resources(
            room_id if room_changed else None,
            trainer_ids if trainers_changed else (),
            unit_ids if units_changed else (),
        )

        automatic = self.automatic_status(
            session.deal, start, end, room_id, trainer_ids, unit_ids
        )
        if "status" in fields and data.status is None:
            # Explicit null drops a manual status
            status = automatic
        else:
            requested = data.status if "status" in fields else None
            status = resolve_status(session.status, requested, automatic)

        if status != SessionStatus.CANCELLED:
            self._ensure_available(
                start, end, room_id, trainer_ids, unit_ids, exclude_session_id=session.id
            )

        updates = {"start_at": start, "end_at": end, "room_id": room_id, "status": status.value}
        if "name" in fields and data.name:
            updates["name"] = data.name
        if "address" in fields:
            updates["address"] = data.address

        previous = session.status
        with self.transaction():
            self.session_repository.update(session, **updates)
            if trainers_changed:
                self.session_repository.replace_trainers(session, resources.trainers)
            if units_changed:
                self.session_repository.replace_units(session, resources.units)

        if previous != status.value:
            self.logger.info(f"Session {session.id} status {previous} -> {status.value}")
        return session

    @BaseService.measure_operation("delete_session")
    def delete_session(self, session_id: str) -> None:
        """Delete a session and its trainer/unit links together."""
        session = self.get_session(session_id)
        with self.transaction():
            self.session_repository.delete(session)
        self.logger.info(f"Deleted session {session_id}")
