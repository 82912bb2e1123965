"""
Session lifecycle rules.

DRAFT and SCHEDULED are derived from how complete a session's assignment is.
SUSPENDED, CANCELLED and FINISHED are set by people and survive automatic
recomputation.
"""

from __future__ import annotations

from typing import Iterable, Optional, Union

from app.core.enums import SessionStatus
from app.core.exceptions import InvalidStatusTransitionException
from app.domain.sites import fold_text, is_in_company

MANUAL_STATUSES = frozenset(
    {SessionStatus.SUSPENDED, SessionStatus.CANCELLED, SessionStatus.FINISHED}
)
DRAFT_REVERSIBLE_STATUSES = frozenset({SessionStatus.SUSPENDED, SessionStatus.CANCELLED})

StatusLike = Union[SessionStatus, str, None]


def coerce_status(value: StatusLike) -> Optional[SessionStatus]:
    if value is None:
        return None
    if isinstance(value, SessionStatus):
        return value
    try:
        return SessionStatus(str(value).strip().upper())
    except ValueError:
        return None


def is_manual_status(value: StatusLike) -> bool:
    return coerce_status(value) in MANUAL_STATUSES


def pipeline_in(pipeline: Optional[str], allowed: Iterable[str]) -> bool:
    key = fold_text(pipeline)
    if not key:
        return False
    return key in {fold_text(item) for item in allowed}


def compute_automatic_status(
    *,
    has_room: bool,
    has_trainers: bool,
    has_units: bool,
    has_dates: bool,
    site_label: Optional[str] = None,
    allow_without_room: bool = False,
    allow_without_dates: bool = False,
) -> SessionStatus:
    """Status implied by a session's current assignment."""
    requires_room = not allow_without_room and not is_in_company(site_label)
    if requires_room and not has_room:
        return SessionStatus.DRAFT
    if not has_trainers:
        return SessionStatus.DRAFT
    if not has_units:
        return SessionStatus.DRAFT
    if has_dates or allow_without_dates:
        return SessionStatus.SCHEDULED
    return SessionStatus.DRAFT


def keeps_undated_draft(current: StatusLike, start: object, end: object) -> bool:
    """A DRAFT without start and end stays DRAFT until someone dates it."""
    return coerce_status(current) == SessionStatus.DRAFT and start is None and end is None


def validate_status_change(
    current: StatusLike, requested: StatusLike, automatic: StatusLike
) -> SessionStatus:
    """
    Check that a caller may set ``requested``.

    Any session may go back to the status its assignment implies. Other
    changes follow the draft and scheduled rules below.

    Returns the requested status.

    Raises:
        InvalidStatusTransitionException: If the change is not allowed
    """
    current_status = coerce_status(current) or SessionStatus.DRAFT
    automatic_status = coerce_status(automatic) or SessionStatus.DRAFT
    requested_status = coerce_status(requested)

    def _reject(message: str) -> InvalidStatusTransitionException:
        return InvalidStatusTransitionException(
            message,
            current=current_status.value,
            requested=str(requested_status.value if requested_status else requested),
            automatic=automatic_status.value,
        )

    if requested_status is None:
        raise _reject("Unknown session status")
    if requested_status == current_status:
        return requested_status

    if current_status == SessionStatus.DRAFT and requested_status in DRAFT_REVERSIBLE_STATUSES:
        return requested_status
    if requested_status == SessionStatus.DRAFT and current_status in DRAFT_REVERSIBLE_STATUSES:
        return requested_status

    if requested_status not in MANUAL_STATUSES:
        if requested_status != automatic_status:
            raise _reject("Status is not editable")
        return requested_status

    if automatic_status != SessionStatus.SCHEDULED:
        raise _reject("Session must be scheduled to change its status")
    return requested_status


def resolve_status(
    current: StatusLike, requested: StatusLike, automatic: StatusLike
) -> SessionStatus:
    """
    Status to store after a mutation.

    Without an explicit request, manual statuses are kept and anything else
    follows the automatic status.
    """
    automatic_status = coerce_status(automatic) or SessionStatus.DRAFT
    if requested is None:
        current_status = coerce_status(current)
        if current_status in MANUAL_STATUSES:
            return current_status
        return automatic_status
    return validate_status_change(current, requested, automatic_status)
