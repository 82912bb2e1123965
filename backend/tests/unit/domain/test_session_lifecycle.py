"""Tests for automatic session status and manual overrides."""

import pytest

from app.core.enums import SessionStatus
from app.core.exceptions import InvalidStatusTransitionException
from app.domain.session_lifecycle import (
    compute_automatic_status,
    is_manual_status,
    keeps_undated_draft,
    pipeline_in,
    resolve_status,
    validate_status_change,
)

COMPLETE = dict(has_room=True, has_trainers=True, has_units=True, has_dates=True)


@pytest.mark.unit
class TestAutomaticStatus:
    def test_empty_session_is_draft(self) -> None:
        status = compute_automatic_status(
            has_room=False, has_trainers=False, has_units=False, has_dates=True
        )
        assert status == SessionStatus.DRAFT

    def test_complete_session_is_scheduled(self) -> None:
        assert compute_automatic_status(**COMPLETE, site_label="GEP Arganda") == SessionStatus.SCHEDULED

    @pytest.mark.parametrize("missing", ["has_room", "has_trainers", "has_units", "has_dates"])
    def test_any_missing_piece_keeps_draft(self, missing: str) -> None:
        flags = dict(COMPLETE, **{missing: False})
        assert compute_automatic_status(**flags) == SessionStatus.DRAFT

    @pytest.mark.parametrize(
        "site_label", ["In Company", "in company - unidad móvil", "  IN COMPANY  "]
    )
    def test_in_company_does_not_need_a_room(self, site_label: str) -> None:
        flags = dict(COMPLETE, has_room=False)
        assert compute_automatic_status(**flags, site_label=site_label) == SessionStatus.SCHEDULED

    def test_pipeline_exempt_from_room(self) -> None:
        flags = dict(COMPLETE, has_room=False)
        assert compute_automatic_status(**flags, allow_without_room=True) == SessionStatus.SCHEDULED

    def test_pipeline_allowed_without_dates(self) -> None:
        flags = dict(COMPLETE, has_dates=False)
        assert compute_automatic_status(**flags, allow_without_dates=True) == SessionStatus.SCHEDULED

    def test_pipeline_labels_are_folded(self) -> None:
        assert pipeline_in("Formación  Empresas", ["formacion empresas"])
        assert not pipeline_in("Formación Abierta", ["formacion empresas"])
        assert not pipeline_in(None, ["pci"])


@pytest.mark.unit
class TestManualStatus:
    def test_manual_statuses(self) -> None:
        assert is_manual_status("SUSPENDED")
        assert is_manual_status(SessionStatus.FINISHED)
        assert not is_manual_status("DRAFT")
        assert not is_manual_status(None)

    @pytest.mark.parametrize("requested", [SessionStatus.SUSPENDED, SessionStatus.CANCELLED])
    def test_draft_can_be_suspended_or_cancelled(self, requested) -> None:
        assert validate_status_change("DRAFT", requested, "DRAFT") == requested

    @pytest.mark.parametrize("current", ["SUSPENDED", "CANCELLED"])
    def test_back_to_draft(self, current: str) -> None:
        assert validate_status_change(current, "DRAFT", "SCHEDULED") == SessionStatus.DRAFT

    def test_finished_requires_scheduled(self) -> None:
        assert (
            validate_status_change("SCHEDULED", "FINISHED", "SCHEDULED") == SessionStatus.FINISHED
        )
        with pytest.raises(InvalidStatusTransitionException) as exc_info:
            validate_status_change("DRAFT", "FINISHED", "DRAFT")
        assert exc_info.value.details == {
            "current_status": "DRAFT",
            "requested_status": "FINISHED",
            "automatic_status": "DRAFT",
        }

    def test_scheduled_cannot_be_forced(self) -> None:
        with pytest.raises(InvalidStatusTransitionException):
            validate_status_change("DRAFT", "SCHEDULED", "DRAFT")

    def test_requesting_current_status_is_a_no_op(self) -> None:
        assert validate_status_change("FINISHED", "FINISHED", "DRAFT") == SessionStatus.FINISHED

    def test_unknown_status(self) -> None:
        with pytest.raises(InvalidStatusTransitionException):
            validate_status_change("DRAFT", "ARCHIVED", "DRAFT")

    def test_manual_status_can_return_to_automatic(self) -> None:
        assert (
            validate_status_change("FINISHED", "SCHEDULED", "SCHEDULED") == SessionStatus.SCHEDULED
        )
        assert validate_status_change("FINISHED", "DRAFT", "DRAFT") == SessionStatus.DRAFT

    def test_manual_status_cannot_jump_to_other_automatic(self) -> None:
        with pytest.raises(InvalidStatusTransitionException):
            validate_status_change("FINISHED", "SCHEDULED", "DRAFT")

    def test_manual_status_is_sticky(self) -> None:
        assert resolve_status("SUSPENDED", None, "SCHEDULED") == SessionStatus.SUSPENDED
        assert resolve_status("FINISHED", None, "DRAFT") == SessionStatus.FINISHED

    def test_automatic_status_follows_assignment(self) -> None:
        assert resolve_status("DRAFT", None, "SCHEDULED") == SessionStatus.SCHEDULED
        assert resolve_status("SCHEDULED", None, "DRAFT") == SessionStatus.DRAFT


@pytest.mark.unit
class TestUndatedDraft:
    def test_undated_draft_is_kept(self) -> None:
        assert keeps_undated_draft("DRAFT", None, None)

    @pytest.mark.parametrize(
        "status, start, end",
        [
            ("SCHEDULED", None, None),
            ("DRAFT", "2025-03-03T08:00:00Z", None),
            ("DRAFT", None, "2025-03-03T17:00:00Z"),
        ],
    )
    def test_other_sessions_are_recomputed(self, status, start, end) -> None:
        assert not keeps_undated_draft(status, start, end)
