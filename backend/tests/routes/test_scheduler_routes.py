"""HTTP surface of the scheduler: status codes and the error envelope."""

from __future__ import annotations

from datetime import date

from fastapi.testclient import TestClient

from app.core.enums import SessionStatus
from tests.helpers.time_helpers import madrid, utc


def _create_payload(deal, **fields) -> dict:
    payload = {"deal_product_id": deal.products[0].id}
    payload.update(fields)
    return payload


# Deal sessions


def test_create_session_returns_201(client: TestClient, build) -> None:
    deal = build.deal()
    room, trainer, unit = build.room(), build.trainer(), build.unit()

    res = client.post(
        f"/api/v1/deals/{deal.id}/sessions",
        json=_create_payload(
            deal,
            start_at="2025-03-03T08:00:00Z",
            end_at="2025-03-03T17:00:00Z",
            room_id=room.id,
            trainer_ids=[trainer.id],
            unit_ids=[unit.id],
        ),
    )

    assert res.status_code == 201
    body = res.json()
    assert body["status"] == "SCHEDULED"
    assert body["deal_id"] == deal.id
    assert body["trainer_ids"] == [trainer.id]
    assert body["start_at"].startswith("2025-03-03T08:00:00")


def test_create_session_conflict_returns_409(client: TestClient, build) -> None:
    deal = build.deal()
    trainer = build.trainer()
    existing = build.session(deal, utc(2025, 4, 1, 10), utc(2025, 4, 1, 12), trainers=[trainer])

    res = client.post(
        f"/api/v1/deals/{deal.id}/sessions",
        json=_create_payload(
            deal,
            start_at="2025-04-01T09:00:00Z",
            end_at="2025-04-01T11:00:00Z",
            trainer_ids=[trainer.id],
        ),
    )

    assert res.status_code == 409
    body = res.json()
    assert body["code"] == "RESOURCE_UNAVAILABLE"
    assert body["message"]
    assert body["details"]["resource_id"] == trainer.id
    assert body["details"]["booking_id"] == existing.id


def test_create_session_invalid_time_returns_400(client: TestClient, build) -> None:
    deal = build.deal()

    res = client.post(
        f"/api/v1/deals/{deal.id}/sessions",
        json=_create_payload(deal, date="2025-03-04", start_time="9am"),
    )

    assert res.status_code == 400
    body = res.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["details"]["reason"] == "INVALID_TIME"


def test_unknown_body_field_returns_400(client: TestClient, build) -> None:
    deal = build.deal()

    res = client.post(
        f"/api/v1/deals/{deal.id}/sessions", json=_create_payload(deal, colour="red")
    )

    assert res.status_code == 400
    assert res.json()["code"] == "VALIDATION_ERROR"
    assert res.json()["details"]["errors"]


def test_unknown_deal_returns_404(client: TestClient) -> None:
    res = client.post("/api/v1/deals/missing/sessions", json={"deal_product_id": "x"})

    assert res.status_code == 404
    assert res.json() == {
        "code": "NOT_FOUND",
        "message": "Deal not found",
        "details": {"deal_id": "missing"},
    }


def test_list_deal_sessions(client: TestClient, build) -> None:
    deal = build.deal()
    build.session(deal, utc(2025, 3, 3, 8), utc(2025, 3, 3, 17))
    build.session(deal, status=SessionStatus.CANCELLED)

    res = client.get(f"/api/v1/deals/{deal.id}/sessions")
    assert res.status_code == 200
    assert res.json()["total"] == 2

    res = client.get(f"/api/v1/deals/{deal.id}/sessions", params={"status": "CANCELLED"})
    assert res.status_code == 200
    assert [s["status"] for s in res.json()["sessions"]] == ["CANCELLED"]


# Sessions


def test_get_and_patch_session(client: TestClient, build) -> None:
    session = build.session(build.deal(), utc(2025, 3, 3, 8), utc(2025, 3, 3, 17))

    res = client.get(f"/api/v1/sessions/{session.id}")
    assert res.status_code == 200
    assert res.json()["status"] == "DRAFT"

    res = client.patch(f"/api/v1/sessions/{session.id}", json={"status": "SUSPENDED"})
    assert res.status_code == 200
    assert res.json()["status"] == "SUSPENDED"


def test_patch_null_status_returns_to_automatic(client: TestClient, build) -> None:
    session = build.session(
        build.deal(), utc(2025, 3, 3, 8), utc(2025, 3, 3, 17), status=SessionStatus.SUSPENDED
    )

    res = client.patch(f"/api/v1/sessions/{session.id}", json={"status": None})

    assert res.status_code == 200
    assert res.json()["status"] == "DRAFT"


def test_patch_invalid_transition_returns_400(client: TestClient, build) -> None:
    session = build.session(build.deal(), utc(2025, 3, 3, 8), utc(2025, 3, 3, 17))

    res = client.patch(f"/api/v1/sessions/{session.id}", json={"status": "FINISHED"})

    assert res.status_code == 400
    body = res.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["details"]["requested_status"] == "FINISHED"


def test_delete_session(client: TestClient, build) -> None:
    session = build.session(build.deal())

    assert client.delete(f"/api/v1/sessions/{session.id}").status_code == 204
    assert client.get(f"/api/v1/sessions/{session.id}").status_code == 404


def test_booking_locks(client: TestClient, build) -> None:
    room = build.room()
    trainer = build.trainer()
    session = build.session(
        build.deal(), utc(2025, 4, 1, 10), utc(2025, 4, 1, 12), room=room, trainers=[trainer]
    )

    res = client.get(
        "/api/v1/sessions/availability",
        params={"start": "2025-04-01T11:00:00Z", "end": "2025-04-01T13:00:00Z"},
    )
    assert res.status_code == 200
    assert res.json() == {
        "trainers": [trainer.id],
        "rooms": [room.id],
        "units": [],
        "available_trainers": [trainer.id],
    }

    res = client.get(
        "/api/v1/sessions/availability",
        params={"start": "2025-04-01T11:00:00Z", "exclude_session_id": session.id},
    )
    assert res.json()["rooms"] == []


def test_booking_locks_require_start(client: TestClient) -> None:
    res = client.get("/api/v1/sessions/availability")

    assert res.status_code == 400
    assert res.json()["code"] == "VALIDATION_ERROR"


# Variants


def test_variant_lifecycle(client: TestClient, build) -> None:
    product = build.product()
    trainer = build.trainer()

    res = client.post(
        "/api/v1/variants",
        json={"product_id": product.id, "date": "2025-05-10", "trainer_ids": [trainer.id]},
    )
    assert res.status_code == 201
    variant = res.json()
    assert variant["trainer_ids"] == [trainer.id]
    assert variant["start_at"].startswith("2025-05-10T07:00:00")

    res = client.patch(f"/api/v1/variants/{variant['id']}", json={"date": "2025-05-11"})
    assert res.status_code == 200
    assert res.json()["date"] == "2025-05-11"

    assert client.delete(f"/api/v1/variants/{variant['id']}").status_code == 204
    assert client.get(f"/api/v1/variants/{variant['id']}").status_code == 404


def test_variant_conflict_returns_409(client: TestClient, build) -> None:
    room = build.room()
    product = build.product()
    build.variant(product, date(2025, 5, 10), room=room)

    res = client.post(
        "/api/v1/variants",
        json={"product_id": product.id, "date": "2025-05-10", "room_id": room.id},
    )

    assert res.status_code == 409
    assert res.json()["details"]["booking_kind"] == "variant"


# Calendar


def test_calendar_availability(client: TestClient, build) -> None:
    room = build.room(site="ARG")
    build.session(build.deal(), madrid(2025, 6, 2, 9), madrid(2025, 6, 2, 11), room=room)

    res = client.get("/api/v1/calendar/availability", params={"start": "2025-06-02", "end": "2025-06-03"})

    assert res.status_code == 200
    body = res.json()
    assert body["range"]["start"] == "2025-06-02T00:00:00+02:00"
    assert body["days"]["2025-06-02"]["ARG"]["rooms"] == {"total": 1, "booked": 1, "available": 0}
    assert body["days"]["2025-06-03"]["ARG"]["rooms"] == {"total": 1, "booked": 0, "available": 1}
    assert set(body["days"]["2025-06-02"]) == {"ARG", "SAB"}


def test_calendar_range_too_long(client: TestClient) -> None:
    res = client.get("/api/v1/calendar/availability", params={"start": "2025-01-01", "end": "2025-12-31"})

    assert res.status_code == 400
    assert res.json()["details"]["max_days"] == 120


# Health and metrics


def test_health(client: TestClient) -> None:
    res = client.get("/api/v1/health")

    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "healthy"
    assert body["database"] is True
    assert set(body["capabilities"]) == {"variant_resource_columns", "variant_resource_links"}


def test_prometheus_metrics(client: TestClient) -> None:
    client.get("/api/v1/health")

    res = client.get("/api/v1/metrics/prometheus")

    assert res.status_code == 200
    assert "scheduler" in res.text
