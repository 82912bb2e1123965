"""VariantService writes on the full and the legacy schema."""

from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import update

from app.core.capabilities import SchemaCapabilities
from app.core.enums import Capability
from app.core.exceptions import NotFoundException, ResourceUnavailableException
from app.models import Variant
from app.schemas.variant import VariantCreate, VariantUpdate
from app.services.variant_service import VariantService
from tests.helpers.time_helpers import madrid, utc


@pytest.fixture
def service(db, capabilities) -> VariantService:
    return VariantService(db, capabilities)


def test_create_variant_with_resources(build, service) -> None:
    product = build.product(default_start_time="10:00", default_end_time="14:00")
    room = build.room()
    trainers = [build.trainer("Ana"), build.trainer("Luis")]
    unit = build.unit()

    view = service.create_variant(
        VariantCreate(
            product_id=product.id,
            date=date(2025, 5, 10),
            site_label="GEP Arganda",
            room_id=room.id,
            trainer_ids=[t.id for t in trainers],
            unit_ids=[unit.id],
        )
    )

    assert view.name == product.name
    assert view.room_id == room.id
    assert view.trainer_ids == sorted(t.id for t in trainers)
    assert view.unit_ids == [unit.id]
    assert view.start_at == madrid(2025, 5, 10, 10)
    assert view.end_at == madrid(2025, 5, 10, 14)


def test_variant_without_product_times_uses_defaults(build, service) -> None:
    product = build.product()

    view = service.create_variant(VariantCreate(product_id=product.id, date=date(2025, 5, 10)))

    assert view.start_at == madrid(2025, 5, 10, 9)
    assert view.end_at == madrid(2025, 5, 10, 11)


def test_undated_variant_has_no_window(build, service) -> None:
    view = service.create_variant(VariantCreate(product_id=build.product().id))

    assert view.start_at is None
    assert view.end_at is None


def test_create_unknown_product(service) -> None:
    with pytest.raises(NotFoundException):
        service.create_variant(VariantCreate(product_id="missing", date=date(2025, 5, 10)))


def test_create_conflicting_with_session(build, service, db) -> None:
    trainer = build.trainer()
    build.session(build.deal(), madrid(2025, 5, 10, 10), madrid(2025, 5, 10, 12), trainers=[trainer])

    with pytest.raises(ResourceUnavailableException) as exc_info:
        service.create_variant(
            VariantCreate(
                product_id=build.product().id, date=date(2025, 5, 10), trainer_ids=[trainer.id]
            )
        )

    assert exc_info.value.details["booking_kind"] == "session"
    assert db.query(Variant).count() == 0


def test_update_changes_day_and_resources(build, service) -> None:
    product = build.product()
    first, second = build.trainer("Ana"), build.trainer("Luis")
    created = service.create_variant(
        VariantCreate(product_id=product.id, date=date(2025, 5, 10), trainer_ids=[first.id])
    )

    view = service.update_variant(
        created.id, VariantUpdate(date=date(2025, 5, 12), trainer_ids=[second.id])
    )

    assert view.date == date(2025, 5, 12)
    assert view.trainer_ids == [second.id]
    assert view.start_at == madrid(2025, 5, 12, 9)


def test_update_keeps_resources_when_absent(build, service) -> None:
    room = build.room()
    created = service.create_variant(
        VariantCreate(product_id=build.product().id, date=date(2025, 5, 10), room_id=room.id)
    )

    view = service.update_variant(created.id, VariantUpdate(name="Saturday edition"))

    assert view.name == "Saturday edition"
    assert view.room_id == room.id


def test_update_ignores_its_own_booking(build, service) -> None:
    unit = build.unit()
    created = service.create_variant(
        VariantCreate(product_id=build.product().id, date=date(2025, 5, 10), unit_ids=[unit.id])
    )

    view = service.update_variant(created.id, VariantUpdate(site_label="GEP Sabadell"))

    assert view.site_label == "GEP Sabadell"


def test_update_conflicting_with_another_variant(build, service) -> None:
    room = build.room()
    product = build.product()
    build.variant(product, date(2025, 5, 12), room=room)
    created = service.create_variant(
        VariantCreate(product_id=product.id, date=date(2025, 5, 10), room_id=room.id)
    )

    with pytest.raises(ResourceUnavailableException) as exc_info:
        service.update_variant(created.id, VariantUpdate(date=date(2025, 5, 12)))

    assert exc_info.value.details["booking_kind"] == "variant"
    assert service.get_variant(created.id).date == date(2025, 5, 10)


def test_resources_union_inline_columns_and_links(build, service, db) -> None:
    link_trainer, inline_trainer = build.trainer("Ana"), build.trainer("Luis")
    variant = build.variant(build.product(), date(2025, 5, 10), trainers=[link_trainer])
    db.execute(
        update(Variant.__table__)
        .where(Variant.__table__.c.id == variant.id)
        .values(trainer_id=inline_trainer.id)
    )
    db.commit()

    view = service.get_variant(variant.id)

    assert view.trainer_ids == sorted([link_trainer.id, inline_trainer.id])


def test_delete_variant(build, service) -> None:
    variant = build.variant(build.product(), date(2025, 5, 10), trainers=[build.trainer()])

    service.delete_variant(variant.id)

    with pytest.raises(NotFoundException):
        service.get_variant(variant.id)


def test_get_unknown_variant(service) -> None:
    with pytest.raises(NotFoundException):
        service.get_variant("missing")


# Legacy schema


def test_legacy_schema_degrades_instead_of_failing(legacy_build, legacy_db) -> None:
    capabilities = SchemaCapabilities()
    service = VariantService(legacy_db, capabilities)
    product = legacy_build.product()
    room = legacy_build.room()

    view = service.create_variant(
        VariantCreate(product_id=product.id, date=date(2025, 5, 10), room_id=room.id)
    )

    assert view.id
    assert view.room_id is None
    assert view.trainer_ids == []
    assert not capabilities.supports(Capability.VARIANT_RESOURCE_COLUMNS)
    assert not capabilities.supports(Capability.VARIANT_RESOURCE_LINKS)

    # Later calls take the reduced path directly
    assert service.update_variant(view.id, VariantUpdate(name="Renamed")).name == "Renamed"
    service.delete_variant(view.id)
    with pytest.raises(NotFoundException):
        service.get_variant(view.id)


def test_legacy_schema_still_checks_conflicts(legacy_build, legacy_db) -> None:
    capabilities = SchemaCapabilities()
    service = VariantService(legacy_db, capabilities)
    room = legacy_build.room()
    trainer = legacy_build.trainer()
    product = legacy_build.product()
    legacy_build.variant(product, date(2025, 5, 10))

    # Existing variants load without resources
    view = service.create_variant(
        VariantCreate(product_id=product.id, date=date(2025, 5, 10), trainer_ids=[trainer.id])
    )
    assert view.trainer_ids == []

    legacy_build.session(legacy_build.deal(), utc(2025, 5, 11, 7), utc(2025, 5, 11, 9), room=room)
    with pytest.raises(ResourceUnavailableException):
        service.create_variant(
            VariantCreate(product_id=product.id, date=date(2025, 5, 11), room_id=room.id)
        )
