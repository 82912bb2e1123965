# backend/tests/conftest.py
"""
Pytest configuration for the training scheduler.

Every test gets its own in-memory SQLite database with the full schema, a
fresh SchemaCapabilities instance and builders for the records a scenario
needs. The HTTP client overrides the database and capability dependencies so
routes and services share the test session.
"""

import os
import sys

# Set testing mode BEFORE any app imports
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite://")

# Add the backend directory to Python path so imports work
backend_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if backend_dir not in sys.path:
    sys.path.insert(0, backend_dir)

from datetime import date, datetime
from typing import Iterable, Optional

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.dependencies import get_capabilities, get_db
from app.core.capabilities import SchemaCapabilities
from app.core.enums import SessionStatus
from app.database import Base, enable_sqlite_savepoints
from app.main import app
from app.models import (
    Deal,
    DealProduct,
    MobileUnit,
    Product,
    Room,
    Trainer,
    TrainerAvailability,
    TrainingSession,
)
from app.repositories.variant_repository import VariantRepository

STAGED_VARIANT_TABLES = {"variants", "variant_trainers", "variant_mobile_units"}

# Variants as they exist before the staged resource migrations
LEGACY_VARIANTS_DDL = """
CREATE TABLE variants (
    id VARCHAR(26) NOT NULL PRIMARY KEY,
    product_id VARCHAR(64) NOT NULL REFERENCES products (id),
    name VARCHAR(255),
    date DATE,
    site_label VARCHAR(255)
)
"""


def _make_engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_savepoints(engine)
    return engine


@pytest.fixture
def engine():
    engine = _make_engine()
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def legacy_engine():
    """Schema without the variant resource columns and link tables."""
    engine = _make_engine()
    tables = [t for t in Base.metadata.sorted_tables if t.name not in STAGED_VARIANT_TABLES]
    Base.metadata.create_all(engine, tables=tables)
    with engine.begin() as conn:
        conn.exec_driver_sql(LEGACY_VARIANTS_DDL)
    yield engine
    engine.dispose()


def _open_session(bind) -> Session:
    return sessionmaker(bind=bind, autoflush=False, expire_on_commit=False, future=True)()


@pytest.fixture
def db(engine) -> Session:
    session = _open_session(engine)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def legacy_db(legacy_engine) -> Session:
    session = _open_session(legacy_engine)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def capabilities() -> SchemaCapabilities:
    return SchemaCapabilities()


# Builders


class Builders:
    """Create and commit catalog, deal and booking records."""

    def __init__(self, db: Session, capabilities: SchemaCapabilities):
        self.db = db
        self.capabilities = capabilities

    def _save(self, entity):
        self.db.add(entity)
        self.db.commit()
        return entity

    def trainer(
        self,
        name: str = "Trainer",
        sites: Iterable[str] = ("ARG",),
        active: bool = True,
        **kwargs,
    ) -> Trainer:
        return self._save(Trainer(name=name, sites=list(sites), active=active, **kwargs))

    def room(self, name: str = "Room", site: Optional[str] = "ARG", **kwargs) -> Room:
        return self._save(Room(name=name, site=site, **kwargs))

    def unit(self, name: str = "Unit", sites: Iterable[str] = ("ARG",), **kwargs) -> MobileUnit:
        return self._save(MobileUnit(name=name, sites=list(sites), **kwargs))

    def day_off(self, trainer: Trainer, day: date) -> TrainerAvailability:
        return self._save(TrainerAvailability(trainer_id=trainer.id, date=day, available=False))

    def deal(
        self,
        pipeline: Optional[str] = "Formación Abierta",
        site_label: Optional[str] = "GEP Arganda",
        training_address: Optional[str] = "C/ Primavera, 1, 28500, Arganda del Rey, Madrid",
        product_name: Optional[str] = "Fire extinguishing",
    ) -> Deal:
        deal = Deal(
            title="Deal",
            pipeline=pipeline,
            site_label=site_label,
            training_address=training_address,
        )
        deal.products.append(DealProduct(code="EXT-01", name=product_name))
        return self._save(deal)

    def product(
        self,
        name: str = "Forklift operator",
        default_start_time: Optional[str] = None,
        default_end_time: Optional[str] = None,
    ) -> Product:
        return self._save(
            Product(
                code="FORK",
                name=name,
                default_start_time=default_start_time,
                default_end_time=default_end_time,
            )
        )

    def session(
        self,
        deal: Deal,
        start_at: Optional[datetime] = None,
        end_at: Optional[datetime] = None,
        room: Optional[Room] = None,
        trainers: Iterable[Trainer] = (),
        units: Iterable[MobileUnit] = (),
        status: SessionStatus = SessionStatus.DRAFT,
    ) -> TrainingSession:
        session = TrainingSession(
            deal_id=deal.id,
            deal_product_id=deal.products[0].id,
            name="Session",
            start_at=start_at,
            end_at=end_at,
            room_id=room.id if room else None,
            status=status.value,
        )
        session.trainers = list(trainers)
        session.mobile_units = list(units)
        return self._save(session)

    def variant(
        self,
        product: Product,
        day: Optional[date],
        room: Optional[Room] = None,
        trainers: Iterable[Trainer] = (),
        units: Iterable[MobileUnit] = (),
        site_label: Optional[str] = None,
    ):
        repository = VariantRepository(self.db, self.capabilities)
        variant = repository.create_variant(
            product_id=product.id, name=product.name, day=day, site_label=site_label
        )
        repository.replace_resources(
            variant.id,
            room_id=room.id if room else None,
            trainer_ids=[t.id for t in trainers],
            unit_ids=[u.id for u in units],
        )
        self.db.commit()
        return variant


@pytest.fixture
def build(db, capabilities) -> Builders:
    return Builders(db, capabilities)


@pytest.fixture
def legacy_build(legacy_db, capabilities) -> Builders:
    return Builders(legacy_db, capabilities)


@pytest.fixture
def client(db, capabilities):
    """TestClient bound to the test session and capabilities."""

    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_capabilities] = lambda: capabilities
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
