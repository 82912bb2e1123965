# backend/alembic/versions/001_scheduling_core.py
"""Scheduling core - resources, deals, sessions and bare variants

Revision ID: 001_scheduling_core
Revises:
Create Date: 2025-01-13 00:00:00.000000

Creates the resource catalog (trainers, rooms, mobile units), deals with
their line items, catalog products, sessions with their trainer/unit link
tables, and the variants table without any resource assignment. Variant
resources arrive in 002 and 003, which deployments may apply later.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_scheduling_core"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create catalog, deal, session and variant tables."""
    print("Creating scheduling core tables...")

    op.create_table(
        "trainers",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("sites", sa.JSON(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "rooms",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("site", sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "mobile_units",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("sites", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "deals",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("pipeline", sa.String(255), nullable=True),
        sa.Column("site_label", sa.String(255), nullable=True),
        sa.Column("training_address", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "deal_products",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("deal_id", sa.String(64), nullable=False),
        sa.Column("code", sa.String(100), nullable=True),
        sa.Column("name", sa.String(255), nullable=True),
        sa.ForeignKeyConstraint(["deal_id"], ["deals.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_deal_products_deal_id", "deal_products", ["deal_id"])
    op.create_table(
        "products",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("code", sa.String(100), nullable=True),
        sa.Column("name", sa.String(255), nullable=True),
        # Times of day as entered upstream ("HH:MM", sometimes "HH:MM:SS")
        sa.Column("default_start_time", sa.String(16), nullable=True),
        sa.Column("default_end_time", sa.String(16), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "sessions",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("deal_id", sa.String(64), nullable=False),
        sa.Column("deal_product_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("room_id", sa.String(64), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="DRAFT"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["deal_id"], ["deals.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["deal_product_id"], ["deal_products.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["room_id"], ["rooms.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_sessions_deal_id", "sessions", ["deal_id"])
    op.create_index("ix_sessions_room_id", "sessions", ["room_id"])
    op.create_index("ix_sessions_status", "sessions", ["status"])
    # Conflict detection scans by window
    op.create_index("idx_sessions_window", "sessions", ["start_at", "end_at"])

    op.create_check_constraint(
        "ck_sessions_status",
        "sessions",
        "status IN ('DRAFT', 'SCHEDULED', 'SUSPENDED', 'CANCELLED', 'FINISHED')",
    )

    op.create_table(
        "session_trainers",
        sa.Column("session_id", sa.String(26), nullable=False),
        sa.Column("trainer_id", sa.String(64), nullable=False),
        sa.ForeignKeyConstraint(["session_id"], ["sessions.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["trainer_id"], ["trainers.id"]),
        sa.PrimaryKeyConstraint("session_id", "trainer_id"),
    )
    op.create_index("ix_session_trainers_trainer_id", "session_trainers", ["trainer_id"])
    op.create_table(
        "session_mobile_units",
        sa.Column("session_id", sa.String(26), nullable=False),
        sa.Column("unit_id", sa.String(64), nullable=False),
        sa.ForeignKeyConstraint(["session_id"], ["sessions.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["unit_id"], ["mobile_units.id"]),
        sa.PrimaryKeyConstraint("session_id", "unit_id"),
    )
    op.create_index("ix_session_mobile_units_unit_id", "session_mobile_units", ["unit_id"])

    # Variants start without resources; see 002 and 003
    op.create_table(
        "variants",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("product_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("date", sa.Date(), nullable=True),
        sa.Column("site_label", sa.String(255), nullable=True),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_variants_product_id", "variants", ["product_id"])
    op.create_index("ix_variants_date", "variants", ["date"])

    print("Scheduling core tables created successfully!")


def downgrade() -> None:
    """Drop scheduling core tables."""
    print("Dropping scheduling core tables...")

    op.drop_index("ix_variants_date", table_name="variants")
    op.drop_index("ix_variants_product_id", table_name="variants")
    op.drop_table("variants")

    op.drop_index("ix_session_mobile_units_unit_id", table_name="session_mobile_units")
    op.drop_table("session_mobile_units")
    op.drop_index("ix_session_trainers_trainer_id", table_name="session_trainers")
    op.drop_table("session_trainers")

    op.drop_constraint("ck_sessions_status", "sessions", type_="check")
    op.drop_index("idx_sessions_window", table_name="sessions")
    op.drop_index("ix_sessions_status", table_name="sessions")
    op.drop_index("ix_sessions_room_id", table_name="sessions")
    op.drop_index("ix_sessions_deal_id", table_name="sessions")
    op.drop_table("sessions")

    op.drop_table("products")
    op.drop_index("ix_deal_products_deal_id", table_name="deal_products")
    op.drop_table("deal_products")
    op.drop_table("deals")

    op.drop_table("mobile_units")
    op.drop_table("rooms")
    op.drop_table("trainers")

    print("Scheduling core tables dropped successfully!")
