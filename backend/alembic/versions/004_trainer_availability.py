# backend/alembic/versions/004_trainer_availability.py
"""Trainer availability - per-day overrides of a trainer's schedule

Revision ID: 004_trainer_availability
Revises: 003_variant_resource_links
Create Date: 2025-02-17 00:00:00.000000

Trainers are available by default. A row with available = false marks a
day off; the lock listing leaves such trainers out of available_trainers.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "004_trainer_availability"
down_revision: Union[str, None] = "003_variant_resource_links"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create trainer_availability table."""
    op.create_table(
        "trainer_availability",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("trainer_id", sa.String(64), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.ForeignKeyConstraint(["trainer_id"], ["trainers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("trainer_id", "date", name="uq_trainer_availability_day"),
    )
    op.create_index("ix_trainer_availability_trainer_id", "trainer_availability", ["trainer_id"])
    op.create_index("ix_trainer_availability_date", "trainer_availability", ["date"])


def downgrade() -> None:
    """Drop trainer_availability table."""
    op.drop_index("ix_trainer_availability_date", table_name="trainer_availability")
    op.drop_index("ix_trainer_availability_trainer_id", table_name="trainer_availability")
    op.drop_table("trainer_availability")
