# backend/alembic/versions/003_variant_resource_links.py
"""Variant resource links - many trainers and units per variant

Revision ID: 003_variant_resource_links
Revises: 002_variant_resource_columns
Create Date: 2025-02-03 00:00:00.000000

Creates the variant_trainers and variant_mobile_units link tables and
backfills them from the inline columns added in 002. The inline columns stay
as the legacy representation; writers keep the first id mirrored there.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "003_variant_resource_links"
down_revision: Union[str, None] = "002_variant_resource_columns"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create variant link tables and copy the inline assignments."""
    print("Creating variant resource link tables...")

    op.create_table(
        "variant_trainers",
        sa.Column("variant_id", sa.String(26), nullable=False),
        sa.Column("trainer_id", sa.String(64), nullable=False),
        sa.ForeignKeyConstraint(["variant_id"], ["variants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["trainer_id"], ["trainers.id"]),
        sa.PrimaryKeyConstraint("variant_id", "trainer_id"),
    )
    op.create_index("ix_variant_trainers_trainer_id", "variant_trainers", ["trainer_id"])

    op.create_table(
        "variant_mobile_units",
        sa.Column("variant_id", sa.String(26), nullable=False),
        sa.Column("unit_id", sa.String(64), nullable=False),
        sa.ForeignKeyConstraint(["variant_id"], ["variants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["unit_id"], ["mobile_units.id"]),
        sa.PrimaryKeyConstraint("variant_id", "unit_id"),
    )
    op.create_index("ix_variant_mobile_units_unit_id", "variant_mobile_units", ["unit_id"])

    op.execute(
        "INSERT INTO variant_trainers (variant_id, trainer_id) "
        "SELECT id, trainer_id FROM variants WHERE trainer_id IS NOT NULL"
    )
    op.execute(
        "INSERT INTO variant_mobile_units (variant_id, unit_id) "
        "SELECT id, unit_id FROM variants WHERE unit_id IS NOT NULL"
    )

    print("Variant resource links created successfully!")


def downgrade() -> None:
    """Drop variant link tables; inline columns keep the first assignment."""
    op.drop_index("ix_variant_mobile_units_unit_id", table_name="variant_mobile_units")
    op.drop_table("variant_mobile_units")
    op.drop_index("ix_variant_trainers_trainer_id", table_name="variant_trainers")
    op.drop_table("variant_trainers")
