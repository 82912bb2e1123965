# backend/alembic/versions/002_variant_resource_columns.py
"""Variant resource columns - single trainer/room/unit per variant

Revision ID: 002_variant_resource_columns
Revises: 001_scheduling_core
Create Date: 2025-01-20 00:00:00.000000

Adds the inline single-value resource columns to variants. The application
detects whether this revision has been applied and reads variants without
these columns until it has.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "002_variant_resource_columns"
down_revision: Union[str, None] = "001_scheduling_core"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Add trainer_id, room_id and unit_id to variants."""
    print("Adding variant resource columns...")

    with op.batch_alter_table("variants") as batch_op:
        batch_op.add_column(sa.Column("trainer_id", sa.String(64), nullable=True))
        batch_op.add_column(sa.Column("room_id", sa.String(64), nullable=True))
        batch_op.add_column(sa.Column("unit_id", sa.String(64), nullable=True))
        batch_op.create_foreign_key("fk_variants_trainer_id", "trainers", ["trainer_id"], ["id"])
        batch_op.create_foreign_key("fk_variants_room_id", "rooms", ["room_id"], ["id"])
        batch_op.create_foreign_key("fk_variants_unit_id", "mobile_units", ["unit_id"], ["id"])


def downgrade() -> None:
    """Remove the variant resource columns."""
    print("Removing variant resource columns...")

    with op.batch_alter_table("variants") as batch_op:
        batch_op.drop_constraint("fk_variants_unit_id", type_="foreignkey")
        batch_op.drop_constraint("fk_variants_room_id", type_="foreignkey")
        batch_op.drop_constraint("fk_variants_trainer_id", type_="foreignkey")
        batch_op.drop_column("unit_id")
        batch_op.drop_column("room_id")
        batch_op.drop_column("trainer_id")
