"""create kiosk_records

Revision ID: 0001_kiosk_records
Revises:
Create Date: 2026-10-17 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001_kiosk_records"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "kiosk_records",
        sa.Column("key", sa.String(length=100), nullable=False),
        sa.Column("value", sa.JSON(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("key", name=op.f("pk_kiosk_records")),
    )
    op.create_index(
        "ix_kiosk_records_expires_at", "kiosk_records", ["expires_at"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_kiosk_records_expires_at", table_name="kiosk_records")
    op.drop_table("kiosk_records")
