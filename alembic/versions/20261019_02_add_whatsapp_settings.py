"""Add per-user Evolution API settings

Revision ID: 20261019_02
Revises: 20261019_01
Create Date: 2026-10-19

Each user keeps their own Evolution API credentials:
- evolution_api_url: Base URL of the Evolution API server
- evolution_api_key: API key sent in the apikey header
- instance_name: Instance used in /message/sendText/{instance}
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "20261019_02"
down_revision = "20261019_01"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "whatsapp_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=False, unique=True),
        sa.Column("evolution_api_url", sa.String(length=255), nullable=True),
        sa.Column("evolution_api_key", sa.String(length=255), nullable=True),
        sa.Column("instance_name", sa.String(length=120), nullable=True),
        sa.Column("is_connected", sa.Boolean(), nullable=True, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_whatsapp_settings_user_id", "whatsapp_settings", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_whatsapp_settings_user_id", table_name="whatsapp_settings")
    op.drop_table("whatsapp_settings")
