"""seed default crm_settings documents

Revision ID: 0002_seed_default_crm_settings
Revises: 0001_create_crm_tables
Create Date: 2026-10-19 09:30:00.000000

Inserts the scoring, assignment, priority and decay documents when their
key has no row yet.  Uses INSERT … ON CONFLICT DO NOTHING so the
migration is fully idempotent.

The values come from ``leadintake.core.default_settings``.  Do NOT edit
values here directly; update that module instead.
"""

from typing import Sequence, Union

import json

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0002_seed_default_crm_settings"
down_revision: Union[str, None] = "0001_create_crm_tables"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

from leadintake.core.default_settings import DEFAULT_CRM_SETTINGS  # noqa: E402


def upgrade() -> None:
    insert = sa.text(
        """
        INSERT INTO crm_settings (setting_key, setting_value)
        VALUES (:key, CAST(:value AS jsonb))
        ON CONFLICT (setting_key) DO NOTHING
        """
    )
    for key, value in DEFAULT_CRM_SETTINGS.items():
        op.execute(insert.bindparams(key=key, value=json.dumps(value)))


def downgrade() -> None:
    delete = sa.text("DELETE FROM crm_settings WHERE setting_key = :key")
    for key in DEFAULT_CRM_SETTINGS:
        op.execute(delete.bindparams(key=key))
