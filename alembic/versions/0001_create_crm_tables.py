"""create crm_countries, crm_agents, crm_settings and crm_leads

Revision ID: 0001_create_crm_tables
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_create_crm_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    op.create_table(
        "crm_countries",
        sa.Column("country_code", sa.String(length=2), primary_key=True),
        sa.Column("country_name", sa.String(length=100), nullable=False),
        sa.Column(
            "is_operational", sa.Boolean(), nullable=False, server_default="false"
        ),
        sa.Column("country_gdpr", sa.Boolean(), nullable=False, server_default="false"),
    )

    op.create_table(
        "crm_agents",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("title", sa.String(length=150)),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("deleted_at", sa.DateTime(timezone=True)),
        sa.CheckConstraint("status IN ('active', 'inactive')", name="ck_crm_agents_status"),
    )

    op.create_table(
        "crm_settings",
        sa.Column("setting_key", sa.String(length=100), primary_key=True),
        sa.Column("setting_value", postgresql.JSONB(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("description", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "crm_leads",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("lead_code", sa.String(length=50), nullable=False, unique=True),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("first_name", sa.String(length=100)),
        sa.Column("last_name", sa.String(length=100)),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=50)),
        sa.Column("company_name", sa.String(length=255)),
        sa.Column("fleet_size", sa.String(length=20)),
        sa.Column("country_code", sa.String(length=2)),
        sa.Column("city", sa.String(length=100)),
        sa.Column("website_url", sa.String(length=255)),
        sa.Column("current_software", sa.String(length=100)),
        sa.Column("message", sa.Text()),
        sa.Column("source", sa.String(length=50)),
        sa.Column("utm_source", sa.String(length=100)),
        sa.Column("utm_medium", sa.String(length=100)),
        sa.Column("utm_campaign", sa.String(length=100)),
        sa.Column(
            "metadata",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("status", sa.String(length=30), nullable=False, server_default="new"),
        sa.Column(
            "lead_stage", sa.String(length=30), nullable=False, server_default="top_of_funnel"
        ),
        sa.Column("priority", sa.String(length=20), nullable=False, server_default="medium"),
        sa.Column("fit_score", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "engagement_score",
            sa.Numeric(precision=5, scale=2),
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.Column(
            "qualification_score", sa.Integer(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column("scoring", postgresql.JSONB()),
        sa.Column(
            "assigned_to",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("crm_agents.id", name="fk_crm_leads_assigned_to"),
        ),
        sa.Column("gdpr_consent", sa.Boolean()),
        sa.Column("consent_ip", sa.String(length=45)),
        sa.Column("consent_at", sa.DateTime(timezone=True)),
        sa.Column("last_activity_at", sa.DateTime(timezone=True)),
        sa.Column("last_decayed_at", sa.DateTime(timezone=True)),
        sa.Column("created_by", postgresql.UUID(as_uuid=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("deleted_at", sa.DateTime(timezone=True)),
        sa.CheckConstraint("fit_score >= 0", name="ck_crm_leads_fit_nonneg"),
        sa.CheckConstraint("engagement_score >= 0", name="ck_crm_leads_engagement_nonneg"),
        sa.CheckConstraint(
            "lead_stage IN ('top_of_funnel', 'marketing_qualified', "
            "'sales_qualified', 'opportunity')",
            name="ck_crm_leads_stage",
        ),
        sa.CheckConstraint(
            "priority IN ('low', 'medium', 'high', 'urgent')",
            name="ck_crm_leads_priority",
        ),
    )
    op.create_index("ix_crm_leads_tenant_id", "crm_leads", ["tenant_id"])
    op.create_index("idx_crm_leads_last_activity", "crm_leads", ["last_activity_at"])
    op.create_index("idx_crm_leads_stage", "crm_leads", ["lead_stage"])


def downgrade() -> None:
    op.drop_index("idx_crm_leads_stage", table_name="crm_leads")
    op.drop_index("idx_crm_leads_last_activity", table_name="crm_leads")
    op.drop_index("ix_crm_leads_tenant_id", table_name="crm_leads")
    op.drop_table("crm_leads")
    op.drop_table("crm_settings")
    op.drop_table("crm_agents")
    op.drop_table("crm_countries")
