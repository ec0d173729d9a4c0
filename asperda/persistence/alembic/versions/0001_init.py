"""init

Revision ID: 0001_init
Revises: 
Create Date: 2026-10-01 09:00:00.000000
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "dpc_regions",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("province", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "companies",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("owner_name", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=False),
        sa.Column("address", sa.String(), nullable=False, server_default=""),
        # Avoid index=True here because we create explicit indexes below.
        sa.Column("dpc_id", sa.String(), sa.ForeignKey("dpc_regions.id"), nullable=False),
        sa.Column("logo_url", sa.String(), nullable=True),
        sa.Column("membership_status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("verification_status", sa.String(), nullable=False, server_default="unverified"),
        sa.Column("kpi_response_time_minutes", sa.Float(), nullable=True),
        sa.Column("kpi_cancellation_rate", sa.Float(), nullable=True),
        sa.Column("kpi_order_success_ratio", sa.Float(), nullable=True),
        sa.Column("kpi_rating", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_companies_dpc_id", "companies", ["dpc_id"])
    op.create_index("ix_companies_membership_status", "companies", ["membership_status"])
    op.create_index("ix_companies_dpc_membership", "companies", ["dpc_id", "membership_status"])

    op.create_table(
        "profiles",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("full_name", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False),
        sa.Column("company_id", sa.String(), sa.ForeignKey("companies.id"), nullable=True),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_profiles_email", "profiles", ["email"], unique=True)
    op.create_index("ix_profiles_company_id", "profiles", ["company_id"])

    # Store hashed session tokens; raw tokens are only ever returned at login.
    op.create_table(
        "auth_sessions",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("profile_id", sa.String(), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("token_hash", sa.String(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_auth_sessions_token_hash", "auth_sessions", ["token_hash"], unique=True)
    op.create_index("ix_auth_sessions_profile_id", "auth_sessions", ["profile_id"])

    op.create_table(
        "blacklist_reports",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "reported_by_company_id", sa.String(), sa.ForeignKey("companies.id"), nullable=False
        ),
        sa.Column("target_name", sa.String(), nullable=False),
        sa.Column("target_nik", sa.String(), nullable=False),
        sa.Column("target_phone", sa.String(), nullable=False, server_default=""),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("evidence_url", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(
        "ix_blacklist_reports_reported_by_company_id", "blacklist_reports", ["reported_by_company_id"]
    )
    op.create_index("ix_blacklist_reports_status_created", "blacklist_reports", ["status", "created_at"])

    op.create_table(
        "global_blacklists",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("full_name", sa.String(), nullable=False),
        sa.Column("nik", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=False, server_default=""),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("evidence_url", sa.String(), nullable=True),
        sa.Column("reported_by_company_id", sa.String(), sa.ForeignKey("companies.id"), nullable=True),
        sa.Column("source_report_id", sa.String(), sa.ForeignKey("blacklist_reports.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        # One global entry per approved report; a second approval fails here.
        sa.UniqueConstraint("source_report_id", name="uq_global_blacklists_source_report"),
    )
    op.create_index("ix_global_blacklists_full_name", "global_blacklists", ["full_name"])
    op.create_index("ix_global_blacklists_nik", "global_blacklists", ["nik"])

    op.create_table(
        "finance_records",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("company_id", sa.String(), sa.ForeignKey("companies.id"), nullable=False),
        sa.Column("transaction_date", sa.Date(), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("proof_image_url", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="paid"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(
        "ix_finance_records_company_date", "finance_records", ["company_id", "transaction_date"]
    )

    op.create_table(
        "high_seasons",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("company_id", sa.String(), sa.ForeignKey("companies.id"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("price_increase", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_high_seasons_company_id", "high_seasons", ["company_id"])

    op.create_table(
        "app_settings",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("company_id", sa.String(), sa.ForeignKey("companies.id"), nullable=False),
        sa.Column("key", sa.String(), nullable=False),
        sa.Column("value_json", sa.JSON(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("company_id", "key", name="uq_app_settings_company_key"),
    )
    op.create_index("ix_app_settings_company_id", "app_settings", ["company_id"])


def downgrade() -> None:
    op.drop_index("ix_app_settings_company_id", table_name="app_settings")
    op.drop_table("app_settings")
    op.drop_index("ix_high_seasons_company_id", table_name="high_seasons")
    op.drop_table("high_seasons")
    op.drop_index("ix_finance_records_company_date", table_name="finance_records")
    op.drop_table("finance_records")
    op.drop_index("ix_global_blacklists_nik", table_name="global_blacklists")
    op.drop_index("ix_global_blacklists_full_name", table_name="global_blacklists")
    op.drop_table("global_blacklists")
    op.drop_index("ix_blacklist_reports_status_created", table_name="blacklist_reports")
    op.drop_index("ix_blacklist_reports_reported_by_company_id", table_name="blacklist_reports")
    op.drop_table("blacklist_reports")
    op.drop_index("ix_auth_sessions_profile_id", table_name="auth_sessions")
    op.drop_index("ix_auth_sessions_token_hash", table_name="auth_sessions")
    op.drop_table("auth_sessions")
    op.drop_index("ix_profiles_company_id", table_name="profiles")
    op.drop_index("ix_profiles_email", table_name="profiles")
    op.drop_table("profiles")
    op.drop_index("ix_companies_dpc_membership", table_name="companies")
    op.drop_index("ix_companies_membership_status", table_name="companies")
    op.drop_index("ix_companies_dpc_id", table_name="companies")
    op.drop_table("companies")
    op.drop_table("dpc_regions")
