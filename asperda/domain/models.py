from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class DpcRegion(Base):
    __tablename__ = "dpc_regions"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String)
    province: Mapped[str] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class Company(Base):
    __tablename__ = "companies"
    __table_args__ = (
        Index("ix_companies_dpc_membership", "dpc_id", "membership_status"),
    )

    # Tenant root; every tenant-scoped row points back here.
    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String)
    owner_name: Mapped[str] = mapped_column(String)
    phone: Mapped[str] = mapped_column(String)
    address: Mapped[str] = mapped_column(String, default="")
    dpc_id: Mapped[str] = mapped_column(String, ForeignKey("dpc_regions.id"), index=True)
    logo_url: Mapped[str | None] = mapped_column(String, nullable=True)
    membership_status: Mapped[str] = mapped_column(String, default="pending", index=True)
    verification_status: Mapped[str] = mapped_column(String, default="unverified")
    kpi_response_time_minutes: Mapped[float | None] = mapped_column(Float, nullable=True)
    kpi_cancellation_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    kpi_order_success_ratio: Mapped[float | None] = mapped_column(Float, nullable=True)
    kpi_rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True)
    full_name: Mapped[str] = mapped_column(String)
    # Persist the role as a plain string for lookup speed and migration safety.
    role: Mapped[str] = mapped_column(String)
    company_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("companies.id"), nullable=True, index=True
    )
    password_hash: Mapped[str] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class AuthSession(Base):
    __tablename__ = "auth_sessions"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    profile_id: Mapped[str] = mapped_column(String, ForeignKey("profiles.id"), index=True)
    # Store only the token hash so a leaked table cannot be replayed.
    token_hash: Mapped[str] = mapped_column(String, unique=True, index=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class BlacklistReport(Base):
    __tablename__ = "blacklist_reports"
    __table_args__ = (
        Index("ix_blacklist_reports_status_created", "status", "created_at"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True)
    reported_by_company_id: Mapped[str] = mapped_column(String, ForeignKey("companies.id"), index=True)
    target_name: Mapped[str] = mapped_column(String)
    target_nik: Mapped[str] = mapped_column(String)
    target_phone: Mapped[str] = mapped_column(String, default="")
    reason: Mapped[str] = mapped_column(Text)
    evidence_url: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(String, default="pending")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class GlobalBlacklist(Base):
    __tablename__ = "global_blacklists"
    __table_args__ = (
        UniqueConstraint("source_report_id", name="uq_global_blacklists_source_report"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True)
    full_name: Mapped[str] = mapped_column(String, index=True)
    nik: Mapped[str] = mapped_column(String, index=True)
    phone: Mapped[str] = mapped_column(String, default="")
    reason: Mapped[str] = mapped_column(Text)
    evidence_url: Mapped[str | None] = mapped_column(String, nullable=True)
    reported_by_company_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("companies.id"), nullable=True
    )
    # Links the entry to the approved report; the unique constraint keeps approvals 1:1.
    source_report_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("blacklist_reports.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class FinanceRecord(Base):
    __tablename__ = "finance_records"
    __table_args__ = (
        Index("ix_finance_records_company_date", "company_id", "transaction_date"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True)
    company_id: Mapped[str] = mapped_column(String, ForeignKey("companies.id"))
    transaction_date: Mapped[date] = mapped_column(Date)
    type: Mapped[str] = mapped_column(String)
    category: Mapped[str] = mapped_column(String)
    # Whole rupiah amounts; IDR has no minor unit in practice.
    amount: Mapped[int] = mapped_column(BigInteger)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    proof_image_url: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(String, default="paid")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class HighSeason(Base):
    __tablename__ = "high_seasons"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    company_id: Mapped[str] = mapped_column(String, ForeignKey("companies.id"), index=True)
    name: Mapped[str] = mapped_column(String)
    start_date: Mapped[date] = mapped_column(Date)
    end_date: Mapped[date] = mapped_column(Date)
    # Flat rupiah surcharge added per rental day that falls inside the season.
    price_increase: Mapped[int] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class AppSettingsEntry(Base):
    __tablename__ = "app_settings"
    __table_args__ = (
        UniqueConstraint("company_id", "key", name="uq_app_settings_company_key"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True)
    company_id: Mapped[str] = mapped_column(String, ForeignKey("companies.id"), index=True)
    key: Mapped[str] = mapped_column(String)
    value_json: Mapped[Any] = mapped_column(JSON, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
