from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
import logging
from typing import Iterable
from uuid import uuid4

from asperda.core.config import get_settings
from asperda.core.errors import NotFound, ValidationError
from asperda.domain.enums import Action, FinanceStatus, FinanceType, ResourceKind
from asperda.domain.models import FinanceRecord
from asperda.domain.state import CallerProfile
from asperda.persistence.store import RecordStore
from asperda.services.authz.policy import authorize
from asperda.services.storage import FileStorage, UploadedFile, upload_best_effort


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FinanceEntry:
    # Caller-supplied fields; company_id always comes from the caller's profile.
    transaction_date: date
    type: FinanceType
    category: str
    amount: int
    description: str | None = None
    status: FinanceStatus = FinanceStatus.PAID


@dataclass(frozen=True)
class FinanceSummary:
    total_income: int
    total_expense: int

    @property
    def balance(self) -> int:
        return self.total_income - self.total_expense


def month_bounds(month: int, year: int) -> tuple[date, date]:
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12", field="month")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


async def list_records(
    store: RecordStore,
    profile: CallerProfile,
    *,
    month: int | None = None,
    year: int | None = None,
) -> list[FinanceRecord]:
    scope = authorize(profile, ResourceKind.FINANCE_RECORDS, Action.READ)
    criteria = [scope.clause(FinanceRecord)]
    # The month filter applies only when both parts are given.
    if month is not None and year is not None:
        start, end = month_bounds(month, year)
        criteria.extend([FinanceRecord.transaction_date >= start, FinanceRecord.transaction_date <= end])
    return await store.select(
        FinanceRecord,
        *criteria,
        order_by=[FinanceRecord.transaction_date.desc(), FinanceRecord.id.desc()],
    )


def _validate_entry(entry: FinanceEntry) -> None:
    if entry.amount <= 0:
        raise ValidationError("amount must be positive", field="amount")
    if not entry.category.strip():
        raise ValidationError("category is required", field="category")


async def add_record(
    store: RecordStore,
    profile: CallerProfile,
    entry: FinanceEntry,
    *,
    proof: UploadedFile | None = None,
    storage: FileStorage | None = None,
) -> FinanceRecord:
    scope = authorize(profile, ResourceKind.FINANCE_RECORDS, Action.WRITE)
    _validate_entry(entry)
    proof_url = await upload_best_effort(storage, get_settings().finance_proof_bucket, proof)
    record = await store.insert(
        FinanceRecord(
            id=uuid4().hex,
            company_id=scope.value,
            transaction_date=entry.transaction_date,
            type=FinanceType(entry.type).value,
            category=entry.category.strip(),
            amount=int(entry.amount),
            description=entry.description,
            proof_image_url=proof_url,
            status=FinanceStatus(entry.status).value,
        )
    )
    logger.info(
        "finance_record_added record_id=%s company_id=%s type=%s has_proof=%s",
        record.id,
        scope.value,
        record.type,
        proof_url is not None,
    )
    return record


async def delete_record(store: RecordStore, profile: CallerProfile, record_id: str) -> None:
    scope = authorize(profile, ResourceKind.FINANCE_RECORDS, Action.WRITE)
    # Another tenant's record id deletes nothing and reads as missing.
    if await store.delete(FinanceRecord, record_id, where=[scope.clause(FinanceRecord)]) == 0:
        raise NotFound("Finance record not found", record_id=record_id)
    logger.info("finance_record_deleted record_id=%s company_id=%s", record_id, scope.value)


def summarize(records: Iterable[FinanceRecord]) -> FinanceSummary:
    income = 0
    expense = 0
    for record in records:
        if record.type == FinanceType.INCOME.value:
            income += record.amount
        elif record.type == FinanceType.EXPENSE.value:
            expense += record.amount
    return FinanceSummary(total_income=income, total_expense=expense)


async def get_summary(store: RecordStore, profile: CallerProfile) -> FinanceSummary:
    return summarize(await list_records(store, profile))
