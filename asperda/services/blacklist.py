from __future__ import annotations

from dataclasses import dataclass
import logging
from uuid import uuid4

from sqlalchemy import and_, or_, select

from asperda.core.config import get_settings
from asperda.core.errors import (
    AlreadyProcessed,
    InvalidTransition,
    NotFound,
    PartialFailure,
    UpstreamFailure,
    ValidationError,
)
from asperda.domain.enums import Action, ReportStatus, ResourceKind, TERMINAL_REPORT_STATUSES
from asperda.domain.models import BlacklistReport, GlobalBlacklist
from asperda.domain.state import CallerProfile
from asperda.persistence.store import RecordStore
from asperda.services.authz.policy import authorize
from asperda.services.storage import FileStorage, UploadedFile, upload_best_effort


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportSnapshot:
    # Plain copy of a report so workflow steps never touch expired ORM state.
    id: str
    reported_by_company_id: str
    target_name: str
    target_nik: str
    target_phone: str
    reason: str
    evidence_url: str | None
    status: ReportStatus

    @classmethod
    def from_row(cls, row: BlacklistReport) -> "ReportSnapshot":
        return cls(
            id=row.id,
            reported_by_company_id=row.reported_by_company_id,
            target_name=row.target_name,
            target_nik=row.target_nik,
            target_phone=row.target_phone,
            reason=row.reason,
            evidence_url=row.evidence_url,
            status=ReportStatus(row.status),
        )


@dataclass(frozen=True)
class ApprovalOutcome:
    report_id: str
    global_entry_id: str
    status: ReportStatus = ReportStatus.APPROVED


async def list_pending_reports(store: RecordStore, profile: CallerProfile) -> list[BlacklistReport]:
    # DPC admins get no client-side narrowing; the database row policy scopes them.
    scope = authorize(profile, ResourceKind.BLACKLIST_REPORTS, Action.READ)
    try:
        return await store.select(
            BlacklistReport,
            BlacklistReport.status == ReportStatus.PENDING.value,
            scope.clause(BlacklistReport),
            order_by=[BlacklistReport.created_at.asc(), BlacklistReport.id.asc()],
        )
    except UpstreamFailure as exc:
        if exc.is_missing_table:
            # Deployments that never enabled reporting have no reports table yet.
            logger.warning("blacklist_reports_table_missing")
            return []
        raise


async def submit_report(
    store: RecordStore,
    profile: CallerProfile,
    *,
    target_name: str,
    target_nik: str,
    reason: str,
    target_phone: str = "",
    evidence: UploadedFile | None = None,
    storage: FileStorage | None = None,
) -> BlacklistReport:
    scope = authorize(profile, ResourceKind.BLACKLIST_REPORTS, Action.SUBMIT)
    if not target_name.strip():
        raise ValidationError("target_name is required", field="target_name")
    if not target_nik.strip():
        raise ValidationError("target_nik is required", field="target_nik")
    if not reason.strip():
        raise ValidationError("reason is required", field="reason")
    evidence_url = await upload_best_effort(storage, get_settings().report_evidence_bucket, evidence)
    report = await store.insert(
        BlacklistReport(
            id=uuid4().hex,
            reported_by_company_id=scope.value,
            target_name=target_name.strip(),
            target_nik=target_nik.strip(),
            target_phone=target_phone.strip(),
            reason=reason.strip(),
            evidence_url=evidence_url,
            status=ReportStatus.PENDING.value,
        )
    )
    logger.info("blacklist_report_submitted report_id=%s company_id=%s", report.id, scope.value)
    return report


async def search_global_blacklist(
    store: RecordStore,
    profile: CallerProfile,
    keyword: str | None = None,
) -> list[GlobalBlacklist]:
    # Case-insensitive match on name or NIK, newest entries first.
    scope = authorize(profile, ResourceKind.GLOBAL_BLACKLIST, Action.READ)
    criteria = [scope.clause(GlobalBlacklist)]
    term = (keyword or "").strip()
    if term:
        pattern = f"%{term}%"
        criteria.append(or_(GlobalBlacklist.full_name.ilike(pattern), GlobalBlacklist.nik.ilike(pattern)))
    return await store.select(
        GlobalBlacklist,
        *criteria,
        order_by=[GlobalBlacklist.created_at.desc(), GlobalBlacklist.id.desc()],
    )


class BlacklistApprovalWorkflow:
    """Moves a tenant report to a terminal state.

    Approval writes the global entry first and then flips the report to
    ``approved`` with a compare-and-set on ``status = 'pending'``. In atomic
    mode both writes share one transaction. Otherwise a failed second step
    raises ``PartialFailure``; the entry's ``source_report_id`` records the
    half-finished approval so ``reconcile`` can complete it later.
    """

    def __init__(self, store: RecordStore, *, atomic: bool | None = None) -> None:
        self._store = store
        self._atomic = get_settings().approval_atomic_writes if atomic is None else atomic

    @property
    def atomic(self) -> bool:
        return self._atomic

    async def _load_for_review(self, profile: CallerProfile, report_id: str) -> ReportSnapshot:
        scope = authorize(profile, ResourceKind.BLACKLIST_REPORTS, Action.WRITE)
        row = await self._store.get(BlacklistReport, report_id, scope.clause(BlacklistReport))
        if row is None:
            raise NotFound("Blacklist report not found", report_id=report_id)
        report = ReportSnapshot.from_row(row)
        if report.status in TERMINAL_REPORT_STATUSES:
            raise InvalidTransition(
                f"Report is already {report.status.value}",
                report_id=report.id,
                status=report.status.value,
            )
        return report

    async def _mark(self, report_id: str, status: ReportStatus) -> int:
        return await self._store.update(
            BlacklistReport,
            report_id,
            {"status": status.value},
            where=[BlacklistReport.status == ReportStatus.PENDING.value],
        )

    async def reject(self, profile: CallerProfile, report_id: str) -> ReportStatus:
        await self._load_for_review(profile, report_id)
        if await self._mark(report_id, ReportStatus.REJECTED) == 0:
            raise AlreadyProcessed(report_id=report_id)
        logger.info("blacklist_report_rejected report_id=%s reviewer_id=%s", report_id, profile.id)
        return ReportStatus.REJECTED

    async def approve(self, profile: CallerProfile, report_id: str) -> ApprovalOutcome:
        report = await self._load_for_review(profile, report_id)
        entry = GlobalBlacklist(
            id=uuid4().hex,
            full_name=report.target_name,
            nik=report.target_nik,
            phone=report.target_phone,
            reason=report.reason,
            evidence_url=report.evidence_url,
            reported_by_company_id=report.reported_by_company_id,
            source_report_id=report.id,
        )
        if self._atomic:
            outcome = await self._approve_atomic(report, entry)
        else:
            outcome = await self._approve_two_step(report, entry)
        logger.info(
            "blacklist_report_approved report_id=%s global_entry_id=%s reviewer_id=%s",
            outcome.report_id,
            outcome.global_entry_id,
            profile.id,
        )
        return outcome

    async def _insert_entry(self, report: ReportSnapshot, entry: GlobalBlacklist) -> str:
        entry_id = entry.id
        try:
            await self._store.insert(entry)
        except UpstreamFailure as exc:
            if exc.is_unique_violation:
                # Another reviewer already published this report.
                raise AlreadyProcessed(report_id=report.id) from exc
            raise
        return entry_id

    async def _approve_atomic(self, report: ReportSnapshot, entry: GlobalBlacklist) -> ApprovalOutcome:
        async with self._store.transaction():
            entry_id = await self._insert_entry(report, entry)
            if await self._mark(report.id, ReportStatus.APPROVED) == 0:
                raise AlreadyProcessed(report_id=report.id)
        return ApprovalOutcome(report_id=report.id, global_entry_id=entry_id)

    async def _approve_two_step(self, report: ReportSnapshot, entry: GlobalBlacklist) -> ApprovalOutcome:
        # Step 1 failing leaves both tables untouched.
        entry_id = await self._insert_entry(report, entry)
        try:
            updated = await self._mark(report.id, ReportStatus.APPROVED)
        except UpstreamFailure as exc:
            logger.error(
                "blacklist_approval_partial_failure report_id=%s global_entry_id=%s",
                report.id,
                entry_id,
                exc_info=exc,
            )
            raise PartialFailure(report_id=report.id, global_entry_id=entry_id, cause=exc.message) from exc
        if updated == 0:
            await self._compensate(report.id, entry_id)
        return ApprovalOutcome(report_id=report.id, global_entry_id=entry_id)

    async def _compensate(self, report_id: str, entry_id: str) -> None:
        # The report left pending between our read and write; an approved report keeps our entry.
        current = await self._store.get(BlacklistReport, report_id)
        if current is not None and current.status == ReportStatus.APPROVED.value:
            return
        try:
            await self._store.delete(GlobalBlacklist, entry_id)
        except UpstreamFailure as exc:
            logger.error(
                "blacklist_approval_compensation_failed report_id=%s global_entry_id=%s",
                report_id,
                entry_id,
                exc_info=exc,
            )
            raise PartialFailure(report_id=report_id, global_entry_id=entry_id, cause=exc.message) from exc
        raise AlreadyProcessed(report_id=report_id)

    async def reconcile(self, report_id: str) -> bool:
        """Finish a half-applied approval; returns True when the report was repaired."""
        entries = await self._store.select(
            GlobalBlacklist, GlobalBlacklist.source_report_id == report_id, limit=1
        )
        if not entries:
            return False
        repaired = await self._mark(report_id, ReportStatus.APPROVED) > 0
        if repaired:
            logger.info("blacklist_approval_reconciled report_id=%s global_entry_id=%s", report_id, entries[0].id)
        return repaired

    async def reconcile_pending(self) -> list[str]:
        # Pending reports that already own a global entry are half-applied approvals.
        published = select(GlobalBlacklist.source_report_id).where(
            GlobalBlacklist.source_report_id.is_not(None)
        )
        stuck = await self._store.select(
            BlacklistReport,
            and_(
                BlacklistReport.status == ReportStatus.PENDING.value,
                BlacklistReport.id.in_(published),
            ),
            order_by=[BlacklistReport.id.asc()],
        )
        stuck_ids = [row.id for row in stuck]
        repaired: list[str] = []
        for report_id in stuck_ids:
            if await self.reconcile(report_id):
                repaired.append(report_id)
        return repaired
