from __future__ import annotations

import argparse
import asyncio
import sys

from asperda.core.logging import configure_logging
from asperda.persistence.db import SessionLocal
from asperda.persistence.store import RecordStore
from asperda.services.blacklist import BlacklistApprovalWorkflow


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Finish blacklist approvals whose global entry exists but whose report is still pending"
    )
    parser.add_argument("--report-id", default=None, help="Repair a single report instead of scanning")
    return parser


async def _reconcile(args: argparse.Namespace) -> int:
    async with SessionLocal() as session:
        workflow = BlacklistApprovalWorkflow(RecordStore(session))
        if args.report_id:
            repaired = [args.report_id] if await workflow.reconcile(args.report_id) else []
        else:
            repaired = await workflow.reconcile_pending()
    print(f"reconciled_reports={len(repaired)}")
    for report_id in repaired:
        print(f"  {report_id}")
    return 0


def main() -> int:
    configure_logging()
    args = _build_parser().parse_args()
    try:
        return asyncio.run(_reconcile(args))
    except Exception as exc:  # noqa: BLE001 - operators need the failure on stderr
        print(f"reconcile_blacklist failed: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
