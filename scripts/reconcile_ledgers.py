"""
Ledger consistency check.

Compares every account's cached balance with its ledger chain and, with
--repair, rebuilds the chains that do not reconcile. Exits non-zero when a
discrepancy remains.
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from bookkeeping.app.core.observability import configure_logging
from bookkeeping.app.db.session import AsyncSessionLocal, engine
from bookkeeping.app.domain.ledger.reconciliation import verify_ledger, reconcile_account
import bookkeeping.app.main  # noqa: F401  registers every model with Base


def print_report(report):
    status = "✅" if report.ok else "❌"
    print(
        f"{status} account {report.account_id}: cached={report.cached_balance} "
        f"chain={report.chain_balance} rows={report.entry_count}"
        + (f" broken={report.broken_entry_ids}" if report.broken_entry_ids else "")
    )


async def main(account_id=None, repair=False) -> int:
    async with AsyncSessionLocal() as db:
        reports = await verify_ledger(db, account_id=account_id)
        for report in reports:
            print_report(report)

        failed = [report for report in reports if not report.ok]
        if failed and repair:
            await db.rollback()
            for report in failed:
                account = await reconcile_account(db, report.account_id)
                print(f"🔧 Repaired account {account.id}: balance={account.balance}")
            failed = []

    await engine.dispose()
    print(f"\n{len(reports)} accounts checked, {len(failed)} inconsistent")
    return 1 if failed else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--account-id", type=int, help="Check a single account")
    parser.add_argument("--repair", action="store_true", help="Rebuild chains that do not reconcile")
    args = parser.parse_args()

    configure_logging()
    sys.exit(asyncio.run(main(args.account_id, args.repair)))
