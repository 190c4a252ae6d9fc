"""
원장 운영 CLI

사용법:
    python -m scripts.ledger_cli init
    python -m scripts.ledger_cli accounts
    python -m scripts.ledger_cli audit [--fix]
    python -m scripts.ledger_cli process-recurring [--as-of 2024-06-01] [--mode simple]
    python -m scripts.ledger_cli export backup.json
    python -m scripts.ledger_cli import backup.json [--clear]

공통 옵션:
    --config PATH   settings.yaml 경로
    --db PATH       DB 경로 (settings.yaml보다 우선)
"""

import argparse
import asyncio
import logging
from datetime import date
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
import sys
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import SettingsLoadError, get_settings
from core.ledger import Ledger, LedgerError
from core.ledger.snapshot import dump_json, load_json
from core.logging import setup_logging
from core.types import LedgerMode

logger = logging.getLogger("cli")


async def cmd_init(ledger: Ledger, args: argparse.Namespace) -> int:
    print(f"Ledger ready: {ledger.db.db_path}")
    return 0


async def cmd_accounts(ledger: Ledger, args: argparse.Namespace) -> int:
    accounts = await ledger.accounts.list_accounts()
    if not accounts:
        print("No accounts.")
        return 0
    for account in accounts:
        print(f"{account.account_id:<45} {account.account_type.value:<7} {account.balance:>14}  {account.name}")
    return 0


async def cmd_audit(ledger: Ledger, args: argparse.Namespace) -> int:
    audits = await ledger.engine.audit_all()
    drifted = [a for a in audits if not a.is_consistent]

    for audit in audits:
        marker = "!!" if not audit.is_consistent else "ok"
        print(
            f"[{marker}] {audit.account_id}: cached={audit.cached} "
            f"computed={audit.computed} diff={audit.difference}"
        )

    if drifted and args.fix:
        for audit in drifted:
            await ledger.engine.apply_balance_correction(audit.account_id)
        print(f"Corrected {len(drifted)} account(s).")
        return 0

    return 1 if drifted else 0


async def cmd_process_recurring(ledger: Ledger, args: argparse.Namespace) -> int:
    as_of = date.fromisoformat(args.as_of) if args.as_of else date.today()
    report = await ledger.scheduler.process_due(as_of, args.mode)

    for result in report.processed:
        print(f"processed {result.template_id} -> {result.transaction_id}")
    for result in report.failed:
        print(f"FAILED    {result.template_id}: {result.error}")

    return 1 if report.failed else 0


async def cmd_export(ledger: Ledger, args: argparse.Namespace) -> int:
    snapshot = await ledger.snapshots.export_snapshot()
    path = dump_json(snapshot, Path(args.path))
    print(f"Exported {snapshot.counts()} to {path}")
    return 0


async def cmd_import(ledger: Ledger, args: argparse.Namespace) -> int:
    snapshot = load_json(Path(args.path))
    counts = await ledger.snapshots.import_snapshot(snapshot, clear_before=args.clear)
    print(f"Imported {counts}")
    return 0


COMMANDS = {
    "init": cmd_init,
    "accounts": cmd_accounts,
    "audit": cmd_audit,
    "process-recurring": cmd_process_recurring,
    "export": cmd_export,
    "import": cmd_import,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="가계부 원장 운영 도구")
    parser.add_argument("--config", type=Path, default=None, help="settings.yaml 경로")
    parser.add_argument("--db", type=Path, default=None, help="DB 경로 (설정보다 우선)")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="스키마 생성")
    sub.add_parser("accounts", help="계좌 / 잔액 목록")

    audit = sub.add_parser("audit", help="잔액 감사")
    audit.add_argument("--fix", action="store_true", help="불일치 계좌를 재계산 값으로 보정")

    recurring = sub.add_parser("process-recurring", help="도래한 반복 거래 처리")
    recurring.add_argument("--as-of", default=None, help="기준일 (YYYY-MM-DD, 기본: 오늘)")
    recurring.add_argument(
        "--mode",
        type=LedgerMode,
        choices=list(LedgerMode),
        default=None,
        help="기장 모드 (기본: settings.yaml)",
    )

    export = sub.add_parser("export", help="JSON 스냅샷 내보내기")
    export.add_argument("path")

    imp = sub.add_parser("import", help="JSON 스냅샷 가져오기")
    imp.add_argument("path")
    imp.add_argument("--clear", action="store_true", help="가져오기 전에 모든 컬렉션 삭제")

    return parser


async def main(args: argparse.Namespace) -> int:
    try:
        settings = get_settings(args.config)
    except SettingsLoadError as e:
        print(f"Settings error: {e}", file=sys.stderr)
        return 2

    setup_logging("cli", console_level=settings.log_level)

    if getattr(args, "mode", None) is None:
        args.mode = settings.ledger_mode

    db_path = args.db or settings.db_path

    async with SQLiteAdapter(db_path) as db:
        ledger = await Ledger.open(db)
        try:
            return await COMMANDS[args.command](ledger, args)
        except LedgerError as e:
            logger.error(f"{args.command} 실패: {e}")
            return 1


def run() -> None:
    sys.exit(asyncio.run(main(build_parser().parse_args())))


if __name__ == "__main__":
    run()
