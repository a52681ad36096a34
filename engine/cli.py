"""
Ledger 커맨드라인

사용법:
    python -m engine init-db
    python -m engine ensure-accounts --tenant acme
    python -m engine close-period --tenant acme --as-of 2026-12-31
    python -m engine run-depreciation [--tenant acme] [--as-of 2026-03-31]
    python -m engine balance --tenant acme --code 1010 [--as-of 2026-03-31]
    python -m engine entries --tenant acme --code 1010 [--limit 20]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import ConfigLoadError, get_settings
from core.constants import Defaults
from core.domain.state_machines import StateMachineError
from core.errors import LedgerError
from core.logging import LOG_DATE_FORMAT, LOG_FORMAT, setup_logging
from core.utils.timezone import parse_date
from engine.service import LedgerService

logger = logging.getLogger(__name__)


def _date_arg(value: str):
    try:
        return parse_date(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid date '{value}' (expected YYYY-MM-DD)") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python -m engine", description="Ledger engine")
    parser.add_argument("--config", type=Path, default=None, help="ledger.yaml path")
    parser.add_argument("--db", type=Path, default=None, help="override database path")
    parser.add_argument("--no-log-file", action="store_true", help="console logging only")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="create tables and views")

    p = sub.add_parser("ensure-accounts", help="seed the core chart of accounts")
    p.add_argument("--tenant", required=True)

    p = sub.add_parser("close-period", help="post closing entries")
    p.add_argument("--tenant", required=True)
    p.add_argument("--as-of", required=True, type=_date_arg)

    p = sub.add_parser("run-depreciation", help="post due depreciation")
    p.add_argument("--tenant", default=None, help="all tenants when omitted")
    p.add_argument("--as-of", default=None, type=_date_arg)

    p = sub.add_parser("balance", help="account balance")
    p.add_argument("--tenant", required=True)
    p.add_argument("--code", required=True)
    p.add_argument("--as-of", default=None, type=_date_arg)

    p = sub.add_parser("entries", help="account drill-down, newest first")
    p.add_argument("--tenant", required=True)
    p.add_argument("--code", required=True)
    p.add_argument("--limit", type=int, default=Defaults.ENTRY_LIST_LIMIT)
    p.add_argument("--offset", type=int, default=0)

    return parser


def _emit(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


async def run(args: argparse.Namespace) -> int:
    settings = get_settings(args.config)
    db_path = args.db or settings.db_path

    async with SQLiteAdapter(db_path) as db:
        service = LedgerService.from_config(db, settings.config)
        await service.init_schema()

        if args.command == "init-db":
            _emit({"database": str(db_path)})

        elif args.command == "ensure-accounts":
            created = await service.ensure_core_accounts(args.tenant)
            _emit({"tenant": args.tenant, "created": created})

        elif args.command == "close-period":
            result = await service.close_period(args.tenant, args.as_of)
            _emit(asdict(result))

        elif args.command == "run-depreciation":
            result = await service.run_depreciation(args.tenant, args.as_of)
            _emit({
                "posted": [asdict(p) for p in result.posted],
                "skipped": [asdict(s) for s in result.skipped],
                "failed": [asdict(f) for f in result.failed],
                "total": result.total_posted,
            })

        elif args.command == "balance":
            balance = await service.get_account_balance(args.tenant, args.code, args.as_of)
            _emit({"tenant": args.tenant, "code": args.code, "balance": balance})

        elif args.command == "entries":
            lines = await service.list_entries(
                args.tenant, args.code, limit=args.limit, offset=args.offset
            )
            _emit([asdict(line) for line in lines])

    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI 진입점

    Returns:
        프로세스 종료 코드 (0 정상, 1 설정 오류, 2 장부 오류)
    """
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings(args.config)
    except ConfigLoadError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 1

    if args.no_log_file:
        logging.basicConfig(level=settings.log_level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    else:
        setup_logging("ledger", console_level=settings.log_level)

    try:
        return asyncio.run(run(args))
    except (LedgerError, StateMachineError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 2
