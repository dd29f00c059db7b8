#!/usr/bin/env python3
"""
Command-line host for a dividend ledger.

Every subcommand runs as one transaction: it either commits entirely or
leaves the database untouched.  Ledger errors print ``CODE: message`` on
stderr and exit with status 1.

Usage:
    python3 scripts/ledger_cli.py init
    python3 scripts/ledger_cli.py create --period-seconds 604800
    python3 scripts/ledger_cli.py --ledger <id> mint alice 10
    python3 scripts/ledger_cli.py --ledger <id> deposit payer 1000
    python3 scripts/ledger_cli.py --ledger <id> catch-up --holder alice
    python3 scripts/ledger_cli.py --ledger <id> withdraw alice alice-wallet

Settings come from ``--config``, else ``DIVIDEND_LEDGER_CONFIG``, else the
bundled default (see dividend_config).
"""

import argparse
import sys
from pathlib import Path
from uuid import UUID

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dividend_config import LedgerSettings, get_active_settings  # noqa: E402
from dividend_kernel.db.engine import (  # noqa: E402
    create_tables,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from dividend_kernel.db.immutability import register_immutability_listeners  # noqa: E402
from dividend_kernel.domain.clock import Clock  # noqa: E402
from dividend_kernel.domain.dtos import HolderSummary, PeriodLogInfo  # noqa: E402
from dividend_kernel.exceptions import DividendLedgerError  # noqa: E402
from dividend_kernel.logging_config import configure_logging, get_logger  # noqa: E402
from dividend_kernel.services.ledger_service import LedgerService  # noqa: E402

logger = get_logger("cli")


# =============================================================================
# Output helpers
# =============================================================================


def _print_period_log(log: PeriodLogInfo) -> None:
    state = "settled" if log.settled else "open"
    print(
        f"  period {log.period_index:>4}  {state:<7}  "
        f"received={log.received_amount}  carried={log.carried_amount}  "
        f"delta={log.shares_delta}  snapshot={log.total_shares_snapshot}  "
        f"per_share={log.per_share_amount}"
    )


def _print_holder(summary: HolderSummary) -> None:
    print(f"holder:          {summary.holder}")
    print(f"shares:          {summary.current_shares}")
    print(f"unpaid:          {summary.unpaid_amount}")
    print(f"settled through: {summary.settled_through}")


# =============================================================================
# Commands
# =============================================================================


def cmd_init(args, settings: LedgerSettings) -> None:
    create_tables()
    print("tables created")


def cmd_create(args, settings: LedgerSettings) -> None:
    with session_scope() as session:
        ledger = LedgerService.create(
            session,
            admin=args.admin if args.admin is not None else settings.admin,
            period_seconds=(
                args.period_seconds
                if args.period_seconds is not None
                else settings.period_seconds
            ),
            clock=args.clock,
        )
        info = ledger.get_ledger()
    print(f"ledger_id:       {info.id}")
    print(f"admin:           {info.admin}")
    print(f"period_seconds:  {info.period_seconds}")
    print(f"created_at:      {info.created_at.isoformat()}")


def cmd_mint(args, settings: LedgerSettings) -> None:
    with session_scope() as session:
        summary = _ledger(session, args).mint(args.actor or settings.admin, args.to, args.amount)
    print(f"minted {args.amount} to {summary.holder} (balance {summary.current_shares})")


def cmd_deposit(args, settings: LedgerSettings) -> None:
    with session_scope() as session:
        deposit = _ledger(session, args).deposit(args.depositor, args.amount)
    print(f"deposited {deposit.amount} into period {deposit.period_index}")


def cmd_transfer(args, settings: LedgerSettings) -> None:
    with session_scope() as session:
        summary = _ledger(session, args).transfer(args.sender, args.to, args.amount)
    print(f"transferred {args.amount} to {args.to} (sender balance {summary.current_shares})")


def cmd_settle(args, settings: LedgerSettings) -> None:
    with session_scope() as session:
        log = _ledger(session, args).settle_period(args.period_index)
    _print_period_log(log)


def cmd_settle_holder(args, settings: LedgerSettings) -> None:
    with session_scope() as session:
        log = _ledger(session, args).settle_holder_log(args.holder, args.period_index)
    print(
        f"  {log.holder} period {log.period_index}  "
        f"snapshot={log.total_shares_snapshot}  rewarded={log.rewarded_amount}"
    )


def cmd_catch_up(args, settings: LedgerSettings) -> None:
    with session_scope() as session:
        ledger = _ledger(session, args)
        settled = ledger.settle_elapsed_periods()
        through = ledger.get_ledger().settled_through
        rewarded = []
        for holder in args.holder or ():
            rewarded.extend(ledger.settle_holder_through(holder, through))
    for log in settled:
        _print_period_log(log)
    for holder_log in rewarded:
        print(
            f"  {holder_log.holder} period {holder_log.period_index}  "
            f"rewarded={holder_log.rewarded_amount}"
        )
    print(f"settled {len(settled)} period(s), {len(rewarded)} holder log(s)")


def cmd_withdraw(args, settings: LedgerSettings) -> None:
    with session_scope() as session:
        withdrawal = _ledger(session, args).withdraw_to(args.holder, args.destination)
    print(f"paid {withdrawal.amount} to {withdrawal.destination}")


def cmd_show(args, settings: LedgerSettings) -> None:
    with session_scope() as session:
        ledger = _ledger(session, args)
        info = ledger.get_ledger()
        current = ledger.get_period_index()
        logs = ledger.selector.list_period_logs() if args.logs else []
        holders = ledger.selector.list_holders() if args.holders else []
    print(f"ledger_id:       {info.id}")
    print(f"admin:           {info.admin}")
    print(f"period_seconds:  {info.period_seconds}")
    print(f"created_at:      {info.created_at.isoformat()}")
    print(f"total_shares:    {info.total_shares}")
    print(f"current period:  {current}")
    print(f"settled through: {info.settled_through}")
    for log in logs:
        _print_period_log(log)
    for summary in holders:
        print(
            f"  {summary.holder:<24} shares={summary.current_shares}  "
            f"unpaid={summary.unpaid_amount}  through={summary.settled_through}"
        )


def cmd_holder(args, settings: LedgerSettings) -> None:
    with session_scope() as session:
        summary = _ledger(session, args).get_holder_summary(args.address)
    _print_holder(summary)


# =============================================================================
# Wiring
# =============================================================================


class MissingLedgerError(Exception):
    pass


def _ledger(session, args) -> LedgerService:
    if args.ledger_id is None:
        raise MissingLedgerError(
            "no ledger selected: pass --ledger or set ledger_id in the settings file"
        )
    return LedgerService(session, args.ledger_id, clock=args.clock)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Operate a periodic dividend ledger",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", type=Path, default=None, help="Settings YAML file")
    parser.add_argument("--database-url", default=None, help="Override the settings database URL")
    parser.add_argument("--ledger", type=UUID, default=None, dest="ledger", help="Ledger id")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init", help="Create database tables")
    p.set_defaults(handler=cmd_init)

    p = sub.add_parser("create", help="Create a new ledger starting now")
    p.add_argument("--admin", default=None)
    p.add_argument("--period-seconds", type=int, default=None)
    p.set_defaults(handler=cmd_create)

    p = sub.add_parser("mint", help="Issue new shares (admin only)")
    p.add_argument("to")
    p.add_argument("amount", type=int)
    p.add_argument("--actor", default=None, help="Caller identity (defaults to the settings admin)")
    p.set_defaults(handler=cmd_mint)

    p = sub.add_parser("deposit", help="Deposit value into the current period")
    p.add_argument("depositor")
    p.add_argument("amount", type=int)
    p.set_defaults(handler=cmd_deposit)

    p = sub.add_parser("transfer", help="Move shares between holders")
    p.add_argument("sender")
    p.add_argument("to")
    p.add_argument("amount", type=int)
    p.set_defaults(handler=cmd_transfer)

    p = sub.add_parser("settle", help="Settle one period log")
    p.add_argument("period_index", type=int)
    p.set_defaults(handler=cmd_settle)

    p = sub.add_parser("settle-holder", help="Settle one holder log")
    p.add_argument("holder")
    p.add_argument("period_index", type=int)
    p.set_defaults(handler=cmd_settle_holder)

    p = sub.add_parser("catch-up", help="Settle every elapsed period, then holders")
    p.add_argument("--holder", action="append", default=None)
    p.set_defaults(handler=cmd_catch_up)

    p = sub.add_parser("withdraw", help="Pay a holder's unpaid rewards")
    p.add_argument("holder")
    p.add_argument("destination")
    p.set_defaults(handler=cmd_withdraw)

    p = sub.add_parser("show", help="Show the ledger header")
    p.add_argument("--logs", action="store_true", help="Include period logs")
    p.add_argument("--holders", action="store_true", help="Include holder summaries")
    p.set_defaults(handler=cmd_show)

    p = sub.add_parser("holder", help="Show one holder")
    p.add_argument("address")
    p.set_defaults(handler=cmd_holder)

    return parser


def main(argv: list[str] | None = None, clock: Clock | None = None) -> int:
    """Run one command.  ``clock`` defaults to the system clock."""
    parser = build_parser()
    args = parser.parse_args(argv)
    args.clock = clock

    try:
        settings = get_active_settings(args.config)
    except (FileNotFoundError, KeyError, ValueError) as exc:
        print(f"CONFIG_ERROR: {exc}", file=sys.stderr)
        return 1

    configure_logging(level=settings.log_level)
    args.ledger_id = args.ledger or settings.ledger_id

    init_engine_from_url(args.database_url or settings.database_url)
    register_immutability_listeners()
    try:
        args.handler(args, settings)
    except DividendLedgerError as exc:
        print(f"{exc.code}: {exc}", file=sys.stderr)
        return 1
    except MissingLedgerError as exc:
        print(f"LEDGER_REQUIRED: {exc}", file=sys.stderr)
        return 1
    finally:
        reset_engine()
    return 0


if __name__ == "__main__":
    sys.exit(main())
