"""
Command line front end for the cash drawer.

Usage:
    drawer open    --user <uuid> --amount 50000 [--terminal T1]
    drawer status  --session <uuid> [--invoices invoices.json]
    drawer close   --session <uuid> --cash 170000 [--card N] [--transfer N]
                   [--other N] [--invoices invoices.json] [--notes TEXT]
    drawer history [--limit N]
    drawer sessions [--open] [--user <uuid>]

Global options:
    --config PATH   YAML configuration (default: $DRAWER_CONFIG_PATH or the
                    packaged default)
    --db-url URL    Override persistence.database_url

The invoices file is a JSON array of invoice objects with total,
payment_method (or paymentMethod), status and cash_session_id
(or cashSessionId).  Amounts are read as exact decimals.
"""

from __future__ import annotations

import argparse
import json
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from uuid import UUID

from drawer_config import get_active_config
from drawer_kernel.db.engine import (
    create_db_engine,
    create_tables,
    make_session_factory,
    session_scope,
)
from drawer_kernel.db.immutability import register_immutability_listeners
from drawer_kernel.domain.dtos import CashClosingRecord, CountedTotals
from drawer_kernel.domain.formatting import format_money
from drawer_kernel.exceptions import DrawerKernelError
from drawer_kernel.services.invoice_source import InMemoryInvoiceSource
from drawer_services.cash_drawer import CashDrawerService


def _decimal(text: str) -> Decimal:
    try:
        value = Decimal(text)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"not a number: {text!r}") from exc
    if not value.is_finite():
        raise argparse.ArgumentTypeError(f"not a finite amount: {text!r}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="drawer",
        description="Open, reconcile and close cash drawer sessions.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--config", type=Path, default=None, help="Drawer YAML config file.")
    parser.add_argument("--db-url", default=None, help="Database URL override.")

    sub = parser.add_subparsers(dest="command", required=True)

    p_open = sub.add_parser("open", help="Open a cash session.")
    p_open.add_argument("--user", type=UUID, required=True, help="Operator UUID.")
    p_open.add_argument("--amount", type=_decimal, required=True, help="Opening float.")
    p_open.add_argument("--terminal", default=None, help="Terminal identifier.")

    p_status = sub.add_parser("status", help="Live totals of a session.")
    p_status.add_argument("--session", type=UUID, required=True)
    p_status.add_argument("--invoices", type=Path, default=None)

    p_close = sub.add_parser("close", help="Count the drawer and close the session.")
    p_close.add_argument("--session", type=UUID, required=True)
    p_close.add_argument("--cash", type=_decimal, required=True, help="Counted cash, float included.")
    p_close.add_argument("--card", type=_decimal, default=Decimal("0"))
    p_close.add_argument("--transfer", type=_decimal, default=Decimal("0"))
    p_close.add_argument("--other", type=_decimal, default=Decimal("0"))
    p_close.add_argument("--invoices", type=Path, default=None)
    p_close.add_argument("--notes", default=None)
    p_close.add_argument("--actor", type=UUID, default=None, help="Closing operator UUID.")

    p_history = sub.add_parser("history", help="Past closings, newest first.")
    p_history.add_argument("--limit", type=int, default=None)

    p_sessions = sub.add_parser("sessions", help="Cash sessions, newest opening first.")
    p_sessions.add_argument("--open", action="store_true", help="Only open drawers.")
    p_sessions.add_argument("--user", type=UUID, default=None, help="Operator UUID.")

    return parser


def load_invoices(path: Path | None) -> InMemoryInvoiceSource:
    """Read a JSON array of invoices; no path means no invoices."""
    if path is None:
        return InMemoryInvoiceSource()
    with open(path, encoding="utf-8") as f:
        records = json.load(f, parse_float=Decimal)
    if not isinstance(records, list):
        raise ValueError(f"{path}: expected a JSON array of invoices")
    return InMemoryInvoiceSource.from_records(records)


def _print_closing(record: CashClosingRecord, out) -> None:
    cur = record.currency
    print(f"Closing {record.id} for session {record.cash_session_id}", file=out)
    print(f"  {'method':<10}{'expected':>18}{'counted':>18}{'difference':>18}", file=out)
    for name in ("cash", "card", "transfer", "other"):
        expected = getattr(record, f"expected_{name}")
        counted = getattr(record, f"counted_{name}")
        diff = getattr(record, f"{name}_difference")
        print(
            f"  {name:<10}{format_money(expected, cur):>18}"
            f"{format_money(counted, cur):>18}{format_money(diff, cur):>18}",
            file=out,
        )
    print(f"  system sales:  {format_money(record.total_system_sales, cur)}", file=out)
    print(f"  counted sales: {format_money(record.total_counted_sales, cur)}", file=out)
    print(
        f"  difference:    {format_money(record.total_difference, cur)} ({record.status.value})",
        file=out,
    )


def main(argv: list[str] | None = None, out=None) -> int:
    out = out or sys.stdout
    args = build_parser().parse_args(argv)

    try:
        config = get_active_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"ERROR: Failed to load config: {e}", file=sys.stderr)
        return 1

    try:
        invoices = load_invoices(getattr(args, "invoices", None))
    except (OSError, ValueError, KeyError, TypeError, DrawerKernelError) as e:
        print(f"ERROR: Failed to read invoices: {e}", file=sys.stderr)
        return 1

    engine = create_db_engine(
        args.db_url or config.database_url,
        echo=config.persistence.echo,
        statement_timeout_seconds=config.persistence_timeout_seconds,
    )
    create_tables(engine)
    register_immutability_listeners()
    factory = make_session_factory(engine)

    try:
        with session_scope(factory) as session:
            drawer = CashDrawerService.from_config(session, invoices, config)

            if args.command == "open":
                info = drawer.open_session(args.amount, args.user, args.terminal)
                print(f"Opened session {info.id}", file=out)
                print(f"  opening balance: {format_money(info.opening_balance, info.currency)}", file=out)

            elif args.command == "status":
                summary = drawer.session_summary(args.session)
                cur = config.currency
                print(f"Session {args.session}", file=out)
                print(f"  sales:          {format_money(summary.total_sales, cur)}", file=out)
                print(f"  transactions:   {summary.transaction_count}", file=out)
                print(f"  expected cash:  {format_money(summary.expected.cash, cur)}", file=out)
                print(f"  expected card:  {format_money(summary.expected.card, cur)}", file=out)
                print(f"  expected xfer:  {format_money(summary.expected.transfer, cur)}", file=out)
                print(f"  expected other: {format_money(summary.expected.other, cur)}", file=out)
                for inv in summary.recent_invoices:
                    print(
                        f"    {inv.invoice_id} {inv.customer_name or '-'} "
                        f"{format_money(inv.total, cur)} {inv.payment_method}",
                        file=out,
                    )

            elif args.command == "close":
                counted = CountedTotals(
                    cash=args.cash,
                    card=args.card,
                    transfer=args.transfer,
                    other=args.other,
                )
                record = drawer.close_session(
                    args.session, counted, notes=args.notes, actor_id=args.actor
                )
                _print_closing(record, out)

            elif args.command == "history":
                for record in drawer.closing_history(limit=args.limit):
                    print(
                        f"{record.closing_date.isoformat()}  {record.id}  "
                        f"{format_money(record.opening_balance, record.currency)}  "
                        f"{format_money(record.total_system_sales, record.currency)}  "
                        f"{format_money(record.total_difference, record.currency)}",
                        file=out,
                    )

            elif args.command == "sessions":
                status = "open" if args.open else None
                for info in drawer.list_sessions(user_id=args.user, status=status):
                    print(
                        f"{info.opened_at.isoformat()}  {info.id}  {info.status:<6}  "
                        f"{info.terminal_id or '-'}  "
                        f"{format_money(info.opening_balance, info.currency)}",
                        file=out,
                    )
    except DrawerKernelError as e:
        print(f"ERROR [{e.code}]: {e}", file=sys.stderr)
        return 1
    finally:
        engine.dispose()

    return 0


if __name__ == "__main__":
    sys.exit(main())
