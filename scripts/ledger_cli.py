#!/usr/bin/env python3
"""Sell, reopen and take payments on units from the shell.

Store and event settings come from the environment (``STORE_BACKEND``,
``POSTGRES_*``, ``EVENT_SINK``...); see ``EstateLedgerConfig.from_env``.

Examples:
    ledger_cli.py sell --project LivingWater --block 3 --lot 12 --set "Owner=Juan Dela Cruz"
    ledger_cli.py pay --project LivingWater --block 3 --lot 12 --amount 12500 --month "March 2026"
    ledger_cli.py status --project LivingWater --block 3 --lot 12
    ledger_cli.py reopen --project LivingWater --block 3 --lot 12
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from estate_ledger.api import EstateLedger
from estate_ledger.config import EstateLedgerConfig
from estate_ledger.exceptions import EstateLedgerError, RecordNotFoundError, ValidationError
from estate_ledger.logging import setup_logging
from estate_ledger.models import DueDate, PaymentInput, PaymentType, UnitKey, VatStatus
from estate_ledger.models.property import get_schema

logger = logging.getLogger(__name__)


def parse_assignments(values: list[str]) -> dict[str, str]:
    """Parse repeated ``Column=value`` options."""
    details = {}
    for item in values:
        column, sep, value = item.partition("=")
        if not sep:
            raise ValidationError(f"Expected Column=value, got {item!r}")
        details[column.strip()] = value.strip()
    return details


def load_property(ledger: EstateLedger, args: argparse.Namespace) -> tuple[str, dict]:
    schema = get_schema(args.project)
    key = UnitKey(schema.project, args.block, args.lot)
    row = ledger.store.get(schema.project, key.property_filter())
    if row is None:
        raise RecordNotFoundError(f"No unit {key}")
    return schema.project, row


def cmd_sell(ledger: EstateLedger, args: argparse.Namespace) -> None:
    project, row = load_property(ledger, args)
    result = ledger.sell_property(row, parse_assignments(args.set), project=project)
    print(f"{result.property_id}: {result.status.value} to {result.buyer_name or '(no buyer)'}")
    for warning in result.warnings:
        print(f"  warning: {warning}")


def cmd_reopen(ledger: EstateLedger, args: argparse.Namespace) -> None:
    project, row = load_property(ledger, args)
    result = ledger.reopen_property(row, project=project)
    print(f"{result.property_id}: {result.status.value} (was {result.buyer_name})")
    for warning in result.warnings:
        print(f"  warning: {warning}")


def cmd_pay(ledger: EstateLedger, args: argparse.Namespace) -> None:
    key = UnitKey(get_schema(args.project).project, args.block, args.lot)
    payment = PaymentInput(
        amount=args.amount,
        payment_type=args.type,
        payment_month_label=args.month,
        due_date=args.due,
        vat=args.vat,
        penalty=args.penalty,
        idempotency_key=args.key,
        months_paid_label=args.months_label,
    )
    result = ledger.apply_payment(key, payment)
    balance = result.balance
    if result.replayed:
        print(f"{key}: payment {args.key} was already recorded, nothing applied")
    print(
        f"{key}: paid {balance.amount_paid}, remaining {balance.remaining_balance}, "
        f"months paid {balance.months_paid_count}/{balance.terms or '?'}"
    )
    for warning in result.warnings:
        print(f"  warning: {warning}")


def cmd_status(ledger: EstateLedger, args: argparse.Namespace) -> None:
    key = UnitKey(get_schema(args.project).project, args.block, args.lot)
    balance = ledger.get_balance(key)
    print(f"{key}: {balance.name or '(unassigned)'}")
    print(f"  TCP {balance.tcp}, paid {balance.amount_paid}, remaining {balance.remaining_balance}")
    print(f"  months paid {balance.months_paid_count}/{balance.terms or '?'}")
    print(f"  complete: {'yes' if ledger.is_payment_complete(balance) else 'no'}")
    for record in ledger.payment_history(key):
        print(f"  {record.created_at or '-'}  {record.amount:>14}  {record.payment_type}  {record.payment_month_label}")


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Property lifecycle and balance ledger operations")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_unit_args(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--project", required=True, help="Project table or short name")
        sub.add_argument("--block", required=True, help="Block number")
        sub.add_argument("--lot", required=True, help="Lot number")

    sell = subparsers.add_parser("sell", help="Sell an available unit")
    add_unit_args(sell)
    sell.add_argument(
        "--set",
        action="append",
        default=[],
        metavar="COLUMN=VALUE",
        help="Sale detail column (repeatable)",
    )
    sell.set_defaults(func=cmd_sell)

    reopen = subparsers.add_parser("reopen", help="Return a sold unit to inventory")
    add_unit_args(reopen)
    reopen.set_defaults(func=cmd_reopen)

    pay = subparsers.add_parser("pay", help="Apply a payment to a unit's ledger")
    add_unit_args(pay)
    pay.add_argument("--amount", required=True, help="Payment amount")
    pay.add_argument(
        "--type",
        choices=[member.value for member in PaymentType],
        default=PaymentType.CASH.value,
        help="Payment type (default: cash)",
    )
    pay.add_argument("--month", default="", help="Payment for the month of")
    pay.add_argument(
        "--due",
        choices=[member.value for member in DueDate],
        default=DueDate.THIRTIETH.value,
        help="Due day (default: 30th)",
    )
    pay.add_argument(
        "--vat",
        choices=[member.value for member in VatStatus],
        default=VatStatus.NON_VAT.value,
        help="VAT status (default: Non Vat)",
    )
    pay.add_argument("--penalty", default=None, help="Penalty paid with this payment")
    pay.add_argument("--key", default=None, help="Idempotency key; reusing it never double-applies")
    pay.add_argument("--months-label", default=None, help="New free-text Months Paid label for the ledger")
    pay.set_defaults(func=cmd_pay)

    status = subparsers.add_parser("status", help="Show a unit's ledger and payment history")
    add_unit_args(status)
    status.set_defaults(func=cmd_status)

    args = parser.parse_args()

    try:
        config = EstateLedgerConfig.from_env()
    except EstateLedgerError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(2)
    setup_logging(config.log_level, config.log_format)
    if config.store_backend == "memory":
        logger.warning("STORE_BACKEND=memory: changes are lost when the command exits")

    try:
        ledger = EstateLedger.from_config(config)
    except EstateLedgerError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    try:
        args.func(ledger, args)
    except EstateLedgerError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    finally:
        ledger.close()


if __name__ == "__main__":
    main()
