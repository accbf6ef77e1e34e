"""Operator command line for payroll runs.

Usage:
    payrollx-engine init-db
    payrollx-engine create-run --month 9 --year 2025
    payrollx-engine process-run RUN_ID [--user USER_ID]
    payrollx-engine approve-run RUN_ID [--user USER_ID]
    payrollx-engine tax-preview 150000 [--filer]
    payrollx-engine tax-slabs [--type non_filer]
"""

from __future__ import annotations

import argparse
import asyncio
import inspect
import logging
import sys
from decimal import Decimal
from uuid import UUID

from payrollx_engine.calculators.tax_calculator import TaxCalculator
from payrollx_engine.config import get_policy, get_settings
from payrollx_engine.database import create_schema, dispose_db, get_session
from payrollx_engine.errors import PayrollError
from payrollx_engine.models import PayrollRun
from payrollx_engine.services.payroll_run_service import PayrollRunService


def _print_run(payroll_run: PayrollRun) -> None:
    print(f"Payroll run {payroll_run.id}")
    print(f"  Period:      {payroll_run.month:02d}/{payroll_run.year}")
    print(f"  Status:      {payroll_run.status}")
    print(f"  Employees:   {payroll_run.total_employees}")
    print(f"  Gross:       {payroll_run.total_gross_salary}")
    print(f"  Deductions:  {payroll_run.total_deductions}")
    print(f"  Tax:         {payroll_run.total_tax}")
    print(f"  Net:         {payroll_run.total_net_salary}")
    print(f"  Employer:    {payroll_run.total_employer_contributions}")


async def _init_db(args: argparse.Namespace) -> None:
    await create_schema()
    print("Schema created.")


async def _create_run(args: argparse.Namespace) -> None:
    async with get_session() as session:
        service = PayrollRunService(session, get_policy())
        _print_run(await service.create_payroll_run(args.month, args.year, args.user))


async def _process_run(args: argparse.Namespace) -> None:
    async with get_session() as session:
        service = PayrollRunService(session, get_policy())
        _print_run(await service.process_payroll_run(args.run_id, processed_by=args.user))


async def _approve_run(args: argparse.Namespace) -> None:
    async with get_session() as session:
        service = PayrollRunService(session, get_policy())
        _print_run(await service.approve_payroll_run(args.run_id, approved_by=args.user))


def _tax_preview(args: argparse.Namespace) -> None:
    breakdown = TaxCalculator(get_policy()).all_deductions(args.gross_salary, args.filer)
    print(f"Gross salary:      {breakdown.gross_salary}")
    print(f"Tax slab:          {breakdown.tax_slab} ({'filer' if breakdown.is_filer else 'non-filer'})")
    print(f"Income tax:        {breakdown.income_tax}")
    print(f"Effective rate:    {breakdown.effective_tax_rate}%")
    print(f"EOBI (employee):   {breakdown.eobi.employee}")
    print(f"EOBI (employer):   {breakdown.eobi.employer}")
    print(f"SESSI (employer):  {breakdown.sessi.employer}")
    print(f"Total deductions:  {breakdown.total_deductions}")
    print(f"Net salary:        {breakdown.net_salary}")


def _tax_slabs(args: argparse.Namespace) -> None:
    policy = get_policy()
    is_filer = args.type == "filer"
    print(f"Tax year {policy.tax_year} ({args.type})")
    for bracket in TaxCalculator(policy).bracket_table(is_filer):
        print(
            f"  {bracket.label:<24} {bracket.rate * 100:>6.2f}%  fixed {bracket.fixed_amount}"
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="payrollx-engine",
        description="Administer monthly payroll runs",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create all tables").set_defaults(handler=_init_db)

    create = subparsers.add_parser("create-run", help="Create the draft run for a month")
    create.add_argument("--month", type=int, required=True)
    create.add_argument("--year", type=int, required=True)
    create.add_argument("--user", type=UUID, default=None, help="Acting user ID")
    create.set_defaults(handler=_create_run)

    process = subparsers.add_parser("process-run", help="Generate payslips for a draft run")
    process.add_argument("run_id", type=UUID)
    process.add_argument("--user", type=UUID, default=None, help="Acting user ID")
    process.set_defaults(handler=_process_run)

    approve = subparsers.add_parser("approve-run", help="Approve a completed run")
    approve.add_argument("run_id", type=UUID)
    approve.add_argument("--user", type=UUID, default=None, help="Acting user ID")
    approve.set_defaults(handler=_approve_run)

    preview = subparsers.add_parser("tax-preview", help="Show deductions for a monthly gross")
    preview.add_argument("gross_salary", type=Decimal)
    preview.add_argument("--filer", action="store_true", help="Use the filer schedule")
    preview.set_defaults(handler=_tax_preview)

    slabs = subparsers.add_parser("tax-slabs", help="Show the bracket table")
    slabs.add_argument("--type", choices=["filer", "non_filer"], default="filer")
    slabs.set_defaults(handler=_tax_slabs)

    return parser


async def _run_async(handler, args: argparse.Namespace) -> None:
    try:
        await handler(args)
    finally:
        await dispose_db()


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=get_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if inspect.iscoroutinefunction(args.handler):
            asyncio.run(_run_async(args.handler, args))
        else:
            args.handler(args)
    except PayrollError as exc:
        print(f"Error [{exc.code}]: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
