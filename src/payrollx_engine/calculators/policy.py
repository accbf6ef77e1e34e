"""Payroll policy: tax schedules, statutory rates and overtime rules.

A policy is an immutable value injected into the calculators. Payloads use the
same shape as stored rule versions:
{
    "tax_year": "2024-25",
    "brackets": {
        "filer": [{"min": 0, "max": 600000, "rate": 0, "fixed": 0}, ...],
        "non_filer": [...]
    },
    "eobi": {"rate": 0.0075, "employee_rate": 0.0015},
    "sessi": {"rate": 0.0075, "wage_cap": 25000},
    "overtime_multiplier": 1.5,
    "standard_hours_per_day": 8,
    "rest_weekdays": [5, 6]  // Monday = 0
}
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from payrollx_engine.calculators.types import TaxBracket
from payrollx_engine.errors import PayrollValidationError


@dataclass(frozen=True)
class PayrollPolicy:
    """Immutable payroll configuration for one tax year."""

    tax_year: str
    filer_brackets: tuple[TaxBracket, ...]
    non_filer_brackets: tuple[TaxBracket, ...]
    eobi_rate: Decimal
    eobi_employee_rate: Decimal
    sessi_rate: Decimal
    sessi_wage_cap: Decimal
    overtime_multiplier: Decimal = Decimal("1.5")
    standard_hours_per_day: Decimal = Decimal("8")
    rest_weekdays: frozenset[int] = frozenset({5, 6})

    def brackets_for(self, is_filer: bool) -> tuple[TaxBracket, ...]:
        return self.filer_brackets if is_filer else self.non_filer_brackets


DEFAULT_POLICY_PAYLOAD: dict[str, Any] = {
    "tax_year": "2024-25",
    "brackets": {
        "filer": [
            {"min": 0, "max": 600000, "rate": "0", "fixed": 0},
            {"min": 600001, "max": 1200000, "rate": "0.025", "fixed": 0},
            {"min": 1200001, "max": 2200000, "rate": "0.125", "fixed": 15000},
            {"min": 2200001, "max": 3200000, "rate": "0.225", "fixed": 140000},
            {"min": 3200001, "max": 4100000, "rate": "0.275", "fixed": 365000},
            {"min": 4100001, "max": None, "rate": "0.35", "fixed": 612500},
        ],
        # Non-filers carry a ~10% penalty on every rate and fixed amount
        "non_filer": [
            {"min": 0, "max": 600000, "rate": "0", "fixed": 0},
            {"min": 600001, "max": 1200000, "rate": "0.0275", "fixed": 0},
            {"min": 1200001, "max": 2200000, "rate": "0.1375", "fixed": 16500},
            {"min": 2200001, "max": 3200000, "rate": "0.2475", "fixed": 154000},
            {"min": 3200001, "max": 4100000, "rate": "0.3025", "fixed": 401500},
            {"min": 4100001, "max": None, "rate": "0.385", "fixed": 673750},
        ],
    },
    "eobi": {"rate": "0.0075", "employee_rate": "0.0015"},
    "sessi": {"rate": "0.0075", "wage_cap": 25000},
    "overtime_multiplier": "1.5",
    "standard_hours_per_day": 8,
    "rest_weekdays": [5, 6],
}


def _parse_brackets(raw: list[dict[str, Any]], schedule: str) -> tuple[TaxBracket, ...]:
    brackets = []
    for b in raw:
        brackets.append(
            TaxBracket(
                min_amount=Decimal(str(b["min"])),
                max_amount=Decimal(str(b["max"])) if b.get("max") is not None else None,
                rate=Decimal(str(b["rate"])),
                fixed_amount=Decimal(str(b.get("fixed", 0))),
            )
        )
    brackets.sort(key=lambda b: b.min_amount)

    if not brackets:
        raise PayrollValidationError(f"{schedule} schedule has no brackets", field=schedule)
    if brackets[0].min_amount != 0:
        raise PayrollValidationError(f"{schedule} schedule must start at 0", field=schedule)
    if brackets[-1].max_amount is not None:
        raise PayrollValidationError(
            f"{schedule} schedule must end with an unbounded bracket", field=schedule
        )
    for lower, upper in zip(brackets, brackets[1:]):
        # Bounds are whole currency units: the next bracket starts one unit above
        if lower.max_amount is None or upper.min_amount - lower.max_amount != 1:
            raise PayrollValidationError(
                f"{schedule} schedule has a gap or overlap at {upper.min_amount}",
                field=schedule,
            )
    return tuple(brackets)


def _section(payload: dict[str, Any], name: str) -> Any:
    try:
        return payload[name]
    except (KeyError, TypeError) as exc:
        raise PayrollValidationError(f"policy is missing '{name}'", field=name) from exc


def _amount(section: dict[str, Any], key: str, field: str) -> Decimal:
    try:
        return Decimal(str(section[key]))
    except (KeyError, TypeError, InvalidOperation) as exc:
        raise PayrollValidationError(f"invalid policy value for {field}", field=field) from exc


def load_policy(payload: dict[str, Any]) -> PayrollPolicy:
    """Build a policy from a JSON payload, validating the bracket schedules.

    Malformed payloads raise PayrollValidationError naming the offending field.
    """
    brackets = _section(payload, "brackets")
    schedules = {}
    for schedule in ("filer", "non_filer"):
        try:
            schedules[schedule] = _parse_brackets(_section(brackets, schedule), schedule)
        except (KeyError, TypeError, ValueError, InvalidOperation) as exc:
            raise PayrollValidationError(
                f"malformed {schedule} bracket: {exc!r}", field=f"brackets.{schedule}"
            ) from exc
    filer, non_filer = schedules["filer"], schedules["non_filer"]

    if len(filer) != len(non_filer):
        raise PayrollValidationError("filer and non_filer schedules differ in length")
    for f, n in zip(filer, non_filer):
        if n.rate < f.rate:
            raise PayrollValidationError(
                f"non_filer rate below filer rate in bracket starting {f.min_amount}"
            )
        if n.fixed_amount < f.fixed_amount:
            raise PayrollValidationError(
                f"non_filer fixed amount below filer fixed amount in bracket starting "
                f"{f.min_amount}"
            )

    eobi = _section(payload, "eobi")
    sessi = _section(payload, "sessi")
    try:
        overtime_multiplier = Decimal(str(payload.get("overtime_multiplier", "1.5")))
        standard_hours = Decimal(str(payload.get("standard_hours_per_day", 8)))
        rest_weekdays = frozenset(int(d) for d in payload.get("rest_weekdays", [5, 6]))
    except (TypeError, ValueError, InvalidOperation) as exc:
        raise PayrollValidationError(f"invalid policy value: {exc!r}") from exc

    return PayrollPolicy(
        tax_year=str(payload.get("tax_year", "")),
        filer_brackets=filer,
        non_filer_brackets=non_filer,
        eobi_rate=_amount(eobi, "rate", "eobi.rate"),
        eobi_employee_rate=_amount(eobi, "employee_rate", "eobi.employee_rate"),
        sessi_rate=_amount(sessi, "rate", "sessi.rate"),
        sessi_wage_cap=_amount(sessi, "wage_cap", "sessi.wage_cap"),
        overtime_multiplier=overtime_multiplier,
        standard_hours_per_day=standard_hours,
        rest_weekdays=rest_weekdays,
    )


def default_policy() -> PayrollPolicy:
    """Policy for the 2024-25 tax year."""
    return load_policy(DEFAULT_POLICY_PAYLOAD)
