"""
Money helpers and pure line checks.

Nothing here touches the database, so the balance and allocation rules
can be exercised on plain dicts.
"""
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, List, Optional

from ..conf import balance_tolerance
from ..exceptions import (AllocationMismatchError, LedgerValidationError,
                          UnbalancedJournalError)

ZERO = Decimal("0.00")
TWO_PLACES = Decimal("0.01")
THREE_PLACES = Decimal("0.001")


def to_decimal(value, field="amount") -> Decimal:
    """Coerce user input to Decimal. Blank means zero; junk is a validation error."""
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, float):
        # go through str so 0.1 stays 0.1
        value = str(value)
    try:
        number = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise LedgerValidationError(f"{field} must be a number.")
    if not number.is_finite():
        raise LedgerValidationError(f"{field} must be a finite number.")
    return number


def to_id(value, field="id") -> int:
    """Primary key from user input; anything but a positive whole number is refused."""
    if isinstance(value, bool):
        raise LedgerValidationError(f"{field} must be an id.")
    try:
        pk = int(value)
    except (TypeError, ValueError):
        raise LedgerValidationError(f"{field} must be an id.")
    if pk <= 0 or (isinstance(value, float) and value != pk):
        raise LedgerValidationError(f"{field} must be an id.")
    return pk


def round2(value) -> Decimal:
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def round3(value) -> Decimal:
    return Decimal(value).quantize(THREE_PLACES, rounding=ROUND_HALF_UP)


def to_money(value, field="amount") -> Decimal:
    """Exact 2dp amount; more precision is refused rather than rounded away."""
    amount = to_decimal(value, field)
    if amount != round2(amount):
        raise LedgerValidationError(f"{field} is limited to 2 decimal places.")
    return round2(amount)


# ---------- Journal lines ----------
@dataclass(frozen=True)
class LineInput:
    account_id: int
    debit: Decimal
    credit: Decimal
    description: str = ""


def normalize_journal_lines(lines: Iterable[dict]) -> List[LineInput]:
    """
    Validate candidate journal lines.

    Rows with neither side filled are dropped; a row may not carry both
    sides or a negative amount. At least one row must survive.
    """
    normalized = []
    for raw in lines:
        debit = to_money(raw.get("debit"), "debit")
        credit = to_money(raw.get("credit"), "credit")
        if debit < 0 or credit < 0:
            raise LedgerValidationError("Debit and credit amounts cannot be negative.")
        if debit == 0 and credit == 0:
            continue
        if debit > 0 and credit > 0:
            raise LedgerValidationError("Each line must have either debit or credit.")
        account_id = raw.get("account_id")
        if not account_id:
            raise LedgerValidationError("Each journal line needs an account.")
        normalized.append(
            LineInput(
                account_id=to_id(account_id, "account_id"),
                debit=debit,
                credit=credit,
                description=raw.get("description") or "",
            )
        )

    if not normalized:
        raise LedgerValidationError("At least one valid journal line is required.")
    return normalized


def line_totals(lines: Iterable) -> tuple:
    total_debit = sum((line.debit for line in lines), ZERO)
    total_credit = sum((line.credit for line in lines), ZERO)
    return total_debit, total_credit


def check_balance(lines) -> None:
    """Enforce double-entry: |Σdebit − Σcredit| within the tolerance."""
    lines = list(lines)
    td, tc = line_totals(lines)
    if abs(td - tc) > balance_tolerance():
        raise UnbalancedJournalError(
            f"Journal not balanced: debits={td}, credits={tc}"
        )


def mirror_lines(lines: Iterable) -> List[LineInput]:
    """Debit ↔ credit swapped, same accounts, same order."""
    return [
        LineInput(
            account_id=line.account_id,
            debit=line.credit,
            credit=line.debit,
            description=line.description,
        )
        for line in lines
    ]


# ---------- Document lines ----------
@dataclass(frozen=True)
class PricedLine:
    account_id: int
    quantity: Decimal
    unit_price: Decimal
    net_amount: Decimal
    description: str = ""


def normalize_priced_lines(lines: Iterable[dict], account_key: str) -> List[PricedLine]:
    """Invoice / bill lines: quantity ≤ 0 rows are dropped, net = round2(qty × price)."""
    priced = []
    for raw in lines:
        quantity = to_decimal(raw.get("quantity"), "quantity")
        if quantity <= 0:
            continue
        unit_price = to_decimal(raw.get("unit_price"), "unit_price")
        if unit_price < 0:
            raise LedgerValidationError("Unit price cannot be negative.")
        account_id = raw.get(account_key)
        if not account_id:
            raise LedgerValidationError("Each line needs an account.")
        priced.append(
            PricedLine(
                account_id=to_id(account_id, "account_id"),
                quantity=quantity,
                unit_price=unit_price,
                net_amount=round2(quantity * unit_price),
                description=raw.get("description") or "",
            )
        )
    if not priced:
        raise LedgerValidationError("At least one line is required.")
    return priced


# ---------- Allocations ----------
@dataclass(frozen=True)
class AllocationInput:
    target_id: int
    amount: Decimal


def normalize_allocations(allocations: Iterable[dict], target_key: str, empty_message: str) -> List[AllocationInput]:
    """Drop zero rows, merge repeats of the same target, require at least one."""
    merged = {}
    for raw in allocations:
        amount = to_money(raw.get("amount"), "amount")
        if amount < 0:
            raise LedgerValidationError("Allocation amounts cannot be negative.")
        if amount == 0:
            continue
        target = raw.get(target_key)
        if not target:
            raise LedgerValidationError(f"Each allocation needs a {target_key}.")
        target = to_id(target, target_key)
        merged[target] = merged.get(target, ZERO) + amount
    if not merged:
        raise LedgerValidationError(empty_message)
    return [AllocationInput(target_id=k, amount=v) for k, v in merged.items()]


def check_allocation_total(allocations, settlement: Decimal, withholding: Optional[Decimal], verb: str) -> Decimal:
    """Σallocations must equal settlement + withholding exactly (no tolerance)."""
    allocated = sum((a.amount for a in allocations), ZERO)
    expected = (settlement or ZERO) + (withholding or ZERO)
    if allocated != expected:
        raise AllocationMismatchError(
            f"{verb} + WHT must equal allocated total "
            f"(allocated={allocated}, {verb.lower()}+wht={expected})."
        )
    return allocated
