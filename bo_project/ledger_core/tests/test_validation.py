from decimal import Decimal

import pytest

from ..exceptions import (AllocationMismatchError, LedgerValidationError,
                          UnbalancedJournalError)
from ..services.validation import (AllocationInput, LineInput, check_allocation_total,
                                   check_balance, mirror_lines,
                                   normalize_allocations,
                                   normalize_journal_lines,
                                   normalize_priced_lines, round2, to_id,
                                   to_money)


def test_zero_rows_are_dropped():
    lines = normalize_journal_lines([
        {"account_id": 1, "debit": "100.00", "credit": "0"},
        {"account_id": 2, "debit": "", "credit": ""},
        {"account_id": 3, "debit": "0", "credit": "100.00"},
    ])
    assert [line.account_id for line in lines] == [1, 3]


def test_line_with_both_sides_is_rejected():
    with pytest.raises(LedgerValidationError, match="either debit or credit"):
        normalize_journal_lines([{"account_id": 1, "debit": "5", "credit": "5"}])


def test_negative_amounts_are_rejected():
    with pytest.raises(LedgerValidationError):
        normalize_journal_lines([{"account_id": 1, "debit": "-5", "credit": "0"}])


def test_at_least_one_line_is_required():
    with pytest.raises(LedgerValidationError, match="At least one valid journal line"):
        normalize_journal_lines([{"account_id": 1, "debit": 0, "credit": 0}])


def test_more_than_two_decimals_is_refused():
    with pytest.raises(LedgerValidationError):
        to_money("10.005")
    assert to_money(10.1) == Decimal("10.10")


def test_non_finite_amounts_are_refused():
    for value in ("Infinity", "-Infinity", "NaN", float("inf")):
        with pytest.raises(LedgerValidationError, match="finite number"):
            to_money(value, "debit")


def test_ids_must_be_positive_whole_numbers():
    assert to_id("12") == 12
    for value in ("abc", "1.5", 0, -3, 2.5, True, None):
        with pytest.raises(LedgerValidationError, match="must be an id"):
            to_id(value, "account_id")


def test_allocation_target_must_be_an_id():
    with pytest.raises(LedgerValidationError, match="invoice_id must be an id"):
        normalize_allocations([{"invoice_id": "x", "amount": "5.00"}], "invoice_id", "empty")


def test_round2_is_half_up():
    assert round2(Decimal("2.345")) == Decimal("2.35")
    assert round2(Decimal("2.344")) == Decimal("2.34")


def test_unbalanced_journal_is_refused():
    lines = [
        LineInput(1, Decimal("100.00"), Decimal("0")),
        LineInput(2, Decimal("0"), Decimal("99.99")),
    ]
    with pytest.raises(UnbalancedJournalError) as exc:
        check_balance(lines)
    assert exc.value.kind == "Unbalanced"
    assert "debits=100.00" in str(exc.value)


def test_balanced_journal_passes():
    check_balance([
        LineInput(1, Decimal("60.00"), Decimal("0")),
        LineInput(2, Decimal("40.00"), Decimal("0")),
        LineInput(3, Decimal("0"), Decimal("100.00")),
    ])


def test_mirror_swaps_sides():
    mirrored = mirror_lines([LineInput(1, Decimal("5.00"), Decimal("0"), "x")])
    assert mirrored == [LineInput(1, Decimal("0"), Decimal("5.00"), "x")]


def test_priced_lines_drop_non_positive_quantity():
    priced = normalize_priced_lines(
        [
            {"quantity": "3", "unit_price": "3.335", "income_account_id": 7},
            {"quantity": "0", "unit_price": "50", "income_account_id": 7},
        ],
        "income_account_id",
    )
    assert len(priced) == 1
    assert priced[0].net_amount == Decimal("10.01")


def test_allocations_merge_repeats_and_drop_zero_rows():
    allocations = normalize_allocations(
        [
            {"invoice_id": 1, "amount": "60.00"},
            {"invoice_id": 1, "amount": "40.00"},
            {"invoice_id": 2, "amount": "0"},
        ],
        "invoice_id",
        "Receipt must allocate at least one invoice.",
    )
    assert allocations == [AllocationInput(1, Decimal("100.00"))]


def test_allocations_cannot_be_empty():
    with pytest.raises(LedgerValidationError, match="at least one invoice"):
        normalize_allocations([], "invoice_id", "Receipt must allocate at least one invoice.")


def test_allocation_total_has_zero_tolerance():
    allocations = [AllocationInput(1, Decimal("100.00"))]
    assert check_allocation_total(allocations, Decimal("95.00"), Decimal("5.00"), "Received") == Decimal("100.00")
    with pytest.raises(AllocationMismatchError, match="Received \\+ WHT must equal allocated total"):
        check_allocation_total(allocations, Decimal("95.00"), Decimal("4.99"), "Received")
