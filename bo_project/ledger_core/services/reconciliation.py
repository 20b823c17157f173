"""
Read side of the subledgers: outstanding balances, control-account
reconciliation, party statements, aging and the trial balance.

Only posted documents and posted settlements count. Control balances sum
the lines of posted and reversed journals, so a reversed posting nets to
zero together with its reversal.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional

from django.db.models import DecimalField, Q, Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from ..exceptions import LedgerValidationError, MissingAccountMappingError
from ..models import (Bill, ControlAccounts, Invoice, JournalLine,
                      PaymentVoucher, Receipt)
from ..models.journal import LEDGER_STATUSES
from .validation import ZERO

AR = "AR"
AP = "AP"

MONEY = DecimalField(max_digits=18, decimal_places=2)


@dataclass(frozen=True)
class Side:
    name: str
    document_model: type
    settlement_model: type
    party_field: str
    settlement_field: str  # allocation FK back to the settlement
    control_field: str
    document_label: str
    settlement_label: str

    def normal_sign(self, debit, credit):
        # AR is a debit balance, AP a credit balance
        return debit - credit if self.name == AR else credit - debit


SIDES = {
    AR: Side(AR, Invoice, Receipt, "customer", "receipt", "ar_control", "Invoice", "Receipt"),
    AP: Side(AP, Bill, PaymentVoucher, "supplier", "voucher", "ap_control", "Bill", "Payment"),
}


def get_side(side) -> Side:
    try:
        return SIDES[str(side).upper()]
    except KeyError:
        raise LedgerValidationError("Side must be AR or AP.")


@dataclass(frozen=True)
class ReconciliationResult:
    side: str
    control_balance: Decimal
    subledger_total: Decimal
    difference: Decimal
    party_balances: Dict[int, Decimal] = field(default_factory=dict)

    @property
    def is_balanced(self):
        return self.difference == ZERO


@dataclass(frozen=True)
class StatementRow:
    date: object
    doc_type: str
    doc_no: str
    description: str
    debit: Decimal
    credit: Decimal
    running_balance: Decimal


@dataclass
class AgingBuckets:
    current: Decimal = ZERO
    days_1_30: Decimal = ZERO
    days_31_60: Decimal = ZERO
    days_61_90: Decimal = ZERO
    over_90: Decimal = ZERO

    @property
    def total(self):
        return self.current + self.days_1_30 + self.days_31_60 + self.days_61_90 + self.over_90

    def add(self, days_overdue, amount):
        if days_overdue <= 0:
            self.current += amount
        elif days_overdue <= 30:
            self.days_1_30 += amount
        elif days_overdue <= 60:
            self.days_31_60 += amount
        elif days_overdue <= 90:
            self.days_61_90 += amount
        else:
            self.over_90 += amount


@dataclass(frozen=True)
class TrialBalanceRow:
    account_id: int
    code: str
    name: str
    debit: Decimal
    credit: Decimal

    @property
    def balance(self):
        return self.debit - self.credit


# ---------- Outstanding ----------
def with_allocated(queryset, side: Side):
    """Annotate documents with ``allocated``: the sum of posted allocations."""
    posted = Q(**{f"allocations__{side.settlement_field}__status": "posted"})
    return queryset.annotate(
        allocated=Coalesce(
            Sum("allocations__amount", filter=posted), Value(ZERO), output_field=MONEY
        )
    )


def posted_documents(company, side: Side, party_id=None):
    docs = side.document_model.objects.for_company(company).filter(status="posted")
    if party_id is not None:
        docs = docs.filter(**{f"{side.party_field}_id": party_id})
    return with_allocated(docs, side)


def outstanding(document, side=None) -> Decimal:
    """Gross total less posted allocations for one document."""
    side = side or (SIDES[AR] if isinstance(document, Invoice) else SIDES[AP])
    allocated = document.allocations.filter(
        **{f"{side.settlement_field}__status": "posted"}
    ).aggregate(total=Sum("amount"))["total"] or ZERO
    return document.total_gross - allocated


def has_posted_allocations(document) -> bool:
    side = SIDES[AR] if isinstance(document, Invoice) else SIDES[AP]
    return document.allocations.filter(
        **{f"{side.settlement_field}__status": "posted"}
    ).exists()


# ---------- Reconciliation ----------
def control_balance(company, side: Side) -> Decimal:
    controls = ControlAccounts.objects.filter(company=company).first()
    account_id = getattr(controls, f"{side.control_field}_id", None) if controls else None
    if not account_id:
        raise MissingAccountMappingError(f"{side.name} control account is not configured.")

    sums = JournalLine.objects.filter(
        company=company,
        account_id=account_id,
        journal__status__in=LEDGER_STATUSES,
    ).aggregate(debit=Sum("debit"), credit=Sum("credit"))
    return side.normal_sign(sums["debit"] or ZERO, sums["credit"] or ZERO)


def reconcile(company, side=AR) -> ReconciliationResult:
    side = get_side(side)
    balance = control_balance(company, side)

    party_balances: Dict[int, Decimal] = {}
    for doc in posted_documents(company, side):
        party_id = getattr(doc, f"{side.party_field}_id")
        party_balances[party_id] = party_balances.get(party_id, ZERO) + doc.total_gross - doc.allocated
    subledger = sum(party_balances.values(), ZERO)

    return ReconciliationResult(
        side=side.name,
        control_balance=balance,
        subledger_total=subledger,
        difference=balance - subledger,
        party_balances=party_balances,
    )


# ---------- Statement ----------
def statement(company, party_id, side=AR) -> List[StatementRow]:
    """
    Posted documents as debits, posted settlements as credits, by date
    (documents before settlements on the same day), with a running balance.
    """
    side = get_side(side)
    entries = []
    documents = side.document_model.objects.for_company(company).filter(
        status="posted", **{f"{side.party_field}_id": party_id}
    )
    for doc in documents:
        entries.append(
            ((doc.doc_date, 0, doc.doc_no), doc.doc_type,
             f"{side.document_label} {doc.doc_no}", doc.total_gross, ZERO)
        )
    settlements = side.settlement_model.objects.for_company(company).filter(
        status="posted", **{f"{side.party_field}_id": party_id}
    )
    for settlement in settlements:
        entries.append(
            ((settlement.doc_date, 1, settlement.doc_no), settlement.doc_type,
             f"{side.settlement_label} {settlement.doc_no}", ZERO, settlement.total_allocated)
        )

    rows = []
    balance = ZERO
    for key, doc_type, description, debit, credit in sorted(entries, key=lambda e: e[0]):
        balance = balance + debit - credit
        rows.append(
            StatementRow(
                date=key[0],
                doc_type=doc_type,
                doc_no=key[2],
                description=description,
                debit=debit,
                credit=credit,
                running_balance=balance,
            )
        )
    return rows


# ---------- Aging ----------
def _age_into(buckets, doc, as_of):
    remaining = doc.total_gross - doc.allocated
    if remaining <= 0:
        return
    reference = doc.due_date or doc.doc_date
    buckets.add((as_of - reference).days, remaining)


def aging(company, party_id, side=AR, as_of=None) -> AgingBuckets:
    side = get_side(side)
    as_of = as_of or timezone.localdate()
    buckets = AgingBuckets()
    for doc in posted_documents(company, side, party_id):
        _age_into(buckets, doc, as_of)
    return buckets


def aging_by_party(company, side=AR, as_of=None) -> Dict[int, AgingBuckets]:
    side = get_side(side)
    as_of = as_of or timezone.localdate()
    result: Dict[int, AgingBuckets] = {}
    for doc in posted_documents(company, side):
        party_id = getattr(doc, f"{side.party_field}_id")
        _age_into(result.setdefault(party_id, AgingBuckets()), doc, as_of)
    return {party: buckets for party, buckets in result.items() if buckets.total}


# ---------- Trial balance ----------
def trial_balance(company, period_ids: Optional[List[int]] = None) -> List[TrialBalanceRow]:
    lines = JournalLine.objects.filter(company=company, journal__status__in=LEDGER_STATUSES)
    if period_ids:
        lines = lines.filter(journal__period_id__in=period_ids)
    sums = (
        lines.values("account_id", "account__code", "account__name")
        .annotate(debit=Sum("debit"), credit=Sum("credit"))
        .order_by("account__code")
    )
    return [
        TrialBalanceRow(
            account_id=row["account_id"],
            code=row["account__code"],
            name=row["account__name"],
            debit=row["debit"] or ZERO,
            credit=row["credit"] or ZERO,
        )
        for row in sums
    ]
