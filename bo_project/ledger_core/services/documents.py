"""
Draft creation and draft editing for workflow documents.

Each document type registers how it writes its lines, how its totals
projection is recomputed from those lines and how it maps onto journal
lines when posted. The state machine itself lives in services.workflow.
"""
import inspect
import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import Callable, Optional

from django.db import transaction
from django.utils.dateparse import parse_date

from ..conf import default_bags_per_tonne
from ..exceptions import (LedgerValidationError, NoPublishedRateError,
                          NotFoundError)
from ..models import (Bill, BillLine, CocoaAgent, Ctro, CtroLine, CtroTotals,
                      Customer, Depot, District, Invoice, InvoiceLine,
                      PaymentVoucher, Receipt, ReceiptAllocation, Supplier,
                      TakeoverCenter, TaxRate, VoucherAllocation)
from ..permissions import CREATE, EDIT
from .access import require_permission
from .audit_helper import log_action, snapshot
from .costing import (COMPANY_PAID, DEDUCTED, DjangoRateSource, RateCardSnapshot,
                      RateLine, TotalsInput, aggregate, compute_ctro_line,
                      cost_line)
from .mapping import map_bill, map_ctro, map_invoice, map_receipt, map_voucher
from .numbering import create_with_number
from .periods import period_for_company, resolve_period
from .posting import check_accounts
from .reconciliation import AP, AR, SIDES, outstanding
from .validation import (ZERO, check_allocation_total, normalize_allocations,
                         normalize_priced_lines, round2, to_id, to_money)

logger = logging.getLogger(__name__)

TONNAGE_PLACES = Decimal("0.000001")


# ----------------------------
# Shared helpers
# ----------------------------
def as_date(value, field="date"):
    if value is None or value == "":
        raise LedgerValidationError(f"{field} is required.")
    if isinstance(value, str):
        parsed = parse_date(value)
        if parsed is None:
            raise LedgerValidationError(f"{field} must be a date (YYYY-MM-DD).")
        return parsed
    return value


def tenant_get(model, company, pk, label):
    """Row ``pk`` of ``model`` inside ``company``; foreign rows look missing."""
    obj = model.objects.for_company(company).filter(pk=to_id(pk, label)).first() if pk else None
    if obj is None:
        raise LedgerValidationError(f"{label} not found for this company.")
    return obj


def document_period(company, period_id, doc_date):
    """Explicit period must belong to the company and cover the date."""
    if period_id is None:
        return resolve_period(company, doc_date, open_only=False)
    period = period_for_company(company, period_id)
    if not period.covers(doc_date):
        raise LedgerValidationError(f"Document date {doc_date} is outside period {period}.")
    return period


def _active_party(model, company, pk, label):
    party = tenant_get(model, company, pk, label)
    if not party.is_active:
        raise LedgerValidationError(f"{label} {party} is inactive.")
    return party


def _audit_created(document, actor, extra=None):
    log_action(
        action="created", entity=document.doc_type, entity_id=document.pk,
        company=document.company, actor=actor, after=snapshot(document, extra),
    )


def _update_fields(instance, values) -> bool:
    changed = [name for name, value in values.items() if getattr(instance, name) != value]
    for name in changed:
        setattr(instance, name, values[name])
    if changed:
        instance.save(update_fields=changed)
    return bool(changed)


# ----------------------------
# Invoice
# ----------------------------
def applicable_tax_rates(company, doc_date, customer):
    """(vat, nhil, getfund) from the latest TaxRate on or before doc_date."""
    if customer.tax_exempt:
        return ZERO, ZERO, ZERO
    rate = (
        TaxRate.objects.for_company(company)
        .filter(effective_from__lte=doc_date)
        .order_by("-effective_from")
        .first()
    )
    if rate is None:
        return ZERO, ZERO, ZERO
    return rate.vat_rate, rate.nhil_rate, rate.getfund_rate


def write_invoice_lines(invoice, lines, rate_source=None):
    priced = normalize_priced_lines(lines, "income_account_id")
    check_accounts(invoice.company, {line.account_id for line in priced})
    invoice.lines.all().delete()
    InvoiceLine.objects.bulk_create(
        [
            InvoiceLine(
                invoice=invoice,
                description=line.description[:400],
                quantity=line.quantity,
                unit_price=line.unit_price,
                income_account_id=line.account_id,
                net_amount=line.net_amount,
            )
            for line in priced
        ]
    )


def recompute_invoice_totals(invoice) -> bool:
    net = sum((line.net_amount for line in invoice.lines.all()), ZERO)
    vat = round2(net * invoice.vat_rate)
    nhil = round2(net * invoice.nhil_rate)
    getfund = round2(net * invoice.getfund_rate)
    return _update_fields(
        invoice,
        {
            "total_net": net,
            "vat_amount": vat,
            "nhil_amount": nhil,
            "getfund_amount": getfund,
            "total_gross": net + vat + nhil + getfund,
        },
    )


def create_invoice_draft(company, actor, *, customer_id, doc_date, lines, period_id=None,
                         due_date=None, narration="", doc_no=None) -> Invoice:
    require_permission(actor, company, None, CREATE)
    doc_date = as_date(doc_date, "doc_date")

    with transaction.atomic():
        period = document_period(company, period_id, doc_date)
        customer = _active_party(Customer, company, customer_id, "Customer")
        vat, nhil, getfund = applicable_tax_rates(company, doc_date, customer)
        due = as_date(due_date, "due_date") if due_date else (
            doc_date + timedelta(days=customer.payment_terms_days)
        )

        def create(number):
            return Invoice.objects.create(
                company=company, period=period, doc_no=number, doc_date=doc_date,
                narration=narration or "", customer=customer, due_date=due,
                vat_rate=vat, nhil_rate=nhil, getfund_rate=getfund,
                created_by=actor,
            )

        invoice = create_with_number(create, company, "invoice", doc_date.year, Invoice, doc_no)
        write_invoice_lines(invoice, lines)
        recompute_invoice_totals(invoice)
        _audit_created(invoice, actor)

    logger.info("Invoice %s drafted for company %s (%s)", invoice.doc_no, company.pk, invoice.total_gross)
    return invoice


# ----------------------------
# Bill
# ----------------------------
def write_bill_lines(bill, lines, rate_source=None):
    priced = normalize_priced_lines(lines, "expense_account_id")
    check_accounts(bill.company, {line.account_id for line in priced})
    bill.lines.all().delete()
    BillLine.objects.bulk_create(
        [
            BillLine(
                bill=bill,
                description=line.description[:400],
                quantity=line.quantity,
                unit_price=line.unit_price,
                expense_account_id=line.account_id,
                net_amount=line.net_amount,
            )
            for line in priced
        ]
    )


def recompute_bill_totals(bill) -> bool:
    net = sum((line.net_amount for line in bill.lines.all()), ZERO)
    return _update_fields(bill, {"total_net": net, "total_gross": net})


def create_bill_draft(company, actor, *, supplier_id, doc_date, lines, period_id=None,
                      due_date=None, supplier_ref="", narration="", doc_no=None) -> Bill:
    require_permission(actor, company, None, CREATE)
    doc_date = as_date(doc_date, "doc_date")

    with transaction.atomic():
        period = document_period(company, period_id, doc_date)
        supplier = _active_party(Supplier, company, supplier_id, "Supplier")
        due = as_date(due_date, "due_date") if due_date else (
            doc_date + timedelta(days=supplier.payment_terms_days)
        )

        def create(number):
            return Bill.objects.create(
                company=company, period=period, doc_no=number, doc_date=doc_date,
                narration=narration or "", supplier=supplier, supplier_ref=supplier_ref or "",
                due_date=due, created_by=actor,
            )

        bill = create_with_number(create, company, "bill", doc_date.year, Bill, doc_no)
        write_bill_lines(bill, lines)
        recompute_bill_totals(bill)
        _audit_created(bill, actor)

    logger.info("Bill %s drafted for company %s (%s)", bill.doc_no, company.pk, bill.total_gross)
    return bill


# ----------------------------
# Receipts and payment vouchers
# ----------------------------
def lock_allocation_targets(company, side, party, allocations):
    """
    Lock the allocated documents and check each one: same company, same
    party, posted, and the amount within its outstanding balance.
    """
    model = side.document_model
    label = side.document_label.lower()
    locked = {
        doc.pk: doc
        for doc in model.objects.select_for_update().filter(
            pk__in=[a.target_id for a in allocations]
        )
    }
    for allocation in allocations:
        doc = locked.get(allocation.target_id)
        if doc is None or doc.company_id != company.pk:
            raise LedgerValidationError(f"{side.document_label} not found for this company.")
        if getattr(doc, f"{side.party_field}_id") != party.pk:
            raise LedgerValidationError(
                f"{side.document_label} {doc.doc_no} belongs to another {side.party_field}."
            )
        if doc.status != "posted":
            raise LedgerValidationError(f"Only posted {label}s can be allocated ({doc.doc_no}).")
        remaining = outstanding(doc, side)
        if allocation.amount > remaining:
            raise LedgerValidationError(
                f"Allocation to {doc.doc_no} exceeds its outstanding balance ({remaining})."
            )
    return locked


def _settlement_amounts(amount, wht_amount, amount_field):
    amount = to_money(amount, amount_field)
    if amount <= 0:
        raise LedgerValidationError(f"{amount_field} must be greater than zero.")
    wht = to_money(wht_amount, "wht_amount")
    if wht < 0:
        raise LedgerValidationError("WHT amount cannot be negative.")
    return amount, wht


def recompute_receipt_totals(receipt) -> bool:
    allocated = sum((a.amount for a in receipt.allocations.all()), ZERO)
    return _update_fields(receipt, {"total_allocated": allocated})


def recompute_voucher_totals(voucher) -> bool:
    allocated = sum((a.amount for a in voucher.allocations.all()), ZERO)
    return _update_fields(voucher, {"total_allocated": allocated})


def create_receipt_draft(company, actor, *, customer_id, doc_date, cash_account_id,
                         amount_received, allocations, wht_amount=ZERO, period_id=None,
                         narration="", doc_no=None) -> Receipt:
    require_permission(actor, company, None, CREATE)
    doc_date = as_date(doc_date, "doc_date")
    received, wht = _settlement_amounts(amount_received, wht_amount, "amount_received")
    allocs = normalize_allocations(
        allocations, "invoice_id", "Receipt must allocate at least one invoice."
    )
    allocated = check_allocation_total(allocs, received, wht, "Received")

    with transaction.atomic():
        period = document_period(company, period_id, doc_date)
        customer = _active_party(Customer, company, customer_id, "Customer")
        if wht > 0 and not customer.wht_applicable:
            raise LedgerValidationError("Customer is not WHT applicable.")
        check_accounts(company, [cash_account_id])
        lock_allocation_targets(company, SIDES[AR], customer, allocs)

        def create(number):
            return Receipt.objects.create(
                company=company, period=period, doc_no=number, doc_date=doc_date,
                narration=narration or "", customer=customer,
                cash_account_id=cash_account_id, amount_received=received,
                wht_amount=wht, total_allocated=allocated, created_by=actor,
            )

        receipt = create_with_number(create, company, "receipt", doc_date.year, Receipt, doc_no)
        ReceiptAllocation.objects.bulk_create(
            [ReceiptAllocation(receipt=receipt, invoice_id=a.target_id, amount=a.amount) for a in allocs]
        )
        _audit_created(receipt, actor, {"allocations": {str(a.target_id): str(a.amount) for a in allocs}})

    logger.info("Receipt %s drafted for company %s (%s)", receipt.doc_no, company.pk, allocated)
    return receipt


def create_voucher_draft(company, actor, *, supplier_id, doc_date, cash_account_id,
                         amount_paid, allocations, wht_amount=ZERO, period_id=None,
                         narration="", doc_no=None) -> PaymentVoucher:
    require_permission(actor, company, None, CREATE)
    doc_date = as_date(doc_date, "doc_date")
    paid, wht = _settlement_amounts(amount_paid, wht_amount, "amount_paid")
    allocs = normalize_allocations(
        allocations, "bill_id", "Payment voucher must allocate at least one bill."
    )
    allocated = check_allocation_total(allocs, paid, wht, "Paid")

    with transaction.atomic():
        period = document_period(company, period_id, doc_date)
        supplier = _active_party(Supplier, company, supplier_id, "Supplier")
        if wht > 0 and not supplier.wht_applicable:
            raise LedgerValidationError("Supplier is not WHT applicable.")
        check_accounts(company, [cash_account_id])
        lock_allocation_targets(company, SIDES[AP], supplier, allocs)

        def create(number):
            return PaymentVoucher.objects.create(
                company=company, period=period, doc_no=number, doc_date=doc_date,
                narration=narration or "", supplier=supplier,
                cash_account_id=cash_account_id, amount_paid=paid,
                wht_amount=wht, total_allocated=allocated, created_by=actor,
            )

        voucher = create_with_number(create, company, "voucher", doc_date.year, PaymentVoucher, doc_no)
        VoucherAllocation.objects.bulk_create(
            [VoucherAllocation(voucher=voucher, bill_id=a.target_id, amount=a.amount) for a in allocs]
        )
        _audit_created(voucher, actor, {"allocations": {str(a.target_id): str(a.amount) for a in allocs}})

    logger.info("Payment voucher %s drafted for company %s (%s)", voucher.doc_no, company.pk, allocated)
    return voucher


# ----------------------------
# CTRO
# ----------------------------
def _ctro_line(ctro, raw, source):
    """
    Build and cost one unsaved CTRO line.

    A missing rate card for the line date raises NoRateCardError and
    aborts the whole draft: the season has no prices yet. A card without
    a line for (depot, takeover center) is a gap in one card, so the line
    is kept unrated and the rest of the draft goes through.
    """
    company = ctro.company
    try:
        bags = int(raw.get("bags") or 0)
    except (TypeError, ValueError):
        raise LedgerValidationError("Bags must be a positive whole number.")
    if bags <= 0:
        raise LedgerValidationError("Bags must be a positive whole number.")

    treatment = raw.get("evacuation_treatment") or COMPANY_PAID
    if treatment not in (COMPANY_PAID, DEDUCTED):
        raise LedgerValidationError(f"Unknown evacuation treatment: {treatment}.")

    center = tenant_get(TakeoverCenter, company, raw.get("takeover_center_id"), "Takeover center")
    depot_id = raw.get("depot_id", ctro.depot_id)
    if depot_id:
        depot_id = tenant_get(Depot, company, depot_id, "Depot").pk
    district_id = raw.get("district_id")
    if district_id:
        district_id = tenant_get(District, company, district_id, "District").pk
    line_date = as_date(raw.get("line_date") or ctro.doc_date, "line_date")

    line = CtroLine(
        ctro=ctro,
        line_date=line_date,
        depot_id=depot_id or None,
        takeover_center=center,
        district_id=district_id or None,
        waybill_no=raw.get("waybill_no") or "",
        bags=bags,
        evacuation_treatment=treatment,
    )
    try:
        costed = compute_ctro_line(source, company.pk, line.depot_id, center.pk, bags, line_date)
    except NoPublishedRateError as exc:
        # kept on the draft, left out of totals and posting
        logger.warning("CTRO %s: line left unrated: %s", ctro.doc_no, exc)
        line.rate_status = "no_published_rate"
        line.bags_per_tonne = Decimal(default_bags_per_tonne())
        return line

    line.rate_status = "rated"
    line.rate_card_id = costed.rate_card_id
    line.rate_card_line_id = costed.rate_card_line_id
    line.bags_per_tonne = costed.bags_per_tonne
    line.tonnage = costed.tonnage.quantize(TONNAGE_PLACES)
    line.applied_producer_price_per_tonne = costed.producer_price_per_tonne
    line.applied_buyer_margin_per_tonne = costed.buyer_margin_per_tonne
    line.applied_secondary_evac_cost_per_tonne = costed.secondary_evac_cost_per_tonne
    line.applied_takeover_price_per_tonne = costed.takeover_price_per_tonne
    line.producer_price_value = costed.producer_value
    line.buyers_margin_value = costed.margin_value
    line.evacuation_cost = costed.evacuation_value
    line.line_total = costed.line_total
    return line


def write_ctro_lines(ctro, lines, rate_source=None):
    source = rate_source or DjangoRateSource()
    built = [_ctro_line(ctro, raw, source) for raw in lines]
    if not built:
        raise LedgerValidationError("At least one CTRO line is required.")
    ctro.lines.all().delete()
    CtroLine.objects.bulk_create(built)


def restate_line(line):
    """Re-derive a stored rated line from its bags and applied rates."""
    card = RateCardSnapshot(
        id=line.rate_card_id,
        effective_from=line.line_date,
        effective_to=None,
        bags_per_tonne=line.bags_per_tonne,
    )
    rate = RateLine(
        id=line.rate_card_line_id,
        depot_id=line.depot_id,
        takeover_center_id=line.takeover_center_id,
        producer_price_per_tonne=line.applied_producer_price_per_tonne,
        buyer_margin_per_tonne=line.applied_buyer_margin_per_tonne,
        secondary_evac_cost_per_tonne=line.applied_secondary_evac_cost_per_tonne,
        takeover_price_per_tonne=line.applied_takeover_price_per_tonne,
    )
    return cost_line(card, rate, line.bags)


def recompute_ctro_totals(ctro) -> bool:
    """Rebuild line values and the CtroTotals row from bags and applied rates."""
    changed = False
    inputs = []
    for line in ctro.lines.all():
        if not line.is_rated:
            inputs.append(TotalsInput(0, Decimal("0"), ZERO, ZERO, ZERO, ZERO, rated=False))
            continue
        costed = restate_line(line)
        changed |= _update_fields(
            line,
            {
                "tonnage": costed.tonnage.quantize(TONNAGE_PLACES),
                "producer_price_value": costed.producer_value,
                "buyers_margin_value": costed.margin_value,
                "evacuation_cost": costed.evacuation_value,
                "line_total": costed.line_total,
            },
        )
        inputs.append(
            TotalsInput(
                bags=line.bags,
                tonnage=costed.tonnage,
                producer_value=costed.producer_value,
                margin_value=costed.margin_value,
                evacuation_value=costed.evacuation_value,
                line_total=costed.line_total,
                evacuation_treatment=line.evacuation_treatment,
            )
        )

    summary = aggregate(inputs)
    values = {
        "total_bags": summary.total_bags,
        "total_tonnage": summary.total_tonnage,
        "total_producer_value": summary.total_producer_value,
        "total_buyers_margin": summary.total_buyers_margin,
        "total_evacuation": summary.total_evacuation,
        "total_evacuation_company_paid": summary.total_evacuation_company_paid,
        "total_evacuation_deducted": summary.total_evacuation_deducted,
        "grand_total": summary.grand_total,
        "unrated_lines": summary.unrated_lines,
    }
    totals = CtroTotals.objects.filter(ctro=ctro).first()
    if totals is None:
        CtroTotals.objects.create(ctro=ctro, **values)
        return True
    return _update_fields(totals, values) or changed


def create_ctro_draft(company, actor, *, doc_date, lines, season="", agent_id=None,
                      depot_id=None, evacuation_payment_mode="payable",
                      evacuation_cash_account_id=None, remarks="", period_id=None,
                      narration="", doc_no=None, rate_source=None) -> Ctro:
    require_permission(actor, company, None, CREATE)
    doc_date = as_date(doc_date, "doc_date")
    if evacuation_payment_mode not in ("payable", "cash"):
        raise LedgerValidationError("Evacuation payment mode must be payable or cash.")
    if evacuation_payment_mode == "cash" and not evacuation_cash_account_id:
        raise LedgerValidationError("Cash/Bank account is required for evacuation payment.")

    with transaction.atomic():
        period = document_period(company, period_id, doc_date)
        agent = tenant_get(CocoaAgent, company, agent_id, "Agent") if agent_id else None
        depot = tenant_get(Depot, company, depot_id, "Depot") if depot_id else None
        if evacuation_cash_account_id:
            check_accounts(company, [evacuation_cash_account_id])

        def create(number):
            return Ctro.objects.create(
                company=company, period=period, doc_no=number, doc_date=doc_date,
                narration=narration or "", season=season or "", agent=agent, depot=depot,
                evacuation_payment_mode=evacuation_payment_mode,
                evacuation_cash_account_id=evacuation_cash_account_id,
                remarks=remarks or "", created_by=actor,
            )

        ctro = create_with_number(create, company, "ctro", doc_date.year, Ctro, doc_no)
        write_ctro_lines(ctro, lines, rate_source)
        recompute_ctro_totals(ctro)
        _audit_created(ctro, actor)

    logger.info(
        "CTRO %s drafted for company %s (%s t)",
        ctro.doc_no, company.pk, ctro.totals.total_tonnage,
    )
    return ctro


# ----------------------------
# Registry
# ----------------------------
@dataclass(frozen=True)
class DocumentType:
    name: str
    model: type
    label: str
    create: Callable
    recompute: Callable
    map_lines: Callable
    write_lines: Optional[Callable] = None


DOCUMENT_TYPES = {
    "invoice": DocumentType(
        "invoice", Invoice, "Invoice", create_invoice_draft,
        recompute_invoice_totals, map_invoice, write_invoice_lines,
    ),
    "bill": DocumentType(
        "bill", Bill, "Bill", create_bill_draft,
        recompute_bill_totals, map_bill, write_bill_lines,
    ),
    "receipt": DocumentType(
        "receipt", Receipt, "Receipt", create_receipt_draft,
        recompute_receipt_totals, map_receipt,
    ),
    "voucher": DocumentType(
        "voucher", PaymentVoucher, "Payment voucher", create_voucher_draft,
        recompute_voucher_totals, map_voucher,
    ),
    "ctro": DocumentType(
        "ctro", Ctro, "CTRO", create_ctro_draft,
        recompute_ctro_totals, map_ctro, write_ctro_lines,
    ),
}


def get_document_type(name) -> DocumentType:
    try:
        return DOCUMENT_TYPES[name]
    except KeyError:
        raise LedgerValidationError(f"Unknown document type: {name}.")


def lock_document(doc_type, doc_id):
    document = doc_type.model.objects.select_for_update().filter(pk=to_id(doc_id, "doc_id")).first()
    if document is None:
        raise NotFoundError(f"{doc_type.label} not found.")
    return document


def create_document_draft(doc_type, company, actor, payload):
    """Create a draft of any registered type from a keyword payload."""
    document_type = get_document_type(doc_type)
    payload = dict(payload or {})
    fields = inspect.signature(document_type.create).parameters
    unknown = sorted(str(key) for key in payload if key not in fields or key in ("company", "actor"))
    if unknown:
        raise LedgerValidationError(
            f"Unknown field for {document_type.label}: {', '.join(unknown)}."
        )
    missing = [
        name for name, param in fields.items()
        if param.kind is param.KEYWORD_ONLY and param.default is param.empty and name not in payload
    ]
    if missing:
        raise LedgerValidationError(f"{missing[0]} is required.")
    return document_type.create(company, actor, **payload)


def replace_draft_lines(doc_type, doc_id, lines, actor, rate_source=None):
    """Rewrite a draft's lines and its totals projection in one transaction."""
    doc_type = get_document_type(doc_type)
    if doc_type.write_lines is None:
        raise LedgerValidationError(
            f"{doc_type.label} allocations cannot be edited; delete the draft and create a new one."
        )
    with transaction.atomic():
        document = lock_document(doc_type, doc_id)
        require_permission(actor, document.company, document.status, EDIT)
        before = snapshot(document)
        doc_type.write_lines(document, lines, rate_source)
        doc_type.recompute(document)
        log_action(
            action="lines_replaced", entity=doc_type.name, entity_id=document.pk,
            company=document.company, actor=actor,
            before=before, after=snapshot(document),
        )
    return document
