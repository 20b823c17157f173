"""
Account mapping: which configured GL account receives which document amount.

Each ``map_*`` function returns the journal lines for posting a document.
Zero amounts are left out; the poster checks the balance.
"""
from ..exceptions import LedgerValidationError, MissingAccountMappingError
from ..models import ControlAccounts, CtroAccounts, TaxAccounts
from .costing import DEDUCTED
from .validation import ZERO, LineInput


def _dr(account_id, amount, description=""):
    return LineInput(account_id=account_id, debit=amount, credit=ZERO, description=description)


def _cr(account_id, amount, description=""):
    return LineInput(account_id=account_id, debit=ZERO, credit=amount, description=description)


def _mapping(model, company):
    return model.objects.filter(company=company).first()


def _require(mapping, field, message):
    account_id = getattr(mapping, f"{field}_id", None) if mapping else None
    if not account_id:
        raise MissingAccountMappingError(message)
    return account_id


def _without_zero(lines):
    return [line for line in lines if line.debit or line.credit]


# ---------- Invoice / Bill ----------
def map_invoice(invoice):
    controls = _mapping(ControlAccounts, invoice.company)
    ar = _require(controls, "ar_control", "AR control account is not configured.")

    lines = [_dr(ar, invoice.total_gross, f"Invoice {invoice.doc_no}")]
    for line in invoice.lines.order_by("id"):
        lines.append(_cr(line.income_account_id, line.net_amount, line.description))

    taxes = (
        ("vat_output", invoice.vat_amount, "VAT"),
        ("nhil_output", invoice.nhil_amount, "NHIL"),
        ("getfund_output", invoice.getfund_amount, "GETFund"),
    )
    if any(amount for _, amount, _ in taxes):
        tax_accounts = _mapping(TaxAccounts, invoice.company)
        for field, amount, label in taxes:
            if amount:
                account = _require(tax_accounts, field, f"{label} output account is not configured.")
                lines.append(_cr(account, amount, f"{label} on {invoice.doc_no}"))
    return _without_zero(lines)


def map_bill(bill):
    controls = _mapping(ControlAccounts, bill.company)
    ap = _require(controls, "ap_control", "AP control account is not configured.")

    lines = [
        _dr(line.expense_account_id, line.net_amount, line.description)
        for line in bill.lines.order_by("id")
    ]
    lines.append(_cr(ap, bill.total_gross, f"Bill {bill.doc_no}"))
    return _without_zero(lines)


# ---------- Settlements ----------
def map_receipt(receipt):
    controls = _mapping(ControlAccounts, receipt.company)
    ar = _require(controls, "ar_control", "AR control account is not configured.")

    lines = [_dr(receipt.cash_account_id, receipt.amount_received, f"Receipt {receipt.doc_no}")]
    if receipt.wht_amount:
        wht = _require(controls, "wht_receivable", "WHT receivable account is not configured.")
        lines.append(_dr(wht, receipt.wht_amount, f"WHT on {receipt.doc_no}"))
    lines.append(_cr(ar, receipt.total_allocated, f"Receipt {receipt.doc_no}"))
    return _without_zero(lines)


def map_voucher(voucher):
    controls = _mapping(ControlAccounts, voucher.company)
    ap = _require(controls, "ap_control", "AP control account is not configured.")

    lines = [_dr(ap, voucher.total_allocated, f"Payment {voucher.doc_no}")]
    lines.append(_cr(voucher.cash_account_id, voucher.amount_paid, f"Payment {voucher.doc_no}"))
    if voucher.wht_amount:
        wht = _require(controls, "wht_payable", "WHT payable account is not configured.")
        lines.append(_cr(wht, voucher.wht_amount, f"WHT on {voucher.doc_no}"))
    return _without_zero(lines)


# ---------- CTRO ----------
CTRO_ACCOUNTS_MISSING = "Cocoa accounts are not configured. Ask Admin to run setup."


def map_ctro(ctro):
    """
    Dr field stock / Cr advances for the producer value net of deducted
    evacuation, Dr margin stock / Cr margin income, and Dr evacuation
    stock / Cr payable (or cash) for company-paid evacuation only.
    Unrated lines are not posted.
    """
    rated = [line for line in ctro.lines.all() if line.is_rated]
    if not rated:
        raise LedgerValidationError("CTRO has no rated lines to post.")

    producer = sum((line.producer_price_value for line in rated), ZERO)
    margin = sum((line.buyers_margin_value for line in rated), ZERO)
    deducted = sum(
        (line.evacuation_cost for line in rated if line.evacuation_treatment == DEDUCTED), ZERO
    )
    paid = sum(
        (line.evacuation_cost for line in rated if line.evacuation_treatment != DEDUCTED), ZERO
    )
    if deducted > producer:
        raise LedgerValidationError(
            "Deducted evacuation cannot exceed the producer value of the CTRO."
        )

    accounts = _mapping(CtroAccounts, ctro.company)
    field = _require(accounts, "cocoa_stock_field", CTRO_ACCOUNTS_MISSING)
    advances = _require(accounts, "advances_to_agents", CTRO_ACCOUNTS_MISSING)
    ref = f"CTRO {ctro.doc_no}"

    field_value = producer - deducted
    lines = [_dr(field, field_value, ref), _cr(advances, field_value, ref)]

    if margin:
        stock_margin = _require(accounts, "cocoa_stock_margin", CTRO_ACCOUNTS_MISSING)
        income = _require(accounts, "buyers_margin_income", CTRO_ACCOUNTS_MISSING)
        lines += [_dr(stock_margin, margin, ref), _cr(income, margin, ref)]

    if paid:
        stock_evac = _require(accounts, "cocoa_stock_evacuation", CTRO_ACCOUNTS_MISSING)
        if ctro.evacuation_payment_mode == "cash":
            if not ctro.evacuation_cash_account_id:
                raise MissingAccountMappingError("Cash/Bank account is required for evacuation payment.")
            evac_credit = ctro.evacuation_cash_account_id
        else:
            evac_credit = _require(
                accounts, "evacuation_payable", "Evacuation payable account is not configured."
            )
        lines += [_dr(stock_evac, paid, f"{ref} evacuation"), _cr(evac_credit, paid, f"{ref} evacuation")]

    return _without_zero(lines)
