"""Ledger knobs read from Django settings, with defaults."""
from decimal import Decimal

from django.conf import settings

DEFAULT_PREFIXES = {
    "invoice": "INV",
    "bill": "BILL",
    "receipt": "RCT",
    "voucher": "PV",
    "ctro": "CTRO",
}


def balance_tolerance() -> Decimal:
    # Debits and credits may differ by at most this much (2dp rounding)
    return Decimal(str(getattr(settings, "LEDGER_BALANCE_TOLERANCE", "0.005")))


def default_bags_per_tonne() -> int:
    return int(getattr(settings, "LEDGER_DEFAULT_BAGS_PER_TONNE", 16))


def number_prefix(doc_type: str) -> str:
    prefixes = {**DEFAULT_PREFIXES, **getattr(settings, "LEDGER_NUMBER_PREFIXES", {})}
    return prefixes[doc_type]


def number_retries() -> int:
    return int(getattr(settings, "LEDGER_NUMBER_RETRIES", 3))
