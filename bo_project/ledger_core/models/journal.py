from decimal import Decimal
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .account import Account
from .entitymembership import Company
from .period import Period

JOURNAL_STATUS = [
    ("draft", "Draft"),  # still editable
    ("approved", "Approved"),  # checked by someone other than the maker
    ("posted", "Posted"),  # finalized
    ("reversed", "Reversed"),  # finalized, offset by a later reversal entry
]

# Statuses whose lines count towards balances
LEDGER_STATUSES = ("posted", "reversed")


# ---------- Journal (Header) & JournalLine ----------
class JournalEntry(models.Model):  # Represents one accounting transaction
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    period = models.ForeignKey(
        Period,
        on_delete=models.PROTECT,  # Prevent breaking historical ledger
    )
    entry_date = models.DateField()
    narration = models.TextField(blank=True, default="")
    status = models.CharField(max_length=10, choices=JOURNAL_STATUS, default="draft")

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True,
        on_delete=models.SET_NULL, related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True,
        on_delete=models.SET_NULL, related_name="+",
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    posted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True,
        on_delete=models.SET_NULL, related_name="+",
    )
    posted_at = models.DateTimeField(null=True, blank=True)
    reversed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True,
        on_delete=models.SET_NULL, related_name="+",
    )
    reversed_at = models.DateTimeField(null=True, blank=True)

    # A reversal is a new posted entry pointing back at the one it offsets
    reversal_of = models.OneToOneField(
        "self", null=True, blank=True,
        on_delete=models.PROTECT, related_name="reversal",
    )

    # Where the entry came from ("manual", "invoice", "ctro", ...)
    source_type = models.CharField(max_length=20, default="manual")

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "entry_date"], name="je_company_date_idx"),
            models.Index(fields=["company", "status"], name="je_company_status_idx"),
        ]

    def __str__(self):
        return f"JE {self.pk} {self.entry_date} [{self.status}]"

    def compute_totals(self):
        """Return debits, credits sums for lines"""
        aggs = self.lines.aggregate(
            total_debit=models.Sum("debit"),
            total_credit=models.Sum("credit"),
        )
        return (
            aggs["total_debit"] or Decimal("0.00"),
            aggs["total_credit"] or Decimal("0.00"),
        )

    def save(self, *args, **kwargs):
        if self.pk:
            orig = JournalEntry.objects.filter(pk=self.pk).first()
            # posted → reversed is the only move out of a final state
            if orig and orig.status == "posted" and self.status not in ("posted", "reversed"):
                raise ValidationError("Cannot unpost a posted journal")
            if orig and orig.status == "reversed" and self.status != "reversed":
                raise ValidationError("A reversed journal is immutable.")
        super().save(*args, **kwargs)


class JournalLine(models.Model):  # Stores Lines ( credits / debits )
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    journal = models.ForeignKey(
        JournalEntry,
        on_delete=models.CASCADE,
        related_name="lines",
    )
    # can't delete account if lines exist → PROTECT
    account = models.ForeignKey(Account, on_delete=models.PROTECT)
    description = models.CharField(max_length=400, blank=True, default="")
    debit = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    credit = models.DecimalField(max_digits=18, decimal_places=2, default=0)

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "account"], name="jl_company_account_idx"),
            models.Index(fields=["company", "journal"], name="jl_company_journal_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(debit__gte=0) & models.Q(credit__gte=0),
                name="jl_non_negative_amounts",
            ),
            # exactly one side carries the amount
            models.CheckConstraint(
                condition=(
                    (models.Q(debit__gt=0) & models.Q(credit=0))
                    | (models.Q(debit=0) & models.Q(credit__gt=0))
                ),
                name="jl_debit_xor_credit",
            ),
        ]

    def __str__(self):
        return f"{self.account} Dr {self.debit} Cr {self.credit}"
