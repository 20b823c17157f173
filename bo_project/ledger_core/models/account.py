from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .entitymembership import Company

# Choice Lists
AC_TYPES = [
    ("asset", "Asset"),
    ("liability", "Liability"),
    ("equity", "Equity"),
    ("income", "Income"),
    ("expense", "Expense"),
]

# Whether the account normally increases on the debit or the credit side
NORMAL_BALANCE = [
    ("debit", "Debit"),
    ("credit", "Credit"),
]

# Fields frozen once a posted journal line references the account
FROZEN_FIELDS = (
    "company_id", "code", "name", "ac_type",
    "normal_balance", "is_control_account", "is_active",
)


class Account(models.Model):
    """
    Ledger account in the Chart of Accounts.
    - code is unique per company
    - normal_balance: used to interpret sign when building reports
    - is_control_account: must reconcile with a subledger (AR, AP)
    """

    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    code = models.CharField(max_length=32)
    name = models.CharField(max_length=200)  # "Cash on Hand", "Accounts Payable"
    ac_type = models.CharField(max_length=10, choices=AC_TYPES)
    normal_balance = models.CharField(
        max_length=6,
        choices=NORMAL_BALANCE,
        default="debit",
        # Assets/Expenses → Debit, Liabilities/Equity/Income → Credit.
    )
    # "soft deactivate": hide in pickers, stop new postings
    is_active = models.BooleanField(default=True)
    is_control_account = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "ac_type"], name="account_company_type_idx"),
            models.Index(fields=["company", "code"], name="account_company_code_idx"),
        ]
        """ Codes repeat across companies but must be unique within one. """
        constraints = [
            models.UniqueConstraint(
                fields=["company", "code"], name="uq_company_account_code"
            )
        ]
        ordering = ("company", "code")

    def __str__(self):
        return f"{self.code} – {self.name}"

    def is_referenced_by_posted_lines(self):
        from .journal import JournalLine

        return JournalLine.objects.filter(
            account_id=self.pk, journal__status__in=("posted", "reversed")
        ).exists()

    def clean(self):
        if not self.pk:
            return
        old = Account.objects.filter(pk=self.pk).first()
        if old is None:
            return
        changed = [f for f in FROZEN_FIELDS if getattr(old, f) != getattr(self, f)]
        if changed and self.is_referenced_by_posted_lines():
            raise ValidationError(
                f"Account {old.code} is referenced by posted journal lines "
                f"and cannot be changed ({', '.join(changed)})."
            )

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
