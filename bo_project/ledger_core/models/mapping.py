"""GL account mappings: which configured account receives which amount."""
from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .account import Account
from .entitymembership import Company


class CompanyMappingMixin(models.Model):
    """Every mapped account must belong to the mapping's company."""

    company = models.OneToOneField(Company, on_delete=models.CASCADE, related_name="+")

    objects = TenantManager()

    # Account FK field names checked by clean()
    account_fields = ()

    class Meta:
        abstract = True

    def clean(self):
        for name in self.account_fields:
            account = getattr(self, name)
            if account is not None and account.company_id != self.company_id:
                raise ValidationError(
                    f"{name} must belong to the same company as the mapping."
                )

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)


class ControlAccounts(CompanyMappingMixin):
    ar_control = models.ForeignKey(
        Account, null=True, blank=True, on_delete=models.PROTECT, related_name="+"
    )
    ap_control = models.ForeignKey(
        Account, null=True, blank=True, on_delete=models.PROTECT, related_name="+"
    )
    wht_receivable = models.ForeignKey(
        Account, null=True, blank=True, on_delete=models.PROTECT, related_name="+"
    )
    wht_payable = models.ForeignKey(
        Account, null=True, blank=True, on_delete=models.PROTECT, related_name="+"
    )

    account_fields = ("ar_control", "ap_control", "wht_receivable", "wht_payable")

    class Meta:
        verbose_name_plural = "control accounts"


class TaxAccounts(CompanyMappingMixin):
    vat_output = models.ForeignKey(
        Account, null=True, blank=True, on_delete=models.PROTECT, related_name="+"
    )
    nhil_output = models.ForeignKey(
        Account, null=True, blank=True, on_delete=models.PROTECT, related_name="+"
    )
    getfund_output = models.ForeignKey(
        Account, null=True, blank=True, on_delete=models.PROTECT, related_name="+"
    )

    account_fields = ("vat_output", "nhil_output", "getfund_output")

    class Meta:
        verbose_name_plural = "tax accounts"


class CtroAccounts(CompanyMappingMixin):
    cocoa_stock_field = models.ForeignKey(
        Account, null=True, blank=True, on_delete=models.PROTECT, related_name="+"
    )
    cocoa_stock_margin = models.ForeignKey(
        Account, null=True, blank=True, on_delete=models.PROTECT, related_name="+"
    )
    cocoa_stock_evacuation = models.ForeignKey(
        Account, null=True, blank=True, on_delete=models.PROTECT, related_name="+"
    )
    advances_to_agents = models.ForeignKey(
        Account, null=True, blank=True, on_delete=models.PROTECT, related_name="+"
    )
    buyers_margin_income = models.ForeignKey(
        Account, null=True, blank=True, on_delete=models.PROTECT, related_name="+"
    )
    evacuation_payable = models.ForeignKey(
        Account, null=True, blank=True, on_delete=models.PROTECT, related_name="+"
    )

    account_fields = (
        "cocoa_stock_field", "cocoa_stock_margin", "cocoa_stock_evacuation",
        "advances_to_agents", "buyers_margin_income", "evacuation_payable",
    )

    class Meta:
        verbose_name_plural = "CTRO accounts"


# ---------- Output tax rates ----------
class TaxRate(models.Model):
    """Rates effective from a date; the latest one on or before doc_date applies."""

    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    effective_from = models.DateField()
    vat_rate = models.DecimalField(max_digits=6, decimal_places=4, default=Decimal("0"))
    nhil_rate = models.DecimalField(max_digits=6, decimal_places=4, default=Decimal("0"))
    getfund_rate = models.DecimalField(max_digits=6, decimal_places=4, default=Decimal("0"))

    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["company", "effective_from"], name="uq_company_tax_rate_date"
            ),
        ]
        ordering = ("company", "-effective_from")

    def __str__(self):
        return f"VAT {self.vat_rate} NHIL {self.nhil_rate} GETFund {self.getfund_rate}"
