from decimal import Decimal
from django.db import models
from ..managers import TenantManager
from .account import Account
from .document import Document
from .entitymembership import Company
from .ratecard import Depot, District, RateCard, RateCardLine, TakeoverCenter

ZERO = Decimal("0.00")

EVACUATION_TREATMENT = [
    ("company_paid", "Company paid"),
    ("deducted", "Deducted from agent"),
]

# Where company-paid evacuation is credited
EVACUATION_PAYMENT_MODE = [
    ("payable", "Evacuation payable"),
    ("cash", "Cash / bank"),
]

RATE_STATUS = [
    ("rated", "Rated"),
    ("no_published_rate", "No published rate"),
]


class CocoaAgent(models.Model):  # purchasing clerk / society holding our advances
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    name = models.CharField(max_length=200)
    role_type = models.CharField(max_length=40, blank=True, default="")
    district = models.ForeignKey(
        District, null=True, blank=True, on_delete=models.SET_NULL, related_name="+"
    )
    phone = models.CharField(max_length=32, blank=True, default="")
    is_active = models.BooleanField(default=True)

    objects = TenantManager()

    def __str__(self):
        return self.name


# ---------- CTRO (Commodity Takeover Receipt Order) ----------
class Ctro(Document):
    doc_type = "ctro"

    season = models.CharField(max_length=20, blank=True, default="")
    agent = models.ForeignKey(
        CocoaAgent, null=True, blank=True, on_delete=models.PROTECT, related_name="ctros"
    )
    depot = models.ForeignKey(
        Depot, null=True, blank=True, on_delete=models.PROTECT, related_name="+"
    )
    evacuation_payment_mode = models.CharField(
        max_length=10, choices=EVACUATION_PAYMENT_MODE, default="payable"
    )
    evacuation_cash_account = models.ForeignKey(
        Account, null=True, blank=True, on_delete=models.PROTECT, related_name="+"
    )
    remarks = models.TextField(blank=True, default="")

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["company", "doc_no"], name="uq_ctro_company_number"
            )
        ]


class CtroLine(models.Model):
    ctro = models.ForeignKey(Ctro, on_delete=models.CASCADE, related_name="lines")
    line_date = models.DateField()
    depot = models.ForeignKey(
        Depot, null=True, blank=True, on_delete=models.PROTECT, related_name="+"
    )
    takeover_center = models.ForeignKey(TakeoverCenter, on_delete=models.PROTECT, related_name="+")
    district = models.ForeignKey(
        District, null=True, blank=True, on_delete=models.SET_NULL, related_name="+"
    )
    waybill_no = models.CharField(max_length=64, blank=True, default="")
    bags = models.PositiveIntegerField()
    # bags / bags_per_tonne, kept unrounded (6dp) for the money math
    tonnage = models.DecimalField(max_digits=18, decimal_places=6, default=Decimal("0"))
    evacuation_treatment = models.CharField(
        max_length=15, choices=EVACUATION_TREATMENT, default="company_paid"
    )
    rate_status = models.CharField(max_length=20, choices=RATE_STATUS, default="rated")

    # Rates as applied when the line was costed
    rate_card = models.ForeignKey(
        RateCard, null=True, blank=True, on_delete=models.PROTECT, related_name="+"
    )
    rate_card_line = models.ForeignKey(
        RateCardLine, null=True, blank=True, on_delete=models.PROTECT, related_name="+"
    )
    bags_per_tonne = models.DecimalField(max_digits=8, decimal_places=3, default=Decimal("16"))
    applied_producer_price_per_tonne = models.DecimalField(max_digits=18, decimal_places=4, default=ZERO)
    applied_buyer_margin_per_tonne = models.DecimalField(max_digits=18, decimal_places=4, default=ZERO)
    applied_secondary_evac_cost_per_tonne = models.DecimalField(max_digits=18, decimal_places=4, default=ZERO)
    applied_takeover_price_per_tonne = models.DecimalField(max_digits=18, decimal_places=4, default=ZERO)

    # Derived: round2(tonnage × applied rate)
    producer_price_value = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    buyers_margin_value = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    evacuation_cost = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    line_total = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)

    class Meta:
        ordering = ("id",)

    def __str__(self):
        return f"{self.takeover_center} {self.bags} bags"

    @property
    def is_rated(self):
        return self.rate_status == "rated"


class CtroTotals(models.Model):
    """Totals projection of a CTRO; rewritten whenever its lines change."""

    ctro = models.OneToOneField(Ctro, on_delete=models.CASCADE, related_name="totals")
    total_bags = models.PositiveIntegerField(default=0)
    total_tonnage = models.DecimalField(max_digits=18, decimal_places=3, default=Decimal("0"))
    total_producer_value = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    total_buyers_margin = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    total_evacuation = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    total_evacuation_company_paid = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    total_evacuation_deducted = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    grand_total = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    unrated_lines = models.PositiveIntegerField(default=0)
    computed_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"CTRO {self.ctro_id}: {self.total_tonnage} t, {self.grand_total}"
