from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .entitymembership import Company


# ---------- Cocoa geography ----------
class Region(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    name = models.CharField(max_length=120)

    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["company", "name"], name="uq_company_region"),
        ]

    def __str__(self):
        return self.name


class District(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    region = models.ForeignKey(Region, on_delete=models.PROTECT, related_name="districts")
    name = models.CharField(max_length=120)

    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["region", "name"], name="uq_region_district"),
        ]

    def __str__(self):
        return self.name


class Depot(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    district = models.ForeignKey(
        District, null=True, blank=True, on_delete=models.PROTECT, related_name="depots"
    )
    name = models.CharField(max_length=120)
    is_active = models.BooleanField(default=True)

    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["company", "name"], name="uq_company_depot"),
        ]

    def __str__(self):
        return self.name


class TakeoverCenter(models.Model):  # where cocoa is handed over to the buyer
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    name = models.CharField(max_length=120)
    is_active = models.BooleanField(default=True)

    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["company", "name"], name="uq_company_takeover_center"),
        ]

    def __str__(self):
        return self.name


# ---------- Rate cards ----------
class RateCard(models.Model):
    """Per-tonne prices for one season, effective over a date range."""

    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    season = models.CharField(max_length=20)  # e.g. "2025/26"
    bag_weight_kg = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal("62.50"))
    bags_per_tonne = models.DecimalField(max_digits=8, decimal_places=3, default=Decimal("16"))
    effective_from = models.DateField()
    effective_to = models.DateField(null=True, blank=True)  # open-ended when null
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "effective_from"], name="ratecard_company_from_idx"),
        ]

    def __str__(self):
        return f"{self.season} from {self.effective_from}"

    def clean(self):
        if self.effective_to and self.effective_to < self.effective_from:
            raise ValidationError("effective_to must not be before effective_from")
        if self.bags_per_tonne is not None and self.bags_per_tonne <= 0:
            raise ValidationError("bags_per_tonne must be positive")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)


class RateCardLine(models.Model):
    rate_card = models.ForeignKey(RateCard, on_delete=models.CASCADE, related_name="lines")
    region = models.ForeignKey(Region, on_delete=models.PROTECT, related_name="+")
    district = models.ForeignKey(District, on_delete=models.PROTECT, related_name="+")
    # Matched exactly on (depot, takeover_center); a null depot only matches lines without one
    depot = models.ForeignKey(
        Depot, null=True, blank=True, on_delete=models.PROTECT, related_name="+"
    )
    takeover_center = models.ForeignKey(TakeoverCenter, on_delete=models.PROTECT, related_name="+")

    producer_price_per_tonne = models.DecimalField(max_digits=18, decimal_places=4)
    buyer_margin_per_tonne = models.DecimalField(max_digits=18, decimal_places=4)
    secondary_evac_cost_per_tonne = models.DecimalField(max_digits=18, decimal_places=4)
    takeover_price_per_tonne = models.DecimalField(max_digits=18, decimal_places=4)

    # Duplicate keys resolve to the newest line
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["rate_card", "depot", "takeover_center"], name="ratecardline_key_idx"),
        ]

    def __str__(self):
        return f"{self.depot or '*'} / {self.takeover_center}"
