from django.db import models
from ..managers import TenantManager
from .entitymembership import Company


class Supplier(models.Model):  # Mirrors Customer but for Accounts Payable (AP)
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    name = models.CharField(max_length=200)
    contact_email = models.EmailField(null=True, blank=True)
    payment_terms_days = models.IntegerField(default=30)

    # We withhold tax when paying this supplier
    wht_applicable = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "name"], name="supplier_company_name_idx"),
        ]
        # Supplier names must be unique per company
        constraints = [
            models.UniqueConstraint(
                fields=["company", "name"], name="uq_company_supplier_name"
            ),
        ]

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
