from django.db import models
from ..managers import TenantManager
from .entitymembership import Company


class CompanySequence(models.Model):
    """Last number handed out per (company, prefix, year)."""

    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    prefix = models.CharField(max_length=10)
    year = models.PositiveIntegerField()
    last_value = models.PositiveIntegerField(default=0)

    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["company", "prefix", "year"], name="uq_company_sequence"
            ),
        ]

    def __str__(self):
        return f"{self.prefix}-{self.year}: {self.last_value}"
