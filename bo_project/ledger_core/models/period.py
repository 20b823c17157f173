from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .entitymembership import Company

PERIOD_STATUS = [
    ("open", "Open"),
    ("closed", "Closed"),
]


# ---------- Period (accounting period) ----------
class Period(models.Model):  # One month of a company's fiscal calendar

    # Every company has its own independent calendar of periods
    company = models.ForeignKey(
        Company,
        # Prevent deletion of periods tied to journal entries or documents
        on_delete=models.PROTECT,
    )
    year = models.PositiveIntegerField()
    month = models.PositiveSmallIntegerField()

    start_date = models.DateField()
    end_date = models.DateField()

    status = models.CharField(max_length=10, choices=PERIOD_STATUS, default="open")
    """
        When status is closed:
            No postings allowed.
            Drafts may still be edited; they just cannot post here.
    """

    closed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True,
        on_delete=models.SET_NULL, related_name="+",
    )
    closed_at = models.DateTimeField(null=True, blank=True)
    reopened_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True,
        on_delete=models.SET_NULL, related_name="+",
    )
    reopened_at = models.DateTimeField(null=True, blank=True)
    reopen_reason = models.TextField(blank=True, default="")

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "start_date"], name="period_company_start_idx"),
            models.Index(fields=["company", "status"], name="period_company_status_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "year", "month"], name="uq_company_period_month"
            ),
        ]
        ordering = ("company", "start_date")

    def __str__(self):
        return f"{self.year}-{self.month:02d}"

    @property
    def is_open(self):
        return self.status == "open"

    def covers(self, date):
        return self.start_date <= date <= self.end_date

    def clean(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValidationError("start_date must not be after end_date")
        if self.month is not None and not 1 <= self.month <= 12:
            raise ValidationError("month must be between 1 and 12")

        # Exactly one period covers any date within a company
        overlapping = Period.objects.filter(
            company_id=self.company_id,
            start_date__lte=self.end_date,
            end_date__gte=self.start_date,
        ).exclude(pk=self.pk)
        if overlapping.exists():
            raise ValidationError("Periods of the same company cannot overlap.")

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
