from django.conf import settings
from django.db import models
from ..managers import TenantManager
from .entitymembership import Company
from .journal import JournalEntry
from .period import Period

DOC_STATUS = [
    ("draft", "Draft"),  # editable by the maker
    ("submitted", "Submitted"),  # waiting for a checker to post
    ("approved", "Approved"),
    ("posted", "Posted"),  # journal written
    ("reversed", "Reversed"),  # offset by a reversal journal
    ("voided", "Voided"),  # cancelled after posting, offset the same way
]

# Document types known to the workflow ("doc_type" values)
DOC_TYPES = [
    ("invoice", "Invoice"),
    ("bill", "Bill"),
    ("receipt", "Receipt"),
    ("voucher", "Payment voucher"),
    ("ctro", "CTRO"),
]


class Document(models.Model):
    """
    Shared header of every workflow document.

    Concrete types own their lines and their totals projection; the
    status is only ever moved by services.workflow.
    """

    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    period = models.ForeignKey(Period, on_delete=models.PROTECT)
    doc_no = models.CharField(max_length=40)
    doc_date = models.DateField()
    narration = models.TextField(blank=True, default="")
    status = models.CharField(max_length=10, choices=DOC_STATUS, default="draft")

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True,
        on_delete=models.SET_NULL, related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    submitted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True,
        on_delete=models.SET_NULL, related_name="+",
    )
    submitted_at = models.DateTimeField(null=True, blank=True)
    posted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True,
        on_delete=models.SET_NULL, related_name="+",
    )
    posted_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True,
        on_delete=models.SET_NULL, related_name="+",
    )
    cancelled_at = models.DateTimeField(null=True, blank=True)
    # Void / reverse reason, or the checker's note on rejection
    status_note = models.TextField(blank=True, default="")

    objects = TenantManager()

    # Set on each concrete model
    doc_type = None

    class Meta:
        abstract = True

    def __str__(self):
        return f"{self.doc_no} [{self.status}]"

    @property
    def journal(self):
        link = DocumentJournal.objects.filter(
            doc_type=self.doc_type, doc_id=self.pk
        ).select_related("journal").first()
        return link.journal if link else None


# ---------- Document ↔ Journal link ----------
class DocumentJournal(models.Model):
    """One row per posted document: the journal its posting produced."""

    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    doc_type = models.CharField(max_length=10, choices=DOC_TYPES)
    doc_id = models.BigIntegerField()
    journal = models.OneToOneField(
        JournalEntry, on_delete=models.PROTECT, related_name="document_link"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["doc_type", "doc_id"], name="uq_doc_journal_document"
            ),
        ]

    def __str__(self):
        return f"{self.doc_type}:{self.doc_id} → JE {self.journal_id}"
