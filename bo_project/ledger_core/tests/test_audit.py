from django.core.exceptions import ValidationError
from django.db.models import ProtectedError

from ..models import AuditLog, Invoice
from ..services import workflow
from ..services.posting import post_manual_journal
from .helpers import LedgerTestCase


class AuditLogTests(LedgerTestCase):

    def setUp(self):
        super().setUp()
        self.invoice = self.posted_invoice("10.00")

    def test_every_transition_is_recorded(self):
        actions = list(
            AuditLog.objects.filter(entity="invoice", entity_id=str(self.invoice.pk))
            .values_list("action", flat=True)
        )
        self.assertEqual(actions, ["created", "submitted", "posted"])

        posted = AuditLog.objects.get(entity="invoice", action="posted")
        self.assertEqual(posted.before["status"], "submitted")
        self.assertEqual(posted.after["status"], "posted")
        self.assertEqual(posted.actor, self.manager)

    def test_entries_cannot_be_changed(self):
        entry = AuditLog.objects.first()
        entry.action = "tampered"
        with self.assertRaises(ValidationError):
            entry.save()
        with self.assertRaises(ValidationError):
            entry.delete()

    def test_bulk_paths_are_closed(self):
        with self.assertRaises(ValidationError):
            AuditLog.objects.update(action="x")
        with self.assertRaises(ValidationError):
            AuditLog.objects.all().delete()

    """ Delete guards """
    def test_posted_document_row_cannot_be_deleted(self):
        with self.assertRaisesMessage(ValidationError, "Only draft documents can be deleted."):
            Invoice.objects.get(pk=self.invoice.pk).delete()

    def test_used_account_cannot_be_deleted(self):
        post_manual_journal(self.company, self.period.pk, self.today, "", self.lines("1.00"), self.manager)
        with self.assertRaises(ProtectedError):
            self.cash.delete()

    def test_void_is_audited_with_reason(self):
        workflow.void("invoice", self.invoice.pk, self.manager, "Customer returned goods")
        entry = AuditLog.objects.get(entity="invoice", action="voided")
        self.assertEqual(entry.after["status_note"], "Customer returned goods")
        self.assertTrue(AuditLog.objects.filter(entity="journal", action="reversed").exists())
