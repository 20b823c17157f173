from decimal import Decimal

from .. import api
from ..models import Invoice, JournalEntry
from .helpers import LedgerTestCase


class OperationResultTests(LedgerTestCase):

    """ Journals """
    def test_post_journal_ok(self):
        result = api.post_journal(
            self.company.pk, self.period.pk, self.today.isoformat(), "Cash sale",
            self.lines("20.00"), self.manager.pk,
        )
        self.assertTrue(result.success)
        self.assertEqual(JournalEntry.objects.get().pk, result.data)

    def test_unbalanced_journal_fails_with_kind(self):
        lines = self.lines("20.00")
        lines[1]["credit"] = Decimal("19.00")
        result = api.post_journal(self.company.pk, self.period.pk, self.today, "", lines, self.manager.pk)

        self.assertFalse(result.success)
        self.assertEqual(result.error_kind, "Unbalanced")
        self.assertIn("debits=20.00", result.error)

    def test_bad_date_is_a_validation_error(self):
        result = api.post_journal(self.company.pk, self.period.pk, "15/01/2025", "", self.lines("1.00"), self.manager.pk)
        self.assertEqual(result.error_kind, "ValidationError")

    def test_unknown_company_is_not_found(self):
        result = api.reconcile(999999)
        self.assertEqual(result.error_kind, "NotFound")

    """ Documents """
    def test_document_lifecycle(self):
        created = api.create_document_draft("invoice", self.company.pk, self.officer.pk, self.invoice_payload())
        self.assertTrue(created.success)
        invoice_id = created.data

        self.assertEqual(api.submit("invoice", invoice_id, self.officer.pk).data, "submitted")

        denied = api.post("invoice", invoice_id, self.officer.pk)
        self.assertEqual(denied.error_kind, "PermissionDenied")
        self.assertEqual(denied.error, "You can submit but not post or void.")

        self.assertEqual(api.post("invoice", invoice_id, self.manager.pk).data, "posted")
        self.assertEqual(api.void("invoice", invoice_id, self.manager.pk, "Duplicate").data, "voided")

    def test_state_error_kind(self):
        invoice_id = api.create_document_draft(
            "invoice", self.company.pk, self.officer.pk, self.invoice_payload()
        ).data
        result = api.post("invoice", invoice_id, self.manager.pk)
        self.assertEqual(result.error_kind, "InvalidStateTransition")
        self.assertEqual(result.error, "Only submitted documents can be posted.")

    def test_unknown_document_type(self):
        result = api.create_document_draft("quote", self.company.pk, self.officer.pk, {})
        self.assertEqual(result.error_kind, "ValidationError")

    def test_missing_document(self):
        self.assertEqual(api.submit("invoice", 424242, self.officer.pk).error_kind, "NotFound")

    def test_delete_and_reject(self):
        invoice_id = api.create_document_draft(
            "invoice", self.company.pk, self.officer.pk, self.invoice_payload()
        ).data
        api.submit("invoice", invoice_id, self.officer.pk)
        self.assertEqual(api.reject("invoice", invoice_id, self.manager.pk, "Fix VAT").data, "draft")
        self.assertTrue(api.delete_draft("invoice", invoice_id, self.officer.pk).success)
        self.assertFalse(Invoice.objects.filter(pk=invoice_id).exists())

    """ Reports """
    def test_reports(self):
        self.posted_invoice("500.00")
        self.assertTrue(api.reconcile(self.company.pk, "AR").data.is_balanced)
        self.assertEqual(len(api.statement(self.company.pk, self.customer.pk).data), 1)
        self.assertEqual(api.aging(self.company.pk, self.customer.pk).data.total, Decimal("500.00"))
        self.assertTrue(api.trial_balance(self.company.pk).success)

    def test_permission_is_pure(self):
        self.assertTrue(api.evaluate_permission({"manager"}, "submitted", "POST").allowed)

    """ Malformed input """
    def test_non_numeric_account_is_a_validation_error(self):
        lines = self.lines("5.00")
        lines[0]["account_id"] = "abc"
        result = api.post_journal(self.company.pk, self.period.pk, self.today, "", lines, self.manager.pk)

        self.assertEqual(result.error_kind, "ValidationError")
        self.assertEqual(result.error, "account_id must be an id.")
        self.assertFalse(JournalEntry.objects.exists())

    def test_infinite_amount_is_a_validation_error(self):
        lines = self.lines("5.00")
        lines[0]["debit"] = "Infinity"
        result = api.post_journal(self.company.pk, self.period.pk, self.today, "", lines, self.manager.pk)

        self.assertEqual(result.error_kind, "ValidationError")
        self.assertEqual(result.error, "debit must be a finite number.")

    def test_unknown_payload_field_is_named(self):
        result = api.create_document_draft(
            "invoice", self.company.pk, self.officer.pk, self.invoice_payload(bogus=1)
        )
        self.assertEqual(result.error_kind, "ValidationError")
        self.assertEqual(result.error, "Unknown field for Invoice: bogus.")
        self.assertFalse(Invoice.objects.exists())

    def test_missing_payload_field_is_named(self):
        payload = self.invoice_payload()
        del payload["customer_id"]
        result = api.create_document_draft("invoice", self.company.pk, self.officer.pk, payload)
        self.assertEqual(result.error_kind, "ValidationError")
        self.assertEqual(result.error, "customer_id is required.")

    def test_malformed_ids_stay_inside_the_result(self):
        self.assertEqual(api.submit("invoice", "x1", self.officer.pk).error_kind, "ValidationError")
        self.assertEqual(api.reconcile("acme").error_kind, "ValidationError")
        self.assertEqual(api.statement(self.company.pk, "abc").error_kind, "ValidationError")
        self.assertEqual(
            api.create_document_draft(
                "invoice", self.company.pk, self.officer.pk, self.invoice_payload(customer_id="abc")
            ).error,
            "Customer must be an id.",
        )
