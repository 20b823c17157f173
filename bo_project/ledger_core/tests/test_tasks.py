from decimal import Decimal

from ..models import ControlAccounts, Invoice
from ..services import documents
from ..tasks import check_reconciliation, rebuild_document_totals
from .helpers import LedgerTestCase


class RebuildTotalsTests(LedgerTestCase):

    def test_nothing_to_fix(self):
        documents.create_invoice_draft(self.company, self.officer, **self.invoice_payload())
        self.assertEqual(rebuild_document_totals(self.company.pk), 0)

    def test_stale_projection_is_rebuilt(self):
        invoice = documents.create_invoice_draft(self.company, self.officer, **self.invoice_payload("80.00"))
        Invoice.objects.filter(pk=invoice.pk).update(total_net=Decimal("1.00"), total_gross=Decimal("1.00"))

        with self.assertLogs("ledger_core.tasks", level="WARNING"):
            fixed = rebuild_document_totals.apply(args=(self.company.pk,)).get()

        self.assertEqual(fixed, 1)
        invoice.refresh_from_db()
        self.assertEqual(invoice.total_gross, Decimal("80.00"))


class CheckReconciliationTests(LedgerTestCase):

    def test_balanced_company(self):
        self.posted_invoice("120.00")
        result = check_reconciliation(self.company.pk)
        self.assertEqual({side: Decimal(diff) for side, diff in result.items()}, {"AR": 0, "AP": 0})

    def test_side_without_mapping_is_skipped(self):
        ControlAccounts.objects.filter(company=self.company).update(ap_control=None)
        with self.assertLogs("ledger_core.tasks", level="WARNING"):
            result = check_reconciliation(self.company.pk)
        self.assertEqual(list(result), ["AR"])
