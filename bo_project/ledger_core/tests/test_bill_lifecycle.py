from decimal import Decimal

from ..exceptions import MissingAccountMappingError
from ..models import Bill, ControlAccounts, JournalEntry, JournalLine
from ..services import documents, workflow
from .helpers import LedgerTestCase


class BillTests(LedgerTestCase):

    def create(self, amount="400.00"):
        return documents.create_bill_draft(
            self.company, self.officer,
            supplier_id=self.supplier.pk,
            doc_date=self.today.isoformat(),
            supplier_ref="SUP-77",
            lines=[
                {"description": "Fuel", "quantity": "2", "unit_price": amount,
                 "expense_account_id": self.expenses.pk},
            ],
        )

    def test_draft_totals(self):
        bill = self.create()
        self.assertEqual(bill.doc_no, f"BILL-{self.today.year}-0001")
        self.assertEqual(bill.total_net, Decimal("800.00"))
        self.assertEqual(bill.total_gross, Decimal("800.00"))
        self.assertEqual(bill.supplier_ref, "SUP-77")

    def test_posting_credits_ap(self):
        bill = self.create()
        workflow.submit("bill", bill.pk, self.officer)
        workflow.post("bill", bill.pk, self.manager)

        bill.refresh_from_db()
        journal = bill.journal
        self.assertEqual(bill.status, "posted")
        self.assertEqual(JournalLine.objects.get(journal=journal, account=self.expenses).debit, Decimal("800.00"))
        self.assertEqual(JournalLine.objects.get(journal=journal, account=self.ap).credit, Decimal("800.00"))

    def test_missing_ap_mapping_leaves_bill_submitted(self):
        bill = self.create()
        workflow.submit("bill", bill.pk, self.officer)
        ControlAccounts.objects.filter(company=self.company).update(ap_control=None)

        with self.assertRaisesMessage(MissingAccountMappingError, "AP control account is not configured."):
            workflow.post("bill", bill.pk, self.manager)

        bill.refresh_from_db()
        self.assertEqual(bill.status, "submitted")
        self.assertFalse(JournalEntry.objects.exists())

    def test_void_posted_bill(self):
        bill = self.posted_bill()
        workflow.void("bill", bill.pk, self.manager, "Supplier cancelled")
        self.assertEqual(Bill.objects.get(pk=bill.pk).status, "voided")
        net = sum(line.debit - line.credit for line in JournalLine.objects.filter(account=self.ap))
        self.assertEqual(net, Decimal("0"))
