from decimal import Decimal

from ..exceptions import (AllocationMismatchError, InvalidStateTransition,
                          LedgerValidationError)
from ..models import Customer, JournalLine, Receipt
from ..services import documents, workflow
from ..services.reconciliation import outstanding
from .helpers import LedgerTestCase


class ReceiptTests(LedgerTestCase):

    def setUp(self):
        super().setUp()
        self.invoice = self.posted_invoice("1000.00")

    def receipt(self, received="1000.00", allocated="1000.00", wht="0", invoice=None, **extra):
        return documents.create_receipt_draft(
            self.company, self.officer,
            customer_id=self.customer.pk,
            doc_date=self.today,
            cash_account_id=self.cash.pk,
            amount_received=received,
            wht_amount=wht,
            allocations=[{"invoice_id": (invoice or self.invoice).pk, "amount": allocated}],
            **extra
        )

    def post(self, receipt):
        workflow.submit("receipt", receipt.pk, self.officer)
        workflow.post("receipt", receipt.pk, self.manager)
        receipt.refresh_from_db()
        return receipt

    """ Success tests """
    def test_full_receipt_clears_invoice(self):
        receipt = self.post(self.receipt())

        self.assertEqual(receipt.doc_no, f"RCT-{self.today.year}-0001")
        self.assertEqual(receipt.total_allocated, Decimal("1000.00"))
        self.assertEqual(outstanding(self.invoice), Decimal("0.00"))
        lines = JournalLine.objects.filter(journal=receipt.journal)
        self.assertEqual(lines.get(account=self.cash).debit, Decimal("1000.00"))
        self.assertEqual(lines.get(account=self.ar).credit, Decimal("1000.00"))

    def test_draft_receipt_does_not_reduce_outstanding(self):
        self.receipt(received="400.00", allocated="400.00")
        self.assertEqual(outstanding(self.invoice), Decimal("1000.00"))

    def test_wht_receipt(self):
        Customer.objects.filter(pk=self.customer.pk).update(wht_applicable=True)
        receipt = self.post(self.receipt(received="950.00", wht="50.00"))

        lines = JournalLine.objects.filter(journal=receipt.journal)
        self.assertEqual(lines.get(account=self.accounts["1150"]).debit, Decimal("50.00"))
        self.assertEqual(lines.get(account=self.ar).credit, Decimal("1000.00"))

    """ Failure tests """
    def test_received_plus_wht_must_match_allocations(self):
        with self.assertRaises(AllocationMismatchError):
            self.receipt(received="999.99")
        self.assertFalse(Receipt.objects.exists())

    def test_wht_needs_applicable_customer(self):
        with self.assertRaisesMessage(LedgerValidationError, "Customer is not WHT applicable."):
            self.receipt(received="950.00", wht="50.00")

    def test_over_allocation_is_refused(self):
        with self.assertRaisesMessage(LedgerValidationError, "exceeds its outstanding balance"):
            self.receipt(received="1000.01", allocated="1000.01")

    def test_draft_invoice_cannot_be_allocated(self):
        draft = documents.create_invoice_draft(self.company, self.officer, **self.invoice_payload("50.00"))
        with self.assertRaisesMessage(LedgerValidationError, "Only posted invoices can be allocated"):
            self.receipt(received="50.00", allocated="50.00", invoice=draft)

    def test_post_rechecks_outstanding(self):
        first = self.receipt(received="700.00", allocated="700.00")
        second = self.receipt(received="700.00", allocated="700.00")
        self.post(first)

        workflow.submit("receipt", second.pk, self.officer)
        with self.assertRaises(LedgerValidationError):
            workflow.post("receipt", second.pk, self.manager)
        second.refresh_from_db()
        self.assertEqual(second.status, "submitted")

    def test_invoice_with_posted_receipt_cannot_be_voided(self):
        self.post(self.receipt())
        with self.assertRaisesMessage(InvalidStateTransition, "has posted settlements"):
            workflow.void("invoice", self.invoice.pk, self.manager, "Mistake")

    def test_voiding_receipt_restores_outstanding(self):
        receipt = self.post(self.receipt(received="300.00", allocated="300.00"))
        self.assertEqual(outstanding(self.invoice), Decimal("700.00"))
        workflow.void("receipt", receipt.pk, self.manager, "Bounced cheque")
        self.assertEqual(outstanding(self.invoice), Decimal("1000.00"))


class VoucherTests(LedgerTestCase):

    def setUp(self):
        super().setUp()
        self.bill = self.posted_bill("400.00")
        self.supplier.wht_applicable = True
        self.supplier.save()

    def test_voucher_with_wht(self):
        voucher = documents.create_voucher_draft(
            self.company, self.officer,
            supplier_id=self.supplier.pk,
            doc_date=self.today,
            cash_account_id=self.cash.pk,
            amount_paid="380.00",
            wht_amount="20.00",
            allocations=[{"bill_id": self.bill.pk, "amount": "400.00"}],
        )
        self.assertEqual(voucher.doc_no, f"PV-{self.today.year}-0001")
        workflow.submit("voucher", voucher.pk, self.officer)
        workflow.post("voucher", voucher.pk, self.manager)
        voucher.refresh_from_db()

        lines = JournalLine.objects.filter(journal=voucher.journal)
        self.assertEqual(lines.get(account=self.ap).debit, Decimal("400.00"))
        self.assertEqual(lines.get(account=self.cash).credit, Decimal("380.00"))
        self.assertEqual(lines.get(account=self.accounts["2150"]).credit, Decimal("20.00"))
        self.assertEqual(outstanding(self.bill), Decimal("0.00"))

    def test_voucher_for_another_suppliers_bill(self):
        from ..models import Supplier

        other = Supplier.objects.create(company=self.company, name="Yaw Logistics")
        with self.assertRaisesMessage(LedgerValidationError, "belongs to another supplier"):
            documents.create_voucher_draft(
                self.company, self.officer,
                supplier_id=other.pk,
                doc_date=self.today,
                cash_account_id=self.cash.pk,
                amount_paid="400.00",
                allocations=[{"bill_id": self.bill.pk, "amount": "400.00"}],
            )
