import pytest

from ..exceptions import (ForeignAccountError, LedgerValidationError,
                          PermissionDeniedError)
from ..models import Customer, Invoice
from ..permissions import ACCOUNTS_OFFICER, MANAGER
from ..services import documents, workflow
from ..services.posting import post_manual_journal
from ..services.reconciliation import reconcile, trial_balance
from .helpers import (LedgerTestCase, configure_mappings, make_accounts,
                      make_company, make_periods, make_user)


class TenantIsolationTests(LedgerTestCase):

    def setUp(self):
        super().setUp()
        self.other = make_company("Other Co")
        self.other_accounts = make_accounts(self.other)
        configure_mappings(self.other, self.other_accounts)
        make_periods(self.other, self.today.year)
        self.other_customer = Customer.objects.create(company=self.other, name="Kofi Traders")
        self.outsider = make_user(self.other, "outsider", ACCOUNTS_OFFICER, MANAGER)

    def test_outsider_cannot_act_on_our_documents(self):
        invoice = documents.create_invoice_draft(self.company, self.officer, **self.invoice_payload())
        with self.assertRaisesMessage(PermissionDeniedError, "User does not have access to this company."):
            workflow.submit("invoice", invoice.pk, self.outsider)

    def test_foreign_customer_looks_missing(self):
        payload = self.invoice_payload(customer_id=self.other_customer.pk)
        with self.assertRaisesMessage(LedgerValidationError, "Customer not found for this company."):
            documents.create_invoice_draft(self.company, self.officer, **payload)

    def test_foreign_income_account_is_refused(self):
        payload = self.invoice_payload()
        payload["lines"][0]["income_account_id"] = self.other_accounts["4000"].pk
        with self.assertRaises(ForeignAccountError):
            documents.create_invoice_draft(self.company, self.officer, **payload)
        self.assertFalse(Invoice.objects.exists())

    def test_reports_see_only_own_company(self):
        self.posted_invoice("100.00")
        post_manual_journal(
            self.other, self.other.period_set.get(month=self.today.month).pk, self.today, "",
            [
                {"account_id": self.other_accounts["1100"].pk, "debit": "70.00", "credit": 0},
                {"account_id": self.other_accounts["4000"].pk, "debit": 0, "credit": "70.00"},
            ],
            self.outsider,
        )
        self.assertEqual(reconcile(self.company).control_balance, 100)
        self.assertEqual(reconcile(self.other).control_balance, 70)
        self.assertTrue(all(row.account_id in {a.pk for a in self.accounts.values()}
                            for row in trial_balance(self.company)))

    def test_numbers_are_per_company(self):
        ours = documents.create_invoice_draft(self.company, self.officer, **self.invoice_payload())
        theirs = documents.create_invoice_draft(
            self.other, self.outsider,
            customer_id=self.other_customer.pk,
            doc_date=self.today,
            lines=[{"description": "x", "quantity": 1, "unit_price": "5.00",
                    "income_account_id": self.other_accounts["4000"].pk}],
        )
        self.assertEqual(ours.doc_no, theirs.doc_no)


@pytest.mark.django_db
def test_for_company_scopes_querysets():
    first, second = make_company("First"), make_company("Second")
    Customer.objects.create(company=first, name="A")
    Customer.objects.create(company=second, name="B")
    assert list(Customer.objects.for_company(first).values_list("name", flat=True)) == ["A"]
