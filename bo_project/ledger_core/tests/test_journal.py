from decimal import Decimal

from django.core.exceptions import ValidationError

from ..exceptions import (ForeignAccountError, InvalidStateTransition,
                          LedgerValidationError, PeriodClosedError,
                          PermissionDeniedError, UnbalancedJournalError)
from ..models import Account, AuditLog, JournalEntry, JournalLine
from ..services import workflow
from ..services.periods import close_period
from ..services.posting import (approve_journal, create_journal_draft,
                                post_draft_journal, post_journal,
                                post_manual_journal, reverse_journal)
from .helpers import LedgerTestCase, make_accounts, make_company


class PostJournalTests(LedgerTestCase):

    """ Success tests """
    def test_posts_balanced_journal(self):
        journal = post_manual_journal(
            self.company, self.period.pk, self.today, "Cash sale", self.lines("250.00"), self.manager
        )

        self.assertEqual(journal.status, "posted")
        self.assertEqual(journal.posted_by, self.manager)
        self.assertEqual(journal.compute_totals(), (Decimal("250.00"), Decimal("250.00")))
        self.assertTrue(
            AuditLog.objects.filter(entity="journal", entity_id=str(journal.pk), action="created_posted").exists()
        )

    def test_zero_rows_are_not_stored(self):
        lines = self.lines("10.00") + [{"account_id": self.ar.pk, "debit": 0, "credit": 0}]
        journal = post_journal(self.company, self.period.pk, self.today, "", lines, self.admin)
        self.assertEqual(journal.lines.count(), 2)

    """ Failure tests """
    def test_unbalanced_journal_writes_nothing(self):
        lines = [
            {"account_id": self.cash.pk, "debit": "100.00", "credit": 0},
            {"account_id": self.sales.pk, "debit": 0, "credit": "90.00"},
        ]
        with self.assertRaises(UnbalancedJournalError):
            post_manual_journal(self.company, self.period.pk, self.today, "", lines, self.manager)
        self.assertFalse(JournalEntry.objects.exists())
        self.assertFalse(JournalLine.objects.exists())

    def test_foreign_account_is_refused(self):
        other = make_company("Other Co")
        foreign = make_accounts(other)["4000"]
        with self.assertRaises(ForeignAccountError):
            post_manual_journal(
                self.company, self.period.pk, self.today, "",
                self.lines("5.00", credit_account=foreign), self.manager,
            )
        self.assertFalse(JournalEntry.objects.exists())

    def test_inactive_account_is_refused(self):
        Account.objects.filter(pk=self.sales.pk).update(is_active=False)
        with self.assertRaisesMessage(LedgerValidationError, "Inactive accounts"):
            post_manual_journal(self.company, self.period.pk, self.today, "", self.lines("5.00"), self.manager)

    def test_closed_period_refuses_every_role(self):
        close_period(self.period.pk, self.admin)
        for actor in (self.admin, self.manager):
            with self.assertRaises(PeriodClosedError):
                post_manual_journal(self.company, self.period.pk, self.today, "", self.lines("5.00"), actor)
        self.assertFalse(JournalEntry.objects.exists())

    def test_entry_date_outside_period(self):
        other = self.periods[1] if self.period.month != 1 else self.periods[2]
        with self.assertRaises(LedgerValidationError):
            post_manual_journal(self.company, other.pk, self.today, "", self.lines("5.00"), self.manager)

    def test_officer_cannot_post_directly(self):
        with self.assertRaises(PermissionDeniedError):
            post_manual_journal(self.company, self.period.pk, self.today, "", self.lines("5.00"), self.officer)


class DraftPipelineTests(LedgerTestCase):

    def setUp(self):
        super().setUp()
        self.draft = create_journal_draft(
            self.company, self.period.pk, self.today, "Accrual", self.lines("75.00"), self.officer
        )

    def test_draft_approve_post(self):
        approve_journal(self.draft.pk, self.manager)
        journal = post_draft_journal(self.draft.pk, self.manager)
        self.assertEqual(journal.status, "posted")
        self.assertEqual(journal.approved_by, self.manager)

    def test_maker_cannot_approve_own_journal(self):
        maker = self.admin
        draft = create_journal_draft(self.company, self.period.pk, self.today, "", self.lines("1.00"), maker)
        with self.assertRaisesMessage(PermissionDeniedError, "Makers cannot approve their own journals."):
            approve_journal(draft.pk, maker)

    def test_post_requires_approval(self):
        with self.assertRaises(InvalidStateTransition):
            post_draft_journal(self.draft.pk, self.manager)

    def test_post_rechecks_period(self):
        approve_journal(self.draft.pk, self.manager)
        close_period(self.period.pk, self.admin)
        with self.assertRaises(PeriodClosedError):
            post_draft_journal(self.draft.pk, self.manager)
        self.draft.refresh_from_db()
        self.assertEqual(self.draft.status, "approved")


class ReversalTests(LedgerTestCase):

    def setUp(self):
        super().setUp()
        self.journal = post_manual_journal(
            self.company, self.period.pk, self.today, "Sale", self.lines("300.00"), self.manager
        )

    def test_reversal_nets_every_account_to_zero(self):
        reversal = reverse_journal(self.journal.pk, "Keyed twice", self.manager)

        self.journal.refresh_from_db()
        self.assertEqual(self.journal.status, "reversed")
        self.assertEqual(reversal.reversal_of, self.journal)
        self.assertEqual(reversal.status, "posted")
        for account in (self.cash, self.sales):
            lines = JournalLine.objects.filter(account=account)
            net = sum(line.debit - line.credit for line in lines)
            self.assertEqual(net, Decimal("0"))

    def test_reason_is_required(self):
        with self.assertRaises(LedgerValidationError):
            reverse_journal(self.journal.pk, "  ", self.manager)

    def test_reversed_journal_is_immutable(self):
        reverse_journal(self.journal.pk, "Wrong customer", self.manager)
        with self.assertRaises(InvalidStateTransition):
            reverse_journal(self.journal.pk, "Again", self.manager)

        self.journal.refresh_from_db()
        self.journal.status = "posted"
        with self.assertRaises(ValidationError):
            self.journal.save()

    def test_posted_journal_cannot_go_back_to_draft(self):
        self.journal.status = "draft"
        with self.assertRaises(ValidationError):
            self.journal.save()

    def test_document_journal_is_left_to_the_document(self):
        invoice = self.posted_invoice("1000.00")
        with self.assertRaisesMessage(InvalidStateTransition, "void or reverse the document instead"):
            reverse_journal(invoice.journal.pk, "Wrong amount", self.manager)

        invoice.refresh_from_db()
        self.assertEqual(invoice.status, "posted")
        self.assertEqual(invoice.journal.status, "posted")

        workflow.void("invoice", invoice.pk, self.manager, "Wrong amount")
        invoice.refresh_from_db()
        self.assertEqual(invoice.status, "voided")
