import logging
from dataclasses import asdict

from django.db import transaction
from django.utils import timezone

from ..exceptions import (ForeignAccountError, InvalidStateTransition,
                          LedgerValidationError, NotFoundError)
from ..models import Account, DocumentJournal, JournalEntry, JournalLine
from ..permissions import ACCOUNTS_OFFICER, ADMIN, MANAGER
from .access import ensure_not_maker, require_role
from .audit_helper import log_action, snapshot
from .periods import lock_open_period, period_for_company, resolve_period
from .validation import (LineInput, check_balance, line_totals, mirror_lines,
                         normalize_journal_lines, to_id)

logger = logging.getLogger(__name__)

JOURNAL_MAKERS = {ADMIN, ACCOUNTS_OFFICER}
JOURNAL_CHECKERS = {ADMIN, MANAGER}


def _as_line_inputs(lines):
    # Mapped document lines go through the same checks as operator input
    return normalize_journal_lines(
        [asdict(line) if isinstance(line, LineInput) else line for line in lines]
    )


def check_accounts(company, account_ids):
    """Every account must exist, be active, and belong to ``company``."""
    account_ids = {to_id(pk, "account_id") for pk in account_ids}
    accounts = Account.objects.filter(pk__in=account_ids)
    found = {a.pk: a for a in accounts}
    if set(found) != account_ids:
        raise LedgerValidationError("One or more accounts do not exist.")
    if any(a.company_id != company.pk for a in found.values()):
        raise ForeignAccountError("One or more accounts are not in the selected company.")
    inactive = sorted(a.code for a in found.values() if not a.is_active)
    if inactive:
        raise LedgerValidationError(f"Inactive accounts cannot be posted to: {', '.join(inactive)}.")
    return found


def _check_entry_date(period, entry_date):
    if not period.covers(entry_date):
        raise LedgerValidationError(
            f"Entry date {entry_date} is outside period {period}."
        )


def _write_lines(journal, lines):
    JournalLine.objects.bulk_create(
        [
            JournalLine(
                company_id=journal.company_id,
                journal=journal,
                account_id=line.account_id,
                description=line.description[:400],
                debit=line.debit,
                credit=line.credit,
            )
            for line in lines
        ]
    )


def _stored_lines(journal):
    return [
        LineInput(
            account_id=line.account_id,
            debit=line.debit,
            credit=line.credit,
            description=line.description,
        )
        for line in journal.lines.order_by("id")
    ]


def _lock_journal(journal_id) -> JournalEntry:
    journal = JournalEntry.objects.select_for_update().filter(pk=to_id(journal_id, "journal_id")).first()
    if journal is None:
        raise NotFoundError("Journal not found.")
    return journal


# ----------------------------
# Direct posting (system path)
# ----------------------------
def post_journal(company, period_id, entry_date, narration, lines, actor=None,
                 source_type="manual", reversal_of=None) -> JournalEntry:
    """
    Validate and write a posted journal with its lines as one atomic unit.

    Skips Draft/Approved: the actor is recorded as approver and poster.
    Raises ForeignAccountError, UnbalancedJournalError, PeriodClosedError.
    """
    lines = _as_line_inputs(lines)
    check_balance(lines)

    with transaction.atomic():
        check_accounts(company, [line.account_id for line in lines])
        # Period guard runs in the same transaction as the write
        period = lock_open_period(company, period_id)
        _check_entry_date(period, entry_date)

        now = timezone.now()
        journal = JournalEntry.objects.create(
            company=company,
            period=period,
            entry_date=entry_date,
            narration=narration or "",
            status="posted",
            created_by=actor,
            approved_by=actor,
            approved_at=now,
            posted_by=actor,
            posted_at=now,
            source_type=source_type,
            reversal_of=reversal_of,
        )
        _write_lines(journal, lines)

        td, tc = line_totals(lines)
        log_action(
            action="created_posted", entity="journal", entity_id=journal.pk,
            company=company, actor=actor,
            after=snapshot(journal, {"total_debit": td, "total_credit": tc}),
        )

    logger.info(
        "Journal %s posted for company %s (%s lines, %s)",
        journal.pk, company.pk, len(lines), source_type,
    )
    return journal


def post_manual_journal(company, period_id, entry_date, narration, lines, actor) -> JournalEntry:
    """Direct posting of an operator-entered journal (Admin / Manager)."""
    require_role(actor, company, JOURNAL_CHECKERS)
    return post_journal(company, period_id, entry_date, narration, lines, actor)


# ----------------------------
# Draft → Approve → Post pipeline
# ----------------------------
def create_journal_draft(company, period_id, entry_date, narration, lines, actor) -> JournalEntry:
    require_role(actor, company, JOURNAL_MAKERS)
    lines = normalize_journal_lines(lines)
    check_balance(lines)

    with transaction.atomic():
        check_accounts(company, [line.account_id for line in lines])
        period = period_for_company(company, period_id)
        _check_entry_date(period, entry_date)

        journal = JournalEntry.objects.create(
            company=company,
            period=period,
            entry_date=entry_date,
            narration=narration or "",
            status="draft",
            created_by=actor,
        )
        _write_lines(journal, lines)
        log_action(
            action="created_draft", entity="journal", entity_id=journal.pk,
            company=company, actor=actor, after=snapshot(journal),
        )
    return journal


def approve_journal(journal_id, actor) -> JournalEntry:
    with transaction.atomic():
        journal = _lock_journal(journal_id)
        require_role(actor, journal.company, JOURNAL_CHECKERS)
        if journal.status != "draft":
            raise InvalidStateTransition("Only draft journals can be approved.")
        ensure_not_maker(journal, actor, "Makers cannot approve their own journals.")

        before = snapshot(journal)
        journal.status = "approved"
        journal.approved_by = actor
        journal.approved_at = timezone.now()
        journal.save(update_fields=["status", "approved_by", "approved_at"])
        log_action(
            action="approved", entity="journal", entity_id=journal.pk,
            company=journal.company, actor=actor,
            before=before, after=snapshot(journal),
        )
    return journal


def post_draft_journal(journal_id, actor) -> JournalEntry:
    """Post an approved journal. Balance and period are checked again here."""
    with transaction.atomic():
        journal = _lock_journal(journal_id)
        require_role(actor, journal.company, JOURNAL_CHECKERS)
        if journal.status != "approved":
            raise InvalidStateTransition("Only approved journals can be posted.")
        ensure_not_maker(journal, actor, "Makers cannot post their own journals.")

        lines = _stored_lines(journal)
        if not lines:
            raise LedgerValidationError("Journal has no lines.")
        check_balance(lines)
        check_accounts(journal.company, [line.account_id for line in lines])
        lock_open_period(journal.company, journal.period_id)

        before = snapshot(journal)
        journal.status = "posted"
        journal.posted_by = actor
        journal.posted_at = timezone.now()
        journal.save(update_fields=["status", "posted_by", "posted_at"])
        log_action(
            action="posted", entity="journal", entity_id=journal.pk,
            company=journal.company, actor=actor,
            before=before, after=snapshot(journal),
        )
    logger.info("Journal %s posted for company %s", journal.pk, journal.company_id)
    return journal


# ----------------------------
# Reversal
# ----------------------------
def reverse_posted_journal(journal, reason, actor, narration=None) -> JournalEntry:
    """
    Mirror a posted journal into a new posted entry dated today and mark
    the original reversed. Caller holds the row lock and has checked rights.
    """
    if journal.status != "posted":
        raise InvalidStateTransition("Only posted journals can be reversed.")

    today = timezone.localdate()
    period = resolve_period(journal.company, today)
    mirrored = mirror_lines(_stored_lines(journal))

    with transaction.atomic():
        before = snapshot(journal)
        reversal = post_journal(
            journal.company,
            period.pk,
            today,
            narration or f"Reversal: {reason}",
            mirrored,
            actor=actor,
            source_type=journal.source_type,
            reversal_of=journal,
        )
        journal.status = "reversed"
        journal.reversed_by = actor
        journal.reversed_at = timezone.now()
        journal.save(update_fields=["status", "reversed_by", "reversed_at"])
        log_action(
            action="reversed", entity="journal", entity_id=journal.pk,
            company=journal.company, actor=actor,
            before=before, after=snapshot(journal, {"reversal_id": reversal.pk, "reason": reason}),
        )
    logger.info("Journal %s reversed by journal %s", journal.pk, reversal.pk)
    return reversal


def reverse_journal(journal_id, reason, actor) -> JournalEntry:
    """Reverse an operator journal. Journals posted by a document move only with it."""
    reason = (reason or "").strip()
    if not reason:
        raise LedgerValidationError("A reason is required to reverse a journal.")
    with transaction.atomic():
        journal = _lock_journal(journal_id)
        require_role(actor, journal.company, JOURNAL_CHECKERS)
        link = DocumentJournal.objects.filter(journal=journal).first()
        if link is not None:
            raise InvalidStateTransition(
                f"This journal belongs to {link.get_doc_type_display()} {link.doc_id}; "
                "void or reverse the document instead."
            )
        return reverse_posted_journal(journal, reason, actor)
