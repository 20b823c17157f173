"""
Document state machine shared by every document type.

    draft → submitted → posted → voided | reversed
    draft → (deleted)          submitted → draft (rejected)

Each action locks the document row, asks the permission table, runs its
own preconditions and writes the audit entry inside one transaction.
"""
import logging

from django.db import transaction
from django.utils import timezone

from ..exceptions import InvalidStateTransition, LedgerValidationError
from ..models import DocumentJournal, JournalEntry
from ..permissions import (ADMIN, DELETE_DRAFT, POST, REJECT, REVERSE, SUBMIT,
                           VOID)
from .access import ensure_not_maker, require_permission, require_role
from .audit_helper import log_action, snapshot
from .documents import get_document_type, lock_allocation_targets, lock_document
from .posting import post_journal, reverse_posted_journal
from .reconciliation import AP, AR, SIDES, has_posted_allocations
from .validation import AllocationInput

logger = logging.getLogger(__name__)

SETTLEMENT_SIDES = {"receipt": (AR, "invoice_id"), "voucher": (AP, "bill_id")}


def _transition(document, actor, action, **fields):
    before = snapshot(document)
    for name, value in fields.items():
        setattr(document, name, value)
    document.save(update_fields=list(fields))
    log_action(
        action=action, entity=document.doc_type, entity_id=document.pk,
        company=document.company, actor=actor,
        before=before, after=snapshot(document),
    )


# ----------------------------
# Submit / reject
# ----------------------------
def _submit_locked(document, actor):
    _transition(
        document, actor, "submitted",
        status="submitted", submitted_by=actor, submitted_at=timezone.now(),
    )


def submit(doc_type, doc_id, actor):
    doc_type = get_document_type(doc_type)
    with transaction.atomic():
        document = lock_document(doc_type, doc_id)
        require_permission(actor, document.company, document.status, SUBMIT)
        _submit_locked(document, actor)
    logger.info("%s %s submitted", doc_type.label, document.doc_no)
    return document


def reject(doc_type, doc_id, actor, note=""):
    """Send a submitted document back to draft with the checker's note."""
    doc_type = get_document_type(doc_type)
    with transaction.atomic():
        document = lock_document(doc_type, doc_id)
        require_permission(actor, document.company, document.status, REJECT)
        ensure_not_maker(document, actor, "Makers cannot reject their own documents.")
        _transition(
            document, actor, "rejected",
            status="draft", submitted_by=None, submitted_at=None,
            status_note=(note or "").strip(),
        )
    logger.info("%s %s rejected back to draft", doc_type.label, document.doc_no)
    return document


# ----------------------------
# Post
# ----------------------------
def _recheck_allocations(doc_type, document):
    side_name, target_key = SETTLEMENT_SIDES[doc_type.name]
    side = SIDES[side_name]
    allocations = [
        AllocationInput(target_id=getattr(a, target_key), amount=a.amount)
        for a in document.allocations.all()
    ]
    lock_allocation_targets(document.company, side, document.party, allocations)


def _post_locked(doc_type, document, actor):
    ensure_not_maker(document, actor, "Makers cannot post their own documents.")
    if doc_type.name in SETTLEMENT_SIDES:
        # other settlements may have been posted against the same targets
        _recheck_allocations(doc_type, document)

    doc_type.recompute(document)
    if doc_type.name == "ctro" and document.totals.unrated_lines:
        logger.warning(
            "CTRO %s posted with %s unrated line(s) left out",
            document.doc_no, document.totals.unrated_lines,
        )

    journal = post_journal(
        document.company,
        document.period_id,
        document.doc_date,
        f"{doc_type.label} {document.doc_no}",
        doc_type.map_lines(document),
        actor=actor,
        source_type=doc_type.name,
    )
    DocumentJournal.objects.create(
        company=document.company, doc_type=doc_type.name, doc_id=document.pk, journal=journal,
    )
    _transition(
        document, actor, "posted",
        status="posted", posted_by=actor, posted_at=timezone.now(),
    )
    return journal


def post(doc_type, doc_id, actor):
    doc_type = get_document_type(doc_type)
    with transaction.atomic():
        document = lock_document(doc_type, doc_id)
        require_permission(actor, document.company, document.status, POST)
        journal = _post_locked(doc_type, document, actor)
    logger.info("%s %s posted as journal %s", doc_type.label, document.doc_no, journal.pk)
    return document


def submit_and_post(doc_type, doc_id, actor):
    """Admin shortcut: both transitions back to back in one transaction."""
    doc_type = get_document_type(doc_type)
    with transaction.atomic():
        document = lock_document(doc_type, doc_id)
        require_role(actor, document.company, {ADMIN}, "Only Admin can submit and post in one step.")
        require_permission(actor, document.company, document.status, SUBMIT)
        require_permission(actor, document.company, "submitted", POST)
        _submit_locked(document, actor)
        journal = _post_locked(doc_type, document, actor)
    logger.info("%s %s submitted and posted as journal %s", doc_type.label, document.doc_no, journal.pk)
    return document


# ----------------------------
# Delete draft
# ----------------------------
def delete_draft(doc_type, doc_id, actor):
    """Remove a draft and its lines; only the audit entry remains."""
    doc_type = get_document_type(doc_type)
    with transaction.atomic():
        document = lock_document(doc_type, doc_id)
        require_permission(actor, document.company, document.status, DELETE_DRAFT)
        before = snapshot(document)
        company, doc_no = document.company, document.doc_no
        document.delete()
        log_action(
            action="deleted", entity=doc_type.name, entity_id=doc_id,
            company=company, actor=actor, before=before,
        )
    logger.info("%s %s deleted", doc_type.label, doc_no)


# ----------------------------
# Void / reverse
# ----------------------------
def _cancel(doc_type, doc_id, actor, reason, action, new_status):
    reason = (reason or "").strip()
    if not reason:
        raise LedgerValidationError("A reason is required.")

    doc_type = get_document_type(doc_type)
    with transaction.atomic():
        document = lock_document(doc_type, doc_id)
        require_permission(actor, document.company, document.status, action)
        if doc_type.name in ("invoice", "bill") and has_posted_allocations(document):
            raise InvalidStateTransition(
                f"{doc_type.label} {document.doc_no} has posted settlements; reverse those first."
            )

        link = DocumentJournal.objects.filter(doc_type=doc_type.name, doc_id=document.pk).first()
        if link is None:
            raise InvalidStateTransition(f"{doc_type.label} {document.doc_no} has no posted journal.")
        journal = JournalEntry.objects.select_for_update().get(pk=link.journal_id)
        reversal = reverse_posted_journal(
            journal, reason, actor,
            narration=f"{new_status.capitalize()} {doc_type.label} {document.doc_no}: {reason}",
        )
        _transition(
            document, actor, new_status,
            status=new_status, cancelled_by=actor, cancelled_at=timezone.now(),
            status_note=reason,
        )
    logger.info(
        "%s %s %s by journal %s", doc_type.label, document.doc_no, new_status, reversal.pk,
    )
    return document


def void(doc_type, doc_id, actor, reason):
    return _cancel(doc_type, doc_id, actor, reason, VOID, "voided")


def reverse(doc_type, doc_id, actor, reason):
    return _cancel(doc_type, doc_id, actor, reason, REVERSE, "reversed")
