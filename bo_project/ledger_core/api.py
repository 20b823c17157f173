"""
Operation boundary for the UI / glue layer.

Every call returns an OperationResult instead of raising: ledger errors
come back with their ``kind`` and the operator-facing reason.

Usage:
    result = api.post("invoice", invoice_id, actor_id=user.pk)
    if result.success:
        ...
    else:
        show(result.error_kind, result.error)
"""
import logging
from functools import wraps

from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist, ValidationError
from django.db import IntegrityError

from .exceptions import LedgerError
from .models import Company
from .permissions import evaluate_permission  # noqa: F401  (pure, re-exported)
from .services import costing, documents, posting, reconciliation, workflow
from .services.validation import to_id

logger = logging.getLogger(__name__)


class OperationResult:
    """
    Wrapper for operation results with success/failure info.
    """

    def __init__(self, success: bool, data=None, error_kind: str = None, error: str = None):
        self.success = success
        self.data = data
        self.error_kind = error_kind
        self.error = error

    def __repr__(self):
        if self.success:
            return f"<OperationResult ok {self.data!r}>"
        return f"<OperationResult {self.error_kind}: {self.error}>"

    @classmethod
    def ok(cls, data=None):
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, kind: str, error: str):
        return cls(success=False, error_kind=kind, error=error)


def operation(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return OperationResult.ok(func(*args, **kwargs))
        except LedgerError as exc:
            kind, reason = exc.kind, exc.message
        except ValidationError as exc:
            kind, reason = "ValidationError", "; ".join(exc.messages)
        except ObjectDoesNotExist as exc:
            kind, reason = "NotFound", str(exc) or "Not found."
        except IntegrityError:
            kind, reason = "ValidationError", "The record conflicts with an existing one."
        logger.warning("%s failed (%s): %s", func.__name__, kind, reason)
        return OperationResult.fail(kind, reason)

    return wrapper


def _company(company_id):
    return Company.objects.get(pk=to_id(company_id, "company_id"))


def _actor(actor_id):
    return get_user_model().objects.get(pk=to_id(actor_id, "actor_id"))


# ---------- Journals ----------
@operation
def post_journal(company_id, period_id, entry_date, narration, lines, actor_id):
    """Direct posting of an operator journal; returns the journal id."""
    journal = posting.post_manual_journal(
        _company(company_id), period_id, documents.as_date(entry_date, "entry_date"),
        narration, lines, _actor(actor_id),
    )
    return journal.pk


@operation
def reverse_journal(journal_id, reason, actor_id):
    return posting.reverse_journal(journal_id, reason, _actor(actor_id)).pk


# ---------- Documents ----------
@operation
def create_document_draft(doc_type, company_id, actor_id, payload):
    document = documents.create_document_draft(
        doc_type, _company(company_id), _actor(actor_id), payload
    )
    return document.pk


@operation
def replace_draft_lines(doc_type, doc_id, lines, actor_id):
    return documents.replace_draft_lines(doc_type, doc_id, lines, _actor(actor_id)).pk


@operation
def submit(doc_type, doc_id, actor_id):
    return workflow.submit(doc_type, doc_id, _actor(actor_id)).status


@operation
def post(doc_type, doc_id, actor_id):
    return workflow.post(doc_type, doc_id, _actor(actor_id)).status


@operation
def submit_and_post(doc_type, doc_id, actor_id):
    return workflow.submit_and_post(doc_type, doc_id, _actor(actor_id)).status


@operation
def reject(doc_type, doc_id, actor_id, note=""):
    return workflow.reject(doc_type, doc_id, _actor(actor_id), note).status


@operation
def delete_draft(doc_type, doc_id, actor_id):
    workflow.delete_draft(doc_type, doc_id, _actor(actor_id))
    return doc_id


@operation
def void(doc_type, doc_id, actor_id, reason):
    return workflow.void(doc_type, doc_id, _actor(actor_id), reason).status


@operation
def reverse(doc_type, doc_id, actor_id, reason):
    return workflow.reverse(doc_type, doc_id, _actor(actor_id), reason).status


# ---------- CTRO costing ----------
@operation
def compute_ctro_line(company_id, depot_id, takeover_center_id, bags, on_date, rate_source=None):
    """CostedLine, or a NoRateCard / NoPublishedRate failure."""
    return costing.compute_ctro_line(
        rate_source or costing.DjangoRateSource(),
        to_id(company_id, "company_id"),
        to_id(depot_id, "depot_id") if depot_id else None,
        to_id(takeover_center_id, "takeover_center_id"),
        bags,
        documents.as_date(on_date, "date"),
    )


# ---------- Reports ----------
@operation
def reconcile(company_id, side="AR"):
    return reconciliation.reconcile(_company(company_id), side)


@operation
def statement(company_id, party_id, side="AR"):
    return reconciliation.statement(_company(company_id), to_id(party_id, "party_id"), side)


@operation
def aging(company_id, party_id, side="AR", as_of=None):
    return reconciliation.aging(
        _company(company_id),
        to_id(party_id, "party_id") if party_id is not None else None,
        side,
        documents.as_date(as_of, "as_of") if as_of else None,
    )


@operation
def trial_balance(company_id, period_ids=None):
    return reconciliation.trial_balance(
        _company(company_id),
        [to_id(pk, "period_id") for pk in period_ids] if period_ids else None,
    )
