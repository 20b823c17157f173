import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task  # register this function as a Celery task
def rebuild_document_totals(company_id):
    """
    Recompute every totals projection of the company from its lines.
    Returns how many documents had drifted and were rewritten.
    """
    # import lazily to avoid circular imports at module import time
    from django.db import transaction

    from .services.documents import DOCUMENT_TYPES

    fixed = 0
    for doc_type in DOCUMENT_TYPES.values():
        for doc_id in doc_type.model.objects.filter(company_id=company_id).values_list("pk", flat=True):
            with transaction.atomic():
                document = doc_type.model.objects.select_for_update().get(pk=doc_id)
                if doc_type.recompute(document):
                    fixed += 1
                    logger.warning("%s %s totals were stale and have been rebuilt", doc_type.label, document.doc_no)
    logger.info("Rebuilt document totals for company %s (%s fixed)", company_id, fixed)
    return fixed


@shared_task
def check_reconciliation(company_id):
    """Reconcile AR and AP; returns {side: difference} as strings."""
    from .exceptions import MissingAccountMappingError
    from .models import Company
    from .services.reconciliation import AP, AR, reconcile

    company = Company.objects.get(pk=company_id)
    differences = {}
    for side in (AR, AP):
        try:
            result = reconcile(company, side)
        except MissingAccountMappingError as exc:
            logger.warning("Skipping %s reconciliation for company %s: %s", side, company_id, exc)
            continue
        differences[side] = str(result.difference)
        if not result.is_balanced:
            logger.warning(
                "%s out of balance for company %s: control=%s subledger=%s difference=%s",
                side, company_id, result.control_balance, result.subledger_total, result.difference,
            )
    return differences
