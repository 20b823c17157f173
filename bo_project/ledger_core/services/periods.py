import logging

from django.db import transaction
from django.utils import timezone

from ..exceptions import (InvalidStateTransition, LedgerValidationError,
                          NotFoundError, PeriodClosedError)
from ..models.period import Period
from ..permissions import ADMIN
from .access import require_role
from .audit_helper import log_action, snapshot
from .validation import to_id

logger = logging.getLogger(__name__)

"""
    Posting date determines the period.
    Changing the date before posting should affect the period.
"""


def resolve_period(company, date, open_only=True):
    periods = Period.objects.filter(
        company=company,
        start_date__lte=date,
        end_date__gte=date,
    )
    if open_only:
        periods = periods.filter(status="open")
    period = periods.first()
    if period is None:
        if open_only and Period.objects.filter(
            company=company, start_date__lte=date, end_date__gte=date
        ).exists():
            raise PeriodClosedError(f"The period covering {date} is closed.")
        raise LedgerValidationError(f"No accounting period covers {date} in {company}.")
    return period


def lock_open_period(company, period_id) -> Period:
    """
    Period guard. Must run inside the posting transaction;
    the period row stays locked until that transaction ends.
    """
    period = (
        Period.objects.select_for_update()
        .filter(pk=to_id(period_id, "period_id"), company=company)
        .first()
    )
    if period is None:
        raise NotFoundError("Period not found.")
    if not period.is_open:
        raise PeriodClosedError("Journal period is closed.")
    return period


def period_for_company(company, period_id) -> Period:
    period = Period.objects.filter(pk=to_id(period_id, "period_id"), company=company).first()
    if period is None:
        raise LedgerValidationError("Period not found for this company.")
    return period


def close_period(period_id, actor) -> Period:
    with transaction.atomic():
        period = Period.objects.select_for_update().filter(pk=to_id(period_id, "period_id")).first()
        if period is None:
            raise NotFoundError("Period not found.")
        require_role(actor, period.company, {ADMIN}, "Only Admin can close periods.")
        if period.status != "open":
            raise InvalidStateTransition("Only open periods can be closed.")

        before = snapshot(period)
        period.status = "closed"
        period.closed_by = actor
        period.closed_at = timezone.now()
        period.save()

        log_action(
            action="closed", entity="period", entity_id=period.pk,
            company=period.company, actor=actor,
            before=before, after=snapshot(period),
        )
    logger.info("Period %s closed for company %s", period, period.company_id)
    return period


def reopen_period(period_id, actor, reason) -> Period:
    reason = (reason or "").strip()
    if not reason:
        raise LedgerValidationError("A reason is required to reopen a period.")

    with transaction.atomic():
        period = Period.objects.select_for_update().filter(pk=to_id(period_id, "period_id")).first()
        if period is None:
            raise NotFoundError("Period not found.")
        require_role(actor, period.company, {ADMIN}, "Only Admin can reopen periods.")
        if period.status != "closed":
            raise InvalidStateTransition("Only closed periods can be reopened.")

        before = snapshot(period)
        period.status = "open"
        period.reopened_by = actor
        period.reopened_at = timezone.now()
        period.reopen_reason = reason
        period.save()

        log_action(
            action="reopened", entity="period", entity_id=period.pk,
            company=period.company, actor=actor,
            before=before, after=snapshot(period),
        )
    logger.info("Period %s reopened for company %s: %s", period, period.company_id, reason)
    return period
