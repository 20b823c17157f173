import logging
import re

from django.db import IntegrityError, transaction

from ..conf import number_prefix, number_retries
from ..models import CompanySequence

logger = logging.getLogger(__name__)


def format_number(prefix, year, value) -> str:
    return f"{prefix}-{year}-{value:04d}"


def _highest_existing(model, company, prefix, year) -> int:
    """Largest NNNN already used in `model` for PREFIX-YYYY- (gaps are fine)."""
    pattern = re.compile(rf"^{re.escape(prefix)}-{year}-(\d+)$")
    highest = 0
    numbers = model.objects.filter(
        company=company, doc_no__startswith=f"{prefix}-{year}-"
    ).values_list("doc_no", flat=True)
    for doc_no in numbers:
        match = pattern.match(doc_no)
        if match:
            highest = max(highest, int(match.group(1)))
    return highest


def next_number(company, doc_type, year, model=None) -> str:
    """
    Hand out the next "PREFIX-YYYY-NNNN" for (company, prefix, year).

    The sequence row is locked for the rest of the caller's transaction;
    the first call for a year seeds it from numbers already in use.
    """
    prefix = number_prefix(doc_type)
    with transaction.atomic():
        seq = (
            CompanySequence.objects.select_for_update()
            .filter(company=company, prefix=prefix, year=year)
            .first()
        )
        if seq is None:
            seed = _highest_existing(model, company, prefix, year) if model else 0
            try:
                with transaction.atomic():
                    seq = CompanySequence.objects.create(
                        company=company, prefix=prefix, year=year, last_value=seed
                    )
            except IntegrityError:
                # another writer created the row first
                seq = CompanySequence.objects.select_for_update().get(
                    company=company, prefix=prefix, year=year
                )
        seq.last_value += 1
        seq.save(update_fields=["last_value"])
    return format_number(prefix, year, seq.last_value)


def create_with_number(create, company, doc_type, year, model, doc_no=None):
    """
    Call ``create(doc_no)`` with a fresh number, retrying on a unique clash.

    An explicit ``doc_no`` is used as given; a clash on it is not retried.
    """
    if doc_no:
        return create(doc_no)

    attempts = number_retries()
    for attempt in range(1, attempts + 1):
        candidate = next_number(company, doc_type, year, model=model)
        try:
            with transaction.atomic():
                return create(candidate)
        except IntegrityError:
            if attempt == attempts:
                raise
            logger.warning(
                "Document number %s already taken, retrying (%s/%s)",
                candidate, attempt, attempts,
            )
