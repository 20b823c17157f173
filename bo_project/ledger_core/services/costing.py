"""
CTRO costing engine.

The arithmetic works on frozen snapshots of rate cards, so it has no
hidden state and can run against an in-memory rate source in tests.
``DjangoRateSource`` is the database-backed source used by the services.
"""
import logging
from dataclasses import dataclass, field
from datetime import date as date_type, datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from ..conf import default_bags_per_tonne
from ..exceptions import (LedgerValidationError, NoPublishedRateError,
                          NoRateCardError)
from .validation import ZERO, round2, round3

logger = logging.getLogger(__name__)

COMPANY_PAID = "company_paid"
DEDUCTED = "deducted"

RateKey = Tuple[Optional[int], int]  # (depot_id, takeover_center_id)


@dataclass(frozen=True)
class RateLine:
    id: int
    depot_id: Optional[int]
    takeover_center_id: int
    producer_price_per_tonne: Decimal
    buyer_margin_per_tonne: Decimal
    secondary_evac_cost_per_tonne: Decimal
    takeover_price_per_tonne: Decimal
    created_at: Optional[datetime] = None

    @property
    def key(self) -> RateKey:
        return (self.depot_id, self.takeover_center_id)


@dataclass(frozen=True)
class RateCardSnapshot:
    id: int
    effective_from: date_type
    effective_to: Optional[date_type]
    bags_per_tonne: Decimal
    lines: Tuple[RateLine, ...] = ()

    def covers(self, on_date) -> bool:
        return self.effective_from <= on_date and (
            self.effective_to is None or on_date <= self.effective_to
        )


@dataclass(frozen=True)
class CostedLine:
    rate_card_id: int
    rate_card_line_id: int
    bags: int
    bags_per_tonne: Decimal
    tonnage: Decimal  # unrounded
    producer_price_per_tonne: Decimal
    buyer_margin_per_tonne: Decimal
    secondary_evac_cost_per_tonne: Decimal
    takeover_price_per_tonne: Decimal
    producer_value: Decimal
    margin_value: Decimal
    evacuation_value: Decimal
    line_total: Decimal

    @property
    def display_tonnage(self) -> Decimal:
        return round3(self.tonnage)


@dataclass(frozen=True)
class TotalsInput:
    """What aggregation needs from one line (costed or stored)."""
    bags: int
    tonnage: Decimal
    producer_value: Decimal
    margin_value: Decimal
    evacuation_value: Decimal
    line_total: Decimal
    evacuation_treatment: str = COMPANY_PAID
    rated: bool = True


@dataclass(frozen=True)
class CtroTotalsSummary:
    total_bags: int = 0
    total_tonnage: Decimal = Decimal("0.000")
    total_producer_value: Decimal = ZERO
    total_buyers_margin: Decimal = ZERO
    total_evacuation: Decimal = ZERO
    total_evacuation_company_paid: Decimal = ZERO
    total_evacuation_deducted: Decimal = ZERO
    grand_total: Decimal = ZERO
    unrated_lines: int = 0


@dataclass
class IndexedRates:
    lines: Dict[RateKey, RateLine] = field(default_factory=dict)
    discarded_ids: List[int] = field(default_factory=list)


class RateSource(Protocol):
    def rate_cards(self, company_id: int, on_date) -> Iterable[RateCardSnapshot]:
        """Rate cards of the company covering ``on_date``, with their lines."""


# ---------- pure engine ----------
def select_rate_card(cards: Iterable[RateCardSnapshot], on_date) -> RateCardSnapshot:
    """Effective card for the date; the most recently started one wins."""
    candidates = [card for card in cards if card.covers(on_date)]
    if not candidates:
        raise NoRateCardError(f"No rate card is effective on {on_date}.")
    return max(candidates, key=lambda card: (card.effective_from, card.id))


def index_rate_lines(card: RateCardSnapshot) -> IndexedRates:
    """
    Key lines by (depot, takeover center). On duplicate keys the newest
    line is kept and the rest are discarded with a warning.
    """
    indexed = IndexedRates()
    newest_first = sorted(
        card.lines,
        key=lambda line: (
            line.created_at is not None,
            line.created_at.timestamp() if line.created_at else 0,
            line.id,
        ),
        reverse=True,
    )
    for line in newest_first:
        if line.key in indexed.lines:
            indexed.discarded_ids.append(line.id)
            continue
        indexed.lines[line.key] = line

    if indexed.discarded_ids:
        logger.warning(
            "Rate card %s has duplicate lines; discarded %s",
            card.id, sorted(indexed.discarded_ids),
        )
    return indexed


def cost_line(card: RateCardSnapshot, rate: RateLine, bags: int) -> CostedLine:
    bags_per_tonne = Decimal(card.bags_per_tonne or default_bags_per_tonne())
    tonnage = Decimal(bags) / bags_per_tonne
    return CostedLine(
        rate_card_id=card.id,
        rate_card_line_id=rate.id,
        bags=bags,
        bags_per_tonne=bags_per_tonne,
        tonnage=tonnage,
        producer_price_per_tonne=rate.producer_price_per_tonne,
        buyer_margin_per_tonne=rate.buyer_margin_per_tonne,
        secondary_evac_cost_per_tonne=rate.secondary_evac_cost_per_tonne,
        takeover_price_per_tonne=rate.takeover_price_per_tonne,
        producer_value=round2(tonnage * rate.producer_price_per_tonne),
        margin_value=round2(tonnage * rate.buyer_margin_per_tonne),
        evacuation_value=round2(tonnage * rate.secondary_evac_cost_per_tonne),
        line_total=round2(tonnage * rate.takeover_price_per_tonne),
    )


def compute_ctro_line(source: RateSource, company_id, depot_id, takeover_center_id, bags, on_date) -> CostedLine:
    """
    Cost one CTRO line on ``on_date``.

    Raises NoRateCardError when no card is effective, NoPublishedRateError
    when the card has no line for (depot, takeover center).
    """
    try:
        bags = int(bags)
    except (TypeError, ValueError):
        raise LedgerValidationError("Bags must be a positive whole number.")
    if bags <= 0:
        raise LedgerValidationError("Bags must be a positive whole number.")

    card = select_rate_card(source.rate_cards(company_id, on_date), on_date)
    indexed = index_rate_lines(card)
    rate = indexed.lines.get((depot_id, takeover_center_id))
    if rate is None:
        raise NoPublishedRateError(
            f"No published rate for depot {depot_id} / takeover center "
            f"{takeover_center_id} on rate card {card.id}."
        )
    return cost_line(card, rate, bags)


def aggregate(lines: Iterable[TotalsInput]) -> CtroTotalsSummary:
    """
    Sum valid lines. Tonnage is summed unrounded and rounded to 3dp once;
    unrated lines only count towards ``unrated_lines``.
    """
    total_bags = 0
    tonnage = Decimal("0")
    producer = margin = evac = paid = deducted = grand = ZERO
    unrated = 0
    for line in lines:
        if not line.rated:
            unrated += 1
            continue
        total_bags += line.bags
        tonnage += line.tonnage
        producer += line.producer_value
        margin += line.margin_value
        evac += line.evacuation_value
        grand += line.line_total
        if line.evacuation_treatment == DEDUCTED:
            deducted += line.evacuation_value
        else:
            paid += line.evacuation_value
    return CtroTotalsSummary(
        total_bags=total_bags,
        total_tonnage=round3(tonnage),
        total_producer_value=producer,
        total_buyers_margin=margin,
        total_evacuation=evac,
        total_evacuation_company_paid=paid,
        total_evacuation_deducted=deducted,
        grand_total=grand,
        unrated_lines=unrated,
    )


# ---------- rate sources ----------
class InMemoryRateSource:
    """Rate cards held in a dict: {company_id: [RateCardSnapshot, ...]}."""

    def __init__(self, cards_by_company=None):
        self.cards_by_company = cards_by_company or {}

    def rate_cards(self, company_id, on_date):
        return [
            card for card in self.cards_by_company.get(company_id, [])
            if card.covers(on_date)
        ]


class DjangoRateSource:
    """Loads effective RateCard rows and their lines from the database."""

    def rate_cards(self, company_id, on_date):
        from django.db.models import Q

        from ..models import RateCard

        cards = (
            RateCard.objects.filter(company_id=company_id, effective_from__lte=on_date)
            .filter(Q(effective_to__isnull=True) | Q(effective_to__gte=on_date))
            .prefetch_related("lines")
        )
        return [snapshot_rate_card(card) for card in cards]


def snapshot_rate_card(card) -> RateCardSnapshot:
    return RateCardSnapshot(
        id=card.pk,
        effective_from=card.effective_from,
        effective_to=card.effective_to,
        bags_per_tonne=card.bags_per_tonne,
        lines=tuple(
            RateLine(
                id=line.pk,
                depot_id=line.depot_id,
                takeover_center_id=line.takeover_center_id,
                producer_price_per_tonne=line.producer_price_per_tonne,
                buyer_margin_per_tonne=line.buyer_margin_per_tonne,
                secondary_evac_cost_per_tonne=line.secondary_evac_cost_per_tonne,
                takeover_price_per_tonne=line.takeover_price_per_tonne,
                created_at=line.created_at,
            )
            for line in card.lines.all()
        ),
    )
