"""Revision tracking for items already out for quote.

A revision only moves when the item has an active RFQ *and* a field that
changes what suppliers are quoting on (dimensions or quantity) changed.
Bids submitted against an older revision, or with no recorded revision,
become stale.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from rfqintel.collaborators import RfqRoute, SubmittedBid
from rfqintel.models import RevisionOutcome, RouteStatus

logger = logging.getLogger(__name__)

ACTIVE_ROUTE_STATUSES = frozenset(
    {
        RouteStatus.QUEUED.value,
        RouteStatus.SENT.value,
        RouteStatus.VIEWED.value,
        RouteStatus.BID_SUBMITTED.value,
    }
)

SPEC_RELEVANT_FIELDS = frozenset(
    {
        "dimension_width_original",
        "dimension_depth_original",
        "dimension_height_original",
        "dimension_units_original",
        "dimension_width_cm",
        "dimension_depth_cm",
        "dimension_height_cm",
        "quantity",
    }
)


def has_active_rfq(routes: Iterable[RfqRoute]) -> bool:
    return any(route.status in ACTIVE_ROUTE_STATUSES for route in routes)


def spec_changes(changed_fields: Iterable[str]) -> list[str]:
    """Changed fields that alter what suppliers quoted on, in input order."""
    return [name for name in changed_fields if name in SPEC_RELEVANT_FIELDS]


def suppliers_to_notify(routes: Iterable[RfqRoute]) -> list[int]:
    """Distinct suppliers with an active route, first-seen order."""
    seen: dict[int, None] = {}
    for route in routes:
        if route.status in ACTIVE_ROUTE_STATUSES:
            seen.setdefault(route.supplier_id, None)
    return list(seen)


def evaluate_revision(
    changed_fields: Sequence[str],
    active_rfq: bool,
    current_revision: int,
    submitted_bids: Iterable[SubmittedBid] = (),
) -> RevisionOutcome:
    """Decide whether an update bumps the item's revision.

    Args:
        changed_fields: Fields whose stored value actually changed
        active_rfq: Whether any routing record for the item is active
        current_revision: Revision currently stored on the item
        submitted_bids: Bids in submitted state for the item

    Returns:
        RevisionOutcome; ``stale_bid_ids`` is only populated on increment
    """
    current_revision = max(int(current_revision or 1), 1)
    unchanged = RevisionOutcome(
        increment=False,
        previous_revision=current_revision,
        new_revision=current_revision,
    )

    if not active_rfq:
        return unchanged

    relevant = spec_changes(changed_fields)
    if not relevant:
        if changed_fields:
            logger.info(
                "Item changed under active RFQ without spec impact; bids stay valid "
                "(fields=%s)",
                ", ".join(changed_fields),
            )
        return unchanged

    new_revision = current_revision + 1
    stale = [
        bid.bid_id
        for bid in submitted_bids
        if bid.revision_at_submit is None or bid.revision_at_submit < new_revision
    ]
    return RevisionOutcome(
        increment=True,
        previous_revision=current_revision,
        new_revision=new_revision,
        stale_bid_ids=stale,
    )
