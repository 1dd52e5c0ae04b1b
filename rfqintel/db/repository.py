"""SQL-backed collaborator implementations.

All functions take the caller's session and never commit; the item update
owns the transaction boundary.
"""

from __future__ import annotations

import logging
from typing import Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rfqintel.collaborators import RfqRoute, SubmittedBid
from rfqintel.db.models import ItemBidModel, ItemEditModel, ItemModel, RfqRouteModel
from rfqintel.errors import ForbiddenError, NotFoundError
from rfqintel.models import utcnow
from rfqintel.revisions.tracker import ACTIVE_ROUTE_STATUSES

logger = logging.getLogger(__name__)


async def get_item_for_user(
    session: AsyncSession,
    item_id: int,
    user_id: int,
    *,
    is_admin: bool = False,
    for_update: bool = False,
) -> ItemModel:
    """Load an item the caller may modify.

    Args:
        session: Active database session
        item_id: Item to load
        user_id: Caller's user id
        is_admin: Admins may modify any item
        for_update: Lock the row for the rest of the transaction

    Returns:
        ItemModel: The live ORM row

    Raises:
        NotFoundError: Item missing or soft deleted
        ForbiddenError: Caller is neither the owner nor an admin
    """
    query = select(ItemModel).where(
        ItemModel.id == item_id, ItemModel.deleted_at.is_(None)
    )
    if for_update:
        query = query.with_for_update()

    result = await session.execute(query)
    item = result.scalar_one_or_none()
    if item is None:
        raise NotFoundError(item_id)
    if not is_admin and item.owner_user_id != user_id:
        raise ForbiddenError(item_id, user_id)
    return item


async def find_active_rfq_routes(session: AsyncSession, item_id: int) -> list[RfqRoute]:
    result = await session.execute(
        select(RfqRouteModel)
        .where(
            RfqRouteModel.item_id == item_id,
            RfqRouteModel.status.in_(sorted(ACTIVE_ROUTE_STATUSES)),
        )
        .order_by(RfqRouteModel.id)
    )
    return [
        RfqRoute(supplier_id=row.supplier_id, status=row.status, board_id=row.board_id)
        for row in result.scalars()
    ]


async def get_submitted_bids(session: AsyncSession, item_id: int) -> list[SubmittedBid]:
    result = await session.execute(
        select(ItemBidModel)
        .where(ItemBidModel.item_id == item_id, ItemBidModel.status == "submitted")
        .order_by(ItemBidModel.id)
    )
    return [
        SubmittedBid(
            bid_id=row.id,
            supplier_id=row.supplier_id,
            revision_at_submit=row.revision_at_submit,
        )
        for row in result.scalars()
    ]


async def mark_bids_stale(session: AsyncSession, bid_ids: Sequence[int]) -> int:
    """Flag bids for re-submission; returns the number of rows touched."""
    if not bid_ids:
        return 0
    result = await session.execute(
        update(ItemBidModel)
        .where(ItemBidModel.id.in_(list(bid_ids)))
        .values(revision_at_submit=None, needs_resubmission=True, stale_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    logger.info("Marked %d bid(s) stale", result.rowcount)
    return result.rowcount


async def list_item_edits(session: AsyncSession, item_id: int) -> list[ItemEditModel]:
    result = await session.execute(
        select(ItemEditModel)
        .where(ItemEditModel.item_id == item_id)
        .order_by(ItemEditModel.id)
    )
    return list(result.scalars())
