"""Call boundaries for the systems around the item pipeline.

Default SQL-backed implementations live in ``rfqintel.db.repository``; the
notification and delivery-cost sinks are pluggable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from rfqintel.db.models import ItemModel


@dataclass(frozen=True)
class RfqRoute:
    supplier_id: int
    status: str
    board_id: int | None = None


@dataclass(frozen=True)
class SubmittedBid:
    bid_id: int
    supplier_id: int | None
    revision_at_submit: int | None


@dataclass(frozen=True)
class SupplierNotice:
    """Message for one supplier about a changed item."""

    supplier_id: int
    item_id: int
    message: str
    board_id: int | None = None


class GetItemForUser(Protocol):
    async def __call__(
        self,
        session: AsyncSession,
        item_id: int,
        user_id: int,
        *,
        is_admin: bool = False,
        for_update: bool = False,
    ) -> ItemModel: ...


class FindActiveRfqRoutes(Protocol):
    async def __call__(self, session: AsyncSession, item_id: int) -> Sequence[RfqRoute]: ...


class GetSubmittedBids(Protocol):
    async def __call__(self, session: AsyncSession, item_id: int) -> Sequence[SubmittedBid]: ...


class MarkBidsStale(Protocol):
    async def __call__(self, session: AsyncSession, bid_ids: Sequence[int]) -> int: ...


class LogEvent(Protocol):
    async def __call__(
        self,
        session: AsyncSession,
        event_type: str,
        subject_type: str,
        payload: dict[str, Any],
        *,
        item_id: int | None = None,
        actor_user_id: int | None = None,
    ) -> None: ...


class NotifySupplier(Protocol):
    async def __call__(self, notice: SupplierNotice) -> None: ...


class RecalculateDeliveryCost(Protocol):
    async def __call__(self, item_id: int) -> None: ...


class ProjectSourcingCategory(Protocol):
    """Project-level sourcing category used when an item has no category."""

    async def __call__(self, session: AsyncSession, item: ItemModel) -> str | None: ...


async def no_project_category(session: AsyncSession, item: ItemModel) -> str | None:
    return None


async def skip_delivery_cost(item_id: int) -> None:
    return None
