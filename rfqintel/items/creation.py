"""Item creation."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from rfqintel.db.models import ItemModel
from rfqintel.events import log_event
from rfqintel.models import (
    DEFAULT_ITEM_SIZE,
    ITEM_SIZES,
    REVISION_META_KEY,
    TimelineType,
    utcnow,
)
from rfqintel.timeline.classifier import TimelineClassifier
from rfqintel.timeline.generator import generate_timeline
from rfqintel.validation.fields import FieldValidator
from rfqintel.validation.patch import Value

logger = logging.getLogger(__name__)


async def create_item(
    session: AsyncSession,
    owner_user_id: int,
    title: str,
    description: str = "",
    item_type: str = "furniture",
    status: str = "active",
    size: str = DEFAULT_ITEM_SIZE,
    product_category: str | None = None,
    *,
    validator: FieldValidator | None = None,
    classifier: TimelineClassifier | None = None,
) -> ItemModel:
    """Add a new item to the session (the caller commits).

    Title, description, type, status and category go through the same
    whitelist rules as updates. An unknown size falls back to ``D``.

    Raises:
        InvalidFieldValueError: Empty title
        MaxLengthExceededError: Title or category too long
        InvalidEnumValueError: Unknown item type or status
    """
    validator = validator or FieldValidator()
    fields = {
        "title": title,
        "description": description or "",
        "item_type": item_type,
        "status": status,
    }
    if product_category:
        fields["product_category"] = product_category
    sanitized = {
        name: field_input.value
        for name, field_input in validator.validate(fields).items()
        if isinstance(field_input, Value)
    }
    size = (size or "").strip().upper()
    if size not in ITEM_SIZES:
        size = DEFAULT_ITEM_SIZE

    now = utcnow()
    item = ItemModel(
        owner_user_id=owner_user_id,
        title=sanitized["title"],
        description=sanitized.get("description", ""),
        item_type=sanitized["item_type"],
        status=sanitized["status"],
        product_category=sanitized.get("product_category"),
        meta={"default_size": size, REVISION_META_KEY: 1},
        version=1,
        created_at=now,
        updated_at=now,
    )

    structure = None
    if item.product_category:
        classifier = classifier or TimelineClassifier()
        timeline_type = classifier.classify(item.product_category)
        structure = generate_timeline(timeline_type, item.product_category, assigned_at=now)
        item.timeline_type = timeline_type.value
        item.timeline_structure = structure.model_dump(mode="json")

    session.add(item)
    await session.flush()

    await log_event(
        session,
        "item_created",
        "item",
        {"title": item.title, "item_type": item.item_type, "status": item.status},
        item_id=item.id,
        actor_user_id=owner_user_id,
    )
    if structure is not None:
        await log_event(
            session,
            "timeline_created",
            "item",
            {
                "timeline_type": structure.timeline_type.value,
                "step_count": len(structure.steps),
                "total_estimated_days": structure.total_estimated_days,
                "assigned_by_category": structure.assigned_by_category,
            },
            item_id=item.id,
            actor_user_id=owner_user_id,
        )

    logger.info(
        f"Created item {item.id} for owner {owner_user_id} "
        f"(timeline={item.timeline_type or TimelineType.NONE.value})"
    )
    return item
