"""Domain-event sink.

Events are written into the caller's session so they commit (or roll back)
with the item write they describe.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from rfqintel.db.models import ItemEventModel

logger = logging.getLogger(__name__)

ALLOWED_EVENT_TYPES = frozenset(
    {
        "item_created",
        "item_field_changed",
        "item_sourcing_type_set",
        "item_sourcing_type_changed",
        "item_timeline_type_derived",
        "item_dimension_changed",
        "item_cbm_recalculated",
        "item_unit_normalized",
        "item_facts_updated_after_rfq",
        "timeline_created",
    }
)
ALLOWED_SUBJECT_TYPES = frozenset({"item"})
MAX_PAYLOAD_BYTES = 10 * 1024

SNAPSHOT_FIELDS = (
    "sourcing_type",
    "timeline_type",
    "dimension_width_cm",
    "dimension_depth_cm",
    "dimension_height_cm",
    "dimension_width_original",
    "dimension_depth_original",
    "dimension_height_original",
    "dimension_units_original",
    "cbm",
)


def intelligence_snapshot(item: Any) -> dict[str, Any]:
    """Current intelligence fields of an item, for event payloads."""
    return {name: getattr(item, name) for name in SNAPSHOT_FIELDS}


def encode_payload(payload: dict[str, Any]) -> str:
    return json.dumps(payload, default=str, sort_keys=True)


async def log_event(
    session: AsyncSession,
    event_type: str,
    subject_type: str,
    payload: dict[str, Any],
    *,
    item_id: int | None = None,
    actor_user_id: int | None = None,
) -> None:
    """Append a domain event to the session.

    Raises:
        ValueError: Unknown event or subject type, or payload over 10 KB
    """
    if event_type not in ALLOWED_EVENT_TYPES:
        raise ValueError(f"Unknown event type: {event_type}")
    if subject_type not in ALLOWED_SUBJECT_TYPES:
        raise ValueError(f"Unknown subject type: {subject_type}")

    encoded = encode_payload(payload)
    if len(encoded.encode("utf-8")) > MAX_PAYLOAD_BYTES:
        raise ValueError(f"Event payload for {event_type} exceeds {MAX_PAYLOAD_BYTES} bytes")

    session.add(
        ItemEventModel(
            event_type=event_type,
            subject_type=subject_type,
            item_id=item_id,
            actor_user_id=actor_user_id,
            payload=json.loads(encoded),
        )
    )
    logger.debug("Logged event %s for item %s", event_type, item_id)
