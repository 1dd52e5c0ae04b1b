"""rfqintel Pydantic models for type-safe item state and update results.

All models mirror the persisted item shape; derived intelligence fields
(``*_cm``, ``cbm``, ``timeline_type``) are never accepted from callers directly.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ItemStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


class ItemType(str, Enum):
    FURNITURE = "furniture"
    LIGHTING = "lighting"
    ACCESSORY = "accessory"
    ART = "art"
    OTHER = "other"


class SourcingType(str, Enum):
    FURNITURE = "furniture"
    GLOBAL_SOURCING = "global_sourcing"


class DimensionUnit(str, Enum):
    MM = "mm"
    CM = "cm"
    M = "m"
    INCH = "in"


class TimelineType(str, Enum):
    """Production timeline families assigned from the product category."""

    SIX_STEP_FURNITURE = "6step_furniture"
    FOUR_STEP_SOURCING = "4step_sourcing"
    NONE = "none"


class StepStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class EditorRole(str, Enum):
    ADMIN = "admin"
    USER = "user"


class RouteStatus(str, Enum):
    """RFQ routing ledger status; every status except EXPIRED is active."""

    QUEUED = "queued"
    SENT = "sent"
    VIEWED = "viewed"
    BID_SUBMITTED = "bid_submitted"
    EXPIRED = "expired"


class UpdateStage(str, Enum):
    """States an update call moves through."""

    VALIDATING = "validating"
    NORMALIZING = "normalizing"
    CALCULATING = "calculating"
    REVISION_CHECK = "revision_check"
    COMMITTING = "committing"
    DONE = "done"
    REJECTED = "rejected"


ITEM_SIZES = ("S", "D", "L", "XL")
DEFAULT_ITEM_SIZE = "D"
REVISION_META_KEY = "rfq_revision_current"


class Editor(BaseModel):
    """Validated identity of whoever is editing (supplied by the caller)."""

    user_id: int
    role: EditorRole = EditorRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == EditorRole.ADMIN


class TimelineStep(BaseModel):
    step_key: str
    label: str
    order: int
    description: str = ""
    status: StepStatus = StepStatus.PENDING
    estimated_days: int
    actual_days: int | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    is_locked: bool = True
    locked_reason: str | None = None


class TimelineStructure(BaseModel):
    """Ordered, sequentially-locked production steps embedded in an item."""

    timeline_type: TimelineType
    assigned_at: datetime = Field(default_factory=utcnow)
    assigned_by_category: str = ""
    steps: list[TimelineStep] = Field(default_factory=list)
    total_estimated_days: int = 0
    total_actual_days: int | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    def step(self, order: int) -> TimelineStep:
        for step in self.steps:
            if step.order == order:
                return step
        raise KeyError(f"No step with order {order}")


class Item(BaseModel):
    """Snapshot of an item as persisted."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_user_id: int
    title: str
    description: str | None = None
    item_type: ItemType = ItemType.FURNITURE
    status: ItemStatus = ItemStatus.ACTIVE

    product_category: str | None = None
    quantity: int | None = None
    finishes: str | None = None
    notes: str | None = None
    delivery_country_code: str | None = None
    delivery_postal_code: str | None = None

    # Intelligence
    sourcing_type: SourcingType | None = None
    timeline_type: TimelineType | None = None
    timeline_structure: TimelineStructure | None = None
    dimension_width_original: float | None = None
    dimension_depth_original: float | None = None
    dimension_height_original: float | None = None
    dimension_units_original: DimensionUnit | None = None
    dimension_width_cm: float | None = None
    dimension_depth_cm: float | None = None
    dimension_height_cm: float | None = None
    cbm: float | None = None

    meta: dict[str, Any] = Field(default_factory=dict)

    # Bookkeeping
    version: int = 1
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def rfq_revision_current(self) -> int:
        return int(self.meta.get(REVISION_META_KEY, 1))

    @property
    def display_title(self) -> str:
        return self.title or f"Item #{self.id}"


class ItemEditRecord(BaseModel):
    """One append-only audit row per changed field."""

    model_config = ConfigDict(from_attributes=True)

    item_id: int
    field_name: str
    old_value: str | None
    new_value: str | None
    editor_user_id: int
    editor_role: EditorRole
    created_at: datetime = Field(default_factory=utcnow)


class RevisionOutcome(BaseModel):
    increment: bool = False
    previous_revision: int = 1
    new_revision: int = 1
    stale_bid_ids: list[int] = Field(default_factory=list)


class NotificationReport(BaseModel):
    delivered: list[int] = Field(default_factory=list)
    failed: list[int] = Field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.delivered) + len(self.failed)


class UpdateResult(BaseModel):
    """Outcome of a committed (or no-op) item update."""

    item: Item
    edits: list[ItemEditRecord] = Field(default_factory=list)
    events: list[str] = Field(default_factory=list)
    changed_fields: list[str] = Field(default_factory=list)
    no_changes: bool = False
    message: str = "Item updated successfully."
    stage: UpdateStage = UpdateStage.DONE
    revision: RevisionOutcome = Field(default_factory=RevisionOutcome)
    notifications: NotificationReport | None = None
    delivery_cost_error: str | None = None
