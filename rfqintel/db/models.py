"""SQLAlchemy async database models for rfqintel.

Items, their append-only edit trail and domain events, plus the RFQ routing
and bid tables the revision tracker reads and flags.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class ItemModel(Base):
    """Designer item headed for a request-for-quote."""

    __tablename__ = "items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    item_type: Mapped[str] = mapped_column(String(100), nullable=False, default="furniture")
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="active")

    product_category: Mapped[str | None] = mapped_column(String(255))
    quantity: Mapped[int | None] = mapped_column(Integer)
    finishes: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)
    delivery_country_code: Mapped[str | None] = mapped_column(String(2))
    delivery_postal_code: Mapped[str | None] = mapped_column(String(20))

    # Intelligence
    sourcing_type: Mapped[str | None] = mapped_column(String(50))
    timeline_type: Mapped[str | None] = mapped_column(String(50))
    timeline_structure: Mapped[dict | None] = mapped_column(JSON)
    dimension_width_original: Mapped[float | None] = mapped_column(Float)
    dimension_depth_original: Mapped[float | None] = mapped_column(Float)
    dimension_height_original: Mapped[float | None] = mapped_column(Float)
    dimension_units_original: Mapped[str | None] = mapped_column(String(20))
    dimension_width_cm: Mapped[float | None] = mapped_column(Float)
    dimension_depth_cm: Mapped[float | None] = mapped_column(Float)
    dimension_height_cm: Mapped[float | None] = mapped_column(Float)
    cbm: Mapped[float | None] = mapped_column(Float)

    # Free-form metadata (default size, current RFQ revision)
    meta: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        CheckConstraint("version >= 1", name="check_item_version"),
        CheckConstraint("quantity IS NULL OR quantity > 0", name="check_item_quantity"),
        Index("idx_items_owner_status", "owner_user_id", "status"),
    )


class ItemEditModel(Base):
    """Append-only audit row, one per changed field per update."""

    __tablename__ = "item_edits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_id: Mapped[int] = mapped_column(
        ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    field_name: Mapped[str] = mapped_column(String(100), nullable=False)
    old_value: Mapped[str | None] = mapped_column(Text)
    new_value: Mapped[str | None] = mapped_column(Text)
    editor_user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    editor_role: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint("editor_role IN ('admin', 'user')", name="check_edit_role"),
        Index("idx_item_edits_item_created", "item_id", "created_at"),
    )


class ItemEventModel(Base):
    """Domain event stored alongside the item write."""

    __tablename__ = "item_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    subject_type: Mapped[str] = mapped_column(String(50), nullable=False)
    item_id: Mapped[int | None] = mapped_column(Integer, index=True)
    actor_user_id: Mapped[int | None] = mapped_column(Integer)
    payload: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class RfqRouteModel(Base):
    """Routing of an item to one supplier."""

    __tablename__ = "rfq_routes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_id: Mapped[int] = mapped_column(
        ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    supplier_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    board_id: Mapped[int | None] = mapped_column(Integer)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="queued")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("item_id", "supplier_id", name="uq_rfq_route_item_supplier"),
        CheckConstraint(
            "status IN ('queued', 'sent', 'viewed', 'bid_submitted', 'expired')",
            name="check_route_status",
        ),
    )


class ItemBidModel(Base):
    """Supplier bid on an item, stamped with the revision it was priced against."""

    __tablename__ = "item_bids"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_id: Mapped[int] = mapped_column(
        ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    supplier_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="submitted")
    revision_at_submit: Mapped[int | None] = mapped_column(Integer)
    needs_resubmission: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    stale_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('submitted', 'withdrawn', 'awarded', 'declined')",
            name="check_bid_status",
        ),
        Index("idx_item_bids_item_status", "item_id", "status"),
    )
