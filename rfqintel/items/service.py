"""Item update orchestration.

One update call moves through validating -> normalizing -> calculating ->
revision_check -> committing -> done, or stops in rejected before anything
is written. The item row, its edit trail, revision bump, stale-bid flags and
domain events commit together; supplier notices and the delivery-cost
trigger run after the commit and never undo it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

from rfqintel.collaborators import (
    FindActiveRfqRoutes,
    GetItemForUser,
    GetSubmittedBids,
    LogEvent,
    MarkBidsStale,
    NotifySupplier,
    ProjectSourcingCategory,
    RecalculateDeliveryCost,
    RfqRoute,
    SupplierNotice,
    no_project_category,
    skip_delivery_cost,
)
from rfqintel.config import AppConfig
from rfqintel.db import repository
from rfqintel.db.connection import get_session_factory
from rfqintel.db.models import ItemEditModel, ItemModel
from rfqintel.errors import ItemUpdateError, PersistenceError
from rfqintel.events import intelligence_snapshot, log_event
from rfqintel.intelligence.dimensions import (
    DimensionNormalizer,
    DimensionResult,
    StoredDimensions,
)
from rfqintel.intelligence.volume import calculate_cbm
from rfqintel.items.creation import create_item
from rfqintel.items.locks import ItemLockRegistry
from rfqintel.models import (
    DEFAULT_ITEM_SIZE,
    REVISION_META_KEY,
    Editor,
    Item,
    ItemEditRecord,
    NotificationReport,
    RevisionOutcome,
    TimelineStructure,
    UpdateResult,
    UpdateStage,
    utcnow,
)
from rfqintel.notifications.suppliers import (
    LoggingSupplierNotifier,
    build_supplier_notifier,
    notify_suppliers,
    spec_change_message,
)
from rfqintel.revisions.tracker import (
    evaluate_revision,
    has_active_rfq,
    spec_changes,
    suppliers_to_notify,
)
from rfqintel.timeline.classifier import TimelineClassifier, timeline_for_sourcing_type
from rfqintel.timeline.generator import generate_timeline
from rfqintel.validation.fields import FieldValidator
from rfqintel.validation.patch import DIMENSION_AXES, ItemPatch, resolve

logger = structlog.get_logger(__name__)

# Directly assignable fields, in whitelist order
DESCRIPTIVE_FIELDS = (
    "title",
    "description",
    "status",
    "item_type",
    "sourcing_type",
    "product_category",
    "quantity",
    "finishes",
    "notes",
    "delivery_country_code",
    "delivery_postal_code",
)

# Changes reported through intelligence events rather than item_field_changed
INTELLIGENCE_ONLY_FIELDS = frozenset(
    {
        "dimension_width_cm",
        "dimension_depth_cm",
        "dimension_height_cm",
        "dimension_units_original",
        "cbm",
        "timeline_type",
    }
)

DELIVERY_COST_FIELDS = frozenset(
    {
        "dimension_width_original",
        "dimension_depth_original",
        "dimension_height_original",
        "dimension_units_original",
        "dimension_width_cm",
        "dimension_depth_cm",
        "dimension_height_cm",
        "quantity",
        "delivery_country_code",
        "delivery_postal_code",
    }
)

UPDATED_MESSAGE = "Item updated successfully."
NO_CHANGES_MESSAGE = "No changes to update."


def stringify(value: Any) -> str | None:
    """Audit-trail representation of a column value."""
    if value is None:
        return None
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    return str(value)


@dataclass
class UpdatePlan:
    """Everything an update will change, computed before any mutation."""

    changes: dict[str, tuple[Any, Any]] = field(default_factory=dict)
    intelligence_events: list[str] = field(default_factory=list)
    dimensions: DimensionResult | None = None
    timeline: TimelineStructure | None = None

    @property
    def changed_fields(self) -> list[str]:
        return list(self.changes)

    @property
    def field_changes(self) -> list[str]:
        return [name for name in self.changes if name not in INTELLIGENCE_ONLY_FIELDS]

    @property
    def is_noop(self) -> bool:
        return not self.changes and self.timeline is None

    def record(self, name: str, old: Any, new: Any) -> None:
        if old != new:
            self.changes[name] = (old, new)


@dataclass
class _Run:
    """Stage bookkeeping for one update call."""

    log: Any
    stage: UpdateStage = UpdateStage.VALIDATING

    def advance(self, stage: UpdateStage) -> None:
        self.stage = stage
        self.log = self.log.bind(stage=stage.value)
        self.log.debug("update_stage_entered")


class ItemService:
    """Creates items and applies whitelisted updates to them."""

    def __init__(
        self,
        session_factory: sessionmaker,
        *,
        validator: FieldValidator | None = None,
        normalizer: DimensionNormalizer | None = None,
        classifier: TimelineClassifier | None = None,
        get_item: GetItemForUser = repository.get_item_for_user,
        find_routes: FindActiveRfqRoutes = repository.find_active_rfq_routes,
        get_bids: GetSubmittedBids = repository.get_submitted_bids,
        mark_stale: MarkBidsStale = repository.mark_bids_stale,
        event_sink: LogEvent = log_event,
        notifier: NotifySupplier | None = None,
        recalculate_delivery_cost: RecalculateDeliveryCost = skip_delivery_cost,
        project_category: ProjectSourcingCategory = no_project_category,
        locks: ItemLockRegistry | None = None,
        notify_timeout: float = 5.0,
        notifications_enabled: bool = True,
    ):
        self.session_factory = session_factory
        self.validator = validator or FieldValidator()
        self.normalizer = normalizer or DimensionNormalizer()
        self.classifier = classifier or TimelineClassifier()
        self.get_item = get_item
        self.find_routes = find_routes
        self.get_bids = get_bids
        self.mark_stale = mark_stale
        self.event_sink = event_sink
        self.notifier = notifier or LoggingSupplierNotifier()
        self.recalculate_delivery_cost = recalculate_delivery_cost
        self.project_category = project_category
        self.locks = locks or ItemLockRegistry()
        self.notify_timeout = notify_timeout
        self.notifications_enabled = notifications_enabled

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        session_factory: sessionmaker | None = None,
        **overrides: Any,
    ) -> ItemService:
        """Wire a service from application configuration."""
        options: dict[str, Any] = {
            "normalizer": DimensionNormalizer(
                max_dimension_cm=config.dimensions.max_dimension_cm,
                default_unit=config.dimensions.default_unit,
            ),
            "classifier": TimelineClassifier.from_path(config.timeline_keywords_path),
            "notifier": build_supplier_notifier(config.notifications),
            "notify_timeout": config.notifications.supplier_timeout_seconds,
            "notifications_enabled": config.notifications.enabled,
        }
        options.update(overrides)
        return cls(session_factory or get_session_factory(), **options)

    # ------------------------------------------------------------------ create

    async def create_item(
        self,
        owner_user_id: int,
        title: str,
        description: str = "",
        item_type: str = "furniture",
        status: str = "active",
        size: str = DEFAULT_ITEM_SIZE,
        product_category: str | None = None,
    ) -> Item:
        async with self.session_factory() as session:
            try:
                item = await create_item(
                    session,
                    owner_user_id,
                    title,
                    description=description,
                    item_type=item_type,
                    status=status,
                    size=size,
                    product_category=product_category,
                    validator=self.validator,
                    classifier=self.classifier,
                )
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error("item_create_failed", owner_user_id=owner_user_id, error=str(e))
                raise PersistenceError("Failed to create item.") from e
            return Item.model_validate(item)

    # ------------------------------------------------------------------ update

    async def update_item(
        self, item_id: int, editor: Editor, payload: Mapping[str, Any]
    ) -> UpdateResult:
        """Apply a field payload to an item.

        Args:
            item_id: Item to update
            editor: Validated caller identity
            payload: Untyped field -> value map

        Returns:
            UpdateResult with the new snapshot, audit rows and event names

        Raises:
            ItemUpdateError: Any taxonomy error; nothing is written
        """
        run = _Run(log=logger.bind(item_id=item_id, editor_id=editor.user_id))
        run.log.debug("update_stage_entered", stage=run.stage.value)

        try:
            patch = self.validator.parse(payload)
            async with self.locks.hold(item_id):
                result, routes, item = await self._update_locked(item_id, editor, patch, run)
        except PersistenceError as e:
            run.log.error("update_failed", error=e.kind, cause=repr(e.__cause__))
            raise
        except ItemUpdateError as e:
            failed_stage = run.stage
            run.stage = UpdateStage.REJECTED
            run.log.info(
                "update_rejected",
                failed_stage=failed_stage.value,
                error=e.kind,
                fields=e.fields,
            )
            raise

        if result.no_changes:
            return result

        if result.revision.increment and self.notifications_enabled:
            result.notifications = await self._notify_suppliers(item, routes, run)

        if set(result.changed_fields) & DELIVERY_COST_FIELDS:
            try:
                await self.recalculate_delivery_cost(item_id)
            except Exception as e:
                run.log.warning("delivery_cost_recalculation_failed", error=str(e))
                result.delivery_cost_error = str(e)

        run.advance(UpdateStage.DONE)
        result.stage = UpdateStage.DONE
        run.log.info(
            "item_updated",
            version=result.item.version,
            changed_fields=result.changed_fields,
            events=result.events,
        )
        return result

    async def _update_locked(
        self, item_id: int, editor: Editor, patch: ItemPatch, run: _Run
    ) -> tuple[UpdateResult, list[RfqRoute], Item]:
        async with self.session_factory() as session:
            try:
                row = await self.get_item(
                    session,
                    item_id,
                    editor.user_id,
                    is_admin=editor.is_admin,
                    for_update=True,
                )
                plan = await self._plan(session, row, patch, run)
                current_revision = int((row.meta or {}).get(REVISION_META_KEY, 1))

                if plan.is_noop:
                    run.log.info("update_no_changes")
                    snapshot = Item.model_validate(row)
                    return (
                        UpdateResult(
                            item=snapshot,
                            no_changes=True,
                            message=NO_CHANGES_MESSAGE,
                            revision=RevisionOutcome(
                                previous_revision=current_revision,
                                new_revision=current_revision,
                            ),
                        ),
                        [],
                        snapshot,
                    )

                run.advance(UpdateStage.REVISION_CHECK)
                routes = list(await self.find_routes(session, row.id))
                active = has_active_rfq(routes)
                bids = []
                if active and spec_changes(plan.changed_fields):
                    bids = list(await self.get_bids(session, row.id))
                revision = evaluate_revision(
                    plan.changed_fields, active, current_revision, bids
                )

                run.advance(UpdateStage.COMMITTING)
                edits = self._apply(row, plan, editor, revision)
                session.add_all(edits)
                if revision.increment:
                    await self.mark_stale(session, revision.stale_bid_ids)
                    run.log.info(
                        "rfq_revision_incremented",
                        previous_revision=revision.previous_revision,
                        new_revision=revision.new_revision,
                        stale_bids=len(revision.stale_bid_ids),
                    )
                events = await self._emit_events(session, row, plan, revision, editor)
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise PersistenceError() from e

            snapshot = Item.model_validate(row)
            result = UpdateResult(
                item=snapshot,
                edits=[ItemEditRecord.model_validate(edit) for edit in edits],
                events=events,
                changed_fields=plan.changed_fields,
                message=UPDATED_MESSAGE,
                stage=UpdateStage.COMMITTING,
                revision=revision,
            )
            return result, routes, snapshot

    async def _plan(
        self, session: AsyncSession, row: ItemModel, patch: ItemPatch, run: _Run
    ) -> UpdatePlan:
        """Compute every new value without touching the row."""
        plan = UpdatePlan()

        for name in DESCRIPTIVE_FIELDS:
            old = getattr(row, name)
            plan.record(name, old, resolve(getattr(patch, name), old))

        new_cm = {axis: getattr(row, f"dimension_{axis}_cm") for axis in DIMENSION_AXES}
        if patch.touches_dimensions:
            run.advance(UpdateStage.NORMALIZING)
            dims = self.normalizer.normalize(
                patch.dimension_inputs(),
                patch.dimension_units_original,
                StoredDimensions.from_item(row),
            )
            plan.dimensions = dims
            if dims.unit_changed:
                plan.record("dimension_units_original", row.dimension_units_original, dims.unit)
            for axis in DIMENSION_AXES:
                result = dims.axes[axis]
                new_cm[axis] = result.cm
                plan.record(f"dimension_{axis}_cm", getattr(row, f"dimension_{axis}_cm"), result.cm)
                plan.record(
                    f"dimension_{axis}_original",
                    getattr(row, f"dimension_{axis}_original"),
                    result.original,
                )
            if dims.dimension_changed:
                plan.intelligence_events.append("item_dimension_changed")
            if dims.unit_normalized:
                plan.intelligence_events.append("item_unit_normalized")

        run.advance(UpdateStage.CALCULATING)
        dims_changed = plan.dimensions is not None and plan.dimensions.dimension_changed
        incomplete = any(value is None for value in new_cm.values())
        if dims_changed or incomplete:
            new_cbm = calculate_cbm(new_cm["width"], new_cm["depth"], new_cm["height"])
            if new_cbm != row.cbm:
                plan.record("cbm", row.cbm, new_cbm)
                plan.intelligence_events.append("item_cbm_recalculated")

        if "sourcing_type" in plan.changes:
            plan.intelligence_events.append(
                "item_sourcing_type_set" if row.sourcing_type is None else "item_sourcing_type_changed"
            )

        if row.timeline_structure is None and (
            "product_category" in plan.changes or "sourcing_type" in plan.changes
        ):
            plan.timeline = await self._derive_timeline(session, row, patch)
            if plan.timeline is not None:
                new_type = plan.timeline.timeline_type.value
                if new_type != row.timeline_type:
                    plan.record("timeline_type", row.timeline_type, new_type)
                    plan.intelligence_events.append("item_timeline_type_derived")

        return plan

    async def _derive_timeline(
        self, session: AsyncSession, row: ItemModel, patch: ItemPatch
    ) -> TimelineStructure | None:
        category = resolve(patch.product_category, row.product_category)
        fallback = None if category else await self.project_category(session, row)
        if category or fallback:
            timeline_type = self.classifier.classify(category, fallback)
            return generate_timeline(timeline_type, category or fallback)

        sourcing_type = resolve(patch.sourcing_type, row.sourcing_type)
        timeline_type = timeline_for_sourcing_type(sourcing_type)
        if timeline_type is None:
            return None
        return generate_timeline(timeline_type, sourcing_type)

    def _apply(
        self,
        row: ItemModel,
        plan: UpdatePlan,
        editor: Editor,
        revision: RevisionOutcome,
    ) -> list[ItemEditModel]:
        now = utcnow()
        for name, (_, new) in plan.changes.items():
            setattr(row, name, new)
        if plan.timeline is not None:
            row.timeline_structure = plan.timeline.model_dump(mode="json")
        if revision.increment:
            # New dict so the JSON column is flagged dirty
            row.meta = {**(row.meta or {}), REVISION_META_KEY: revision.new_revision}
        row.version = row.version + 1
        row.updated_at = now

        return [
            ItemEditModel(
                item_id=row.id,
                field_name=name,
                old_value=stringify(old),
                new_value=stringify(new),
                editor_user_id=editor.user_id,
                editor_role=editor.role.value,
                created_at=now,
            )
            for name, (old, new) in plan.changes.items()
        ]

    async def _emit_events(
        self,
        session: AsyncSession,
        row: ItemModel,
        plan: UpdatePlan,
        revision: RevisionOutcome,
        editor: Editor,
    ) -> list[str]:
        emitted: list[str] = []

        async def emit(event_type: str, payload: dict[str, Any]) -> None:
            await self.event_sink(
                session,
                event_type,
                "item",
                payload,
                item_id=row.id,
                actor_user_id=editor.user_id,
            )
            emitted.append(event_type)

        snapshot = intelligence_snapshot(row)
        for event_type in plan.intelligence_events:
            await emit(event_type, snapshot)
            if event_type == "item_timeline_type_derived" and plan.timeline is not None:
                await emit("timeline_created", _timeline_payload(plan.timeline))
        if plan.timeline is not None and "timeline_created" not in emitted:
            await emit("timeline_created", _timeline_payload(plan.timeline))

        field_changes = plan.field_changes
        if field_changes:
            await emit(
                "item_field_changed",
                {"changed_fields": field_changes, "version": row.version},
            )

        if revision.increment:
            await emit(
                "item_facts_updated_after_rfq",
                {
                    "previous_revision": revision.previous_revision,
                    "new_revision": revision.new_revision,
                    "changed_fields": spec_changes(plan.changed_fields),
                    "stale_bid_ids": revision.stale_bid_ids,
                },
            )
        return emitted

    async def _notify_suppliers(
        self, item: Item, routes: list[RfqRoute], run: _Run
    ) -> NotificationReport:
        boards: dict[int, int | None] = {}
        for route in routes:
            boards.setdefault(route.supplier_id, route.board_id)
        message = spec_change_message(item.display_title)
        notices = [
            SupplierNotice(
                supplier_id=supplier_id,
                item_id=item.id,
                message=message,
                board_id=boards.get(supplier_id),
            )
            for supplier_id in suppliers_to_notify(routes)
        ]
        report = await notify_suppliers(self.notifier, notices, timeout=self.notify_timeout)
        run.log.info(
            "suppliers_notified",
            delivered=report.delivered,
            failed=report.failed,
        )
        return report


def _timeline_payload(structure: TimelineStructure) -> dict[str, Any]:
    return {
        "timeline_type": structure.timeline_type.value,
        "step_count": len(structure.steps),
        "total_estimated_days": structure.total_estimated_days,
        "assigned_by_category": structure.assigned_by_category,
    }
