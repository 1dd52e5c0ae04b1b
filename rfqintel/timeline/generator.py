"""Timeline structure generation and step progression.

Structures are generated once per item. Step 1 starts unlocked; every later
step stays locked until the step before it is completed.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

from rfqintel.errors import TimelineStepError
from rfqintel.models import (
    StepStatus,
    TimelineStep,
    TimelineStructure,
    TimelineType,
    utcnow,
)


@dataclass(frozen=True)
class StepTemplate:
    step_key: str
    label: str
    description: str
    estimated_days: int


FURNITURE_STEPS = (
    StepTemplate("prototype", "Prototype", "Initial prototype development and approval", 7),
    StepTemplate(
        "frame_structure",
        "Frame / Structure",
        "Frame construction and structural assembly",
        10,
    ),
    StepTemplate("surface_treatment", "Surface Treatment", "Sanding, staining, finishing", 5),
    StepTemplate(
        "upholstery_fabrication",
        "Upholstery / Fabrication",
        "Fabric cutting, sewing, and upholstery work",
        8,
    ),
    StepTemplate("final_qc", "Final QC", "Quality control inspection and final approval", 2),
    StepTemplate(
        "packing_delivery", "Packing & Delivery", "Final packaging and shipping preparation", 3
    ),
)

SOURCING_STEPS = (
    StepTemplate("sourcing", "Sourcing", "Vendor identification and material sourcing", 14),
    StepTemplate(
        "production_procurement",
        "Production / Procurement",
        "Manufacturing or procurement process",
        21,
    ),
    StepTemplate("quality_check", "Quality Check", "Quality inspection and verification", 3),
    StepTemplate(
        "packing_delivery", "Packing & Delivery", "Final packaging and shipping preparation", 5
    ),
)

STEP_TEMPLATES: dict[TimelineType, tuple[StepTemplate, ...]] = {
    TimelineType.SIX_STEP_FURNITURE: FURNITURE_STEPS,
    TimelineType.FOUR_STEP_SOURCING: SOURCING_STEPS,
    TimelineType.NONE: (),
}


def _locked_reason(previous: TimelineStep) -> str:
    return f"Complete Step {previous.order} ({previous.label}) before starting this step"


def generate_timeline(
    timeline_type: TimelineType | str,
    assigned_by_category: str = "",
    assigned_at: datetime | None = None,
) -> TimelineStructure:
    """Build a fresh timeline structure for ``timeline_type``.

    Args:
        timeline_type: Timeline family; ``none`` yields an empty step list
        assigned_by_category: Category string that produced the classification
        assigned_at: Assignment timestamp (defaults to now, UTC)

    Returns:
        TimelineStructure with step 1 unlocked and later steps locked
    """
    timeline_type = TimelineType(timeline_type)
    steps: list[TimelineStep] = []
    for order, template in enumerate(STEP_TEMPLATES[timeline_type], start=1):
        step = TimelineStep(
            step_key=template.step_key,
            label=template.label,
            order=order,
            description=template.description,
            estimated_days=template.estimated_days,
            is_locked=order > 1,
        )
        if steps:
            step.locked_reason = _locked_reason(steps[-1])
        steps.append(step)

    return TimelineStructure(
        timeline_type=timeline_type,
        assigned_at=assigned_at or utcnow(),
        assigned_by_category=assigned_by_category or "",
        steps=steps,
        total_estimated_days=sum(step.estimated_days for step in steps),
    )


def _elapsed_days(started_at: datetime | None, completed_at: datetime) -> int:
    if started_at is None:
        return 0
    seconds = (completed_at - started_at).total_seconds()
    return max(1, math.ceil(seconds / 86400))


def _lookup(structure: TimelineStructure, order: int) -> TimelineStep:
    try:
        return structure.step(order)
    except KeyError:
        raise TimelineStepError(order, "no such step") from None


def start_step(
    structure: TimelineStructure, order: int, now: datetime | None = None
) -> TimelineStructure:
    """Move a step from pending to in_progress; returns an updated copy.

    Raises:
        TimelineStepError: If the step is unknown, locked, or not pending
    """
    updated = structure.model_copy(deep=True)
    step = _lookup(updated, order)
    if step.is_locked:
        raise TimelineStepError(order, step.locked_reason or "step is locked")
    if step.status != StepStatus.PENDING:
        raise TimelineStepError(order, "step is not pending")

    now = now or utcnow()
    step.status = StepStatus.IN_PROGRESS
    step.started_at = now
    if updated.started_at is None:
        updated.started_at = now
    return updated


def complete_step(
    structure: TimelineStructure, order: int, now: datetime | None = None
) -> TimelineStructure:
    """Complete an in-progress step and unlock the next one.

    Completing the last step closes the whole structure and records the
    total actual days.

    Raises:
        TimelineStepError: If the step is unknown or not in progress
    """
    updated = structure.model_copy(deep=True)
    step = _lookup(updated, order)
    if step.status != StepStatus.IN_PROGRESS:
        raise TimelineStepError(order, "step is not in progress")

    now = now or utcnow()
    step.status = StepStatus.COMPLETED
    step.completed_at = now
    step.actual_days = _elapsed_days(step.started_at, now)

    following = [s for s in updated.steps if s.order > order]
    if following:
        next_step = min(following, key=lambda s: s.order)
        next_step.is_locked = False
        next_step.locked_reason = None
    elif all(s.status == StepStatus.COMPLETED for s in updated.steps):
        updated.completed_at = now
        updated.total_actual_days = sum(s.actual_days or 0 for s in updated.steps)
    return updated
