"""Unit tests for timeline structure generation and step progression."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from rfqintel.errors import TimelineStepError
from rfqintel.models import StepStatus, TimelineType
from rfqintel.timeline.generator import complete_step, generate_timeline, start_step

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "timeline_type,labels,days",
    [
        (
            TimelineType.SIX_STEP_FURNITURE,
            [
                "Prototype",
                "Frame / Structure",
                "Surface Treatment",
                "Upholstery / Fabrication",
                "Final QC",
                "Packing & Delivery",
            ],
            [7, 10, 5, 8, 2, 3],
        ),
        (
            TimelineType.FOUR_STEP_SOURCING,
            ["Sourcing", "Production / Procurement", "Quality Check", "Packing & Delivery"],
            [14, 21, 3, 5],
        ),
    ],
)
def test_step_templates(timeline_type, labels, days):
    structure = generate_timeline(timeline_type, "Some Category", assigned_at=T0)
    assert [s.label for s in structure.steps] == labels
    assert [s.estimated_days for s in structure.steps] == days
    assert [s.order for s in structure.steps] == list(range(1, len(labels) + 1))
    assert structure.total_estimated_days == sum(days)
    assert structure.assigned_by_category == "Some Category"
    assert structure.assigned_at == T0


@pytest.mark.parametrize(
    "timeline_type", [TimelineType.SIX_STEP_FURNITURE, TimelineType.FOUR_STEP_SOURCING]
)
def test_only_first_step_unlocked(timeline_type):
    structure = generate_timeline(timeline_type)
    first, *rest = structure.steps
    assert first.is_locked is False
    assert first.locked_reason is None
    assert rest
    for previous, step in zip(structure.steps, rest):
        assert step.is_locked is True
        assert step.locked_reason == (
            f"Complete Step {previous.order} ({previous.label}) before starting this step"
        )
    assert all(s.status == StepStatus.PENDING for s in structure.steps)


def test_none_timeline_is_empty():
    structure = generate_timeline("none", "Material Sample Kit")
    assert structure.timeline_type == TimelineType.NONE
    assert structure.steps == []
    assert structure.total_estimated_days == 0


def test_structure_round_trips_through_json():
    structure = generate_timeline(TimelineType.FOUR_STEP_SOURCING, "Lighting")
    dumped = structure.model_dump(mode="json")
    assert dumped["timeline_type"] == "4step_sourcing"
    assert dumped["steps"][0]["status"] == "pending"


class TestProgression:
    def test_start_first_step(self):
        structure = generate_timeline(TimelineType.FOUR_STEP_SOURCING)
        started = start_step(structure, 1, now=T0)
        assert started.step(1).status == StepStatus.IN_PROGRESS
        assert started.step(1).started_at == T0
        assert started.started_at == T0
        # original untouched
        assert structure.step(1).status == StepStatus.PENDING

    def test_locked_step_cannot_start(self):
        structure = generate_timeline(TimelineType.SIX_STEP_FURNITURE)
        with pytest.raises(TimelineStepError, match="Prototype"):
            start_step(structure, 2)

    def test_cannot_start_twice(self):
        structure = start_step(generate_timeline(TimelineType.FOUR_STEP_SOURCING), 1)
        with pytest.raises(TimelineStepError, match="not pending"):
            start_step(structure, 1)

    def test_cannot_complete_pending_step(self):
        structure = generate_timeline(TimelineType.FOUR_STEP_SOURCING)
        with pytest.raises(TimelineStepError, match="not in progress"):
            complete_step(structure, 1)

    def test_unknown_step(self):
        structure = generate_timeline(TimelineType.FOUR_STEP_SOURCING)
        with pytest.raises(TimelineStepError, match="no such step"):
            start_step(structure, 9)

    def test_complete_unlocks_next_step(self):
        structure = start_step(generate_timeline(TimelineType.FOUR_STEP_SOURCING), 1, now=T0)
        done = complete_step(structure, 1, now=T0 + timedelta(days=3, hours=2))
        assert done.step(1).status == StepStatus.COMPLETED
        assert done.step(1).actual_days == 4
        assert done.step(2).is_locked is False
        assert done.step(2).locked_reason is None
        assert done.step(3).is_locked is True
        assert done.completed_at is None

    def test_completing_last_step_closes_timeline(self):
        structure = generate_timeline(TimelineType.FOUR_STEP_SOURCING)
        now = T0
        for order in range(1, 5):
            structure = start_step(structure, order, now=now)
            now += timedelta(days=2)
            structure = complete_step(structure, order, now=now)
        assert structure.completed_at == now
        assert structure.total_actual_days == 8
        assert all(s.status == StepStatus.COMPLETED for s in structure.steps)
