"""Unit tests for supplier notification sinks and fan-out."""

from __future__ import annotations

import asyncio
import json
import logging

import httpx
import pytest

from rfqintel.collaborators import SupplierNotice
from rfqintel.config import NotificationsConfig
from rfqintel.notifications.suppliers import (
    NOTIFICATION_JOB,
    LoggingSupplierNotifier,
    QueueSupplierNotifier,
    WebhookSupplierNotifier,
    build_supplier_notifier,
    notify_suppliers,
    spec_change_message,
)


def _notice(supplier_id: int) -> SupplierNotice:
    return SupplierNotice(supplier_id=supplier_id, item_id=42, message="changed", board_id=3)


class RecordingNotifier:
    def __init__(self, fail_for=(), hang_for=()):
        self.sent: list[int] = []
        self.fail_for = set(fail_for)
        self.hang_for = set(hang_for)

    async def __call__(self, notice: SupplierNotice) -> None:
        if notice.supplier_id in self.hang_for:
            await asyncio.sleep(10)
        if notice.supplier_id in self.fail_for:
            raise RuntimeError("sink down")
        self.sent.append(notice.supplier_id)


def test_spec_change_message_names_item():
    assert '"Oak Desk"' in spec_change_message("Oak Desk")


@pytest.mark.asyncio
async def test_fan_out_delivers_to_all():
    notifier = RecordingNotifier()
    report = await notify_suppliers(notifier, [_notice(1), _notice(2)], timeout=1)
    assert sorted(notifier.sent) == [1, 2]
    assert report.delivered == [1, 2]
    assert report.failed == []
    assert report.attempted == 2


@pytest.mark.asyncio
async def test_fan_out_isolates_failures(caplog):
    notifier = RecordingNotifier(fail_for={2})
    with caplog.at_level(logging.WARNING):
        report = await notify_suppliers(notifier, [_notice(1), _notice(2), _notice(3)], timeout=1)
    assert report.delivered == [1, 3]
    assert report.failed == [2]
    assert "supplier_notification_failed" in caplog.text


@pytest.mark.asyncio
async def test_fan_out_bounds_slow_suppliers():
    notifier = RecordingNotifier(hang_for={1})
    report = await asyncio.wait_for(
        notify_suppliers(notifier, [_notice(1), _notice(2)], timeout=0.05), timeout=2
    )
    assert report.delivered == [2]
    assert report.failed == [1]


@pytest.mark.asyncio
async def test_fan_out_with_no_notices():
    report = await notify_suppliers(RecordingNotifier(), [], timeout=1)
    assert report.attempted == 0


@pytest.mark.asyncio
async def test_logging_sink(caplog):
    with caplog.at_level(logging.INFO):
        await LoggingSupplierNotifier()(_notice(8))
    assert "supplier=8" in caplog.text


@pytest.mark.asyncio
async def test_webhook_sink_posts_json():
    received = []

    def handler(request: httpx.Request) -> httpx.Response:
        received.append(json.loads(request.content))
        return httpx.Response(200)

    notifier = WebhookSupplierNotifier(
        "https://hooks.example.com/rfq", transport=httpx.MockTransport(handler)
    )
    await notifier(_notice(4))
    assert received == [
        {
            "event": "item_specs_changed",
            "supplier_id": 4,
            "item_id": 42,
            "board_id": 3,
            "message": "changed",
        }
    ]


@pytest.mark.asyncio
async def test_webhook_sink_failure_is_reported_by_fan_out():
    notifier = WebhookSupplierNotifier(
        "https://hooks.example.com/rfq",
        transport=httpx.MockTransport(lambda request: httpx.Response(503)),
    )
    report = await notify_suppliers(notifier, [_notice(4)], timeout=1)
    assert report.failed == [4]


@pytest.mark.asyncio
async def test_queue_sink_enqueues_job():
    class FakeQueue:
        def __init__(self):
            self.jobs = []

        async def enqueue_job(self, name, *args):
            self.jobs.append((name, args))

    queue = FakeQueue()

    async def factory():
        return queue

    notifier = QueueSupplierNotifier(factory)
    await notifier(_notice(6))
    await notifier(_notice(7))
    assert queue.jobs == [
        (NOTIFICATION_JOB, (6, 42, "changed", 3)),
        (NOTIFICATION_JOB, (7, 42, "changed", 3)),
    ]


def test_build_notifier_from_config():
    assert isinstance(build_supplier_notifier(NotificationsConfig()), LoggingSupplierNotifier)
    webhook = build_supplier_notifier(
        NotificationsConfig(sink="webhook", webhook_url="https://x.test/hook")
    )
    assert isinstance(webhook, WebhookSupplierNotifier)
    assert isinstance(
        build_supplier_notifier(NotificationsConfig(sink="webhook")), LoggingSupplierNotifier
    )
    assert isinstance(build_supplier_notifier(NotificationsConfig(sink="queue")), QueueSupplierNotifier)
