"""Supplier notification sinks and best-effort fan-out.

A failed or slow supplier never fails the item update: each call is bounded
by a timeout, and failures are logged and reported back to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Sequence

import httpx
from arq.connections import ArqRedis

from rfqintel.collaborators import NotifySupplier, SupplierNotice
from rfqintel.config import NotificationsConfig
from rfqintel.core.queue import get_queue
from rfqintel.models import NotificationReport

logger = logging.getLogger(__name__)

NOTIFICATION_JOB = "send_supplier_notification"


def spec_change_message(display_title: str) -> str:
    return (
        f'Specifications for "{display_title}" have changed. '
        "Please review the updated details and resubmit your bid."
    )


class LoggingSupplierNotifier:
    """Writes notices to the log; the default when no sink is configured."""

    async def __call__(self, notice: SupplierNotice) -> None:
        logger.info(
            "supplier_notification: supplier=%s item=%s board=%s message=%s",
            notice.supplier_id,
            notice.item_id,
            notice.board_id,
            notice.message,
        )


class WebhookSupplierNotifier:
    """POSTs each notice as JSON to a webhook."""

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def __call__(self, notice: SupplierNotice) -> None:
        payload = {
            "event": "item_specs_changed",
            "supplier_id": notice.supplier_id,
            "item_id": notice.item_id,
            "board_id": notice.board_id,
            "message": notice.message,
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(self.url, json=payload)
            response.raise_for_status()
        logger.info("supplier_notification_sent: supplier=%s", notice.supplier_id)


class QueueSupplierNotifier:
    """Hands each notice to the arq worker."""

    def __init__(self, queue_factory: Callable[[], Awaitable[ArqRedis]] = get_queue):
        self.queue_factory = queue_factory
        self._queue: ArqRedis | None = None

    async def __call__(self, notice: SupplierNotice) -> None:
        if self._queue is None:
            self._queue = await self.queue_factory()
        await self._queue.enqueue_job(
            NOTIFICATION_JOB,
            notice.supplier_id,
            notice.item_id,
            notice.message,
            notice.board_id,
        )


def build_supplier_notifier(config: NotificationsConfig) -> NotifySupplier:
    """Pick the notification sink named by configuration."""
    if config.sink == "webhook":
        if not config.webhook_url:
            logger.warning(
                "supplier_webhook_url_missing: falling back to log sink"
            )
            return LoggingSupplierNotifier()
        return WebhookSupplierNotifier(config.webhook_url, config.supplier_timeout_seconds)
    if config.sink == "queue":
        return QueueSupplierNotifier(lambda: get_queue(config.redis_url))
    return LoggingSupplierNotifier()


async def _deliver(
    notifier: NotifySupplier, notice: SupplierNotice, timeout: float
) -> bool:
    try:
        await asyncio.wait_for(notifier(notice), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(
            "supplier_notification_timeout: supplier=%s item=%s timeout=%ss",
            notice.supplier_id,
            notice.item_id,
            timeout,
        )
        return False
    except Exception as e:
        logger.warning(
            "supplier_notification_failed: supplier=%s item=%s error=%s",
            notice.supplier_id,
            notice.item_id,
            e,
        )
        return False
    return True


async def notify_suppliers(
    notifier: NotifySupplier, notices: Sequence[SupplierNotice], timeout: float = 5.0
) -> NotificationReport:
    """Send every notice concurrently, each bounded by ``timeout`` seconds.

    Returns:
        NotificationReport listing delivered and failed supplier ids
    """
    report = NotificationReport()
    if not notices:
        return report

    outcomes = await asyncio.gather(
        *(_deliver(notifier, notice, timeout) for notice in notices)
    )
    for notice, delivered in zip(notices, outcomes):
        (report.delivered if delivered else report.failed).append(notice.supplier_id)

    if report.failed:
        logger.warning(
            "Supplier fan-out finished with failures: delivered=%d failed=%d",
            len(report.delivered),
            len(report.failed),
        )
    return report
