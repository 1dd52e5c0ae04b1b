import logging
import os
from typing import Any

from rfqintel.collaborators import SupplierNotice
from rfqintel.core.logging import configure_logging
from rfqintel.core.queue import get_redis_settings
from rfqintel.notifications.suppliers import (
    LoggingSupplierNotifier,
    WebhookSupplierNotifier,
)

logger = logging.getLogger(__name__)


async def startup(ctx: dict[str, Any]) -> None:
    """Initialize resources when worker starts."""
    configure_logging()
    webhook_url = os.environ.get("SUPPLIER_WEBHOOK_URL")
    timeout = float(os.environ.get("SUPPLIER_NOTIFY_TIMEOUT_SECONDS", "5.0"))
    ctx["notifier"] = (
        WebhookSupplierNotifier(webhook_url, timeout) if webhook_url else LoggingSupplierNotifier()
    )
    logger.info("Worker started. Supplier notifier: %s", type(ctx["notifier"]).__name__)


async def shutdown(ctx: dict[str, Any]) -> None:
    """Cleanup resources when worker stops."""
    logger.info("Worker stopped.")


async def send_supplier_notification(
    ctx: dict[str, Any],
    supplier_id: int,
    item_id: int,
    message: str,
    board_id: int | None = None,
) -> dict[str, Any]:
    """Deliver one queued supplier notice."""
    notice = SupplierNotice(
        supplier_id=supplier_id, item_id=item_id, message=message, board_id=board_id
    )
    await ctx["notifier"](notice)
    return {"status": "sent", "supplier_id": supplier_id, "item_id": item_id}


class WorkerSettings:
    functions = [send_supplier_notification]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = get_redis_settings()
    max_tries = 3
