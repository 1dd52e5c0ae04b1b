"""Item creation and update orchestration."""

from rfqintel.items.service import ItemService, UpdatePlan

__all__ = ["ItemService", "UpdatePlan"]
