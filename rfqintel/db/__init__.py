"""Database layer for rfqintel with async SQLAlchemy."""

from rfqintel.db.connection import get_session, init_db
from rfqintel.db.models import (
    Base,
    ItemBidModel,
    ItemEditModel,
    ItemEventModel,
    ItemModel,
    RfqRouteModel,
)

__all__ = [
    "Base",
    "ItemModel",
    "ItemEditModel",
    "ItemEventModel",
    "RfqRouteModel",
    "ItemBidModel",
    "get_session",
    "init_db",
]
