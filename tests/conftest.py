"""Pytest configuration and fixtures for rfqintel tests.

Provides common fixtures for testing.
"""

from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from rfqintel.db.models import Base, ItemBidModel, ItemModel, RfqRouteModel
from rfqintel.items.service import ItemService
from rfqintel.models import Editor, EditorRole


@pytest.fixture(autouse=True)
def _env(monkeypatch):
    """Keep tests independent of any local .env."""
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setenv("JSON_LOGS", "false")
    monkeypatch.delenv("SUPPLIER_WEBHOOK_URL", raising=False)


@pytest.fixture
def owner() -> Editor:
    return Editor(user_id=7, role=EditorRole.USER)


@pytest.fixture
def admin() -> Editor:
    return Editor(user_id=1, role=EditorRole.ADMIN)


@pytest_asyncio.fixture()
async def session_factory(tmp_path):
    """File-backed SQLite so concurrent sessions see each other's commits."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        yield factory
    finally:
        await engine.dispose()


@pytest.fixture
def service(session_factory) -> ItemService:
    return ItemService(session_factory)


@pytest.fixture
def insert_item(session_factory):
    """Insert an item row directly, bypassing the service."""

    async def _insert(**columns) -> int:
        values = {
            "owner_user_id": 7,
            "title": "Lounge Chair",
            "description": "",
            "item_type": "furniture",
            "status": "active",
            "meta": {"default_size": "D", "rfq_revision_current": 1},
            "version": 1,
        }
        values.update(columns)
        async with session_factory() as session:
            row = ItemModel(**values)
            session.add(row)
            await session.commit()
            return row.id

    return _insert


@pytest.fixture
def insert_route(session_factory):
    async def _insert(item_id: int, supplier_id: int, status: str = "sent", board_id=None) -> None:
        async with session_factory() as session:
            session.add(
                RfqRouteModel(
                    item_id=item_id, supplier_id=supplier_id, status=status, board_id=board_id
                )
            )
            await session.commit()

    return _insert


@pytest.fixture
def insert_bid(session_factory):
    async def _insert(
        item_id: int, supplier_id: int, revision_at_submit=1, status: str = "submitted"
    ) -> int:
        async with session_factory() as session:
            bid = ItemBidModel(
                item_id=item_id,
                supplier_id=supplier_id,
                status=status,
                revision_at_submit=revision_at_submit,
            )
            session.add(bid)
            await session.commit()
            return bid.id

    return _insert
