"""Tests for per-chat note sessions."""

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from onmymind.bot.sessions import SessionStore


@pytest.mark.asyncio
async def test_pull_then_delete():
    """Test that a session tracks the pulled note and then its deletion."""
    sessions = SessionStore(shards=4)
    deleted_at = datetime(2024, 3, 13, 10, 0, tzinfo=ZoneInfo("UTC"))

    await sessions.set_pulled(1, "buy milk")
    assert (await sessions.get(1)).last_pulled == "buy milk"

    await sessions.mark_deleted(1, "buy milk", deleted_at)
    session = await sessions.get(1)
    assert session.last_pulled is None
    assert session.last_deleted == "buy milk"
    assert session.deleted_at == deleted_at

    await sessions.clear_deleted(1)
    session = await sessions.get(1)
    assert session.last_deleted is None
    assert session.deleted_at is None


@pytest.mark.asyncio
async def test_chats_are_isolated():
    """Test that chats sharing a shard keep separate sessions."""
    sessions = SessionStore(shards=2)

    # 1 and 3 share a shard
    await sessions.set_pulled(1, "one")
    await sessions.set_pulled(3, "three")

    assert (await sessions.get(1)).last_pulled == "one"
    assert (await sessions.get(3)).last_pulled == "three"
    assert (await sessions.get(2)).last_pulled is None


@pytest.mark.asyncio
async def test_get_returns_a_copy():
    """Test that callers cannot mutate stored sessions."""
    sessions = SessionStore()
    await sessions.set_pulled(1, "buy milk")

    session = await sessions.get(1)
    session.last_pulled = "changed"

    assert (await sessions.get(1)).last_pulled == "buy milk"
