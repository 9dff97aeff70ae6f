"""
Tests for the notification inbox.
"""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from worktrack.models.notification import NotificationDraft, NotificationKind
from worktrack.notifications.inbox import NotificationInbox
from worktrack.notifications.toasts import ToastFeed


def draft(n: int, order_id: str = "order-1") -> NotificationDraft:
    return NotificationDraft(
        kind=NotificationKind.NEW_COMMENT,
        title="New Comment",
        message=f"message {n}",
        order_id=order_id,
    )


@pytest.fixture
def orders():
    loader = MagicMock()
    loader.has_order = MagicMock(return_value=True)
    loader.ensure_order = AsyncMock(return_value=MagicMock())
    return loader


class TestPush:

    def test_newest_first(self, orders):
        inbox = NotificationInbox(orders)
        inbox.push(draft(1))
        inbox.push(draft(2))
        assert [n.message for n in inbox.items] == ["message 2", "message 1"]

    def test_new_entries_are_unread(self, orders):
        inbox = NotificationInbox(orders)
        item = inbox.push(draft(1))
        assert item.read is False
        assert inbox.unread_count == 1

    def test_ids_are_unique(self, orders):
        inbox = NotificationInbox(orders)
        ids = {inbox.push(draft(i)).id for i in range(10)}
        assert len(ids) == 10

    def test_timestamps_are_utc(self, orders):
        inbox = NotificationInbox(orders)
        item = inbox.push(draft(1))
        assert item.created_at.tzinfo is not None
        assert item.created_at.utcoffset() == timedelta(0)

    def test_toast_timestamps_are_utc(self):
        toast = ToastFeed().error("Sync failed for orders: offline")
        assert toast.created_at.tzinfo is not None
        assert toast.created_at.utcoffset() == timedelta(0)

    def test_capacity_drops_oldest(self, orders):
        inbox = NotificationInbox(orders, capacity=50)
        for i in range(55):
            inbox.push(draft(i))

        assert len(inbox) == 50
        assert inbox.items[0].message == "message 54"
        assert inbox.items[-1].message == "message 5"


class TestReadState:

    def test_mark_all_read(self, orders):
        inbox = NotificationInbox(orders)
        for i in range(3):
            inbox.push(draft(i))
        inbox.mark_all_read()
        assert inbox.unread_count == 0
        assert len(inbox) == 3

    def test_mark_read_unknown_id(self, orders):
        inbox = NotificationInbox(orders)
        assert inbox.mark_read("nope") is False


class TestOpen:

    @pytest.mark.asyncio
    async def test_open_local_order_navigates(self, orders):
        navigate = MagicMock()
        inbox = NotificationInbox(orders, on_navigate=navigate)
        item = inbox.push(draft(1))

        result = await inbox.open(item.id)

        assert result == "order-1"
        assert inbox.get(item.id).read is True
        navigate.assert_called_once_with("order-1")
        orders.ensure_order.assert_not_called()

    @pytest.mark.asyncio
    async def test_open_fetches_missing_order_first(self, orders):
        orders.has_order.return_value = False
        navigate = MagicMock()
        inbox = NotificationInbox(orders, on_navigate=navigate)
        item = inbox.push(draft(1, "order-9"))

        result = await inbox.open(item.id)

        assert result == "order-9"
        orders.ensure_order.assert_awaited_once_with("order-9")
        navigate.assert_called_once_with("order-9")

    @pytest.mark.asyncio
    async def test_open_deleted_order_does_not_navigate(self, orders):
        orders.has_order.return_value = False
        orders.ensure_order.return_value = None
        navigate = MagicMock()
        inbox = NotificationInbox(orders, on_navigate=navigate)
        item = inbox.push(draft(1, "order-gone"))

        result = await inbox.open(item.id)

        assert result is None
        assert inbox.get(item.id).read is True
        navigate.assert_not_called()

    @pytest.mark.asyncio
    async def test_concurrent_opens_share_loader(self, orders):
        orders.has_order.return_value = False
        inbox = NotificationInbox(orders)
        first = inbox.push(draft(1, "order-9"))
        second = inbox.push(draft(2, "order-9"))

        results = await asyncio.gather(inbox.open(first.id), inbox.open(second.id))

        assert results == ["order-9", "order-9"]
        assert inbox.unread_count == 0

    @pytest.mark.asyncio
    async def test_open_unknown_notification(self, orders):
        inbox = NotificationInbox(orders)
        assert await inbox.open("NTF-missing") is None
