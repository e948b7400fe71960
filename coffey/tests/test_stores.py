"""Blob store, work-item store and message queue tests"""

import json

import pytest

from coffey.core.queue import MessageQueue
from coffey.core.workstore import WorkItemStore


class TestBlobStore:
    """Filesystem blob store"""

    @pytest.mark.asyncio
    async def test_put_get_with_metadata(self, blobs):
        await blobs.put("chatter/json/2026-01-01-sha_abc.json", '{"a":1}', content_type="application/json", metadata={"k": "v"})

        assert await blobs.get("chatter/json/2026-01-01-sha_abc.json") == b'{"a":1}'
        sidecar = json.loads((blobs.root / "chatter" / "json" / "2026-01-01-sha_abc.json.meta.json").read_text())
        assert sidecar["content_type"] == "application/json"
        assert sidecar["metadata"] == {"k": "v"}

    @pytest.mark.asyncio
    async def test_missing_key(self, blobs):
        assert await blobs.get("nope.json") is None

    @pytest.mark.asyncio
    async def test_list_by_prefix_skips_sidecars(self, blobs):
        await blobs.put("images/json/b.json", "{}")
        await blobs.put("images/json/a.json", "{}")
        await blobs.put("chatter/json/c.json", "{}")

        assert await blobs.list("images/") == ["images/json/a.json", "images/json/b.json"]

    @pytest.mark.asyncio
    async def test_rejects_escaping_keys(self, blobs):
        with pytest.raises(ValueError):
            await blobs.put("../outside.json", "{}")
        with pytest.raises(ValueError):
            await blobs.put("/abs.json", "{}")


class TestWorkItemStore:
    """TTL key-value store"""

    def test_put_get_delete(self, db):
        store = WorkItemStore(db)
        store.put("work:1", {"retry_count": 0}, ttl_seconds=60)

        assert store.get("work:1") == {"retry_count": 0}
        assert store.count() == 1

        store.delete("work:1")
        assert store.get("work:1") is None

    def test_expired_entry_reads_as_absent(self, db):
        store = WorkItemStore(db)
        store.put("work:2", {"retry_count": 3}, ttl_seconds=-1)

        assert store.get("work:2") is None
        assert store.count() == 0

    def test_purge_expired_removes_only_expired(self, db):
        store = WorkItemStore(db)
        store.put("work:4", {"retry_count": 0}, ttl_seconds=-1)
        store.put("work:5", {"retry_count": 0}, ttl_seconds=60)

        assert store.purge_expired() == 1
        assert store.purge_expired() == 0
        assert store.get("work:5") == {"retry_count": 0}

    def test_put_overwrites(self, db):
        store = WorkItemStore(db)
        store.put("work:3", {"retry_count": 0}, ttl_seconds=60)
        store.put("work:3", {"retry_count": 1}, ttl_seconds=60)

        assert store.get("work:3") == {"retry_count": 1}


class TestMessageQueue:
    """Delayed queue with native redelivery"""

    def test_delayed_message_not_visible(self, db):
        queue = MessageQueue(db, "test")
        queue.send({"n": 1}, delay_seconds=3600)

        assert queue.receive() == []
        assert queue.pending() == 1

    def test_receive_leases_message(self, db):
        queue = MessageQueue(db, "test")
        queue.send({"n": 1})

        first = queue.receive()
        assert [m.body for m in first] == [{"n": 1}]
        assert queue.receive() == []

    def test_ack_deletes(self, db):
        queue = MessageQueue(db, "test")
        msg_id = queue.send({"n": 1})
        queue.receive()
        queue.ack(msg_id)

        assert queue.pending() == 0

    def test_retry_redelivers_then_dead_letters(self, db):
        queue = MessageQueue(db, "test", max_attempts=2)
        msg_id = queue.send({"n": 1})

        assert queue.retry(msg_id) is True
        [msg] = queue.receive()
        assert msg.attempts == 1

        assert queue.retry(msg_id) is False
        assert queue.pending() == 0

    def test_queues_are_separate(self, db):
        MessageQueue(db, "a").send({"n": 1})
        assert MessageQueue(db, "b").receive() == []
