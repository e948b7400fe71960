"""Database-backed delayed message queue with native redelivery.

Messages become visible at ``available_at``. Receiving leases a message by
pushing ``available_at`` forward by the visibility timeout, so a consumer that
crashes without acking gets the message redelivered once the lease lapses.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, List

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from coffey.core.logging import get_logger
from coffey.core.timeutils import utcnow
from coffey.models.queue import QueueMessage

log = get_logger("queue")

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_VISIBILITY_TIMEOUT = 300


@dataclass
class Message:
    id: str
    body: Dict[str, Any]
    attempts: int


class MessageQueue:
    def __init__(self, db: Session, name: str, max_attempts: int = DEFAULT_MAX_ATTEMPTS):
        self.db = db
        self.name = name
        self.max_attempts = max_attempts

    def send(self, body: Dict[str, Any], delay_seconds: int = 0) -> str:
        msg = QueueMessage(
            queue=self.name,
            body=body,
            available_at=utcnow() + timedelta(seconds=delay_seconds),
            attempts=0,
        )
        self.db.add(msg)
        self.db.commit()
        log.debug(f"Queued message {msg.id} on {self.name} (delay {delay_seconds}s)")
        return msg.id

    def receive(self, max_messages: int = 10, visibility_timeout: int = DEFAULT_VISIBILITY_TIMEOUT) -> List[Message]:
        now = utcnow()
        stmt = (
            select(QueueMessage)
            .where(QueueMessage.queue == self.name, QueueMessage.available_at <= now)
            .order_by(QueueMessage.available_at)
            .limit(max_messages)
        )
        rows = list(self.db.execute(stmt).scalars().all())
        lease_until = now + timedelta(seconds=visibility_timeout)
        for row in rows:
            row.available_at = lease_until
        self.db.commit()
        return [Message(id=row.id, body=dict(row.body), attempts=row.attempts) for row in rows]

    def ack(self, message_id: str) -> None:
        self.db.execute(delete(QueueMessage).where(QueueMessage.id == message_id))
        self.db.commit()

    def retry(self, message_id: str, delay_seconds: int = 0) -> bool:
        """Make a failed message visible again. Returns False once it is dead-lettered."""
        row = self.db.get(QueueMessage, message_id)
        if row is None:
            return False
        row.attempts += 1
        if row.attempts >= self.max_attempts:
            log.error(f"Message {message_id} on {self.name} dropped after {row.attempts} attempts: {row.body}")
            self.db.delete(row)
            self.db.commit()
            return False
        row.available_at = utcnow() + timedelta(seconds=delay_seconds)
        self.db.commit()
        return True

    def pending(self) -> int:
        return self.db.execute(
            select(func.count()).select_from(QueueMessage).where(QueueMessage.queue == self.name)
        ).scalar_one()
