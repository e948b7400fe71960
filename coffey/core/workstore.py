"""Key-value store with per-entry expiry, used for bookmark work items."""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Dict, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from coffey.core.timeutils import utcnow
from coffey.models.queue import WorkItem


class WorkItemStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Value stored under ``key``; expired entries read as absent and are purged."""
        now = utcnow()
        item = self.db.get(WorkItem, key)
        if item is None:
            return None
        expired = self.db.execute(
            select(WorkItem.key).where(WorkItem.key == key, WorkItem.expires_at <= now)
        ).first()
        if expired:
            self.db.delete(item)
            self.db.commit()
            return None
        return dict(item.value)

    def put(self, key: str, value: Dict[str, Any], ttl_seconds: int) -> None:
        self.db.merge(
            WorkItem(
                key=key,
                value=value,
                expires_at=utcnow() + timedelta(seconds=ttl_seconds),
            )
        )
        self.db.commit()

    def delete(self, key: str) -> None:
        self.db.execute(delete(WorkItem).where(WorkItem.key == key))
        self.db.commit()

    def count(self) -> int:
        return self.db.execute(
            select(func.count()).select_from(WorkItem).where(WorkItem.expires_at > utcnow())
        ).scalar_one()

    def purge_expired(self) -> int:
        result = self.db.execute(delete(WorkItem).where(WorkItem.expires_at <= utcnow()))
        self.db.commit()
        return result.rowcount or 0
