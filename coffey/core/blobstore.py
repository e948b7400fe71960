"""Filesystem-backed blob store for canonical JSON snapshots and artifacts."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from coffey.core.logging import get_logger

log = get_logger("blobstore")

SIDECAR_SUFFIX = ".meta.json"


class BlobStore:
    """Stores objects under a root directory, one file per key.

    Each object has a JSON sidecar holding its content type and custom metadata.
    File I/O runs in a worker thread so callers can await it like a remote store.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not key or key.startswith("/") or ".." in key.split("/"):
            raise ValueError(f"Invalid blob key: {key!r}")
        return self.root / key

    async def put(
        self,
        key: str,
        body: Union[bytes, str],
        content_type: str = "application/octet-stream",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        path = self._path(key)
        data = body.encode("utf-8") if isinstance(body, str) else body
        sidecar = {"content_type": content_type, "metadata": metadata or {}, "size": len(data)}
        await asyncio.to_thread(self._write, path, data, sidecar)
        log.debug(f"Stored blob {key} ({len(data)} bytes)")

    @staticmethod
    def _write(path: Path, data: bytes, sidecar: Dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        with open(path.with_name(path.name + SIDECAR_SUFFIX), "w") as f:
            json.dump(sidecar, f, indent=2)

    async def get(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        if not path.exists():
            return None
        return await asyncio.to_thread(path.read_bytes)

    async def list(self, prefix: str = "") -> List[str]:
        """All keys starting with ``prefix``, sorted."""
        return await asyncio.to_thread(self._list, prefix)

    def _list(self, prefix: str) -> List[str]:
        keys = []
        for path in self.root.rglob("*"):
            if not path.is_file() or path.name.endswith(SIDECAR_SUFFIX):
                continue
            key = path.relative_to(self.root).as_posix()
            if key.startswith(prefix):
                keys.append(key)
        return sorted(keys)
