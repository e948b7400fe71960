"""Record envelope assembly.

The id of every record is derived from its data: ``sha256:<hex>`` of the
canonical JSON of the (already enriched) payload. Assembly does no I/O.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Optional

from coffey.core.hashing import content_hash
from coffey.core.timeutils import now_iso


def assemble(
    kind: str,
    data: Dict[str, Any],
    created_at: Optional[str] = None,
    schema_version: str = "1.0.0",
    **extra: Any,
) -> Dict[str, Any]:
    """Build the ``{type, id, schema_version, created_at, sha256, ..., data}`` envelope.

    ``extra`` holds kind-specific envelope fields (``created_by`` for chatter,
    ``original_filename`` for images). They are not part of the hash.
    """
    frozen = copy.deepcopy(data)
    digest = content_hash(frozen)
    record: Dict[str, Any] = {
        "type": kind,
        "id": f"sha256:{digest}",
        "schema_version": schema_version,
        "created_at": created_at or now_iso(),
        "sha256": digest,
    }
    record.update(extra)
    record["data"] = frozen
    return record
