"""
In-memory audit ledger for facade operations. Entries are append-only and
hold JSON-serialised request and response payloads, timing and caller.
Nothing is written outside the process.
"""

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditLogEntry:
    operation: str
    algorithm_version: str
    request_payload: str
    response_payload: str
    duration_ms: float
    caller_identity: Optional[str] = None
    status: str = "ok"  # ok | not_found | error
    error_detail: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class AuditLogger:
    def __init__(self):
        self._entries: List[AuditLogEntry] = []

    def log(
        self,
        operation: str,
        algorithm_version: str,
        request_payload: Any,
        response_payload: Any,
        duration_ms: float,
        caller_identity: Optional[str] = None,
        status: str = "ok",
        error_detail: Optional[str] = None,
    ) -> AuditLogEntry:
        entry = AuditLogEntry(
            operation=operation,
            algorithm_version=algorithm_version,
            request_payload=json.dumps(request_payload, default=str),
            response_payload=json.dumps(response_payload, default=str),
            duration_ms=duration_ms,
            caller_identity=caller_identity,
            status=status,
            error_detail=error_detail,
        )
        self._entries.append(entry)
        logger.debug("Audit %s %s (%s) in %.3f ms", entry.id[:8], operation, status, duration_ms)
        return entry

    def query_log(
        self,
        operation: Optional[str] = None,
        since: Optional[datetime] = None,
        limit: int = 50,
    ) -> List[AuditLogEntry]:
        """Newest first, optionally filtered by operation and start time."""
        entries = [
            e for e in self._entries
            if (operation is None or e.operation == operation)
            and (since is None or e.timestamp >= since)
        ]
        return list(reversed(entries))[:limit]
