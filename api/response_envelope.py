"""
Structured Response Envelope
=============================
Every facade call returns one envelope:

  - ``operation`` / ``algorithm_version`` - what ran, under which rules.
  - ``status`` - ``"ok"``, ``"not_found"`` (an agent id is unknown) or
    ``"error"`` (unexpected failure).
  - ``data`` - the structured payload, ``None`` unless status is ``"ok"``.
  - ``explanation`` - human-readable narrative of the result.
  - ``audit_id`` - id of the matching audit-log entry.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


@dataclass
class StrategyResponse:
    operation: str
    algorithm_version: str
    status: str
    data: Any
    explanation: str
    audit_id: str
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    metadata: Optional[Dict[str, Any]] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "operation": self.operation,
            "algorithm_version": self.algorithm_version,
            "status": self.status,
            "data": self.data,
            "explanation": self.explanation,
            "audit_id": self.audit_id,
            "timestamp": self.timestamp,
        }
        if self.metadata:
            payload["metadata"] = self.metadata
        return payload


def success_envelope(
    operation: str,
    algorithm_version: str,
    data: Any,
    explanation: str,
    audit_id: str,
    metadata: Optional[Dict[str, Any]] = None,
) -> StrategyResponse:
    return StrategyResponse(
        operation=operation,
        algorithm_version=algorithm_version,
        status="ok",
        data=data,
        explanation=explanation,
        audit_id=audit_id,
        metadata=metadata,
    )


def not_found_envelope(
    operation: str,
    algorithm_version: str,
    missing_ids: List[int],
    audit_id: str,
) -> StrategyResponse:
    return StrategyResponse(
        operation=operation,
        algorithm_version=algorithm_version,
        status="not_found",
        data=None,
        explanation=f"Unknown agent id(s): {', '.join(str(i) for i in missing_ids)}.",
        audit_id=audit_id,
        metadata={"missing_ids": missing_ids},
    )


def error_envelope(
    operation: str,
    algorithm_version: str,
    error_message: str,
    audit_id: str,
) -> StrategyResponse:
    return StrategyResponse(
        operation=operation,
        algorithm_version=algorithm_version,
        status="error",
        data=None,
        explanation=error_message,
        audit_id=audit_id,
    )
