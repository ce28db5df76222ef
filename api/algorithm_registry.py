"""
Algorithm Version Registry
===========================
Maps each facade operation to the versioned scoring rules behind it, so that
every audit record names the exact constants and thresholds that produced a
result. Versions can be appended, scheduled for later activation, or
deprecated; the most recently effective active entry wins.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, List, Optional


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AlgorithmVersionDescriptor:
    version: str
    description: str
    effective_from: datetime = field(default_factory=_now)
    deprecated_at: Optional[datetime] = None

    def is_active(self, at: datetime) -> bool:
        return self.deprecated_at is None and self.effective_from <= at


_BASELINE_EFFECTIVE = datetime(2024, 1, 1, tzinfo=timezone.utc)

_BASELINE_RULES = {
    "register_agent": "Monotonic id allocation, loyalty 1.0, radius = power * 0.5.",
    "establish_relationship": "Append-only typed edge with symmetric alliance bookkeeping.",
    "analyze_betrayal": (
        "Loyalty-discounted gain, clamped power/ally/vulnerability success "
        "estimate, ally recruitment above a 1.5x power gap."
    ),
    "rank_betrayals": "Viable plans (gain > 0, success > 0.3) ranked by ROI.",
    "execute_betrayal": (
        "60% power transfer, loyalty damage, CONFLICT edge rewrite and "
        "depth-3 decayed ripple from the betrayer."
    ),
    "network_overview": "Power ranking, degree centrality, vulnerability scan, coalitions and bridges.",
    "critical_targets": "Strategic value = power*0.5 + centrality*0.3 + vulnerability*0.2, top 5.",
    "form_coalition": "Compatibility-ranked recruitment with alliance bonus.",
    "plan_dominance_path": "Greedy best-ROI betrayal sequence simulated on a network copy.",
}

_REGISTRY: Dict[str, List[AlgorithmVersionDescriptor]] = {
    op: [AlgorithmVersionDescriptor("1.0.0", rules, effective_from=_BASELINE_EFFECTIVE)]
    for op, rules in _BASELINE_RULES.items()
}


def get_current_version(operation: str) -> AlgorithmVersionDescriptor:
    if operation not in _REGISTRY:
        raise KeyError(f"Unknown operation: {operation}")

    now = _now()
    active = [v for v in _REGISTRY[operation] if v.is_active(now)]
    if not active:
        raise RuntimeError(f"No active algorithm version for operation '{operation}'")
    return max(active, key=lambda v: v.effective_from)


def register_version(
    operation: str,
    version: str,
    description: str,
    effective_from: Optional[datetime] = None,
) -> AlgorithmVersionDescriptor:
    """Appends a version; a future *effective_from* schedules it."""
    descriptor = AlgorithmVersionDescriptor(version, description, effective_from=effective_from or _now())
    _REGISTRY.setdefault(operation, []).append(descriptor)
    return descriptor


def deprecate_version(operation: str, version: str) -> None:
    versions = _REGISTRY.get(operation, [])
    for index, descriptor in enumerate(versions):
        if descriptor.version == version and descriptor.deprecated_at is None:
            versions[index] = replace(descriptor, deprecated_at=_now())
            return
    raise KeyError(f"Active version '{version}' not found for operation '{operation}'")


def list_versions(operation: str) -> List[AlgorithmVersionDescriptor]:
    return list(_REGISTRY.get(operation, []))
