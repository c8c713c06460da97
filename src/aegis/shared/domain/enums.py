"""Severity and confidence vocabulary shared by every subsystem."""

from __future__ import annotations

from enum import Enum


class Severity(str, Enum):
    """Four-level scale used for issues, patterns, alerts and mechanisms."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def weight(self) -> int:
        """Score penalty applied by the health report."""
        return SEVERITY_WEIGHTS[self]

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER.index(self)

    @classmethod
    def parse(cls, value: str | None, default: Severity | None = None) -> Severity:
        """Lenient mapping from free-text log values; unknown values fall back to medium."""
        if isinstance(value, Severity):
            return value
        normalized = str(value or "").strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        return default or cls.MEDIUM


_SEVERITY_ORDER = (Severity.LOW, Severity.MEDIUM, Severity.HIGH, Severity.CRITICAL)

SEVERITY_WEIGHTS: dict[Severity, int] = {
    Severity.LOW: 1,
    Severity.MEDIUM: 3,
    Severity.HIGH: 7,
    Severity.CRITICAL: 15,
}


def clamp_confidence(value: float) -> float:
    """Bound a confidence estimate to [0, 1]."""
    return max(0.0, min(1.0, float(value)))
