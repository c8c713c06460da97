"""Abstract base class for repair strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from aegis.blueprints.domain.models import Artifact
from aegis.drift.domain.models import Issue, RepairAction


@dataclass(frozen=True)
class RepairContext:
    """Project facts a strategy may need to build a repair."""

    framework_version: str


class IRepairStrategy(ABC):
    """Strategy interface turning one kind of Issue into a RepairAction."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique strategy identifier, e.g. 'field_defaults'."""

    @property
    @abstractmethod
    def handles(self) -> list[str]:
        """Issue ids this strategy can repair."""

    @property
    def priority(self) -> int:
        """Higher = preferred when two strategies handle the same issue. Default 100."""
        return 100

    @abstractmethod
    def plan(self, issue: Issue, artifact: Artifact, context: RepairContext) -> RepairAction | None:
        """Build the action resolving ``issue``, or None if it cannot be derived."""
