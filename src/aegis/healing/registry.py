"""Strategy registry for repair lookup by issue id."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from aegis.shared.domain.exceptions import ConfigurationError

if TYPE_CHECKING:
    from aegis.healing.strategies.base import IRepairStrategy


class RepairStrategyRegistry:
    """Maps issue ids to repair strategies.

    Instances are independent so tests and alternative planners can build
    their own tables without touching a shared one.
    """

    def __init__(self, strategies: Iterable[IRepairStrategy] = ()) -> None:
        self._strategies: dict[str, IRepairStrategy] = {}
        for strategy in strategies:
            self.register(strategy)

    def register(self, strategy: IRepairStrategy) -> None:
        """Register a strategy instance by its name.

        Raises:
            ConfigurationError: if a strategy with the same name exists
        """
        if strategy.name in self._strategies:
            raise ConfigurationError(
                f"Repair strategy '{strategy.name}' is already registered",
                context={"strategy": strategy.name},
            )
        self._strategies[strategy.name] = strategy

    def for_issue(self, issue_id: str) -> IRepairStrategy | None:
        """Return the highest-priority strategy handling ``issue_id``."""
        matching = [s for s in self._strategies.values() if issue_id in s.handles]
        if not matching:
            return None
        return max(matching, key=lambda s: s.priority)

    def get(self, name: str) -> IRepairStrategy | None:
        return self._strategies.get(name)

    def all(self) -> list[IRepairStrategy]:
        return list(self._strategies.values())

    def handled_issues(self) -> set[str]:
        return {issue_id for strategy in self._strategies.values() for issue_id in strategy.handles}

    def ensure_covers(self, issue_ids: Iterable[str]) -> None:
        """Fail fast when an auto-fixable issue has no strategy.

        Raises:
            ConfigurationError: listing the uncovered issue ids
        """
        missing = sorted(set(issue_ids) - self.handled_issues())
        if missing:
            raise ConfigurationError(
                f"No repair strategy registered for: {', '.join(missing)}",
                context={"missing": missing},
            )
