"""Healing module: repair planning, atomic application and the healing engine.

Public API:
    BlueprintHealingEngine   -- scan / heal entry point
    RepairPlanner            -- issue -> RepairAction
    RepairApplier            -- applies safe actions atomically under the repo lock
    RepairStrategyRegistry   -- strategy table
    RepairLog                -- append-only audit trail
"""

from aegis.healing.applier import RepairApplier
from aegis.healing.engine import BlueprintHealingEngine
from aegis.healing.models import ApplyResult, HealingSummary
from aegis.healing.planner import RepairPlanner
from aegis.healing.registry import RepairStrategyRegistry
from aegis.healing.repair_log import REPAIR_LOG_FILENAME, RepairLog

__all__ = [
    "ApplyResult",
    "BlueprintHealingEngine",
    "HealingSummary",
    "REPAIR_LOG_FILENAME",
    "RepairApplier",
    "RepairLog",
    "RepairPlanner",
    "RepairStrategyRegistry",
]
