"""
Probe registry.

A probe is a named boolean question about the project ("is VERSION
modified?", "is any pattern recurring?"). Catalog templates reference probes
by name; the registry resolves them and is validated against the catalog
when the monitor is built, so an unknown probe name is a startup error rather
than a condition that silently never fires.
"""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping

from aegis.drift.domain.enums import HealthStatus
from aegis.drift.domain.models import HealthReport
from aegis.learning.models import Pattern
from aegis.prediction.models import CompliancePattern
from aegis.prediction.repo_state import RepoState
from aegis.shared.domain.exceptions import ConfigurationError
from aegis.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

PREVENTION_FAILURE = "prevention-failure"


@dataclass
class ProbeContext:
    """Everything a probe may look at during one monitoring pass."""

    project_root: Path
    repo: RepoState
    patterns: list[Pattern] = field(default_factory=list)
    reports: list[HealthReport] = field(default_factory=list)
    last_validation_at: datetime | None = None
    validation_max_age_hours: float = 24.0
    now: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


Probe = Callable[..., bool]


class ProbeRegistry:
    """Name → probe function table."""

    def __init__(self, probes: Mapping[str, Probe] | None = None) -> None:
        self._probes: dict[str, Probe] = {}
        for name, probe in (probes or {}).items():
            self.register(name, probe)

    def register(self, name: str, probe: Probe) -> None:
        if name in self._probes:
            raise ConfigurationError(f"Probe '{name}' is already registered", context={"probe": name})
        self._probes[name] = probe

    def get(self, name: str) -> Probe | None:
        return self._probes.get(name)

    def names(self) -> list[str]:
        return sorted(self._probes)

    def validate(self, catalog: Iterable[CompliancePattern]) -> None:
        """Raise ConfigurationError if any template references an unknown probe."""
        unknown = sorted(
            {
                f"{template.id}:{spec.probe}"
                for template in catalog
                for spec in template.all_probes()
                if spec.probe not in self._probes
            }
        )
        if unknown:
            raise ConfigurationError(f"Unknown probes referenced: {', '.join(unknown)}", context={"unknown": unknown})

    def evaluate(self, name: str, context: ProbeContext, args: Mapping[str, Any]) -> bool:
        """Run a probe; any exception counts as "not satisfied"."""
        probe = self._probes.get(name)
        if probe is None:
            return False
        try:
            return bool(probe(context, **dict(args)))
        except Exception as e:
            logger.warning("probe_failed", probe=name, error=str(e))
            return False


# Repository probes


def file_modified(ctx: ProbeContext, path: str) -> bool:
    return ctx.repo.is_modified(path)


def directory_modified(ctx: ProbeContext, path: str) -> bool:
    return ctx.repo.is_directory_modified(path)


def glob_modified(ctx: ProbeContext, pattern: str) -> bool:
    return bool(ctx.repo.modified_matching(pattern))


def staged_changes(ctx: ProbeContext) -> bool:
    return bool(ctx.repo.staged_files())


def staged_files_match(ctx: ProbeContext, patterns: list[str]) -> bool:
    staged = ctx.repo.staged_files()
    return any(
        fnmatch.fnmatch(path, pattern) or fnmatch.fnmatch(Path(path).name, pattern)
        for path in staged
        for pattern in patterns
    )


def multiple_files_modified(ctx: ProbeContext, paths: list[str], min_count: int = 2) -> bool:
    return sum(1 for path in paths if ctx.repo.is_modified(path)) >= min_count


def rapid_development(ctx: ProbeContext, since: str = "24 hours ago", min_commits: int = 6) -> bool:
    return len(ctx.repo.commits_since(since)) >= min_commits


def recent_commits_matching(ctx: ProbeContext, grep: str, since: str = "7 days ago", min_count: int = 1) -> bool:
    return len(ctx.repo.commits_since(since, grep=grep)) >= min_count


# File system probes


def documentation_stale(ctx: ProbeContext, reference: str, paths: list[str]) -> bool:
    """True when the reference file is newer than any existing documentation file."""
    reference_path = ctx.project_root / reference
    if not reference_path.exists():
        return False
    reference_mtime = reference_path.stat().st_mtime
    docs = [ctx.project_root / p for p in paths if (ctx.project_root / p).exists()]
    return any(doc.stat().st_mtime < reference_mtime for doc in docs)


def validation_stale(ctx: ProbeContext, max_age_hours: float | None = None) -> bool:
    if ctx.last_validation_at is None:
        return True
    max_age = timedelta(hours=max_age_hours if max_age_hours is not None else ctx.validation_max_age_hours)
    return ctx.now - ctx.last_validation_at > max_age


# Learned-pattern probes


def pattern_type_seen(ctx: ProbeContext, pattern_type: str) -> bool:
    return any(p.type == pattern_type for p in ctx.patterns)


def recurring_pattern(ctx: ProbeContext, pattern_id: str | None = None, min_frequency: int = 2) -> bool:
    candidates = [p for p in ctx.patterns if pattern_id is None or p.id == pattern_id]
    return any(p.frequency >= min_frequency for p in candidates)


def low_confidence_patterns(ctx: ProbeContext, threshold: float = 0.7) -> bool:
    return any(p.confidence < threshold for p in ctx.patterns)


def mechanism_degradation(ctx: ProbeContext) -> bool:
    return any(p.type == PREVENTION_FAILURE for p in ctx.patterns)


# Drift-report probes


def unhealthy_artifacts(ctx: ProbeContext, min_status: str = "warning") -> bool:
    threshold = HealthStatus(min_status).rank
    return any(r.status.rank >= threshold for r in ctx.reports)


def auto_fixable_issues(ctx: ProbeContext) -> bool:
    return any(r.auto_fixable_issues for r in ctx.reports)


BUILTIN_PROBES: dict[str, Probe] = {
    "file-modified": file_modified,
    "directory-modified": directory_modified,
    "glob-modified": glob_modified,
    "staged-changes": staged_changes,
    "staged-files-match": staged_files_match,
    "multiple-files-modified": multiple_files_modified,
    "rapid-development": rapid_development,
    "recent-commits-matching": recent_commits_matching,
    "documentation-stale": documentation_stale,
    "validation-stale": validation_stale,
    "pattern-type-seen": pattern_type_seen,
    "recurring-pattern": recurring_pattern,
    "low-confidence-patterns": low_confidence_patterns,
    "mechanism-degradation": mechanism_degradation,
    "unhealthy-artifacts": unhealthy_artifacts,
    "auto-fixable-issues": auto_fixable_issues,
}


def default_probe_registry() -> ProbeRegistry:
    return ProbeRegistry(BUILTIN_PROBES)
