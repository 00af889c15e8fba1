# routetodev/progress/service.py
"""
Per-user resource completion and the numbers derived from it.

Everything here reads a ``{resource_id: done}`` map built once per request by
``done_map``; the per-path and per-module summaries are pure arithmetic over
that map and the already-loaded Path -> Module -> Resource tree.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import (
    Module,
    Path,
    Progress,
    Resource,
    PROGRESS_DONE,
    PROGRESS_NOT_STARTED,
)


class UnknownResource(LookupError):
    pass


@dataclass(frozen=True)
class ProgressSummary:
    done: int
    total: int
    percent: int
    remaining_minutes: int = 0


@dataclass(frozen=True)
class WeeklyModule:
    path_title: str
    path_slug: str
    module_title: str
    completed_at: datetime


@dataclass
class WeeklyGoal:
    target: int
    week_start: datetime
    week_end: datetime
    modules: List[WeeklyModule] = field(default_factory=list)

    @property
    def completed(self) -> int:
        return len(self.modules)

    @property
    def percent(self) -> int:
        if self.target <= 0:
            return 100
        return min(100, completion_percent(self.completed, self.target))


def completion_percent(done: int, total: int) -> int:
    """Whole percent, halves rounded up. 0 when there is nothing to complete."""
    if total <= 0:
        return 0
    return math.floor(done * 100 / total + 0.5)


def done_map(user_id: Optional[int], resource_ids: Iterable[int]) -> Dict[int, bool]:
    ids = list(resource_ids)
    if not user_id or not ids:
        return {}

    rows = (
        db.session.query(Progress.resource_id, Progress.status)
        .filter(Progress.user_id == user_id)
        .filter(Progress.resource_id.in_(ids))
        .all()
    )
    return {rid: status == PROGRESS_DONE for rid, status in rows}


def path_resources(path: Path) -> List[Resource]:
    # modules are ordered by order_index, resources by id (see models)
    return [r for m in path.modules for r in m.resources]


def summarize(resources: Iterable[Resource], doneness: Dict[int, bool]) -> ProgressSummary:
    resources = list(resources)
    total = len(resources)
    done = sum(1 for r in resources if doneness.get(r.id))
    remaining = sum((r.est_minutes or 0) for r in resources if not doneness.get(r.id))
    return ProgressSummary(
        done=done,
        total=total,
        percent=completion_percent(done, total),
        remaining_minutes=remaining,
    )


def next_resource(path: Path, doneness: Dict[int, bool]) -> Optional[Resource]:
    for r in path_resources(path):
        if not doneness.get(r.id):
            return r
    return None


def module_summaries(path: Path, doneness: Dict[int, bool]) -> Dict[int, ProgressSummary]:
    return {m.id: summarize(m.resources, doneness) for m in path.modules}


def set_resource_status(user_id: int, resource_id: int, action: str = "done") -> str:
    """
    Upsert the (user, resource) progress row and return the new status.

    ``action == "undo"`` reverts to NOT_STARTED, anything else marks DONE.
    The row is never deleted; ``last_seen_at`` is refreshed on every call.
    """
    if db.session.get(Resource, resource_id) is None:
        raise UnknownResource(resource_id)

    status = PROGRESS_NOT_STARTED if action == "undo" else PROGRESS_DONE
    now = datetime.now()

    row = Progress.query.filter_by(user_id=user_id, resource_id=resource_id).one_or_none()
    if row is None:
        row = Progress(user_id=user_id, resource_id=resource_id, status=status, last_seen_at=now)
        db.session.add(row)
        try:
            db.session.commit()
            return status
        except IntegrityError:
            # concurrent toggle inserted the row first
            db.session.rollback()
            row = Progress.query.filter_by(user_id=user_id, resource_id=resource_id).one()

    row.status = status
    row.last_seen_at = now
    db.session.commit()
    return status


def recent_done(user_id: int, limit: int = 50) -> List[Progress]:
    return (
        Progress.query
        .filter_by(user_id=user_id, status=PROGRESS_DONE)
        .order_by(Progress.last_seen_at.desc())
        .limit(limit)
        .all()
    )


def iso_week_bounds(now: datetime):
    """Monday 00:00 of ``now``'s ISO week and the following Monday 00:00."""
    start = (now - timedelta(days=now.weekday())).replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=7)


def weekly_goal(user_id: int, paths: Iterable[Path], target: int = 1, now: Optional[datetime] = None) -> WeeklyGoal:
    now = now or datetime.now()
    week_start, week_end = iso_week_bounds(now)
    goal = WeeklyGoal(target=target, week_start=week_start, week_end=week_end)

    paths = list(paths)
    ids = [r.id for p in paths for r in path_resources(p)]
    if not ids:
        return goal

    last_seen = dict(
        db.session.query(Progress.resource_id, Progress.last_seen_at)
        .filter(Progress.user_id == user_id)
        .filter(Progress.status == PROGRESS_DONE)
        .filter(Progress.resource_id.in_(ids))
        .all()
    )

    for p in paths:
        for m in p.modules:
            completed_at = _module_completed_at(m, last_seen)
            if completed_at is not None and week_start <= completed_at < week_end:
                goal.modules.append(WeeklyModule(p.title, p.slug, m.title, completed_at))

    goal.modules.sort(key=lambda wm: wm.completed_at, reverse=True)
    return goal


def _module_completed_at(module: Module, last_seen: Dict[int, datetime]) -> Optional[datetime]:
    if not module.resources:
        return None
    if any(r.id not in last_seen for r in module.resources):
        return None
    return max(last_seen[r.id] for r in module.resources)
