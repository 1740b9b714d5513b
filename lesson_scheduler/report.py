# lesson_scheduler/report.py
"""
Post-run analysis of an assignment: double bookings per resource, teacher
workloads, room utilization and checks of manual changes to one lesson.
Built on (entity x day x period) occupancy matrices and the score director;
none of it feeds back into the search.
"""
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from .config import SchedulerConfig
from .errors import ConflictingChangeError
from .evaluation import ConstraintEvaluator
from .model import Assignment, Catalog, Lesson, Score

SEVERITY_NONE = "NONE"
SEVERITY_LOW = "LOW"
SEVERITY_MEDIUM = "MEDIUM"
SEVERITY_HIGH = "HIGH"

SEVERELY_OVERLOADED = "SEVERELY_OVERLOADED"
OVERLOADED = "OVERLOADED"
UNDERUTILIZED = "UNDERUTILIZED"
OPTIMAL = "OPTIMAL"


@dataclass
class OccupancyMatrices:
    room: np.ndarray
    teacher: np.ndarray
    klass: np.ndarray
    room_ids: List[str]
    teacher_ids: List[str]
    class_ids: List[str]


@dataclass
class ResourceConflict:
    resource_type: str
    resource_id: str
    day: str
    period: int
    lesson_ids: List[int]


@dataclass
class ConflictReport:
    conflicts: List[ResourceConflict]
    severity: str
    by_type: Dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.conflicts)


@dataclass
class TeacherWorkload:
    teacher_id: str
    total_hours: int
    capacity: int
    utilization: float
    status: str
    daily_hours: Dict[str, int]
    gaps: int


@dataclass
class RoomUtilization:
    room_id: str
    capacity: int
    used_slots: int
    available_slots: int
    utilization: float


def occupancy_matrices(assignment: Assignment, catalog: Catalog) -> OccupancyMatrices:
    room_ids = [r.id for r in catalog.rooms]
    teacher_ids = [t.id for t in catalog.teachers]
    class_ids = [c.id for c in catalog.classes]
    n_days, n_periods = len(catalog.days), len(catalog.periods)

    room_pos = {r: i for i, r in enumerate(room_ids)}
    teacher_pos = {t: i for i, t in enumerate(teacher_ids)}
    class_pos = {c: i for i, c in enumerate(class_ids)}
    day_pos = catalog.day_order()
    period_pos = {p: i for i, p in enumerate(catalog.period_indices)}

    room = np.zeros((len(room_ids), n_days, n_periods), dtype=int)
    teacher = np.zeros((len(teacher_ids), n_days, n_periods), dtype=int)
    klass = np.zeros((len(class_ids), n_days, n_periods), dtype=int)

    for l in assignment.lessons:
        if not l.is_assigned:
            continue
        d, p = day_pos[l.day], period_pos[l.period]
        room[room_pos[l.room], d, p] += 1
        teacher[teacher_pos[l.teacher], d, p] += 1
        klass[class_pos[l.class_id], d, p] += 1

    return OccupancyMatrices(room, teacher, klass, room_ids, teacher_ids, class_ids)


def _severity(total: int) -> str:
    if total == 0:
        return SEVERITY_NONE
    if total < 5:
        return SEVERITY_LOW
    if total < 15:
        return SEVERITY_MEDIUM
    return SEVERITY_HIGH


def conflict_report(assignment: Assignment, catalog: Catalog) -> ConflictReport:
    occ = occupancy_matrices(assignment, catalog)
    periods = catalog.period_indices

    by_cell: Dict[tuple, List[int]] = defaultdict(list)
    for l in assignment.lessons:
        if l.is_assigned:
            by_cell[("room", l.room, l.day, l.period)].append(l.id)
            by_cell[("teacher", l.teacher, l.day, l.period)].append(l.id)
            by_cell[("class", l.class_id, l.day, l.period)].append(l.id)

    conflicts: List[ResourceConflict] = []
    for kind, matrix, ids in (
        ("room", occ.room, occ.room_ids),
        ("teacher", occ.teacher, occ.teacher_ids),
        ("class", occ.klass, occ.class_ids),
    ):
        for e, d, p in np.argwhere(matrix > 1):
            day, period = catalog.days[d], periods[p]
            conflicts.append(
                ResourceConflict(kind, ids[e], day, period, by_cell[(kind, ids[e], day, period)])
            )

    by_type = {kind: sum(1 for c in conflicts if c.resource_type == kind) for kind in ("room", "teacher", "class")}
    return ConflictReport(conflicts=conflicts, severity=_severity(len(conflicts)), by_type=by_type)


def _workload_status(utilization: float) -> str:
    if utilization > 120:
        return SEVERELY_OVERLOADED
    if utilization > 100:
        return OVERLOADED
    if utilization < 80:
        return UNDERUTILIZED
    return OPTIMAL


def _idle_periods(row: np.ndarray) -> int:
    """Free periods between the first and last busy period of one day."""
    busy = np.flatnonzero(row)
    if busy.size < 2:
        return 0
    return int(busy[-1] - busy[0] + 1 - busy.size)


def teacher_workloads(assignment: Assignment, catalog: Catalog) -> List[TeacherWorkload]:
    occ = occupancy_matrices(assignment, catalog)
    duration = {c.id: c.duration_periods for c in catalog.courses}
    hours: Dict[str, int] = defaultdict(int)
    for l in assignment.lessons:
        if l.is_assigned:
            hours[l.teacher] += duration.get(l.course_id, 1)

    out = []
    for i, t in enumerate(catalog.teachers):
        total = hours.get(t.id, 0)
        if t.weekly_capacity > 0:
            utilization = total / t.weekly_capacity * 100
        else:
            utilization = 0.0 if total == 0 else float("inf")
        per_day = occ.teacher[i].sum(axis=1)
        out.append(
            TeacherWorkload(
                teacher_id=t.id,
                total_hours=total,
                capacity=t.weekly_capacity,
                utilization=utilization,
                status=_workload_status(utilization),
                daily_hours={day: int(per_day[d]) for d, day in enumerate(catalog.days) if per_day[d]},
                gaps=sum(_idle_periods(occ.teacher[i, d]) for d in range(len(catalog.days))),
            )
        )
    return out


def room_utilization(assignment: Assignment, catalog: Catalog) -> List[RoomUtilization]:
    occ = occupancy_matrices(assignment, catalog)
    available = len(catalog.days) * len(catalog.periods)
    used = (occ.room > 0).sum(axis=(1, 2)) if occ.room.size else np.zeros(len(occ.room_ids), dtype=int)
    return [
        RoomUtilization(
            room_id=r.id,
            capacity=r.capacity,
            used_slots=int(used[i]),
            available_slots=available,
            utilization=(int(used[i]) / available * 100) if available else 0.0,
        )
        for i, r in enumerate(catalog.rooms)
    ]


@dataclass
class ChangeCheck:
    lesson_id: int
    valid: bool
    before: Score
    after: Score
    conflicts: List[ResourceConflict] = field(default_factory=list)


def _find_lesson(assignment: Assignment, lesson_id: int) -> Lesson:
    for lesson in assignment.lessons:
        if lesson.id == lesson_id:
            return lesson
    raise ValueError(f"Lesson not found: {lesson_id}")


def _clashes(assignment: Assignment, lesson: Lesson) -> List[ResourceConflict]:
    same_slot = [
        o for o in assignment.lessons
        if o.id != lesson.id and o.is_assigned and (o.day, o.period) == (lesson.day, lesson.period)
    ]
    out = []
    for kind, attr in (("room", "room"), ("teacher", "teacher")):
        value = getattr(lesson, attr)
        others = [o.id for o in same_slot if getattr(o, attr) == value]
        if others:
            out.append(ResourceConflict(kind, value, lesson.day, lesson.period, [lesson.id] + others))
    return out


def validate_change(
    assignment: Assignment,
    catalog: Catalog,
    lesson_id: int,
    teacher: Optional[str] = None,
    room: Optional[str] = None,
    cfg: Optional[SchedulerConfig] = None,
) -> ChangeCheck:
    """
    Scores a manual teacher and/or room change on one assigned lesson without
    keeping it. The change is valid when it adds no hard violation and leaves
    the lesson double-booked with nobody.
    """
    lesson = _find_lesson(assignment, lesson_id)
    if not lesson.is_assigned:
        raise ValueError(f"Lesson {lesson_id} is not assigned")
    if teacher is not None and teacher not in lesson.teacher_pool:
        raise ValueError(f"Teacher {teacher} is not qualified for lesson {lesson_id}")
    if room is not None and room not in catalog.room_by_id:
        raise ValueError(f"Room not found: {room}")

    director = ConstraintEvaluator(catalog, cfg).director(assignment)
    before = director.score()
    day, period, old_room, old_teacher = lesson.values()
    director.set_values(lesson, day, period, room or old_room, teacher or old_teacher)
    after = director.score()
    conflicts = _clashes(assignment, lesson)
    director.set_values(lesson, day, period, old_room, old_teacher)

    return ChangeCheck(
        lesson_id=lesson_id,
        valid=not conflicts and after.hard <= before.hard,
        before=before,
        after=after,
        conflicts=conflicts,
    )


def apply_change(
    assignment: Assignment,
    catalog: Catalog,
    lesson_id: int,
    teacher: Optional[str] = None,
    room: Optional[str] = None,
    cfg: Optional[SchedulerConfig] = None,
) -> ChangeCheck:
    check = validate_change(assignment, catalog, lesson_id, teacher, room, cfg)
    if not check.valid:
        raise ConflictingChangeError(check)
    lesson = _find_lesson(assignment, lesson_id)
    lesson.room = room or lesson.room
    lesson.teacher = teacher or lesson.teacher
    assignment.score = check.after
    return check
