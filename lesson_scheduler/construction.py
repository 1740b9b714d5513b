# lesson_scheduler/construction.py
import logging
from collections import Counter
from typing import Dict, List, Optional, Tuple

from .config import SchedulerConfig
from .domains import LessonDomain
from .errors import UnsolvableInputError
from .model import Assignment, Catalog, Lesson

logger = logging.getLogger(__name__)

Candidate = Tuple[str, int, str, str]


def check_structure(catalog: Catalog, lessons: List[Lesson]) -> None:
    """Fails fast when some decision field cannot be assigned at all."""
    if not catalog.days:
        raise UnsolvableInputError("No days defined")
    if not catalog.periods:
        raise UnsolvableInputError("No periods defined")
    if not catalog.rooms:
        raise UnsolvableInputError("No rooms defined")
    for lesson in lessons:
        if not lesson.teacher_pool:
            raise UnsolvableInputError(f"Lesson {lesson.id} has no eligible teacher")
    room_slots = len(catalog.days) * len(catalog.periods) * len(catalog.rooms)
    if len(lessons) > room_slots:
        raise UnsolvableInputError(
            f"{len(lessons)} lessons need a room but only {room_slots} (day, period, room) slots exist"
        )


def ordered_rooms(catalog: Catalog, class_size: int) -> List[str]:
    """Rooms that seat the class first (tightest fit first), then the rest, largest first."""
    fitting = sorted((r for r in catalog.rooms if r.capacity >= class_size), key=lambda r: r.capacity)
    small = sorted((r for r in catalog.rooms if r.capacity < class_size), key=lambda r: -r.capacity)
    return [r.id for r in fitting + small]


def tightness(lesson: Lesson, catalog: Catalog, class_size: int) -> int:
    fitting = sum(1 for r in catalog.rooms if r.capacity >= class_size) or len(catalog.rooms)
    return len(lesson.teacher_pool) * fitting


class GreedyConstructor:
    """
    First-fit construction. Lessons with fewer teacher/room options go first;
    each takes the first (day, period, room, teacher) that adds no hard
    violation, or the one adding the fewest when none is clean.
    """

    def __init__(self, catalog: Catalog, domains: Dict[int, LessonDomain], cfg: SchedulerConfig):
        self.catalog = catalog
        self.domains = domains
        self.cfg = cfg
        self.class_size = {c.id: c.max_students for c in catalog.classes}
        self.capacity = {t.id: t.weekly_capacity for t in catalog.teachers}
        self.duration = {c.id: c.duration_periods for c in catalog.courses}
        self.room_slots: Counter = Counter()
        self.teacher_slots: Counter = Counter()
        self.class_slots: Counter = Counter()
        self.teacher_load: Counter = Counter()
        self.class_day: Counter = Counter()

    def _cost(self, lesson: Lesson, cand: Candidate) -> int:
        day, period, room, teacher = cand
        cost = (
            self.room_slots[(day, period, room)]
            + self.teacher_slots[(day, period, teacher)]
            + self.class_slots[(day, period, lesson.class_id)]
        )
        if self.teacher_load[teacher] + self.duration.get(lesson.course_id, 1) > self.capacity.get(teacher, 0):
            cost += 1
        if self.class_day[(lesson.class_id, day)] >= self.cfg.max_lessons_per_day:
            cost += 1
        return cost

    def _candidates(self, lesson: Lesson):
        dom = self.domains[lesson.id]
        rooms = [r for r in ordered_rooms(self.catalog, self.class_size.get(lesson.class_id, 0)) if r in dom.room_ids]
        for day in dom.days:
            for period in dom.period_indices:
                for room in rooms:
                    for teacher in dom.teacher_ids:
                        yield (day, period, room, teacher)

    def _place(self, lesson: Lesson, cand: Candidate) -> None:
        day, period, room, teacher = cand
        lesson.day, lesson.period, lesson.room, lesson.teacher = day, period, room, teacher
        self.room_slots[(day, period, room)] += 1
        self.teacher_slots[(day, period, teacher)] += 1
        self.class_slots[(day, period, lesson.class_id)] += 1
        self.teacher_load[teacher] += self.duration.get(lesson.course_id, 1)
        self.class_day[(lesson.class_id, day)] += 1

    def construct(self, lessons: List[Lesson]) -> Assignment:
        check_structure(self.catalog, lessons)
        order = sorted(
            lessons,
            key=lambda l: tightness(l, self.catalog, self.class_size.get(l.class_id, 0)),
        )
        forced = 0
        for lesson in order:
            best: Optional[Candidate] = None
            best_cost = None
            for cand in self._candidates(lesson):
                cost = self._cost(lesson, cand)
                if best_cost is None or cost < best_cost:
                    best, best_cost = cand, cost
                if cost == 0:
                    break
            if best is None:
                raise UnsolvableInputError(f"Lesson {lesson.id} has an empty value range")
            if best_cost:
                forced += 1
            self._place(lesson, best)

        if forced:
            logger.info("Construction placed %d of %d lessons with hard conflicts", forced, len(lessons))
        return Assignment(lessons=list(lessons))


def construct_initial_assignment(
    catalog: Catalog,
    lessons: List[Lesson],
    domains: Dict[int, LessonDomain],
    cfg: SchedulerConfig,
) -> Assignment:
    return GreedyConstructor(catalog, domains, cfg).construct(lessons)
