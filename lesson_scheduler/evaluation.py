# lesson_scheduler/evaluation.py
"""
Constraint evaluation.

Every rule is a pair of pure functions: `key` maps a lesson to the group it
belongs to (or None when the rule ignores it) and `impact` counts the rule's
matches inside one group. A full evaluation groups every lesson and sums the
impacts; the ScoreDirector keeps the same groups alive and only rescores the
groups a decision-field change touches, so both paths agree exactly.
"""
from collections import Counter, defaultdict
from dataclasses import dataclass, replace
from typing import Callable, Dict, FrozenSet, Hashable, Iterable, List, Optional, Tuple

from .config import SchedulerConfig
from .model import Assignment, Catalog, Lesson, Score

HARD = "hard"
SOFT = "soft"

PENALTY = -1
REWARD = 1

ROOM_CONFLICT = "room_conflict"
TEACHER_CONFLICT = "teacher_conflict"
CLASS_CONFLICT = "class_conflict"
TEACHER_CAPACITY = "teacher_capacity"
CLASS_WEEKLY_HOURS = "class_weekly_hours"
MAX_LESSONS_PER_DAY = "max_lessons_per_day"
TEACHER_PREFERENCE = "teacher_preference"
ROOM_CAPACITY = "room_capacity"
CONSECUTIVE_LESSONS = "consecutive_lessons"
AVOID_EDGE_PERIODS = "avoid_edge_periods"
TEACHER_GAPS = "teacher_gaps"
DIFFICULT_BACK_TO_BACK = "difficult_back_to_back"
STUDENT_REST = "student_rest"
DURATION_COHESION = "duration_cohesion"
WEEKLY_FREQUENCY = "weekly_frequency"


@dataclass(frozen=True)
class EvaluationContext:
    """Catalog lookups the rules need, resolved once per run."""

    teacher_capacity: Dict[str, int]
    preferred_days: Dict[str, Optional[FrozenSet[str]]]
    room_capacity: Dict[str, int]
    class_size: Dict[str, int]
    course_duration: Dict[str, int]
    course_difficult: Dict[str, bool]
    course_frequency: Dict[str, int]
    required: Dict[Tuple[str, str], int]
    first_period: Optional[int]
    last_period: Optional[int]
    max_lessons_per_day: int
    rest_min_lessons: int
    rest_max_run: int

    @classmethod
    def from_catalog(cls, catalog: Catalog, cfg: SchedulerConfig) -> "EvaluationContext":
        required: Dict[Tuple[str, str], int] = defaultdict(int)
        for clazz in catalog.classes:
            for course_id, count in clazz.required_courses:
                required[(clazz.id, course_id)] += int(count)
        indices = catalog.period_indices
        return cls(
            teacher_capacity={t.id: t.weekly_capacity for t in catalog.teachers},
            preferred_days={t.id: t.preferred_days for t in catalog.teachers},
            room_capacity={r.id: r.capacity for r in catalog.rooms},
            class_size={c.id: c.max_students for c in catalog.classes},
            course_duration={c.id: c.duration_periods for c in catalog.courses},
            course_difficult={c.id: c.is_difficult for c in catalog.courses},
            course_frequency={c.id: c.weekly_frequency for c in catalog.courses},
            required=dict(required),
            first_period=min(indices) if indices else None,
            last_period=max(indices) if indices else None,
            max_lessons_per_day=cfg.max_lessons_per_day,
            rest_min_lessons=cfg.rest_min_lessons,
            rest_max_run=cfg.rest_max_run,
        )


KeyFn = Callable[[Lesson, EvaluationContext], Optional[Hashable]]
ImpactFn = Callable[[Iterable[Lesson], EvaluationContext], int]


@dataclass(frozen=True)
class Constraint:
    name: str
    level: str
    sign: int
    key: KeyFn
    impact: ImpactFn
    weight: int = 1


@dataclass(frozen=True)
class ConstraintTotal:
    name: str
    level: str
    weight: int
    match_count: int
    score_impact: int


# --- group keys -----------------------------------------------------------

def _slot_key(attr: str) -> KeyFn:
    def key(lesson: Lesson, ctx: EvaluationContext):
        if not lesson.is_assigned:
            return None
        return (lesson.day, lesson.period, getattr(lesson, attr))
    return key


def _per_lesson(lesson: Lesson, ctx: EvaluationContext):
    return lesson.id if lesson.is_assigned else None


def _teacher_key(lesson: Lesson, ctx: EvaluationContext):
    return lesson.teacher if lesson.is_assigned else None


def _class_course_key(lesson: Lesson, ctx: EvaluationContext):
    # Every lesson, assigned or not, so groups with nothing assigned still count.
    return (lesson.class_id, lesson.course_id)


def _class_day_key(lesson: Lesson, ctx: EvaluationContext):
    return (lesson.class_id, lesson.day) if lesson.is_assigned else None


def _teacher_day_key(lesson: Lesson, ctx: EvaluationContext):
    return (lesson.teacher, lesson.day) if lesson.is_assigned else None


def _multi_period_key(lesson: Lesson, ctx: EvaluationContext):
    if not lesson.is_assigned or ctx.course_duration.get(lesson.course_id, 1) <= 1:
        return None
    return (lesson.class_id, lesson.course_id, lesson.day)


# --- group impacts --------------------------------------------------------

def _pairs(lessons, ctx) -> int:
    n = sum(1 for _ in lessons)
    return n * (n - 1) // 2


def _adjacent_pairs(counts: Counter) -> int:
    return sum(c * counts.get(p + 1, 0) for p, c in counts.items())


def _teacher_over_capacity(lessons, ctx) -> int:
    lessons = list(lessons)
    load = sum(ctx.course_duration.get(l.course_id, 1) for l in lessons)
    capacity = ctx.teacher_capacity.get(lessons[0].teacher, 0) if lessons else 0
    return len(lessons) if load > capacity else 0


def _weekly_hours_gap(lessons, ctx) -> int:
    lessons = list(lessons)
    if not lessons:
        return 0
    assigned = sum(1 for l in lessons if l.is_assigned)
    return abs(assigned - ctx.required.get((lessons[0].class_id, lessons[0].course_id), 0))


def _over_daily_cap(lessons, ctx) -> int:
    return max(0, sum(1 for _ in lessons) - ctx.max_lessons_per_day)


def _outside_preferred_days(lessons, ctx) -> int:
    count = 0
    for l in lessons:
        prefs = ctx.preferred_days.get(l.teacher)
        if prefs and l.day not in prefs:
            count += 1
    return count


def _room_too_small(lessons, ctx) -> int:
    return sum(
        1 for l in lessons
        if ctx.room_capacity.get(l.room, 0) < ctx.class_size.get(l.class_id, 0)
    )


def _adjacent(lessons, ctx) -> int:
    return _adjacent_pairs(Counter(l.period for l in lessons))


def _edge_period(lessons, ctx) -> int:
    return sum(1 for l in lessons if l.period in (ctx.first_period, ctx.last_period))


def _gaps(lessons, ctx) -> int:
    counts = Counter(l.period for l in lessons)
    n = sum(counts.values())
    same = sum(c * (c - 1) // 2 for c in counts.values())
    return n * (n - 1) // 2 - same - _adjacent_pairs(counts)


def _difficult_adjacent(lessons, ctx) -> int:
    return _adjacent_pairs(Counter(l.period for l in lessons if ctx.course_difficult.get(l.course_id, False)))


def longest_run(periods: Iterable[int]) -> int:
    """Longest chain of distinct, index-adjacent periods."""
    ordered = sorted(set(periods))
    best = run = 0
    previous = None
    for p in ordered:
        run = run + 1 if previous is not None and p - previous == 1 else 1
        best = max(best, run)
        previous = p
    return best


def _rest_overrun(lessons, ctx) -> int:
    periods = [l.period for l in lessons]
    if len(periods) < ctx.rest_min_lessons:
        return 0
    return max(0, longest_run(periods) - ctx.rest_max_run)


def _frequency_gap(lessons, ctx) -> int:
    lessons = list(lessons)
    if not lessons:
        return 0
    assigned = sum(1 for l in lessons if l.is_assigned)
    return abs(assigned - ctx.course_frequency.get(lessons[0].course_id, 0))


CONSTRAINTS: Tuple[Constraint, ...] = (
    # Hard
    Constraint(ROOM_CONFLICT, HARD, PENALTY, _slot_key("room"), _pairs),
    Constraint(TEACHER_CONFLICT, HARD, PENALTY, _slot_key("teacher"), _pairs),
    Constraint(CLASS_CONFLICT, HARD, PENALTY, _slot_key("class_id"), _pairs),
    Constraint(TEACHER_CAPACITY, HARD, PENALTY, _teacher_key, _teacher_over_capacity),
    Constraint(CLASS_WEEKLY_HOURS, HARD, PENALTY, _class_course_key, _weekly_hours_gap),
    Constraint(MAX_LESSONS_PER_DAY, HARD, PENALTY, _class_day_key, _over_daily_cap),
    # Soft
    Constraint(TEACHER_PREFERENCE, SOFT, PENALTY, _per_lesson, _outside_preferred_days),
    Constraint(ROOM_CAPACITY, SOFT, PENALTY, _per_lesson, _room_too_small),
    Constraint(CONSECUTIVE_LESSONS, SOFT, REWARD, _class_day_key, _adjacent),
    Constraint(AVOID_EDGE_PERIODS, SOFT, PENALTY, _per_lesson, _edge_period),
    Constraint(TEACHER_GAPS, SOFT, PENALTY, _teacher_day_key, _gaps),
    Constraint(DIFFICULT_BACK_TO_BACK, SOFT, PENALTY, _class_day_key, _difficult_adjacent),
    Constraint(STUDENT_REST, SOFT, PENALTY, _class_day_key, _rest_overrun),
    Constraint(DURATION_COHESION, SOFT, REWARD, _multi_period_key, _adjacent),
    Constraint(WEEKLY_FREQUENCY, SOFT, PENALTY, _class_course_key, _frequency_gap),
)

CONSTRAINT_NAMES = tuple(c.name for c in CONSTRAINTS)


def build_constraints(cfg: SchedulerConfig) -> Tuple[Constraint, ...]:
    """Applies the configured weights and toggles to the fixed rule set."""
    unknown = (set(cfg.constraint_weights) | set(cfg.disabled_constraints)) - set(CONSTRAINT_NAMES)
    if unknown:
        raise ValueError(f"Unknown constraints in configuration: {sorted(unknown)}")
    out = []
    for c in CONSTRAINTS:
        if c.name in cfg.disabled_constraints:
            continue
        weight = int(cfg.constraint_weights.get(c.name, c.weight))
        if weight < 0:
            raise ValueError(f"Weight for {c.name} must not be negative")
        out.append(replace(c, weight=weight))
    return tuple(out)


def _combine(constraints: Tuple[Constraint, ...], totals: List[int]) -> Score:
    hard = soft = 0
    for c, total in zip(constraints, totals):
        if c.level == HARD:
            hard += c.weight * total
        else:
            soft += c.sign * c.weight * total
    return Score(hard=hard, soft=soft)


def _group(constraint: Constraint, lessons: Iterable[Lesson], ctx: EvaluationContext) -> Dict[Hashable, List[Lesson]]:
    groups: Dict[Hashable, List[Lesson]] = defaultdict(list)
    for lesson in lessons:
        key = constraint.key(lesson, ctx)
        if key is not None:
            groups[key].append(lesson)
    return groups


class ConstraintEvaluator:
    """Scores assignments against the configured rule set."""

    def __init__(self, catalog: Catalog, cfg: Optional[SchedulerConfig] = None):
        self.cfg = cfg or SchedulerConfig()
        self.ctx = EvaluationContext.from_catalog(catalog, self.cfg)
        self.constraints = build_constraints(self.cfg)

    def _totals(self, lessons: List[Lesson]) -> List[int]:
        return [
            sum(c.impact(group, self.ctx) for group in _group(c, lessons, self.ctx).values())
            for c in self.constraints
        ]

    def score(self, assignment: Assignment) -> Score:
        return _combine(self.constraints, self._totals(assignment.lessons))

    def explain(self, assignment: Assignment) -> List[ConstraintTotal]:
        out = []
        for c, total in zip(self.constraints, self._totals(assignment.lessons)):
            impact = c.weight * total if c.level == HARD else c.sign * c.weight * total
            out.append(ConstraintTotal(c.name, c.level, c.weight, total, impact))
        return out

    def director(self, assignment: Assignment) -> "ScoreDirector":
        return ScoreDirector(assignment, self.ctx, self.constraints)


class ScoreDirector:
    """
    Incremental score keeper bound to one live assignment.

    All decision-field writes during search must go through `change` so the
    group indexes stay in sync with the lessons.
    """

    def __init__(self, assignment: Assignment, ctx: EvaluationContext, constraints: Tuple[Constraint, ...]):
        self.assignment = assignment
        self.ctx = ctx
        self.constraints = constraints
        self._build()

    def _build(self) -> None:
        n = len(self.constraints)
        self._groups: List[Dict[Hashable, Dict[int, Lesson]]] = [defaultdict(dict) for _ in range(n)]
        self._impacts: List[Dict[Hashable, int]] = [dict() for _ in range(n)]
        self._keys: Dict[int, List[Optional[Hashable]]] = {}
        self._totals: List[int] = [0] * n
        for lesson in self.assignment.lessons:
            self._insert(lesson)

    def _rescore(self, i: int, key: Hashable) -> None:
        members = self._groups[i].get(key)
        new = self.constraints[i].impact(members.values(), self.ctx) if members else 0
        old = self._impacts[i].get(key, 0)
        self._totals[i] += new - old
        if members:
            self._impacts[i][key] = new
        else:
            self._impacts[i].pop(key, None)
            self._groups[i].pop(key, None)

    def _insert(self, lesson: Lesson) -> None:
        keys = []
        for i, c in enumerate(self.constraints):
            key = c.key(lesson, self.ctx)
            keys.append(key)
            if key is not None:
                self._groups[i][key][lesson.id] = lesson
                self._rescore(i, key)
        self._keys[lesson.id] = keys

    def _retract(self, lesson: Lesson) -> None:
        for i, key in enumerate(self._keys.pop(lesson.id)):
            if key is not None:
                del self._groups[i][key][lesson.id]
                self._rescore(i, key)

    def change(self, lesson: Lesson, field: str, value) -> None:
        self._retract(lesson)
        setattr(lesson, field, value)
        self._insert(lesson)

    def set_values(self, lesson: Lesson, day, period, room, teacher) -> None:
        self._retract(lesson)
        lesson.day, lesson.period, lesson.room, lesson.teacher = day, period, room, teacher
        self._insert(lesson)

    def score(self) -> Score:
        return _combine(self.constraints, self._totals)

    def reload(self) -> None:
        """Rebuilds every index, e.g. after `Assignment.restore`."""
        self._build()


def evaluate(assignment: Assignment, catalog: Catalog, cfg: Optional[SchedulerConfig] = None) -> Score:
    return ConstraintEvaluator(catalog, cfg).score(assignment)
