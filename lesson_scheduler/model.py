# lesson_scheduler/model.py
from dataclasses import dataclass
from functools import total_ordering
from typing import Dict, FrozenSet, List, Optional, Tuple

DEFAULT_DAYS: Tuple[str, ...] = ("MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY")

Day = str
PeriodIdx = int


@dataclass(frozen=True)
class Teacher:
    id: str
    weekly_capacity: int
    specialization: str = ""
    preferred_days: Optional[FrozenSet[Day]] = None  # None: no preference data


@dataclass(frozen=True)
class Room:
    id: str
    capacity: int


@dataclass(frozen=True)
class Period:
    id: str
    index: int
    start_time: str = ""
    end_time: str = ""


@dataclass(frozen=True)
class Course:
    id: str
    name: str
    duration_periods: int = 1
    weekly_frequency: int = 1
    is_difficult: bool = False


@dataclass(frozen=True)
class SchoolClass:
    id: str
    max_students: int
    # (course_id, weekly occurrences)
    required_courses: Tuple[Tuple[str, int], ...] = ()


@dataclass(frozen=True)
class Catalog:
    """Read-only reference data for one scheduling run."""

    teachers: Tuple[Teacher, ...]
    rooms: Tuple[Room, ...]
    periods: Tuple[Period, ...]
    courses: Tuple[Course, ...]
    classes: Tuple[SchoolClass, ...]
    days: Tuple[Day, ...] = DEFAULT_DAYS

    def __post_init__(self):
        # Periods are totally ordered by index regardless of input order.
        object.__setattr__(self, "periods", tuple(sorted(self.periods, key=lambda p: p.index)))

    @property
    def teacher_by_id(self) -> Dict[str, Teacher]:
        return {t.id: t for t in self.teachers}

    @property
    def room_by_id(self) -> Dict[str, Room]:
        return {r.id: r for r in self.rooms}

    @property
    def course_by_id(self) -> Dict[str, Course]:
        return {c.id: c for c in self.courses}

    @property
    def class_by_id(self) -> Dict[str, SchoolClass]:
        return {c.id: c for c in self.classes}

    @property
    def period_indices(self) -> List[PeriodIdx]:
        return [p.index for p in self.periods]

    def day_order(self) -> Dict[Day, int]:
        return {d: i for i, d in enumerate(self.days)}

    def scoped(self, class_ids) -> "Catalog":
        """Same catalog restricted to the given classes (one run per class or term)."""
        wanted = set(class_ids)
        return Catalog(
            teachers=self.teachers,
            rooms=self.rooms,
            periods=self.periods,
            courses=self.courses,
            classes=tuple(c for c in self.classes if c.id in wanted),
            days=self.days,
        )


@dataclass
class Lesson:
    id: int
    class_id: str
    course_id: str
    teacher_pool: Tuple[str, ...]
    day: Optional[Day] = None
    period: Optional[PeriodIdx] = None
    room: Optional[str] = None
    teacher: Optional[str] = None

    @property
    def is_assigned(self) -> bool:
        return (
            self.day is not None
            and self.period is not None
            and self.room is not None
            and self.teacher is not None
        )

    def values(self) -> "LessonValues":
        return (self.day, self.period, self.room, self.teacher)


DECISION_FIELDS = ("day", "period", "room", "teacher")

LessonValues = Tuple[Optional[Day], Optional[PeriodIdx], Optional[str], Optional[str]]


@total_ordering
@dataclass(frozen=True)
class Score:
    """Two-level score. `hard` counts violations, `soft` is signed (higher is better).

    Greater means better: fewer hard violations first, then higher soft.
    """

    hard: int = 0
    soft: int = 0

    def _key(self) -> Tuple[int, int]:
        return (-self.hard, self.soft)

    def __lt__(self, other: "Score") -> bool:
        return self._key() < other._key()

    @property
    def is_feasible(self) -> bool:
        return self.hard == 0

    def __str__(self) -> str:
        return f"{self.hard}hard/{self.soft}soft"


@dataclass
class Assignment:
    """The live solution: lessons plus current decision values and score."""

    lessons: List[Lesson]
    score: Optional[Score] = None

    def snapshot(self) -> Tuple[LessonValues, ...]:
        return tuple(lesson.values() for lesson in self.lessons)

    def restore(self, values: Tuple[LessonValues, ...]) -> None:
        for lesson, (day, period, room, teacher) in zip(self.lessons, values):
            lesson.day = day
            lesson.period = period
            lesson.room = room
            lesson.teacher = teacher

    @property
    def is_complete(self) -> bool:
        return all(lesson.is_assigned for lesson in self.lessons)


@dataclass(frozen=True)
class SlotRecord:
    day: Day
    period: PeriodIdx
    room: str
    teacher: str
    class_id: str
    course_id: str
    lesson_id: int
