import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .domains import LessonDomain
from .evaluation import ScoreDirector
from .model import Lesson

CHANGE_DAY = "change_day"
CHANGE_PERIOD = "change_period"
CHANGE_ROOM = "change_room"
CHANGE_TEACHER = "change_teacher"
SWAP_SLOTS = "swap_slots"

MOVE_TYPES = (CHANGE_DAY, CHANGE_PERIOD, CHANGE_ROOM, CHANGE_TEACHER, SWAP_SLOTS)

_FIELD_BY_MOVE = {
    CHANGE_DAY: "day",
    CHANGE_PERIOD: "period",
    CHANGE_ROOM: "room",
    CHANGE_TEACHER: "teacher",
}


@dataclass
class ChangeMove:
    """Sets one decision field of one lesson."""

    lesson: Lesson
    field_name: str
    value: Any
    _old: Any = field(default=None, repr=False)

    @property
    def kind(self) -> str:
        return "change_" + self.field_name

    def do(self, director: ScoreDirector) -> None:
        self._old = getattr(self.lesson, self.field_name)
        director.change(self.lesson, self.field_name, self.value)

    def undo(self, director: ScoreDirector) -> None:
        director.change(self.lesson, self.field_name, self._old)


@dataclass
class SwapMove:
    """Exchanges the (day, period) of two lessons of different classes."""

    left: Lesson
    right: Lesson
    kind: str = SWAP_SLOTS

    def _swap(self, director: ScoreDirector) -> None:
        a, b = self.left, self.right
        a_slot: Tuple = (a.day, a.period)
        b_slot: Tuple = (b.day, b.period)
        director.set_values(a, b_slot[0], b_slot[1], a.room, a.teacher)
        director.set_values(b, a_slot[0], a_slot[1], b.room, b.teacher)

    def do(self, director: ScoreDirector) -> None:
        self._swap(director)

    def undo(self, director: ScoreDirector) -> None:
        self._swap(director)


def _value_range(dom: LessonDomain, field_name: str) -> Tuple:
    return {
        "day": dom.days,
        "period": dom.period_indices,
        "room": dom.room_ids,
        "teacher": dom.teacher_ids,
    }[field_name]


def random_change_move(
    rng: random.Random, lessons: List[Lesson], domains: Dict[int, LessonDomain], move_type: str
) -> Optional[ChangeMove]:
    lesson = rng.choice(lessons)
    field_name = _FIELD_BY_MOVE[move_type]
    options = [v for v in _value_range(domains[lesson.id], field_name) if v != getattr(lesson, field_name)]
    if not options:
        return None
    return ChangeMove(lesson, field_name, rng.choice(options))


def random_swap_move(rng: random.Random, lessons: List[Lesson]) -> Optional[SwapMove]:
    if len(lessons) < 2:
        return None
    left, right = rng.sample(lessons, 2)
    if left.class_id == right.class_id:
        return None
    if (left.day, left.period) == (right.day, right.period):
        return None
    return SwapMove(left, right)


class MoveSelector:
    """Uniformly samples a move type, then a doable move of that type."""

    def __init__(self, lessons: List[Lesson], domains: Dict[int, LessonDomain], rng: random.Random,
                 move_types: Tuple[str, ...] = MOVE_TYPES, max_attempts: int = 20):
        self.lessons = lessons
        self.domains = domains
        self.rng = rng
        self.move_types = move_types
        self.max_attempts = max_attempts

    def next_move(self):
        if not self.lessons:
            return None
        for _ in range(self.max_attempts):
            move_type = self.rng.choice(self.move_types)
            if move_type == SWAP_SLOTS:
                move = random_swap_move(self.rng, self.lessons)
            else:
                move = random_change_move(self.rng, self.lessons, self.domains, move_type)
            if move is not None:
                return move
        return None
