# lesson_scheduler/domains.py
import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Set, Tuple

from .errors import InvalidCatalogError
from .model import Catalog, Course, Lesson, Teacher

logger = logging.getLogger(__name__)

_SPECIALIZATION_SEP = re.compile(r"[,;/|]")


@dataclass(frozen=True)
class LessonDomain:
    teacher_ids: Tuple[str, ...]
    room_ids: Tuple[str, ...]
    days: Tuple[str, ...]
    period_indices: Tuple[int, ...]

    @property
    def size(self) -> int:
        return len(self.teacher_ids) * len(self.room_ids) * len(self.days) * len(self.period_indices)


def specialization_subjects(specialization: str) -> Set[str]:
    """
    Splits the free-text specialization ("Math, Physics") into normalized subjects.
    """
    return {s.strip().casefold() for s in _SPECIALIZATION_SEP.split(specialization or "") if s.strip()}


def eligible_teachers(course: Course, teachers: Tuple[Teacher, ...]) -> Tuple[str, ...]:
    subject = course.name.strip().casefold()
    return tuple(t.id for t in teachers if subject in specialization_subjects(t.specialization))


def build_lessons(catalog: Catalog) -> List[Lesson]:
    """
    One lesson per required weekly occurrence of each (class, course) pair.

    Lesson ids run 1..n in class order, then requirement order.
    """
    courses = catalog.course_by_id
    pools: Dict[str, Tuple[str, ...]] = {}
    lessons: List[Lesson] = []
    next_id = 1

    for clazz in catalog.classes:
        for course_id, count in clazz.required_courses:
            if count is None or int(count) <= 0:
                raise InvalidCatalogError(
                    f"Class {clazz.id} requires course {course_id} a non-positive number of times ({count})"
                )
            course = courses.get(course_id)
            if course is None:
                raise InvalidCatalogError(f"Class {clazz.id} references unknown course {course_id}")
            if course.duration_periods < 1:
                raise InvalidCatalogError(f"Course {course.id} has duration {course.duration_periods} < 1")
            if course_id not in pools:
                pools[course_id] = eligible_teachers(course, catalog.teachers)
            if not pools[course_id]:
                raise InvalidCatalogError(
                    f"No teacher is qualified for course {course.id} ({course.name}) required by class {clazz.id}"
                )
            for _ in range(int(count)):
                lessons.append(
                    Lesson(id=next_id, class_id=clazz.id, course_id=course_id, teacher_pool=pools[course_id])
                )
                next_id += 1

    logger.info("Built %d lessons for %d classes", len(lessons), len(catalog.classes))
    return lessons


def build_lesson_domains(catalog: Catalog, lessons: List[Lesson]) -> Dict[int, LessonDomain]:
    room_ids = tuple(r.id for r in catalog.rooms)
    days = tuple(catalog.days)
    period_indices = tuple(catalog.period_indices)
    return {
        lesson.id: LessonDomain(
            teacher_ids=lesson.teacher_pool,
            room_ids=room_ids,
            days=days,
            period_indices=period_indices,
        )
        for lesson in lessons
    }
