# lesson_scheduler/extraction.py
from dataclasses import asdict
from typing import List, Optional

import pandas as pd

from .errors import UnassignedLessonError
from .model import Assignment, Catalog, SlotRecord

SLOT_COLUMNS = ["day", "period", "room", "teacher", "class_id", "course_id", "lesson_id"]


def extract_slots(assignment: Assignment, catalog: Catalog) -> List[SlotRecord]:
    """
    Maps an assignment to slot records ordered by day, period, room, class,
    course and lesson id. Does not touch the assignment.
    """
    missing = [l.id for l in assignment.lessons if not l.is_assigned]
    if missing:
        raise UnassignedLessonError(missing)

    day_order = catalog.day_order()
    records = [
        SlotRecord(
            day=l.day,
            period=l.period,
            room=l.room,
            teacher=l.teacher,
            class_id=l.class_id,
            course_id=l.course_id,
            lesson_id=l.id,
        )
        for l in assignment.lessons
    ]
    records.sort(key=lambda s: (day_order.get(s.day, len(day_order)), s.period, s.room, s.class_id, s.course_id, s.lesson_id))
    return records


def slots_to_frame(slots: List[SlotRecord], catalog: Optional[Catalog] = None) -> pd.DataFrame:
    df = pd.DataFrame([asdict(s) for s in slots], columns=SLOT_COLUMNS)
    if catalog is not None and not df.empty:
        periods = {p.index: p for p in catalog.periods}
        courses = catalog.course_by_id
        df["start_time"] = df["period"].map(lambda i: periods[i].start_time if i in periods else "")
        df["end_time"] = df["period"].map(lambda i: periods[i].end_time if i in periods else "")
        df["course_name"] = df["course_id"].map(lambda c: courses[c].name if c in courses else c)
    return df
