# lesson_scheduler/data_loader.py
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Sequence
import pandas as pd

from .errors import InvalidCatalogError
from .model import Catalog, Course, DEFAULT_DAYS, Period, Room, SchoolClass, Teacher

REQUIRED_COLUMNS: Dict[str, List[str]] = {
    "teachers": ["teacher_id", "weekly_capacity", "specialization"],
    "rooms": ["room_id", "capacity"],
    "periods": ["period_id", "index"],
    "courses": ["course_id", "name"],
    "classes": ["class_id", "max_students"],
    "class_courses": ["class_id", "course_id", "occurrences"],
}


@dataclass(frozen=True)
class DataBundle:
    teachers: pd.DataFrame
    rooms: pd.DataFrame
    periods: pd.DataFrame
    courses: pd.DataFrame
    classes: pd.DataFrame
    class_courses: pd.DataFrame


def load_data(data_dir: str) -> DataBundle:
    frames = {name: pd.read_csv(f"{data_dir}/{name}.csv") for name in REQUIRED_COLUMNS}
    for name, frame in frames.items():
        missing = [c for c in REQUIRED_COLUMNS[name] if c not in frame.columns]
        if missing:
            raise InvalidCatalogError(f"{name}.csv is missing columns {missing}")
    return DataBundle(**frames)


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "y", "si")
    if pd.isna(value):
        return False
    return bool(value)


def _preferred_days(value) -> Optional[FrozenSet[str]]:
    # Blank cell = no preference data, which the preference rule never penalizes.
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    days = [d.strip().upper() for d in str(value).split(";") if d.strip()]
    return frozenset(days) if days else None


def _text(value, default: str = "") -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return default
    return str(value).strip()


def _int(row, column: str, source: str, line: int, default: Optional[int] = None) -> int:
    """Integer cell; blank falls back to `default` or fails naming the file and line."""
    value = row.get(column)
    if isinstance(value, str):
        value = value.strip() or None
    if value is None or pd.isna(value):
        if default is not None:
            return default
        raise InvalidCatalogError(f"{source}.csv line {line}: '{column}' is blank")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidCatalogError(f"{source}.csv line {line}: '{column}' is not an integer ({value!r})") from None


def bundle_to_catalog(bundle: DataBundle, days: Optional[Sequence[str]] = None) -> Catalog:
    teachers = tuple(
        Teacher(
            id=_text(r["teacher_id"]),
            weekly_capacity=_int(r, "weekly_capacity", "teachers", i + 2),
            specialization=_text(r["specialization"]),
            preferred_days=_preferred_days(r.get("preferred_days")),
        )
        for i, (_, r) in enumerate(bundle.teachers.iterrows())
    )
    rooms = tuple(
        Room(id=_text(r["room_id"]), capacity=_int(r, "capacity", "rooms", i + 2))
        for i, (_, r) in enumerate(bundle.rooms.iterrows())
    )
    periods = tuple(
        Period(
            id=_text(r["period_id"]),
            index=_int(r, "index", "periods", i + 2),
            start_time=_text(r.get("start_time")),
            end_time=_text(r.get("end_time")),
        )
        for i, (_, r) in enumerate(bundle.periods.iterrows())
    )
    courses = tuple(
        Course(
            id=_text(r["course_id"]),
            name=_text(r["name"]),
            duration_periods=_int(r, "duration_periods", "courses", i + 2, default=1),
            weekly_frequency=_int(r, "weekly_frequency", "courses", i + 2, default=1),
            is_difficult=_as_bool(r.get("is_difficult", False)),
        )
        for i, (_, r) in enumerate(bundle.courses.iterrows())
    )

    cc = bundle.class_courses.copy()
    cc["class_id"] = cc["class_id"].astype(str).str.strip()
    cc["course_id"] = cc["course_id"].astype(str).str.strip()
    required: Dict[str, List] = {}
    for i, (_, r) in enumerate(cc.iterrows()):
        required.setdefault(r["class_id"], []).append(
            (r["course_id"], _int(r, "occurrences", "class_courses", i + 2))
        )
    classes = tuple(
        SchoolClass(
            id=_text(r["class_id"]),
            max_students=_int(r, "max_students", "classes", i + 2),
            required_courses=tuple(required.get(_text(r["class_id"]), ())),
        )
        for i, (_, r) in enumerate(bundle.classes.iterrows())
    )

    return Catalog(
        teachers=teachers,
        rooms=rooms,
        periods=periods,
        courses=courses,
        classes=classes,
        days=tuple(d.upper() for d in days) if days else DEFAULT_DAYS,
    )


def load_catalog(data_dir: str, days: Optional[Sequence[str]] = None) -> Catalog:
    return bundle_to_catalog(load_data(data_dir), days)
