# lesson_scheduler/errors.py


class SchedulingError(Exception):
    """Base class for errors that abort a scheduling run."""


class InvalidCatalogError(SchedulingError):
    """Malformed or self-contradictory catalog. Raised before any search starts."""


class UnsolvableInputError(SchedulingError):
    """Structurally insufficient resources, detected at construction time."""


class UnassignedLessonError(SchedulingError):
    """An assignment handed to the extractor still has unassigned lessons."""

    def __init__(self, lesson_ids):
        self.lesson_ids = list(lesson_ids)
        super().__init__(f"Unassigned lessons: {self.lesson_ids}")


class ConflictingChangeError(SchedulingError):
    """A manual change to one lesson would add hard violations."""

    def __init__(self, check):
        self.check = check
        super().__init__(f"Changing lesson {check.lesson_id} would create conflicts: {check.before} -> {check.after}")
