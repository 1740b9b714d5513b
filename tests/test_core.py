import os
import random
import tempfile
import unittest

import pandas as pd

from lesson_scheduler.config import SchedulerConfig, load_config
from lesson_scheduler.construction import check_structure, construct_initial_assignment, ordered_rooms
from lesson_scheduler.data_loader import load_catalog
from lesson_scheduler.domains import (
    build_lesson_domains,
    build_lessons,
    eligible_teachers,
    specialization_subjects,
)
from lesson_scheduler.errors import (
    ConflictingChangeError,
    InvalidCatalogError,
    UnassignedLessonError,
    UnsolvableInputError,
)
from lesson_scheduler.evaluation import ConstraintEvaluator, build_constraints, evaluate, longest_run
from lesson_scheduler.extraction import extract_slots, slots_to_frame
from lesson_scheduler.model import (
    Assignment,
    Catalog,
    Course,
    Lesson,
    Period,
    Room,
    SchoolClass,
    Score,
    Teacher,
)
from lesson_scheduler.operators import MoveSelector
from lesson_scheduler.report import (
    _severity,
    _workload_status,
    apply_change,
    conflict_report,
    room_utilization,
    teacher_workloads,
    validate_change,
)
from run import apply_overrides


def make_catalog(classes=None, teachers=None, rooms=None, courses=None, n_periods=5, days=None):
    teachers = teachers or (
        Teacher("T1", 20, "Math"),
        Teacher("T2", 20, "Math"),
        Teacher("T3", 20, "Physics", frozenset({"MONDAY"})),
    )
    rooms = rooms if rooms is not None else (Room("R1", 30), Room("R2", 10))
    courses = courses or (
        Course("MATH", "Math"),
        Course("PHY", "Physics", is_difficult=True),
    )
    classes = classes or (SchoolClass("C1", 25, (("MATH", 1),)),)
    periods = tuple(Period(f"P{i}", i) for i in range(1, n_periods + 1))
    kwargs = {"days": days} if days else {}
    return Catalog(teachers, rooms, periods, courses, classes, **kwargs)


def lesson(id, class_id, course_id, day=None, period=None, room=None, teacher=None):
    return Lesson(id, class_id, course_id, (teacher,) if teacher else (), day, period, room, teacher)


def matches(assignment, catalog, cfg=None):
    return {t.name: t.match_count for t in ConstraintEvaluator(catalog, cfg).explain(assignment)}


class ScoreTests(unittest.TestCase):
    def test_hard_dominates_soft(self):
        self.assertGreater(Score(0, -100), Score(1, 100))
        self.assertGreater(Score(2, 5), Score(2, 4))
        self.assertEqual(max([Score(3, 0), Score(0, -7), Score(1, 9)]), Score(0, -7))

    def test_feasible_and_str(self):
        self.assertTrue(Score(0, -3).is_feasible)
        self.assertFalse(Score(1, 0).is_feasible)
        self.assertEqual(str(Score(2, -5)), "2hard/-5soft")


class HardConstraintTests(unittest.TestCase):
    def test_room_conflict(self):
        catalog = make_catalog(classes=(
            SchoolClass("C1", 5, (("MATH", 1),)),
            SchoolClass("C2", 5, (("MATH", 1),)),
        ))
        a = Assignment([
            lesson(1, "C1", "MATH", "MONDAY", 2, "R1", "T1"),
            lesson(2, "C2", "MATH", "MONDAY", 2, "R1", "T2"),
        ])
        m = matches(a, catalog)
        self.assertEqual(m["room_conflict"], 1)
        self.assertEqual(m["teacher_conflict"], 0)
        self.assertEqual(m["class_conflict"], 0)
        self.assertEqual(evaluate(a, catalog).hard, 1)

    def test_teacher_and_class_conflict_count_pairs(self):
        catalog = make_catalog(classes=(SchoolClass("C1", 5, (("MATH", 3),)),))
        a = Assignment([
            lesson(i, "C1", "MATH", "TUESDAY", 3, f"R{i}", "T1") for i in (1, 2, 3)
        ])
        m = matches(a, catalog)
        self.assertEqual(m["teacher_conflict"], 3)
        self.assertEqual(m["class_conflict"], 3)
        # R3 is not in the catalog but the rule only compares identifiers
        self.assertEqual(m["room_conflict"], 0)

    def test_teacher_capacity_counts_every_lesson_of_overloaded_teacher(self):
        catalog = make_catalog(
            teachers=(Teacher("T1", 1, "Math"),),
            classes=(SchoolClass("C1", 5, (("MATH", 2),)),),
        )
        a = Assignment([
            lesson(1, "C1", "MATH", "MONDAY", 2, "R1", "T1"),
            lesson(2, "C1", "MATH", "TUESDAY", 2, "R1", "T1"),
        ])
        self.assertEqual(matches(a, catalog)["teacher_capacity"], 2)

    def test_weekly_hours_counts_unassigned_lessons(self):
        catalog = make_catalog(classes=(SchoolClass("C1", 5, (("MATH", 2),)),))
        a = Assignment([
            lesson(1, "C1", "MATH", "MONDAY", 2, "R1", "T1"),
            Lesson(2, "C1", "MATH", ("T1",)),
        ])
        m = matches(a, catalog)
        self.assertEqual(m["class_weekly_hours"], 1)
        self.assertFalse(evaluate(a, catalog).is_feasible)

    def test_max_lessons_per_day(self):
        catalog = make_catalog(classes=(SchoolClass("C1", 5, (("MATH", 3),)),))
        a = Assignment([
            lesson(1, "C1", "MATH", "MONDAY", 1, "R1", "T1"),
            lesson(2, "C1", "MATH", "MONDAY", 3, "R1", "T1"),
            lesson(3, "C1", "MATH", "MONDAY", 5, "R1", "T1"),
        ])
        self.assertEqual(matches(a, catalog, SchedulerConfig(max_lessons_per_day=2))["max_lessons_per_day"], 1)
        self.assertEqual(matches(a, catalog)["max_lessons_per_day"], 0)


class SoftConstraintTests(unittest.TestCase):
    def test_teacher_preference(self):
        catalog = make_catalog(classes=(SchoolClass("C1", 5, (("PHY", 2),)),))
        a = Assignment([
            lesson(1, "C1", "PHY", "MONDAY", 2, "R1", "T3"),
            lesson(2, "C1", "PHY", "TUESDAY", 2, "R1", "T3"),
        ])
        self.assertEqual(matches(a, catalog)["teacher_preference"], 1)

    def test_room_capacity(self):
        catalog = make_catalog()
        a = Assignment([lesson(1, "C1", "MATH", "MONDAY", 2, "R2", "T1")])
        self.assertEqual(matches(a, catalog)["room_capacity"], 1)
        a.lessons[0].room = "R1"
        self.assertEqual(matches(a, catalog)["room_capacity"], 0)

    def test_consecutive_lessons_reward(self):
        catalog = make_catalog(classes=(SchoolClass("C1", 5, (("MATH", 2),)),))
        a = Assignment([
            lesson(1, "C1", "MATH", "MONDAY", 2, "R1", "T1"),
            lesson(2, "C1", "MATH", "MONDAY", 3, "R1", "T1"),
        ])
        m = matches(a, catalog)
        self.assertEqual(m["consecutive_lessons"], 1)
        self.assertEqual(m["teacher_gaps"], 0)

    def test_edge_periods(self):
        catalog = make_catalog(classes=(SchoolClass("C1", 5, (("MATH", 2),)),))
        a = Assignment([
            lesson(1, "C1", "MATH", "MONDAY", 1, "R1", "T1"),
            lesson(2, "C1", "MATH", "TUESDAY", 5, "R1", "T1"),
        ])
        self.assertEqual(matches(a, catalog)["avoid_edge_periods"], 2)

    def test_teacher_gaps(self):
        catalog = make_catalog(classes=(SchoolClass("C1", 5, (("MATH", 2),)),))
        a = Assignment([
            lesson(1, "C1", "MATH", "MONDAY", 2, "R1", "T1"),
            lesson(2, "C1", "MATH", "MONDAY", 4, "R1", "T1"),
        ])
        self.assertEqual(matches(a, catalog)["teacher_gaps"], 1)

    def test_difficult_back_to_back(self):
        catalog = make_catalog(classes=(SchoolClass("C1", 5, (("PHY", 2),)),))
        a = Assignment([
            lesson(1, "C1", "PHY", "MONDAY", 2, "R1", "T3"),
            lesson(2, "C1", "PHY", "MONDAY", 3, "R1", "T3"),
        ])
        self.assertEqual(matches(a, catalog)["difficult_back_to_back"], 1)

    def test_student_rest(self):
        catalog = make_catalog(classes=(SchoolClass("C1", 5, (("MATH", 4),)),))
        a = Assignment([
            lesson(p, "C1", "MATH", "MONDAY", p, "R1", "T1" if p % 2 else "T2") for p in (1, 2, 3, 4)
        ])
        self.assertEqual(matches(a, catalog)["student_rest"], 1)
        self.assertEqual(longest_run([4, 2, 3, 1, 1]), 4)
        self.assertEqual(longest_run([1, 3, 5]), 1)
        self.assertEqual(longest_run([]), 0)

    def test_duration_cohesion(self):
        catalog = make_catalog(
            courses=(Course("MATH", "Math", duration_periods=2, weekly_frequency=2),),
            classes=(SchoolClass("C1", 5, (("MATH", 2),)),),
        )
        a = Assignment([
            lesson(1, "C1", "MATH", "MONDAY", 2, "R1", "T1"),
            lesson(2, "C1", "MATH", "MONDAY", 3, "R1", "T1"),
        ])
        self.assertEqual(matches(a, catalog)["duration_cohesion"], 1)

    def test_weekly_frequency(self):
        catalog = make_catalog(
            courses=(Course("MATH", "Math", weekly_frequency=3),),
            classes=(SchoolClass("C1", 5, (("MATH", 2),)),),
        )
        a = Assignment([
            lesson(1, "C1", "MATH", "MONDAY", 2, "R1", "T1"),
            lesson(2, "C1", "MATH", "TUESDAY", 2, "R1", "T1"),
        ])
        self.assertEqual(matches(a, catalog)["weekly_frequency"], 1)


class ConstraintConfigTests(unittest.TestCase):
    def test_unknown_constraint_rejected(self):
        with self.assertRaises(ValueError):
            build_constraints(SchedulerConfig(disabled_constraints=["no_such_rule"]))
        with self.assertRaises(ValueError):
            build_constraints(SchedulerConfig(constraint_weights={"room_conflict": -1}))

    def test_weights_and_toggles(self):
        catalog = make_catalog(classes=(
            SchoolClass("C1", 5, (("MATH", 1),)),
            SchoolClass("C2", 5, (("MATH", 1),)),
        ))
        a = Assignment([
            lesson(1, "C1", "MATH", "MONDAY", 2, "R1", "T1"),
            lesson(2, "C2", "MATH", "MONDAY", 2, "R1", "T2"),
        ])
        self.assertEqual(evaluate(a, catalog, SchedulerConfig(constraint_weights={"room_conflict": 3})).hard, 3)
        self.assertEqual(evaluate(a, catalog, SchedulerConfig(disabled_constraints=["room_conflict"])).hard, 0)


class ScoreDirectorTests(unittest.TestCase):
    def test_incremental_score_matches_full_evaluation(self):
        catalog = make_catalog(classes=(
            SchoolClass("C1", 25, (("MATH", 3), ("PHY", 2))),
            SchoolClass("C2", 8, (("MATH", 2), ("PHY", 2))),
        ))
        cfg = SchedulerConfig()
        lessons = build_lessons(catalog)
        domains = build_lesson_domains(catalog, lessons)
        assignment = construct_initial_assignment(catalog, lessons, domains, cfg)
        evaluator = ConstraintEvaluator(catalog, cfg)
        director = evaluator.director(assignment)
        selector = MoveSelector(assignment.lessons, domains, random.Random(7))

        for step in range(300):
            move = selector.next_move()
            self.assertIsNotNone(move)
            move.do(director)
            self.assertEqual(director.score(), evaluator.score(assignment))
            if step % 3 == 0:
                move.undo(director)
                self.assertEqual(director.score(), evaluator.score(assignment))

    def test_reload_after_restore(self):
        catalog = make_catalog(classes=(SchoolClass("C1", 25, (("MATH", 3),)),))
        cfg = SchedulerConfig()
        lessons = build_lessons(catalog)
        domains = build_lesson_domains(catalog, lessons)
        assignment = construct_initial_assignment(catalog, lessons, domains, cfg)
        evaluator = ConstraintEvaluator(catalog, cfg)
        director = evaluator.director(assignment)
        before = director.score()
        snap = assignment.snapshot()
        director.change(assignment.lessons[0], "period", assignment.lessons[1].period)
        director.change(assignment.lessons[0], "day", assignment.lessons[1].day)
        self.assertNotEqual(director.score(), before)
        assignment.restore(snap)
        director.reload()
        self.assertEqual(director.score(), before)


class DomainTests(unittest.TestCase):
    def test_specialization_matching(self):
        self.assertEqual(specialization_subjects(" Math; physics /Art"), {"math", "physics", "art"})
        self.assertEqual(specialization_subjects(""), set())
        teachers = (Teacher("A", 5, "Mathematics"), Teacher("B", 5, "math, Chemistry"))
        self.assertEqual(eligible_teachers(Course("M", " MATH "), teachers), ("B",))

    def test_lesson_ids_and_pools(self):
        catalog = make_catalog(classes=(
            SchoolClass("C1", 5, (("MATH", 2),)),
            SchoolClass("C2", 5, (("PHY", 1), ("MATH", 1))),
        ))
        lessons = build_lessons(catalog)
        self.assertEqual([l.id for l in lessons], [1, 2, 3, 4])
        self.assertEqual([(l.class_id, l.course_id) for l in lessons],
                         [("C1", "MATH"), ("C1", "MATH"), ("C2", "PHY"), ("C2", "MATH")])
        self.assertEqual(lessons[0].teacher_pool, ("T1", "T2"))
        self.assertEqual(lessons[2].teacher_pool, ("T3",))
        self.assertFalse(any(l.is_assigned for l in lessons))

        domains = build_lesson_domains(catalog, lessons)
        self.assertEqual(domains[1].size, 2 * 2 * 5 * 5)

    def test_invalid_catalogs(self):
        bad = [
            make_catalog(classes=(SchoolClass("C1", 5, (("MATH", 0),)),)),
            make_catalog(classes=(SchoolClass("C1", 5, (("GHOST", 1),)),)),
            make_catalog(
                courses=(Course("MATH", "Math"), Course("ART", "Art")),
                classes=(SchoolClass("C1", 5, (("ART", 1),)),),
            ),
            make_catalog(
                courses=(Course("MATH", "Math", duration_periods=0),),
                classes=(SchoolClass("C1", 5, (("MATH", 1),)),),
            ),
        ]
        for catalog in bad:
            with self.assertRaises(InvalidCatalogError):
                build_lessons(catalog)


class ConstructionTests(unittest.TestCase):
    def test_no_rooms_is_unsolvable(self):
        catalog = make_catalog(rooms=())
        lessons = build_lessons(catalog)
        with self.assertRaises(UnsolvableInputError):
            check_structure(catalog, lessons)

    def test_too_many_lessons_for_the_grid(self):
        catalog = make_catalog(
            rooms=(Room("R1", 30),),
            classes=(SchoolClass("C1", 5, (("MATH", 3),)),),
            n_periods=2,
            days=("MONDAY",),
        )
        lessons = build_lessons(catalog)
        domains = build_lesson_domains(catalog, lessons)
        with self.assertRaises(UnsolvableInputError):
            construct_initial_assignment(catalog, lessons, domains, SchedulerConfig())

    def test_rooms_ordered_by_fit(self):
        catalog = make_catalog(rooms=(Room("BIG", 50), Room("TINY", 5), Room("MID", 30), Room("SMALL", 10)))
        self.assertEqual(ordered_rooms(catalog, 25), ["MID", "BIG", "SMALL", "TINY"])

    def test_construction_assigns_every_lesson_without_conflicts(self):
        catalog = make_catalog(classes=(
            SchoolClass("C1", 25, (("MATH", 3), ("PHY", 2))),
            SchoolClass("C2", 8, (("MATH", 2),)),
        ))
        cfg = SchedulerConfig()
        lessons = build_lessons(catalog)
        assignment = construct_initial_assignment(catalog, lessons, build_lesson_domains(catalog, lessons), cfg)
        self.assertTrue(assignment.is_complete)
        m = matches(assignment, catalog, cfg)
        for name in ("room_conflict", "teacher_conflict", "class_conflict", "teacher_capacity"):
            self.assertEqual(m[name], 0, name)


class ExtractionTests(unittest.TestCase):
    def test_unassigned_lessons_rejected(self):
        catalog = make_catalog(classes=(SchoolClass("C1", 5, (("MATH", 2),)),))
        a = Assignment([lesson(1, "C1", "MATH", "MONDAY", 1, "R1", "T1"), Lesson(2, "C1", "MATH", ("T1",))])
        with self.assertRaises(UnassignedLessonError) as ctx:
            extract_slots(a, catalog)
        self.assertEqual(ctx.exception.lesson_ids, [2])

    def test_slots_sorted_and_repeatable(self):
        catalog = make_catalog(classes=(SchoolClass("C1", 5, (("MATH", 3),)),))
        a = Assignment([
            lesson(1, "C1", "MATH", "WEDNESDAY", 1, "R1", "T1"),
            lesson(2, "C1", "MATH", "MONDAY", 4, "R1", "T1"),
            lesson(3, "C1", "MATH", "MONDAY", 2, "R2", "T2"),
        ])
        before = a.snapshot()
        first = extract_slots(a, catalog)
        self.assertEqual([s.lesson_id for s in first], [3, 2, 1])
        self.assertEqual(first, extract_slots(a, catalog))
        self.assertEqual(a.snapshot(), before)

        df = slots_to_frame(first, catalog)
        self.assertEqual(len(df), 3)
        self.assertEqual(list(df["course_name"]), ["Math"] * 3)


class ReportTests(unittest.TestCase):
    def test_severity_and_workload_thresholds(self):
        self.assertEqual(_severity(0), "NONE")
        self.assertEqual(_severity(4), "LOW")
        self.assertEqual(_severity(5), "MEDIUM")
        self.assertEqual(_severity(15), "HIGH")
        self.assertEqual(_workload_status(130), "SEVERELY_OVERLOADED")
        self.assertEqual(_workload_status(110), "OVERLOADED")
        self.assertEqual(_workload_status(100), "OPTIMAL")
        self.assertEqual(_workload_status(50), "UNDERUTILIZED")

    def test_conflicts_workloads_and_rooms(self):
        catalog = make_catalog(
            teachers=(Teacher("T1", 4, "Math"), Teacher("T2", 4, "Math")),
            classes=(SchoolClass("C1", 5, (("MATH", 1),)), SchoolClass("C2", 5, (("MATH", 2),))),
        )
        a = Assignment([
            lesson(1, "C1", "MATH", "MONDAY", 1, "R1", "T1"),
            lesson(2, "C2", "MATH", "MONDAY", 1, "R1", "T1"),
            lesson(3, "C2", "MATH", "MONDAY", 3, "R2", "T1"),
        ])
        report = conflict_report(a, catalog)
        self.assertEqual(report.by_type, {"room": 1, "teacher": 1, "class": 0})
        self.assertEqual(report.severity, "LOW")
        self.assertEqual(sorted(report.conflicts[0].lesson_ids), [1, 2])

        loads = {w.teacher_id: w for w in teacher_workloads(a, catalog)}
        self.assertEqual(loads["T1"].total_hours, 3)
        self.assertEqual(loads["T1"].utilization, 75.0)
        self.assertEqual(loads["T1"].daily_hours, {"MONDAY": 3})
        self.assertEqual(loads["T1"].gaps, 1)
        self.assertEqual(loads["T2"].status, "UNDERUTILIZED")

        rooms = {r.room_id: r for r in room_utilization(a, catalog)}
        self.assertEqual(rooms["R1"].used_slots, 1)
        self.assertEqual(rooms["R1"].available_slots, 25)

    def _two_lessons(self):
        catalog = make_catalog(classes=(
            SchoolClass("C1", 5, (("MATH", 1),)),
            SchoolClass("C2", 5, (("MATH", 1),)),
        ))
        a = Assignment([
            Lesson(1, "C1", "MATH", ("T1", "T2"), "MONDAY", 2, "R1", "T1"),
            Lesson(2, "C2", "MATH", ("T1", "T2"), "MONDAY", 2, "R2", "T2"),
        ])
        return catalog, a

    def test_validate_change_reports_new_double_booking(self):
        catalog, a = self._two_lessons()
        before = a.snapshot()
        check = validate_change(a, catalog, 2, room="R1", teacher="T1")
        self.assertFalse(check.valid)
        self.assertEqual(check.before.hard, 0)
        self.assertEqual(check.after.hard, 2)
        self.assertEqual(sorted(c.resource_type for c in check.conflicts), ["room", "teacher"])
        self.assertEqual(check.conflicts[0].lesson_ids, [2, 1])
        self.assertEqual(a.snapshot(), before)

        ok = validate_change(a, catalog, 1, room="R2")
        self.assertFalse(ok.valid)
        ok = validate_change(a, catalog, 2, teacher="T2", room="R2")
        self.assertTrue(ok.valid)

    def test_validate_change_rejects_unknown_values(self):
        catalog, a = self._two_lessons()
        with self.assertRaises(ValueError):
            validate_change(a, catalog, 9, room="R1")
        with self.assertRaises(ValueError):
            validate_change(a, catalog, 1, teacher="T3")
        with self.assertRaises(ValueError):
            validate_change(a, catalog, 1, room="NOPE")

    def test_apply_change(self):
        catalog, a = self._two_lessons()
        with self.assertRaises(ConflictingChangeError) as ctx:
            apply_change(a, catalog, 2, room="R1")
        self.assertEqual(ctx.exception.check.lesson_id, 2)
        self.assertEqual(a.lessons[1].room, "R2")

        a.lessons[1].period = 3
        check = apply_change(a, catalog, 2, room="R1", teacher="T1")
        self.assertTrue(check.valid)
        self.assertEqual((a.lessons[1].room, a.lessons[1].teacher), ("R1", "T1"))
        self.assertEqual(evaluate(a, catalog), check.after)


class ConfigTests(unittest.TestCase):
    def test_defaults_when_file_missing(self):
        cfg = load_config("/nonexistent/config.yaml")
        self.assertEqual(cfg.time_limit_seconds, 30.0)
        self.assertEqual(cfg.max_lessons_per_day, 6)
        self.assertEqual(cfg.days, ("MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY"))

    def test_yaml_overrides(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "config.yaml")
            with open(path, "w", encoding="utf-8") as fh:
                fh.write("seed: 7\ndays: [MONDAY, TUESDAY]\nmax_iterations: 100\nunknown_key: 1\n")
            cfg = load_config(path)
        self.assertEqual(cfg.seed, 7)
        self.assertEqual(cfg.days, ("MONDAY", "TUESDAY"))
        self.assertEqual(cfg.max_iterations, 100)

    def test_invalid_values(self):
        with self.assertRaises(ValueError):
            SchedulerConfig(time_limit_seconds=0)
        with self.assertRaises(ValueError):
            SchedulerConfig(days=("MONDAY", "MONDAY"))
        with self.assertRaises(ValueError):
            SchedulerConfig.from_dict({"late_acceptance_size": 0})
        with self.assertRaises(ValueError):
            SchedulerConfig(repair_hard_slack=-1)

    def test_cli_overrides_are_validated(self):
        cfg = apply_overrides(SchedulerConfig(), seed=9, time_limit=2.5)
        self.assertEqual((cfg.seed, cfg.time_limit_seconds), (9, 2.5))
        self.assertEqual(apply_overrides(cfg), cfg)
        with self.assertRaises(ValueError):
            apply_overrides(SchedulerConfig(), time_limit=0)


class DataLoaderTests(unittest.TestCase):
    def _write(self, tmp, **frames):
        base = {
            "teachers": pd.DataFrame({
                "teacher_id": ["T1", "T2"],
                "weekly_capacity": [10, 8],
                "specialization": ["Math", "Physics"],
                "preferred_days": ["monday; tuesday", None],
            }),
            "rooms": pd.DataFrame({"room_id": ["R1"], "capacity": [30]}),
            "periods": pd.DataFrame({
                "period_id": ["P2", "P1"], "index": [2, 1],
                "start_time": ["09:00", "08:00"], "end_time": ["10:00", "09:00"],
            }),
            "courses": pd.DataFrame({
                "course_id": ["MATH", "PHY"], "name": ["Math", "Physics"],
                "duration_periods": [1, 2], "is_difficult": ["no", "yes"],
            }),
            "classes": pd.DataFrame({"class_id": ["C1"], "max_students": [20]}),
            "class_courses": pd.DataFrame({
                "class_id": ["C1", "C1"], "course_id": ["MATH", "PHY"], "occurrences": [3, 2],
            }),
        }
        base.update(frames)
        for name, df in base.items():
            df.to_csv(os.path.join(tmp, f"{name}.csv"), index=False)

    def test_load_catalog(self):
        with tempfile.TemporaryDirectory() as tmp:
            self._write(tmp)
            catalog = load_catalog(tmp, ["monday", "tuesday", "wednesday"])
        self.assertEqual(catalog.days, ("MONDAY", "TUESDAY", "WEDNESDAY"))
        self.assertEqual(catalog.period_indices, [1, 2])
        teachers = catalog.teacher_by_id
        self.assertEqual(teachers["T1"].preferred_days, frozenset({"MONDAY", "TUESDAY"}))
        self.assertIsNone(teachers["T2"].preferred_days)
        courses = catalog.course_by_id
        self.assertTrue(courses["PHY"].is_difficult)
        self.assertEqual(courses["PHY"].duration_periods, 2)
        self.assertEqual(catalog.class_by_id["C1"].required_courses, (("MATH", 3), ("PHY", 2)))

    def test_missing_column(self):
        with tempfile.TemporaryDirectory() as tmp:
            self._write(tmp, rooms=pd.DataFrame({"room_id": ["R1"]}))
            with self.assertRaises(InvalidCatalogError):
                load_catalog(tmp)

    def test_blank_or_bad_integer_cell(self):
        with tempfile.TemporaryDirectory() as tmp:
            self._write(tmp, rooms=pd.DataFrame({"room_id": ["R1", "R2"], "capacity": [30, None]}))
            with self.assertRaises(InvalidCatalogError) as ctx:
                load_catalog(tmp)
        self.assertIn("rooms.csv line 3", str(ctx.exception))

        with tempfile.TemporaryDirectory() as tmp:
            self._write(tmp, class_courses=pd.DataFrame({
                "class_id": ["C1"], "course_id": ["MATH"], "occurrences": ["two"],
            }))
            with self.assertRaises(InvalidCatalogError) as ctx:
                load_catalog(tmp)
        self.assertIn("occurrences", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
