# lesson_scheduler/pipeline.py
"""
One scheduling run end to end: catalog -> lessons -> construction -> local
search -> slot records plus a run status.
"""
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .config import SchedulerConfig
from .construction import construct_initial_assignment
from .domains import build_lesson_domains, build_lessons
from .evaluation import ConstraintEvaluator, ConstraintTotal
from .extraction import extract_slots
from .model import Assignment, Catalog, SlotRecord
from .solver import LocalSearchSolver

logger = logging.getLogger(__name__)

FEASIBLE = "FEASIBLE"
INFEASIBLE = "INFEASIBLE"


@dataclass(frozen=True)
class RunStatus:
    feasible: bool
    hard_violations: int
    soft_score: int
    elapsed_seconds: float
    iterations: int = 0
    termination: str = ""

    @property
    def status(self) -> str:
        return FEASIBLE if self.feasible else INFEASIBLE


@dataclass
class ScheduleResult:
    slots: List[SlotRecord]
    status: RunStatus
    assignment: Assignment
    constraints: List[ConstraintTotal] = field(default_factory=list)
    history: List[Dict] = field(default_factory=list)


def run_schedule(
    catalog: Catalog,
    cfg: Optional[SchedulerConfig] = None,
    cancel_event: Optional[threading.Event] = None,
) -> ScheduleResult:
    """
    Raises InvalidCatalogError / UnsolvableInputError before any search.
    An infeasible schedule is not an error: check `result.status.feasible`.
    """
    cfg = cfg or SchedulerConfig()
    start = time.perf_counter()

    lessons = build_lessons(catalog)
    domains = build_lesson_domains(catalog, lessons)
    evaluator = ConstraintEvaluator(catalog, cfg)
    assignment = construct_initial_assignment(catalog, lessons, domains, cfg)

    solver = LocalSearchSolver(evaluator, domains, cfg)
    outcome = solver.solve(assignment, cancel_event=cancel_event)

    best = outcome.best_score
    slots = extract_slots(outcome.assignment, catalog)
    status = RunStatus(
        feasible=best.is_feasible,
        hard_violations=best.hard,
        soft_score=best.soft,
        elapsed_seconds=time.perf_counter() - start,
        iterations=outcome.iterations,
        termination=outcome.termination,
    )
    if not status.feasible:
        logger.warning("Best schedule still has %d hard violations", best.hard)
    return ScheduleResult(
        slots=slots,
        status=status,
        assignment=outcome.assignment,
        constraints=evaluator.explain(outcome.assignment),
        history=outcome.history,
    )


def solve_many(
    catalogs: Sequence[Catalog],
    cfg: Optional[SchedulerConfig] = None,
    max_workers: Optional[int] = None,
) -> List[ScheduleResult]:
    """Independent runs in parallel; results come back in input order."""
    cfg = cfg or SchedulerConfig()
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = [pool.submit(run_schedule, catalog, cfg) for catalog in catalogs]
        return [f.result() for f in futures]


def schedule_per_class(
    catalog: Catalog,
    cfg: Optional[SchedulerConfig] = None,
    max_workers: Optional[int] = None,
) -> Dict[str, ScheduleResult]:
    """One run per class, each on the class-scoped view of the shared catalog."""
    class_ids = [c.id for c in catalog.classes]
    results = solve_many([catalog.scoped([cid]) for cid in class_ids], cfg, max_workers)
    return dict(zip(class_ids, results))
