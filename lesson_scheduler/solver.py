import logging
import random
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .config import SchedulerConfig
from .domains import LessonDomain
from .evaluation import ConstraintEvaluator
from .model import Assignment, Score
from .operators import MoveSelector

logger = logging.getLogger(__name__)

TIME_LIMIT = "time_limit"
STAGNATION = "stagnation"
MAX_ITERATIONS = "max_iterations"
CANCELLED = "cancelled"


@dataclass
class SolverOutcome:
    assignment: Assignment
    best_score: Score
    initial_score: Score
    iterations: int
    elapsed_seconds: float
    termination: str
    accepted_moves: int = 0
    rejected_moves: int = 0
    history: List[Dict] = field(default_factory=list)


class LocalSearchSolver:
    """
    Late-acceptance local search over a constructed assignment.

    The live assignment is mutated in place by accepted moves; rejected moves
    are undone before the next termination check, so the loop can stop at any
    iteration boundary and still hand back the best snapshot seen.
    After a long plateau a repair phase lets the walk cross states within
    `repair_hard_slack` hard violations of the best.
    """

    def __init__(self, evaluator: ConstraintEvaluator, domains: Dict[int, LessonDomain], cfg: SchedulerConfig):
        self.evaluator = evaluator
        self.domains = domains
        self.cfg = cfg
        self.history: List[Dict] = []

    def _accept(self, candidate: Score, current: Score, late: Score, best: Score, repairing: bool) -> bool:
        if repairing:
            # Random walk inside a band of hard counts around the best.
            return candidate.hard <= best.hard + self.cfg.repair_hard_slack
        if best.is_feasible and candidate.hard > current.hard:
            return False
        if candidate.hard <= current.hard and candidate.soft >= current.soft:
            return True
        if candidate > current:
            return True
        return candidate >= late

    def _termination(self, start: float, iteration: int, stagnation: int,
                     cancel_event: Optional[threading.Event]) -> Optional[str]:
        if cancel_event is not None and cancel_event.is_set():
            return CANCELLED
        if self.cfg.max_iterations is not None and iteration >= self.cfg.max_iterations:
            return MAX_ITERATIONS
        if stagnation >= self.cfg.max_stagnation:
            return STAGNATION
        if self.cfg.time_limit_seconds is not None and time.perf_counter() - start >= self.cfg.time_limit_seconds:
            return TIME_LIMIT
        return None

    def solve(self, assignment: Assignment, cancel_event: Optional[threading.Event] = None) -> SolverOutcome:
        start = time.perf_counter()
        rng = random.Random(self.cfg.seed)
        director = self.evaluator.director(assignment)
        selector = MoveSelector(assignment.lessons, self.domains, rng)

        current = initial = director.score()
        best = current
        best_snapshot = assignment.snapshot()
        late = [current] * self.cfg.late_acceptance_size
        self.history = [{"iteration": 0, "elapsed": 0.0, "hard": best.hard, "soft": best.soft}]

        iteration = stagnation = repair_left = 0
        accepted = rejected = 0
        logger.info("Local search started from %s with %d lessons", initial, len(assignment.lessons))

        while True:
            reason = self._termination(start, iteration, stagnation, cancel_event)
            if reason:
                break
            iteration += 1
            move = selector.next_move()
            if move is None:
                stagnation += 1
                continue

            slot = iteration % self.cfg.late_acceptance_size
            move.do(director)
            candidate = director.score()
            if self._accept(candidate, current, late[slot], best, repair_left > 0):
                current = candidate
                accepted += 1
            else:
                move.undo(director)
                rejected += 1
            late[slot] = current

            if current > best:
                best = current
                best_snapshot = assignment.snapshot()
                stagnation = 0
                self.history.append({
                    "iteration": iteration,
                    "elapsed": time.perf_counter() - start,
                    "hard": best.hard,
                    "soft": best.soft,
                })
            else:
                stagnation += 1

            if repair_left:
                repair_left -= 1
                if not repair_left:
                    logger.debug("Repair phase finished at iteration %d", iteration)
            elif (
                best.is_feasible
                and self.cfg.repair_after_stagnation
                and stagnation
                and stagnation % self.cfg.repair_after_stagnation == 0
            ):
                repair_left = self.cfg.repair_iterations
                logger.debug("Repair phase entered at iteration %d after %d idle iterations", iteration, stagnation)

            if self.cfg.log_every and iteration % self.cfg.log_every == 0:
                logger.debug("Iteration %d: current=%s best=%s", iteration, current, best)

        assignment.restore(best_snapshot)
        assignment.score = best
        elapsed = time.perf_counter() - start
        logger.info(
            "Local search stopped (%s) after %d iterations in %.2fs: best %s",
            reason, iteration, elapsed, best,
        )
        return SolverOutcome(
            assignment=assignment,
            best_score=best,
            initial_score=initial,
            iterations=iteration,
            elapsed_seconds=elapsed,
            termination=reason,
            accepted_moves=accepted,
            rejected_moves=rejected,
            history=self.history,
        )
