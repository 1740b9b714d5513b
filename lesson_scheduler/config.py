"""
Scheduler configuration.

Loaded from YAML so runs stay reproducible: the seed, the search budget and
the constraint tuning constants (lesson cap per day, rest run length,
weights and toggles) all live here instead of in the rules.
"""
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Any

import yaml

from .model import DEFAULT_DAYS


@dataclass
class SchedulerConfig:
    # Time grid
    days: Tuple[str, ...] = DEFAULT_DAYS

    # Local search
    time_limit_seconds: float = 30.0
    max_stagnation: int = 5000
    max_iterations: Optional[int] = None
    seed: int = 42
    late_acceptance_size: int = 400
    repair_after_stagnation: Optional[int] = 1000
    repair_iterations: int = 200
    repair_hard_slack: int = 1
    log_every: int = 1000

    # Constraint tuning
    max_lessons_per_day: int = 6
    rest_min_lessons: int = 4
    rest_max_run: int = 3
    constraint_weights: Dict[str, int] = field(default_factory=dict)
    disabled_constraints: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SchedulerConfig":
        merged = asdict(cls())
        for k, v in data.items():
            if k in merged:
                merged[k] = v
        merged["days"] = tuple(merged["days"])
        return cls(**merged)

    def __post_init__(self):
        if self.time_limit_seconds is not None and self.time_limit_seconds <= 0:
            raise ValueError("time_limit_seconds must be positive")
        if self.max_stagnation < 1:
            raise ValueError("max_stagnation must be at least 1")
        if self.late_acceptance_size < 1:
            raise ValueError("late_acceptance_size must be at least 1")
        if self.repair_hard_slack < 0:
            raise ValueError("repair_hard_slack must not be negative")
        if len(set(self.days)) != len(self.days):
            raise ValueError("days must not repeat")


def _load_yaml(path: Path) -> Any:
    if not path.exists():
        return {}
    return yaml.safe_load(path.read_text(encoding="utf-8")) or {}


def load_config(path: str = "config.yaml") -> SchedulerConfig:
    data = _load_yaml(Path(path))
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping")
    return SchedulerConfig.from_dict(data)
