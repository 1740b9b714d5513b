import argparse
import logging
from dataclasses import asdict
from pathlib import Path

import pandas as pd

from lesson_scheduler.config import SchedulerConfig, load_config
from lesson_scheduler.data_loader import load_catalog
from lesson_scheduler.extraction import slots_to_frame
from lesson_scheduler.pipeline import ScheduleResult, run_schedule
from lesson_scheduler.report import conflict_report, room_utilization, teacher_workloads


def print_timetable(result: ScheduleResult, limit: int = 20):
    print("\n" + "=" * 80)
    print(f"{'DAY':<10} {'P':>2} {'ROOM':<8} {'TEACHER':<10} {'CLASS':<8} COURSE")
    print("=" * 80)
    for i, s in enumerate(result.slots):
        if i >= limit:
            print(f"... {len(result.slots) - limit} more")
            break
        print(f"{s.day:<10} {s.period:>2} {s.room:<8} {s.teacher:<10} {s.class_id:<8} {s.course_id}")
    print("=" * 80 + "\n")


def apply_overrides(cfg: SchedulerConfig, seed=None, time_limit=None) -> SchedulerConfig:
    overrides = {}
    if seed is not None:
        overrides["seed"] = seed
    if time_limit is not None:
        overrides["time_limit_seconds"] = time_limit
    return SchedulerConfig.from_dict({**asdict(cfg), **overrides})


def export_outputs(result: ScheduleResult, catalog, out_dir: Path):
    out_dir.mkdir(parents=True, exist_ok=True)
    slots_to_frame(result.slots, catalog).to_csv(out_dir / "schedule.csv", index=False)
    pd.DataFrame([asdict(c) for c in result.constraints]).to_csv(out_dir / "constraints.csv", index=False)

    report = conflict_report(result.assignment, catalog)
    pd.DataFrame(
        [
            {
                "resource_type": c.resource_type,
                "resource": c.resource_id,
                "day": c.day,
                "period": c.period,
                "lessons": " ".join(str(i) for i in c.lesson_ids),
            }
            for c in report.conflicts
        ],
        columns=["resource_type", "resource", "day", "period", "lessons"],
    ).to_csv(out_dir / "conflicts.csv", index=False)

    workloads = pd.DataFrame([asdict(w) for w in teacher_workloads(result.assignment, catalog)])
    if not workloads.empty:
        workloads["daily_hours"] = workloads["daily_hours"].map(
            lambda d: " ".join(f"{k}:{v}" for k, v in d.items())
        )
    workloads.to_csv(out_dir / "workloads.csv", index=False)
    pd.DataFrame([asdict(r) for r in room_utilization(result.assignment, catalog)]).to_csv(
        out_dir / "rooms.csv", index=False
    )

    if result.history:
        pd.DataFrame(result.history).to_csv(out_dir / "history.csv", index=False)
    metrics = asdict(result.status)
    metrics["status"] = result.status.status
    metrics["conflict_severity"] = report.severity
    pd.DataFrame([metrics]).to_csv(out_dir / "metrics.csv", index=False)


def main():
    parser = argparse.ArgumentParser(description="Weekly lesson timetable: construction + local search")
    parser.add_argument("--config", default="config.yaml", help="Path to the YAML configuration")
    parser.add_argument("--data_dir", default="data", help="Directory with the input CSV files")
    parser.add_argument("--out", default="outputs", help="Directory for the CSV results")
    parser.add_argument("--seed", type=int, default=None, help="Overrides the configured seed")
    parser.add_argument("--time_limit", type=float, default=None, help="Overrides the time budget (s)")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        cfg = apply_overrides(load_config(args.config), args.seed, args.time_limit)
    except ValueError as e:
        parser.error(str(e))

    print("Loading data...")
    catalog = load_catalog(args.data_dir, cfg.days)
    print(
        f"Teachers: {len(catalog.teachers)} | Rooms: {len(catalog.rooms)} | "
        f"Periods: {len(catalog.periods)} | Classes: {len(catalog.classes)}"
    )

    result = run_schedule(catalog, cfg)
    st = result.status

    print("\n--- BEST SCHEDULE ---")
    print(
        f"Status: {st.status} | Hard: {st.hard_violations} | Soft: {st.soft_score} | "
        f"Iterations: {st.iterations} ({st.termination}) | Time: {st.elapsed_seconds:.2f}s"
    )
    for c in result.constraints:
        if c.match_count:
            print(f"  {c.level:<4} {c.name:<24} {c.score_impact:+d}")
    print_timetable(result)

    out_dir = Path(args.out)
    export_outputs(result, catalog, out_dir)
    print(f"Results written to {out_dir}/schedule.csv and {out_dir}/metrics.csv")


if __name__ == "__main__":
    main()
