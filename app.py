# app.py
from dataclasses import asdict

import numpy as np
import pandas as pd
import streamlit as st

from lesson_scheduler.config import SchedulerConfig, load_config
from lesson_scheduler.data_loader import load_catalog
from lesson_scheduler.errors import SchedulingError
from lesson_scheduler.extraction import slots_to_frame
from lesson_scheduler.pipeline import run_schedule
from lesson_scheduler.report import conflict_report, occupancy_matrices, room_utilization, teacher_workloads

# --- PAGE CONFIG ---
st.set_page_config(page_title="Lesson Timetable", layout="wide", initial_sidebar_state="expanded")

st.markdown("""
    <style>
    .stButton>button {
        width: 100%;
        background-color: #ff4b4b;
        color: white;
        font-weight: bold;
        height: 50px;
    }
    .schedule-table {
        width: 100%;
        border-collapse: collapse;
        font-family: Arial, sans-serif;
        font-size: 12px;
    }
    .schedule-table th {
        background-color: #f0f2f6;
        border: 1px solid #ddd;
        padding: 8px;
        text-align: center;
        color: #333;
    }
    .schedule-table td {
        border: 1px solid #ddd;
        padding: 4px;
        vertical-align: top;
        background-color: #fff;
        color: #000;
    }
    </style>
""", unsafe_allow_html=True)


# --- HELPERS ---
def get_html_card(course_name, teacher, place, conflict=False):
    header = "#ffcccc" if conflict else "#ffffcc"
    return (
        f"<div style='border:1px solid #999; margin-bottom:4px; overflow:hidden;'>"
        f"<div style='background-color:{header}; padding:2px 4px; font-size:11px; font-weight:bold;'>{course_name}</div>"
        f"<div style='background-color:#fff; color:#333; padding:2px 4px; font-size:10px;'>{teacher} {place}</div>"
        f"</div>"
    )


def create_schedule_matrix(df_slots, catalog, column, value):
    """Period x day grid of HTML cards for one class or one room."""
    periods = catalog.period_indices
    matrix = np.full((len(periods), len(catalog.days)), "", dtype=object)
    day_pos = catalog.day_order()
    period_pos = {p: i for i, p in enumerate(periods)}

    rows = df_slots[df_slots[column] == value]
    clash = rows.groupby(["day", "period"])["lesson_id"].transform("count") > 1
    for (_, r), conflict in zip(rows.iterrows(), clash):
        place = r["room"] if column == "class_id" else r["class_id"]
        matrix[period_pos[r["period"]], day_pos[r["day"]]] += get_html_card(
            r["course_name"], r["teacher"], place, conflict
        )

    labels = {p.index: f"{p.index} ({p.start_time}-{p.end_time})" if p.start_time else str(p.index) for p in catalog.periods}
    df_mat = pd.DataFrame(matrix, columns=list(catalog.days))
    df_mat.index = [labels[p] for p in periods]
    return df_mat


def render_matrix(df_mat):
    st.markdown(df_mat.to_html(escape=False, classes="schedule-table"), unsafe_allow_html=True)


def run_from_sidebar(catalog, cfg):
    try:
        with st.status("Scheduling...", expanded=True) as status:
            result = run_schedule(catalog, cfg)
            status.update(label=f"Done: {result.status.status}", state="complete", expanded=False)
        st.session_state.result = result
    except SchedulingError as e:
        st.session_state.result = None
        st.error(f"Cannot schedule: {e}")


# --- MAIN APP ---
def main():
    if "cfg" not in st.session_state:
        st.session_state.cfg = load_config("config.yaml")
    if "catalog" not in st.session_state:
        st.session_state.catalog = load_catalog("data", st.session_state.cfg.days)
    if "result" not in st.session_state:
        st.session_state.result = None

    catalog = st.session_state.catalog
    base_cfg: SchedulerConfig = st.session_state.cfg

    with st.sidebar:
        st.title("📅 Lesson Timetable")
        page = st.radio("Section:", [
            "Run",
            "Timetable by Class",
            "Timetable by Room",
            "Conflicts",
            "Teacher Workloads",
        ])
        st.markdown("---")
        time_limit = st.number_input("Time limit (s)", min_value=1.0, value=float(base_cfg.time_limit_seconds))
        seed = st.number_input("Seed", min_value=0, value=int(base_cfg.seed), step=1)
        max_per_day = st.number_input("Max lessons per class/day", min_value=1, value=int(base_cfg.max_lessons_per_day))

    result = st.session_state.result

    # 1. RUN
    if page == "Run":
        st.header("📋 Catalog and Run")
        tabs = st.tabs(["Teachers", "Rooms", "Courses", "Classes"])
        with tabs[0]:
            st.dataframe(pd.DataFrame([asdict(t) for t in catalog.teachers]), use_container_width=True)
        with tabs[1]:
            st.dataframe(pd.DataFrame([asdict(r) for r in catalog.rooms]), use_container_width=True)
        with tabs[2]:
            st.dataframe(pd.DataFrame([asdict(c) for c in catalog.courses]), use_container_width=True)
        with tabs[3]:
            st.dataframe(
                pd.DataFrame([{"class_id": c.id, "max_students": c.max_students,
                               "required": ", ".join(f"{cid} x{n}" for cid, n in c.required_courses)}
                              for c in catalog.classes]),
                use_container_width=True,
            )

        if st.button("🚀 GENERATE TIMETABLE"):
            cfg = SchedulerConfig.from_dict({
                **asdict(base_cfg),
                "time_limit_seconds": time_limit,
                "seed": int(seed),
                "max_lessons_per_day": int(max_per_day),
            })
            run_from_sidebar(catalog, cfg)
            result = st.session_state.result

        if result is not None:
            s = result.status
            c1, c2, c3, c4 = st.columns(4)
            c1.metric("Status", s.status)
            c2.metric("Hard violations", s.hard_violations)
            c3.metric("Soft score", s.soft_score)
            c4.metric("Time (s)", f"{s.elapsed_seconds:.2f}")
            st.caption(f"{s.iterations} iterations, stopped by {s.termination}")
            st.subheader("Constraints")
            st.dataframe(pd.DataFrame([asdict(c) for c in result.constraints]), use_container_width=True)
            if result.history:
                st.subheader("Best score over time")
                st.line_chart(pd.DataFrame(result.history).set_index("iteration")[["soft"]])

    elif result is None:
        st.warning("Generate a timetable in the 'Run' section first.")

    # 2. BY CLASS
    elif page == "Timetable by Class":
        st.header("🏫 Timetable by Class")
        df_slots = slots_to_frame(result.slots, catalog)
        class_id = st.selectbox("Class", [c.id for c in catalog.classes])
        render_matrix(create_schedule_matrix(df_slots, catalog, "class_id", class_id))

    # 3. BY ROOM
    elif page == "Timetable by Room":
        st.header("🚪 Timetable by Room")
        df_slots = slots_to_frame(result.slots, catalog)
        room_id = st.selectbox("Room", [r.id for r in catalog.rooms])
        render_matrix(create_schedule_matrix(df_slots, catalog, "room", room_id))
        util = pd.DataFrame([asdict(u) for u in room_utilization(result.assignment, catalog)])
        st.dataframe(util, use_container_width=True)

    # 4. CONFLICTS
    elif page == "Conflicts":
        st.header("⚠️ Conflicts")
        report = conflict_report(result.assignment, catalog)
        st.metric("Severity", report.severity, delta=f"{report.total} double bookings", delta_color="inverse")
        if report.conflicts:
            st.dataframe(pd.DataFrame([asdict(c) for c in report.conflicts]), use_container_width=True)
        occ = occupancy_matrices(result.assignment, catalog)
        kind = st.radio("Occupancy", ["room", "teacher", "class"], horizontal=True)
        matrix, ids = {
            "room": (occ.room, occ.room_ids),
            "teacher": (occ.teacher, occ.teacher_ids),
            "class": (occ.klass, occ.class_ids),
        }[kind]
        entity = st.selectbox("Resource", ids)
        if ids:
            grid = pd.DataFrame(matrix[ids.index(entity)].T, columns=list(catalog.days), index=catalog.period_indices)
            st.dataframe(grid.style.highlight_between(left=2, color="#ffcccc"), use_container_width=True)

    # 5. WORKLOADS
    elif page == "Teacher Workloads":
        st.header("👩‍🏫 Teacher Workloads")
        df_work = pd.DataFrame([asdict(w) for w in teacher_workloads(result.assignment, catalog)])
        st.dataframe(df_work, use_container_width=True)
        if not df_work.empty:
            st.bar_chart(df_work.set_index("teacher_id")[["total_hours", "capacity"]])


if __name__ == "__main__":
    main()
