import streamlit as st

from grade_compass.backend_logic import *
from grade_compass.config import GRADE_PRESETS, configure_logging, load_settings
from grade_compass.course_store import (
    CourseNotFoundError,
    CourseRepository,
    JsonFileBackend,
    SessionStateBackend,
    StorageError,
)
from grade_compass.io_csv import *
from grade_compass.validation import (
    validate_component,
    validate_course_name,
    validate_target_grade,
    validate_total_weight,
)

# ------------------------
# Setup
# ------------------------

settings = load_settings()
logger = configure_logging(settings.log_level)

st.set_page_config(
    page_title="Grade Compass | Weighted Grade & Target Calculator",
    page_icon="🧭",
    layout="wide",
)

STATUS_MESSAGES = {
    GradeStatus.EXCEEDING: (st.success, "You're ahead of pace for your target."),
    GradeStatus.ON_TRACK: (st.info, "You're on track for your target."),
    GradeStatus.CHALLENGING: (st.warning, "Your target is reachable, but it will be challenging."),
    GradeStatus.IMPOSSIBLE: (st.error, "Your target can't be reached with the remaining work."),
}


def build_repository() -> CourseRepository:
    session_repo = CourseRepository(SessionStateBackend(st.session_state))
    if settings.data_file is None:
        return session_repo

    file_repo = CourseRepository(JsonFileBackend(settings.data_file))
    try:
        file_repo.list_courses()
    except StorageError as e:
        logger.warning("Falling back to session storage: %s", e)
        st.error(
            f"Saved courses could not be loaded ({e}). Changes will only be kept "
            "for this browser session."
        )
        return session_repo
    return file_repo


repo = build_repository()


def storage_call(action, *args, message="Your changes could not be saved"):
    """
    Run a repository call as (ok, result). A StorageError is logged and
    shown as an alert instead of crashing the page.
    """
    try:
        return True, action(*args)
    except StorageError as e:
        logger.error("%s: %s", message, e)
        st.error(f"{message}: {e}")
        return False, None


def save_course(course):
    ok, updated = storage_call(repo.update_course, course)
    return updated if ok else course


st.title("🧭 Grade Compass")
st.write(
    "Track weighted grade components for each course, see your current grade, "
    "and find out what you need on the remaining work to hit your target."
)

# ------------------------
# Course manager (sidebar)
# ------------------------

ok, courses = storage_call(repo.list_courses, message="Saved courses could not be loaded")
if not ok:
    courses = []
_, active_course = storage_call(repo.get_active_course, message="Saved courses could not be loaded")

with st.sidebar:
    st.header("Courses")

    if courses:
        ids = [c.id for c in courses]
        names = {c.id: c.name for c in courses}
        current_idx = ids.index(active_course.id) if active_course and active_course.id in ids else 0
        selected_id = st.selectbox(
            "Active course",
            ids,
            index=current_idx,
            format_func=lambda cid: names[cid],
        )
        if active_course is None or selected_id != active_course.id:
            storage_call(repo.set_active_course_id, selected_id)
            active_course = next(c for c in courses if c.id == selected_id)

    with st.form("add_course_form", clear_on_submit=True):
        new_course_name = st.text_input("New course name")
        add_clicked = st.form_submit_button("Add course")

    if add_clicked:
        error = validate_course_name(new_course_name)
        if error:
            st.error(error)
        else:
            ok, course = storage_call(repo.add_course, new_course_name.strip())
            if ok:
                ok, _ = storage_call(repo.set_active_course_id, course.id)
            if ok:
                st.rerun()

    if active_course is not None:
        if st.button("Delete this course", type="secondary"):
            try:
                ok, _ = storage_call(
                    repo.delete_course, active_course.id, message="The course could not be deleted"
                )
            except CourseNotFoundError:
                st.warning("That course was already removed.")
                ok = True
            if ok:
                st.rerun()

    if courses:
        with st.expander("Clear all data"):
            confirm_clear = st.checkbox("I understand every course will be removed")
            if st.button("Clear all courses", disabled=not confirm_clear):
                ok, _ = storage_call(repo.clear_all, message="Course data could not be cleared")
                if ok:
                    st.rerun()


if active_course is None:
    st.info("Add a course in the sidebar to get started.")
    st.stop()

course = active_course
st.header(course.name)

# ------------------------
# Target grade
# ------------------------

st.subheader("1. Choose your target grade")

preset_labels = ["Custom"] + [f"{label} ({value:g}%)" for label, value in GRADE_PRESETS.items()]
preset_values = [None] + list(GRADE_PRESETS.values())

col_preset, col_target = st.columns(2)
with col_preset:
    preset_idx = st.selectbox(
        "Preset",
        range(len(preset_labels)),
        format_func=lambda i: preset_labels[i],
        key=f"preset_{course.id}",
    )
with col_target:
    preset_value = preset_values[preset_idx]
    target_grade = st.number_input(
        "Target grade (%)",
        min_value=0.0,
        max_value=100.0,
        step=0.5,
        value=float(preset_value if preset_value is not None else course.target_grade),
        disabled=preset_value is not None,
        key=f"target_{course.id}_{preset_idx}",
    )

target_error = validate_target_grade(target_grade)
if target_error:
    st.error(target_error)
elif target_grade != course.target_grade:
    course.target_grade = float(target_grade)
    course = save_course(course)

# ------------------------
# Component editor (with optional CSV upload)
# ------------------------

st.subheader("2. Enter your grade components")
st.markdown(
    "Add one row per assessment. Leave **Score** blank for work that hasn't been graded yet."
)

components_csv = st.file_uploader(
    "Optionally upload components CSV (Name, Weight, Score, Max score)",
    type=["csv"],
    key=f"components_csv_{course.id}",
)

seed = components_to_frame(course.components)

upload_error = None
if components_csv is not None:
    try:
        # matching names keep their ids so scenario sliders survive the upload
        seed = carry_over_ids(validate_components_csv(read_csv_upload(components_csv)), course.components)
    except ValueError as e:
        upload_error = str(e)

if upload_error:
    st.error(f"CSV error: {upload_error}")

with st.form(f"components_form_{course.id}"):
    edited_df = st.data_editor(
        seed,
        key=f"components_df_{course.id}",
        num_rows="dynamic",
        use_container_width=True,
        column_config={
            "ID": None,
            "Name": st.column_config.TextColumn("Name", max_chars=100),
            "Weight": st.column_config.NumberColumn("Weight (%)", step=1.0, format="%.1f"),
            "Score": st.column_config.NumberColumn("Score", step=0.5, format="%.1f"),
            "Max score": st.column_config.NumberColumn("Max score", step=1.0, format="%.0f"),
        },
    )
    saved = st.form_submit_button("Save components", type="primary")

if saved:
    components = parse_components(edited_df)
    errors = [(c.name or "(unnamed)", validate_component(c)) for c in components]
    errors = [(name, err) for name, err in errors if err]
    if errors:
        for name, err in errors:
            st.error(f"{name}: {err}")
    else:
        weight_warning = validate_total_weight(components)
        if weight_warning:
            st.warning(weight_warning)
        course.components = components
        ok, updated = storage_call(repo.update_course, course)
        if ok:
            course = updated
            st.success("Components saved.")

st.download_button(
    "Download components as CSV",
    data=components_to_csv(course.components),
    file_name=f"{course.name}.csv",
    mime="text/csv",
    disabled=not course.components,
)

# ------------------------
# Summary
# ------------------------

summary = grade_summary(course.components, course.target_grade)

st.markdown("---")
st.subheader("Current position")

col1, col2, col3, col4 = st.columns(4)
with col1:
    st.metric("Current grade", format_percentage(summary["current_grade"]))
with col2:
    st.metric("Letter grade", summary["letter_grade"])
with col3:
    st.metric("Completed weight", f"{summary['completed_weight']:g}%")
with col4:
    st.metric("Remaining weight", f"{summary['remaining_weight']:g}%")

col5, col6 = st.columns(2)
with col5:
    required = summary["required_average"]
    if required is None:
        st.info("No remaining components - no average required.")
    else:
        st.metric("Required average on remaining components", format_percentage(required))
with col6:
    show_status, status_text = STATUS_MESSAGES[summary["status"]]
    show_status(f"**{summary['status'].value}**: {status_text}")

st.markdown("#### Recommendations")
for line in summary["recommendations"]:
    st.markdown(f"- {line}")

if course.components:
    st.markdown("#### Weight breakdown")
    st.bar_chart(weight_breakdown(course.components))

# ------------------------------
# Scenario planner with sliders
# ------------------------------

outstanding = [c for c in course.components if not c.is_completed]
if outstanding:
    st.markdown("---")
    st.subheader("Scenario planner: adjust your future scores")
    st.markdown(
        "Use the sliders to set the **scores you think you can achieve** on each "
        "remaining component. The app will compute your final grade."
    )

    default_score = summary["required_average"]
    if default_score is None:
        default_score = course.target_grade
    default_score = float(max(0.0, min(100.0, default_score)))

    suggested = {}
    for c in outstanding:
        suggested[c.id] = st.slider(
            f"{c.name} (weight: {c.weight:g}%)",
            min_value=0.0,
            max_value=100.0,
            step=0.5,
            value=default_score,
            key=f"scenario_{course.id}_{c.id}",
            format="%.1f%%",
        )

    result = check_scenario(course.components, course.target_grade, suggested)

    st.markdown("### Result for this plan")
    c1, c2, c3 = st.columns(3)
    with c1:
        st.metric("Final grade", format_percentage(result["final_grade"]))
    with c2:
        st.metric("Final letter grade", result["final_letter"])
    with c3:
        delta = result["delta_to_target"]
        st.metric("Distance to target", "N/A" if delta is None else f"{delta:+.1f} points")

    if result["meets_target"]:
        st.success(f"✅ This plan **meets or exceeds** your target of {course.target_grade:g}%.")
    else:
        st.error(f"❌ This plan **does not yet meet** your target of {course.target_grade:g}%.")
else:
    st.info("No outstanding components were entered, so there is nothing to plan forward.")


st.header("FAQ")

st.subheader("How is my current grade calculated?")
st.write(
    "Each graded component's score is converted to a percentage of its maximum score and "
    "weighted by the component's weight. The current grade is the weighted average over "
    "graded components only, so ungraded work does not count against you."
)

st.subheader("What does the required average mean?")
st.write(
    "It is the single percentage you would need on every remaining component for your overall "
    "grade to land exactly on your target. Above 100% means the target is out of reach; below "
    "0% means you have already secured it."
)

st.subheader("Where is my data stored?")
st.write(
    "By default courses live only in your browser session and are cleared when you close the page. "
    "If the app was started with GRADE_COMPASS_DATA_FILE set, courses are saved to that JSON file."
)
