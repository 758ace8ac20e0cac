"""Dumbbells - Streamlit workout logger."""

import logging

import streamlit as st

from dumbbells.config import Settings, build_history_store, load_settings
from dumbbells.flow.controller import REST_OPTIONS, WorkoutFlowController
from dumbbells.models.flow_state import PillMode
from dumbbells.models.workout_set import InputField
from dumbbells.utils.formatters import format_rest_option, format_summary_row

settings = load_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Page config
st.set_page_config(
    page_title="Dumbbells",
    page_icon="🏋️",
    layout="centered",
)

KEYPAD_ROWS = [["1", "2", "3"], ["4", "5", "6"], ["7", "8", "9"], [".", "0"]]


def get_settings() -> Settings:
    """Apply overrides from Streamlit secrets, if any."""
    try:
        overrides = dict(st.secrets.get("dumbbells", {}))
    except Exception:
        overrides = {}

    if not overrides:
        return settings
    return Settings(**{**settings.model_dump(), **overrides})


def initialize_session_state() -> None:
    """Create the flow controller once per browser session."""
    if "controller" not in st.session_state:
        app_settings = get_settings()
        st.session_state.controller = WorkoutFlowController(
            history_store=build_history_store(app_settings),
            exercise_name=app_settings.exercise_name,
            total_sets=app_settings.total_sets,
        )
        logger.info("Created workout flow controller")
    if "rendered_mode" not in st.session_state:
        st.session_state.rendered_mode = None


def get_controller() -> WorkoutFlowController:
    return st.session_state.controller


def render_sets_table(controller: WorkoutFlowController) -> None:
    """Display one row per set with tappable weight and reps fields."""
    header = st.columns([1, 2, 2, 2, 1])
    for column, title in zip(header, ["Set", "Previous", "Kg", "Reps", ""]):
        column.markdown(f"**{title}**")

    selected = controller.selected_field
    for record in controller.sets:
        row = st.columns([1, 2, 2, 2, 1])
        is_current = controller.current_set_index == record.set_number - 1
        row[0].markdown(f"**{record.set_number}**" if is_current else f"{record.set_number}")
        row[1].write(controller.previous_value_for(record.set_number))

        for column, field in ((row[2], InputField.WEIGHT), (row[3], InputField.REPS)):
            value = record.value(field)
            is_selected = (
                selected is not None
                and selected.set_number == record.set_number
                and selected.field == field
            )
            column.button(
                value or "–",
                key=f"field-{record.set_number}-{field.value}",
                type="primary" if is_selected else "secondary",
                disabled=record.is_completed or controller.show_summary,
                use_container_width=True,
                on_click=controller.tap_field,
                args=(record.set_number, field),
            )

        row[4].write("✅" if record.is_completed else "")


@st.fragment(run_every=1)
def render_live_time() -> None:
    """Pump timer ticks and refresh the running clock once per second."""
    controller = get_controller()
    controller.pump()

    if controller.mode != st.session_state.rendered_mode:
        st.rerun()

    if controller.mode == PillMode.COUNTDOWN:
        st.markdown(f"### ⏳ {controller.formatted_rest_remaining}")
        st.progress(controller.rest_progress)
    elif controller.workout_started:
        st.markdown(f"### ⏱️ {controller.formatted_elapsed_time}")


def render_keypad(controller: WorkoutFlowController) -> None:
    for row_index, keys in enumerate(KEYPAD_ROWS):
        columns = st.columns(3)
        for column, key in zip(columns, keys):
            column.button(
                key,
                key=f"key-{row_index}-{key}",
                use_container_width=True,
                on_click=controller.press_key,
                args=(key,),
            )
        if len(keys) < 3:
            columns[2].button("⌫", use_container_width=True, on_click=controller.backspace)

    col1, col2, col3 = st.columns(3)
    col1.button("Next", use_container_width=True, on_click=controller.next_field)
    col2.button("⏲️", key="keyboard-timer", use_container_width=True, on_click=controller.tap_timer_icon)
    col3.button("Done", use_container_width=True, on_click=controller.dismiss_keyboard)


def render_pill(controller: WorkoutFlowController) -> None:
    """Display the pill control for the current mode."""
    mode = controller.mode

    if mode == PillMode.START:
        st.button(
            controller.start_button_label,
            type="primary",
            disabled=not controller.can_start,
            use_container_width=True,
            on_click=controller.start,
        )

    elif mode == PillMode.ACTIVE_TIMER:
        col1, col2 = st.columns([3, 1])
        col1.button("Finish", type="primary", use_container_width=True, on_click=controller.finish)
        col2.button("⏲️", key="active-timer", use_container_width=True, on_click=controller.tap_timer_icon)

    elif mode == PillMode.KEYBOARD:
        render_keypad(controller)

    elif mode == PillMode.REST_PICKER:
        columns = st.columns(len(REST_OPTIONS) + 1)
        for column, seconds in zip(columns, REST_OPTIONS):
            column.button(
                format_rest_option(seconds),
                key=f"rest-{seconds}",
                use_container_width=True,
                on_click=controller.pick_rest,
                args=(seconds,),
            )
        columns[-1].button("✕", use_container_width=True, on_click=controller.dismiss_rest_picker)

    elif mode == PillMode.COUNTDOWN:
        st.button("Skip", use_container_width=True, on_click=controller.skip_rest)


def render_summary(controller: WorkoutFlowController) -> None:
    """Show the finished workout in place of the pill.

    The panel has no close control; it only goes away through Start New Workout.
    """
    with st.container(border=True):
        st.markdown(f"#### Workout Complete\n**{controller.exercise_name}**")
        for completed in controller.completed_sets():
            st.write(f"{completed.set_number}. {format_summary_row(completed)}")

        st.button(
            "Start New Workout",
            type="primary",
            use_container_width=True,
            on_click=controller.start_new_workout,
        )


def main() -> None:
    """Main app entry point."""
    initialize_session_state()
    controller = get_controller()
    controller.pump()
    st.session_state.rendered_mode = controller.mode

    st.title("🏋️ Dumbbells")
    st.markdown(f"### {controller.exercise_name}")

    render_sets_table(controller)
    st.markdown("---")
    render_live_time()

    if controller.show_summary:
        render_summary(controller)
    else:
        render_pill(controller)


if __name__ == "__main__":
    main()
