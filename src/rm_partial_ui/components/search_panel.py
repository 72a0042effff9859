"""
Run search panel for the RM Partial Picking UI.

Provides the RunNo input with search and clear actions.
"""

import reflex as rx

from rm_partial_ui.state import RMState


def search_panel() -> rx.Component:
    """
    Build the search panel.

    Returns:
        The search panel component.
    """
    return rx.box(
        rx.form(
            rx.box(
                rx.icon("search", class_name="input-icon"),
                rx.input(
                    name="run_no",
                    placeholder="Enter RunNo (e.g. 1001)",
                    value=RMState.run_no_input,
                    on_change=RMState.set_run_no_input,
                    input_mode="numeric",
                    class_name="search-input",
                    disabled=RMState.is_removing,
                ),
                rx.button(
                    rx.cond(RMState.is_loading, rx.spinner(size="2"), rx.icon("search")),
                    "Search",
                    type="submit",
                    disabled=RMState.is_loading | RMState.is_removing,
                ),
                rx.button(
                    rx.icon("rotate-ccw"),
                    "Clear",
                    type="button",
                    variant="outline",
                    on_click=RMState.reset_search,
                    disabled=RMState.is_removing,
                ),
                class_name="input-with-icon",
            ),
            on_submit=RMState.search,
            reset_on_submit=False,
        ),
        rx.cond(
            RMState.input_error != "",
            rx.text(RMState.input_error, class_name="input-error"),
        ),
        class_name="card search-card",
    )
