"""
RM lines table for Reflex.

Shows the lines of the loaded run with a checkbox per row. Checkboxes of
lines that are not eligible for removal are disabled.
"""

import reflex as rx

from rm_partial_ui.state import RMState

# (wire field, header label)
_COLUMNS = (
    ("RowNum", "Row"),
    ("LineId", "Line"),
    ("LineTyp", "Type"),
    ("BatchNo", "Batch"),
    ("ItemKey", "Item"),
    ("Location", "Location"),
    ("Unit", "Unit"),
    ("StandardQty", "Std Qty"),
    ("PackSize", "Pack Size"),
    ("ToPickedPartialQty", "To Pick"),
    ("PickedPartialQty", "Picked"),
    ("RecUserId", "Created By"),
    ("ModifiedBy", "Modified By"),
)


def rm_results() -> rx.Component:
    """
    Build the results area.

    Displays the loading state, error, empty notice, or the lines table
    based on the current state.
    """
    return rx.box(
        rx.cond(
            RMState.error != "",
            _error(),
        ),
        rx.cond(
            RMState.is_loading,
            _loader(),
            rx.cond(
                RMState.rows.length() > 0,
                _table(),
                rx.cond(RMState.has_searched, _empty()),
            ),
        ),
        id="results-container",
    )


def _table() -> rx.Component:
    return rx.box(
        rx.text(RMState.result_summary, class_name="muted results-summary"),
        rx.table.root(
            rx.table.header(
                rx.table.row(
                    rx.table.column_header_cell(
                        rx.checkbox(
                            checked=RMState.all_selected,
                            on_change=RMState.toggle_all,
                            disabled=(RMState.selectable_count == 0)
                            | RMState.is_removing,
                        )
                    ),
                    *[rx.table.column_header_cell(label) for _, label in _COLUMNS],
                )
            ),
            rx.table.body(rx.foreach(RMState.rows, _row)),
            variant="surface",
            size="1",
        ),
        class_name="card results",
    )


def _row(row: rx.Var) -> rx.Component:
    return rx.table.row(
        rx.table.cell(
            rx.checkbox(
                checked=row["selected"].to(bool),
                on_change=lambda _checked: RMState.toggle_row(row["key"].to(str)),
                disabled=~row["selectable"].to(bool) | RMState.is_removing,
            )
        ),
        *[rx.table.cell(row[field].to(str)) for field, _ in _COLUMNS],
        class_name=rx.cond(row["selectable"].to(bool), "", "row-locked"),
    )


def _error() -> rx.Component:
    return rx.callout.root(
        rx.callout.icon(rx.icon("triangle-alert")),
        rx.callout.text(RMState.error),
        rx.button("Dismiss", size="1", variant="ghost", on_click=RMState.dismiss_error),
        color_scheme="red",
        class_name="error-callout",
    )


def _empty() -> rx.Component:
    """Build the empty state when the run has no lines."""
    return rx.box(
        rx.icon("file-x", class_name="empty-icon", size=60),
        rx.heading("No records", size="3", as_="h3"),
        rx.text(RMState.notice, class_name="muted"),
        class_name="card empty-state",
    )


def _loader() -> rx.Component:
    return rx.box(
        rx.box(class_name="spinner"),
        rx.text("Loading RM lines...", class_name="muted"),
        class_name="card loading-state",
    )
