"""
Remove button with confirmation dialog.

The dialog stays open while the removal runs and when it fails (showing
the error); it closes only after a confirmed removal.
"""

import reflex as rx

from rm_partial_ui.state import RMState


def remove_button() -> rx.Component:
    """Build the "Remove Selected" button and its confirmation dialog."""
    return rx.box(
        rx.button(
            rx.icon("trash-2"),
            "Remove Selected",
            rx.cond(
                RMState.selected_count > 0,
                rx.badge(RMState.selected_count, variant="solid"),
            ),
            color_scheme="red",
            on_click=RMState.open_remove_dialog,
            disabled=~RMState.can_remove,
        ),
        _dialog(),
        class_name="remove-actions",
    )


def _dialog() -> rx.Component:
    return rx.dialog.root(
        rx.dialog.content(
            rx.dialog.title(
                rx.icon("triangle-alert", color="var(--red-9)"),
                "Confirm Removal",
            ),
            rx.dialog.description(
                "You are about to remove ",
                RMState.selected_count,
                " partial picking record(s) from RunNo ",
                RMState.run_no,
                ". This action cannot be undone.",
            ),
            rx.callout.root(
                rx.callout.text(
                    "The original quantities are preserved in the audit log."
                ),
                color_scheme="amber",
                size="1",
            ),
            rx.cond(
                RMState.dialog_error != "",
                rx.callout.root(
                    rx.callout.text(RMState.dialog_error),
                    color_scheme="red",
                    size="1",
                ),
            ),
            rx.flex(
                rx.button(
                    "Cancel",
                    variant="outline",
                    on_click=RMState.set_dialog_open(False),
                    disabled=RMState.is_removing,
                ),
                rx.button(
                    rx.cond(RMState.is_removing, rx.spinner(size="2"), rx.icon("trash-2")),
                    "Remove",
                    color_scheme="red",
                    on_click=RMState.confirm_remove,
                    disabled=RMState.is_removing,
                ),
                justify="end",
                spacing="3",
            ),
        ),
        open=RMState.dialog_open,
        on_open_change=RMState.set_dialog_open,
    )
