"""Login form for the RM Partial Picking UI."""

import reflex as rx

from rm_partial_ui.state import RMState


def login_form() -> rx.Component:
    """
    Build the operator login card.

    Returns:
        The login form component.
    """
    return rx.box(
        rx.heading("Sign in", size="5", as_="h2"),
        rx.form(
            rx.vstack(
                rx.input(
                    name="username",
                    placeholder="Username",
                    required=True,
                    width="100%",
                ),
                rx.input(
                    name="password",
                    type="password",
                    placeholder="Password",
                    required=True,
                    width="100%",
                ),
                rx.cond(
                    RMState.login_error != "",
                    rx.callout.root(
                        rx.callout.text(RMState.login_error),
                        color_scheme="red",
                        size="1",
                        width="100%",
                    ),
                ),
                rx.button(
                    rx.cond(RMState.login_pending, rx.spinner(size="2"), rx.icon("log-in")),
                    "Sign in",
                    type="submit",
                    disabled=RMState.login_pending,
                    width="100%",
                ),
                spacing="3",
            ),
            on_submit=RMState.login,
            reset_on_submit=False,
        ),
        class_name="card login-card",
    )
