"""
Reflex application entry point for the RM Partial Picking UI.

This module initializes the Reflex app and defines the login and main pages.
"""

import os

import reflex as rx

from rm_partial_ui.components import (
    login_form,
    remove_button,
    rm_results,
    search_panel,
)
from rm_partial_ui.lib import logs
from rm_partial_ui.runtime import lifespan
from rm_partial_ui.services.record_gateway_http import API_URL
from rm_partial_ui.state import APP_SUBTITLE, APP_TITLE, USE_DEMO, RMState

LOG = logs.logger(__file__)

# Configuration from environment
APP_PORT = int(os.getenv("RM_UI_PORT", "3000"))
LOG.info("RM_UI_SERVICE: %s", "demo" if USE_DEMO else "http")
if not USE_DEMO:
    LOG.info("RM_UI_API_URL: %s", API_URL)

_FONT_URL = "https://fonts.googleapis.com/css2?family=Inter:wght@300;400;500;600;700&display=swap"


def page_header() -> rx.Component:
    """Build the title bar with the signed-in operator and logout action."""
    return rx.box(
        rx.box(
            rx.heading(APP_TITLE, size="6", as_="h1"),
            rx.text(APP_SUBTITLE, class_name="muted"),
        ),
        rx.hstack(
            rx.badge("Demo data", color_scheme="amber") if USE_DEMO else rx.fragment(),
            rx.cond(
                RMState.is_authenticated,
                rx.hstack(
                    rx.icon("user"),
                    rx.text(RMState.display_name),
                    rx.button(
                        rx.icon("log-out"),
                        "Logout",
                        size="1",
                        variant="ghost",
                        on_click=RMState.logout,
                    ),
                    align="center",
                ),
            ),
            align="center",
            spacing="3",
        ),
        class_name="page-header",
    )


def _health_banner() -> rx.Component:
    return rx.cond(
        RMState.backend_healthy,
        rx.fragment(),
        rx.callout.root(
            rx.callout.icon(rx.icon("wifi-off")),
            rx.callout.text(
                "The backend is not responding. Searches and removals may fail."
            ),
            color_scheme="amber",
            size="1",
        ),
    )


def index() -> rx.Component:
    """
    Build the main page layout.

    Returns:
        The complete page component with header, search, results and actions.
    """
    return rx.box(
        rx.box(
            page_header(),
            _health_banner(),
            search_panel(),
            rm_results(),
            remove_button(),
            class_name="app-container",
        ),
        class_name="app-shell",
    )


def login() -> rx.Component:
    """Build the login page."""
    return rx.box(
        rx.box(
            page_header(),
            login_form(),
            class_name="app-container login-container",
        ),
        class_name="app-shell",
    )


# Create the Reflex app
app = rx.App(
    theme=rx.theme(
        appearance="light",
        has_background=True,
        radius="large",
        accent_color="teal",
    ),
    stylesheets=[
        _FONT_URL,
        "/styles.css",
    ],
)
app.register_lifespan_task(lifespan)

app.add_page(
    index,
    title=APP_TITLE,
    on_load=RMState.on_load,
)
app.add_page(
    login,
    route="/login",
    title=f"{APP_TITLE} - Sign in",
)


def main() -> None:
    """Entrypoint used by `rm-partial-ui`."""
    # In production, use `reflex run` instead
    import subprocess
    import sys

    subprocess.run(
        [sys.executable, "-m", "reflex", "run", "--frontend-port", str(APP_PORT)]
    )


if __name__ == "__main__":
    main()
