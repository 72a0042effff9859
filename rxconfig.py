"""Reflex configuration for the RM Partial Picking UI application."""

import os

import reflex as rx

# Get port from environment
APP_PORT = int(os.getenv("RM_UI_PORT", "3000"))

config = rx.Config(
    app_name="rm_partial_ui",
    # Use the src directory structure
    app_module_import="rm_partial_ui.app",
    frontend_port=APP_PORT,
)
