"""
Reflex UI components for the RM Partial Picking application.

- login_form: operator sign-in card
- search_panel: RunNo input with search and clear actions
- rm_table: lines table with per-row selection
- remove_dialog: remove button and confirmation dialog
"""

from rm_partial_ui.components.login_form import login_form
from rm_partial_ui.components.remove_dialog import remove_button
from rm_partial_ui.components.rm_table import rm_results
from rm_partial_ui.components.search_panel import search_panel

__all__ = [
    "login_form",
    "remove_button",
    "rm_results",
    "search_panel",
]
