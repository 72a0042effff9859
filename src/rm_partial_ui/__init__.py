"""RM Partial Picking UI: search a production run and remove unpicked partial picks."""

__version__ = "0.1.0"
