"""
Static demo data for the RM Partial Picking UI.

Fixture lines used by DemoRecordGateway for development and demonstrations
without a backend.

Modules:
- demo_lines: Pre-populated RMLine objects keyed by run number
"""
