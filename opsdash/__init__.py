"""
Ops dashboard backend.

Pulls contacts, call logs, operation logs and expenses from the automation
backend and assembles the Command Center view: KPI cards, chart series,
ranked alerts, the activity feed and upcoming appointments.
"""

__version__ = "0.1.0"
