"""Weekly timesheet aggregation and worker invoicing."""

__version__ = "0.1.0"
