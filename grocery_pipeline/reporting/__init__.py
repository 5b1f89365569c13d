"""
Read-only business reports over the cleaned dataset.
"""

from .reports import REPORTS, export_reports, run_all_reports

__all__ = [
    "REPORTS",
    "run_all_reports",
    "export_reports",
]
