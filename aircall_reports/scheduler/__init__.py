"""
Scheduling and automation package
"""

from .report_scheduler import ReportScheduler

__all__ = [
    'ReportScheduler'
]
