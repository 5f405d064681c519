"""
Report window resolution, aggregation and generation
"""

from .window import resolve_window, period_label
from .aggregator import aggregate, summarize
from .generator import ActivityReportGenerator

__all__ = [
    'resolve_window',
    'period_label',
    'aggregate',
    'summarize',
    'ActivityReportGenerator'
]
