"""
Configuration package
"""

from .settings import Settings, ReportConfig, ConfigurationError

__all__ = [
    'Settings',
    'ReportConfig',
    'ConfigurationError'
]
