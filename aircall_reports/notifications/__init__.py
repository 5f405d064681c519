"""
Report delivery package
"""

from .slack import SlackNotifier

__all__ = [
    'SlackNotifier'
]
