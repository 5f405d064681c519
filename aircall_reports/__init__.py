"""
Aircall call activity reporting

Fetches call records from Aircall, rolls them up per agent and posts
the summary to Slack.
"""

__version__ = "1.0.0"
