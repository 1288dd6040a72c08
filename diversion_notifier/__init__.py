"""
Diversion Commit Notifier - polls a Diversion repository and announces new commits on Discord
"""

__version__ = "1.0.0"
