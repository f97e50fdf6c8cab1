"""
DeskPulse
=========

Live operational health metrics for a Zammad helpdesk.
"""

__version__ = "1.0.0"
