"""
Dashboard Module
================

Bounded context for live helpdesk health metrics.

Responsibilities:
- Evaluate open tickets against their escalation deadlines
- Classify tickets into breach, at-risk, P1, P1 on hold and aged categories
- Count tickets created and closed today, and created yesterday
- Serve snapshots from a short-lived cache that shields the ticket source
- Provide the dashboard API (metrics, forced refresh, liveness)
"""

__version__ = "1.0.0"
