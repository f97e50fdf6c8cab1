"""
Dashboard Interfaces Layer
==========================

Interface adapters (controllers) for the dashboard module.

This is the outermost layer - handles HTTP requests/responses and
delegates to application services.
"""

from deskpulse.dashboard.interfaces.controllers import router as dashboard_router

__all__ = ["dashboard_router"]
