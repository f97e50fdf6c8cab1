"""
Shared Kernel Module
====================

Generic infrastructure used by every bounded context (logging, HTTP
middleware). Dashboard business logic does not belong here.
"""

__version__ = "1.0.0"
