"""
Core Module
============

Shared core utilities and abstractions used across the application.

This module contains framework-agnostic code that defines the fundamental
building blocks of the system.
"""

from deskpulse.core.exceptions import (
    ApplicationException,
    DomainException,
    ConfigurationException,
    ExternalServiceException,
    SourceUnavailableException,
    TicketFetchException,
    AggregationException,
)

__all__ = [
    "ApplicationException",
    "DomainException",
    "ConfigurationException",
    "ExternalServiceException",
    "SourceUnavailableException",
    "TicketFetchException",
    "AggregationException",
]
