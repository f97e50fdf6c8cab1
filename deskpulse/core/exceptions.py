"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

These exceptions define domain-specific errors that can be caught and handled
appropriately at the application boundaries.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""


class ExternalServiceException(ApplicationException):
    """Base exception for external service failures."""

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.service_name = service_name
        super().__init__(f"{service_name}: {message}", details)


class SourceUnavailableException(ExternalServiceException):
    """
    The ticket source cannot be reached at startup.

    Fatal: the dashboard cannot run without a ticket source.
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("Ticket Source", message, details)


class TicketFetchException(ExternalServiceException):
    """A single ticket query failed (transport, status, timeout or payload)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.operation = operation
        super().__init__("Ticket Source", f"{operation} failed: {message}", details)


class AggregationException(DomainException):
    """
    Every degraded path of an aggregation pass was exhausted.

    Reserved: the aggregator logs and degrades instead of raising this.
    """
