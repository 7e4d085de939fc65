"""
Data models for ledlink.

Pydantic models with validation for endpoints and connection settings.
"""

from ledlink.models.endpoint import ConnectionSettings, Endpoint

__all__ = [
    "ConnectionSettings",
    "Endpoint",
]
