"""
Custom exceptions for the statute resolution core.

Unparseable citations and "not found" searches are ordinary results, not
exceptions. Only configuration problems and remote failures are raised.
"""
from typing import Optional


class StatuteCoreError(Exception):
    """Base exception for statute resolution errors."""
    pass


class APIKeyMissingError(StatuteCoreError):
    """OpenLaws API key is not configured."""
    pass


class RemoteAPIError(StatuteCoreError):
    """Remote divisions API call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None, url: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class TransientAPIError(RemoteAPIError):
    """429 or 5xx response that persisted through every retry."""
    pass


class PermanentAPIError(RemoteAPIError):
    """4xx response (other than 429). Never retried."""
    pass


class NetworkError(RemoteAPIError):
    """Connection or timeout failure that persisted through every retry."""
    pass
