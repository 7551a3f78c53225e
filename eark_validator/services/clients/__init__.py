"""
Backend validator clients.

This package provides the base class and the REST implementation of the
client used to reach the backend validator.
"""
from .base_client import BaseBackendClient

__all__ = ["BaseBackendClient"]
