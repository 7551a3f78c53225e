"""
Base client for the backend validator.

This module provides the abstract base class for backend clients,
establishing the two logical calls the protocol bridge relies on and the
shared HTTP client lifecycle.
"""
from abc import ABC, abstractmethod
from typing import Optional
import httpx
import logging

from eark_validator.core.constants import (
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_KEEPALIVE_CONNECTIONS,
    DEFAULT_MAX_CONNECTIONS,
)
from eark_validator.models.backend_models import UploadOutcome, ValidationOutcome

logger = logging.getLogger(__name__)


class BaseBackendClient(ABC):
    """Abstract base class for backend validator clients.

    Provides common functionality:
    - HTTP client management with connection pooling
    - Async context manager support

    Subclasses must implement:
    - upload(): send an archive and its digest, return the upload outcome
    - fetch_report(): retrieve the validation outcome from a report URL

    Each call makes exactly one outbound request and is never retried.
    """

    def __init__(self, endpoint: Optional[str] = None, timeout: float = DEFAULT_HTTP_TIMEOUT):
        """Initialize the backend client.

        Args:
            endpoint: Upload endpoint URL
            timeout: Request timeout in seconds
        """
        self.endpoint = endpoint
        self.timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

        logger.info(f"Initialized {self.__class__.__name__} with timeout={timeout}s")

    async def __aenter__(self):
        """Async context manager entry.

        Creates the pooled HTTP client shared by subsequent calls.

        Example:
            async with client:
                outcome = await client.upload(archive_bytes, digest)
        """
        self._client = self._create_client()
        logger.debug(f"{self.__class__.__name__} context manager entered")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        logger.debug(f"{self.__class__.__name__} context manager exited")

    async def close(self):
        """Close the HTTP client and release resources.

        Safe to call multiple times.
        """
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.debug(f"{self.__class__.__name__} HTTP client closed")

    def _create_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            limits=httpx.Limits(
                max_keepalive_connections=DEFAULT_KEEPALIVE_CONNECTIONS,
                max_connections=DEFAULT_MAX_CONNECTIONS
            )
        )

    @abstractmethod
    async def upload(self, archive_bytes: bytes, digest: str) -> UploadOutcome:
        """Upload an archive for validation.

        Args:
            archive_bytes: Archive content
            digest: Declared digest of the archive

        Returns:
            UploadOutcome parsed from the response body, whatever the HTTP status

        Raises:
            BackendUnavailableError: If the call fails or the body is not valid JSON
        """
        pass

    @abstractmethod
    async def fetch_report(self, url: str) -> ValidationOutcome:
        """Retrieve the validation report of an uploaded archive.

        Args:
            url: Report URL returned by the upload call

        Returns:
            ValidationOutcome parsed from the response body

        Raises:
            BackendUnavailableError: If the call fails or the body is not valid JSON
        """
        pass

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"endpoint={self.endpoint}, "
            f"timeout={self.timeout}s"
            ")"
        )
