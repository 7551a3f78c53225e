"""
REST client for the backend validator.

The backend works in two steps: a multipart upload of the archive and its
digest, answered with a report URL, then a plain GET on that URL returning the
validation results.
"""
import logging
from typing import Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from eark_validator.core.config import settings
from eark_validator.core.constants import (
    ARCHIVE_SUFFIX,
    BACKEND_DIGEST_FIELD,
    BACKEND_PACKAGE_FIELD,
)
from eark_validator.core.error_handling import BackendUnavailableError, request_id_var
from eark_validator.core.http_client import get_async_client, get_managed_client
from eark_validator.core.utils import force_secure_url
from eark_validator.models.backend_models import UploadOutcome, ValidationOutcome
from eark_validator.services.clients.base_client import BaseBackendClient

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class BackendValidatorClient(BaseBackendClient):
    """Client for the backend validator's upload and report calls."""

    def __init__(
        self,
        endpoint: Optional[str] = None,
        force_https: Optional[bool] = None,
        timeout: Optional[float] = None
    ):
        """
        Initialize the client.

        Args:
            endpoint: Upload endpoint (defaults to BACKEND_ENDPOINT)
            force_https: Rewrite report URLs to https (defaults to VALIDATOR_FORCE_HTTPS)
            timeout: Request timeout in seconds (defaults to HTTP_CLIENT_TIMEOUT)
        """
        super().__init__(
            endpoint=endpoint or settings.BACKEND_ENDPOINT,
            timeout=timeout or settings.HTTP_CLIENT_TIMEOUT
        )
        self.force_https = settings.VALIDATOR_FORCE_HTTPS if force_https is None else force_https

    def _create_client(self) -> httpx.AsyncClient:
        return get_async_client(timeout=self.timeout)

    async def upload(self, archive_bytes: bytes, digest: str) -> UploadOutcome:
        req_id = request_id_var.get()
        files = {
            BACKEND_PACKAGE_FIELD: (f"package{ARCHIVE_SUFFIX}", archive_bytes, "application/octet-stream"),
        }
        data = {BACKEND_DIGEST_FIELD: digest}

        logger.info(f"[{req_id}] Uploading archive to backend: {self.endpoint} ({len(archive_bytes)} bytes)")
        try:
            async with get_managed_client(self._client, self.timeout) as client:
                response = await client.post(self.endpoint, files=files, data=data)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"[{req_id}] Archive upload failed: {e}")
            raise BackendUnavailableError(
                f"An error occurred while uploading the archive for validation: {e}"
            ) from e

        outcome = self._parse(response, UploadOutcome, "upload")
        if outcome.message is not None:
            logger.warning(f"[{req_id}] Backend rejected upload (HTTP {response.status_code}): {outcome.message}")
        else:
            logger.info(f"[{req_id}] Upload completed: report_url={outcome.report_url}")
        return outcome

    async def fetch_report(self, url: str) -> ValidationOutcome:
        req_id = request_id_var.get()
        report_url = force_secure_url(url) if self.force_https else url

        logger.info(f"[{req_id}] Fetching validation report: {report_url}")
        try:
            async with get_managed_client(self._client, self.timeout) as client:
                response = await client.get(report_url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"[{req_id}] Report download failed: {e}")
            raise BackendUnavailableError(
                f"An error occurred while downloading the archive's validation report: {e}"
            ) from e

        outcome = self._parse(response, ValidationOutcome, "report")
        logger.info(
            f"[{req_id}] Report retrieved: schema_valid={outcome.schema_valid}, "
            f"metadata_valid={outcome.metadata_valid}, findings={outcome.finding_count}"
        )
        return outcome

    def _parse(self, response: httpx.Response, model: Type[M], call: str) -> M:
        """Parse a backend body regardless of HTTP status.

        Raises:
            BackendUnavailableError: If the body is not a JSON object of the expected shape
        """
        try:
            return model.model_validate_json(response.content)
        except ValidationError as e:
            logger.error(
                f"Unparseable {call} response (HTTP {response.status_code}): "
                f"{response.text[:500]}"
            )
            raise BackendUnavailableError(
                f"Backend returned an unparseable {call} response (HTTP {response.status_code})"
            ) from e
