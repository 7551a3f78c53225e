"""
Protocol adapter between the test bed and the backend validator.

The test bed drives validation through several calls (begin transaction,
process, upload step, report step, end transaction) whereas the backend only
knows two stateless calls. The adapter keeps both consistent through the
session store, and also offers a direct single-call mode that bypasses
sessions entirely.
"""
import asyncio
import logging
from typing import Optional

from eark_validator.core.config import settings
from eark_validator.core.error_handling import InvalidRequestError
from eark_validator.models.api_models import ModuleDefinition
from eark_validator.models.report_models import Report
from eark_validator.models.session_models import SessionState, ValidationSession
from eark_validator.protocol.module_definitions import ServiceKind, get_module_definition
from eark_validator.protocol.request_types import (
    DirectValidationRequest,
    InitialiseRequest,
    SessionOperation,
    SessionValidationRequest,
    ValidationRequest,
)
from eark_validator.services.archive_store import ArchiveStore
from eark_validator.services.backend_client import BackendValidatorClient
from eark_validator.services.clients.base_client import BaseBackendClient
from eark_validator.services.report_builder import ReportBuilder
from eark_validator.services.session_store import SessionStore

logger = logging.getLogger(__name__)


class ProtocolAdapter:
    """Orchestrates protocol operations over the backend client.

    Session states move forward only: OPEN (created) -> INITIALISED (archive
    and digest recorded) -> UPLOADED (report URL recorded). Ending the
    transaction deletes the session and its archive.
    """

    def __init__(
        self,
        backend: Optional[BaseBackendClient] = None,
        sessions: Optional[SessionStore] = None,
        archives: Optional[ArchiveStore] = None,
        report_builder: Optional[ReportBuilder] = None
    ):
        self.backend = backend or BackendValidatorClient()
        self.sessions = sessions or SessionStore()
        self.archives = archives or ArchiveStore()
        self.report_builder = report_builder or ReportBuilder()

        logger.info(f"Protocol adapter initialized with {self.backend!r}")

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------
    def get_module_definition(self, service: ServiceKind) -> ModuleDefinition:
        return get_module_definition(service)

    # ------------------------------------------------------------------
    # Session mode
    # ------------------------------------------------------------------
    def begin_transaction(self) -> str:
        """Create a session in OPEN state and return its token."""
        return self.sessions.create()

    async def initialise(self, token: str, archive_bytes: bytes, digest: str) -> ValidationSession:
        """Record the archive and digest of a session.

        Re-initialising an INITIALISED session replaces the previous archive.

        Raises:
            UnknownSessionError: If the token is unknown
            InvalidRequestError: If the session has already uploaded its archive
            ArchiveStorageError: If the archive cannot be stored
        """
        async with self.sessions.transaction(token) as session:
            if session.state == SessionState.UPLOADED:
                raise InvalidRequestError(
                    f"Session '{token}' has already uploaded its archive and cannot be re-initialised"
                )
            previous = session.archive_location
            session.archive_location = await asyncio.to_thread(self.archives.save, archive_bytes)
            session.digest = digest
            await asyncio.to_thread(self.archives.delete, previous)
            logger.info(f"Session {token} initialised: state={session.state}")
            return session.snapshot()

    async def process(self, request: InitialiseRequest) -> str:
        """Handle the processing service's initialise operation."""
        await self.initialise(request.session_id, request.archive, request.digest)
        return request.session_id

    async def invoke_upload(self, token: str) -> Report:
        """Upload the session's archive to the backend.

        A returned report URL moves the session to UPLOADED; a failed upload
        leaves it unchanged so the step can be retried.

        Raises:
            UnknownSessionError: If the token is unknown
            InvalidRequestError: If the session has not been initialised
            BackendUnavailableError: If the backend cannot be reached
        """
        async with self.sessions.transaction(token) as session:
            if not session.is_initialised:
                raise InvalidRequestError(f"Session '{token}' has not been initialised with an archive")
            archive = await asyncio.to_thread(self.archives.read, session.archive_location)
            digest = session.digest

            upload = await self.backend.upload(archive, digest)
            if upload.has_report_url:
                session.report_url = upload.report_url
            logger.info(f"Session {token} upload step done: state={session.state}")

        return self.report_builder.build(upload, None, archive=archive, digest=digest)

    async def invoke_report(self, token: str) -> Report:
        """Fetch the validation report of the session's uploaded archive.

        Without a prior successful upload this returns a FAILURE report and
        makes no backend call.

        Raises:
            UnknownSessionError: If the token is unknown
            BackendUnavailableError: If the backend cannot be reached
        """
        async with self.sessions.transaction(token) as session:
            report_url = session.report_url
            if report_url is None:
                logger.warning(f"Session {token} has no report URL; skipping backend call")
                return self.report_builder.build_no_report_available()
            validation = await self.backend.fetch_report(report_url)

        return self.report_builder.build(None, validation, report_url=report_url)

    async def end_transaction(self, token: Optional[str]) -> None:
        """Delete the session and its temporary archive. Unknown tokens are ignored."""
        session = await self.sessions.delete(token)
        if session is None:
            logger.debug(f"End of unknown session {token} ignored")
            return
        await asyncio.to_thread(self.archives.delete, session.archive_location)

    # ------------------------------------------------------------------
    # Direct mode
    # ------------------------------------------------------------------
    async def validate_direct(self, archive_bytes: bytes, digest: str) -> Report:
        """Upload and, when a report URL is returned, fetch the report in one call.

        The archive is uploaded and echoed from a temporary file that exists
        only for the duration of the call.

        Raises:
            BackendUnavailableError: If the backend cannot be reached
            ArchiveStorageError: If the archive cannot be stored
        """
        location = await asyncio.to_thread(self.archives.save, archive_bytes)
        try:
            archive = await asyncio.to_thread(self.archives.read, location)
            upload = await self.backend.upload(archive, digest)
            validation = None
            if upload.has_report_url:
                validation = await self.backend.fetch_report(upload.report_url)
            return self.report_builder.build(upload, validation, archive=archive, digest=digest)
        finally:
            await asyncio.to_thread(self.archives.delete, location)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    async def validate(self, request: ValidationRequest) -> Report:
        """Run a validate call in the mode selected by the request variant."""
        if isinstance(request, DirectValidationRequest):
            return await self.validate_direct(request.archive, request.digest)
        if isinstance(request, SessionValidationRequest):
            if request.operation == SessionOperation.UPLOAD:
                return await self.invoke_upload(request.session_id)
            return await self.invoke_report(request.session_id)
        raise InvalidRequestError(f"Unsupported validation request: {type(request).__name__}")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def startup(self) -> None:
        """Purge stale archives and open the pooled backend client."""
        if settings.CLEAN_TMP_FOLDER_ON_STARTUP:
            await asyncio.to_thread(self.archives.clean_up)
        await self.backend.__aenter__()

    async def shutdown(self) -> None:
        await self.backend.close()


# Singleton adapter instance
_adapter: Optional[ProtocolAdapter] = None


def get_protocol_adapter() -> ProtocolAdapter:
    """Get singleton protocol adapter instance.

    Returns:
        ProtocolAdapter singleton instance
    """
    global _adapter
    if _adapter is None:
        _adapter = ProtocolAdapter()
    return _adapter
