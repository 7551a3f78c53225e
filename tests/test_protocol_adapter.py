"""
Tests for the protocol adapter's session and direct validation flows.
"""
import asyncio
import base64
import tempfile
import threading
import unittest
from pathlib import Path
from unittest.mock import AsyncMock, patch

from eark_validator.core.error_handling import (
    BackendUnavailableError,
    InvalidRequestError,
    UnknownSessionError,
)
from eark_validator.models.backend_models import Finding, UploadOutcome, ValidationOutcome
from eark_validator.models.report_models import ItemLevel, Verdict
from eark_validator.models.session_models import SessionState
from eark_validator.protocol import (
    DirectValidationRequest,
    InitialiseRequest,
    ServiceKind,
    SessionOperation,
    SessionValidationRequest,
)
from eark_validator.services.archive_store import ArchiveStore
from eark_validator.services.clients.base_client import BaseBackendClient
from eark_validator.services.protocol_adapter import ProtocolAdapter

ARCHIVE = b"PK\x03\x04archive"
REPORT_URL = "http://backend.test/report/1"


class FakeBackend(BaseBackendClient):
    """Backend double recording the calls it receives."""

    def __init__(self, upload_outcome=None, validation_outcome=None, fail=False):
        super().__init__(endpoint="http://backend.test/api/validate/")
        self.upload_outcome = upload_outcome or UploadOutcome(report_url=REPORT_URL, digest="d1")
        self.validation_outcome = validation_outcome or ValidationOutcome(schema_valid=True)
        self.fail = fail
        self.uploads = []
        self.fetched = []

    async def upload(self, archive_bytes, digest):
        self.uploads.append((archive_bytes, digest))
        if self.fail:
            raise BackendUnavailableError("connection refused")
        return self.upload_outcome

    async def fetch_report(self, url):
        self.fetched.append(url)
        if self.fail:
            raise BackendUnavailableError("connection refused")
        return self.validation_outcome


class TestProtocolAdapter(unittest.IsolatedAsyncioTestCase):
    """Test cases for ProtocolAdapter."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.backend = FakeBackend()
        self.adapter = ProtocolAdapter(backend=self.backend, archives=ArchiveStore(root=str(self.root)))

    def tearDown(self):
        self._tmp.cleanup()

    async def _initialised_session(self):
        token = self.adapter.begin_transaction()
        await self.adapter.process(InitialiseRequest(session_id=token, archive=ARCHIVE, digest="d1"))
        return token

    def test_module_definitions(self):
        processing = self.adapter.get_module_definition(ServiceKind.PROCESSING)
        self.assertEqual(processing.get_operation("initialise").input_names, ["archive", "digest"])

        validation = self.adapter.get_module_definition(ServiceKind.VALIDATION)
        self.assertEqual(
            [operation.name for operation in validation.operations], ["validate", "upload", "report"]
        )
        self.assertEqual(validation.get_operation("upload").input_names, ["operation", "session"])

    async def test_full_session_scenario(self):
        self.backend.validation_outcome = ValidationOutcome(
            schema_errors=["e1"],
            profile_warnings=[Finding(rule_id="R2", message="meh", severity="Warn")],
        )
        token = self.adapter.begin_transaction()
        self.assertEqual(self.adapter.sessions.get(token).state, SessionState.OPEN)

        await self.adapter.process(InitialiseRequest(session_id=token, archive=ARCHIVE, digest="d1"))
        session = self.adapter.sessions.get(token)
        self.assertEqual(session.state, SessionState.INITIALISED)
        self.assertTrue(session.archive_location.exists())

        upload_report = await self.adapter.invoke_upload(token)
        self.assertEqual(upload_report.result, Verdict.SUCCESS)
        self.assertEqual(self.backend.uploads, [(ARCHIVE, "d1")])
        self.assertEqual(self.adapter.sessions.get(token).state, SessionState.UPLOADED)

        content_report = await self.adapter.invoke_report(token)
        self.assertEqual(self.backend.fetched, [REPORT_URL])
        self.assertEqual(content_report.result, Verdict.FAILURE)
        self.assertEqual(content_report.counters.errors, 1)
        self.assertEqual(content_report.counters.warnings, 1)
        self.assertEqual(
            content_report.context.get_item("input").get_item("reportUrl").value, REPORT_URL
        )

        await self.adapter.end_transaction(token)
        self.assertNotIn(token, self.adapter.sessions)
        self.assertFalse(session.archive_location.exists())

    async def test_end_transaction_is_idempotent(self):
        token = await self._initialised_session()

        await self.adapter.end_transaction(token)
        await self.adapter.end_transaction(token)
        await self.adapter.end_transaction("never-existed")
        await self.adapter.end_transaction(None)

        self.assertEqual(len(self.adapter.sessions), 0)
        self.assertEqual(list(self.root.iterdir()), [])

    async def test_report_before_upload_makes_no_backend_call(self):
        token = await self._initialised_session()

        report = await self.adapter.invoke_report(token)

        self.assertEqual(report.result, Verdict.FAILURE)
        self.assertEqual(len(report.items), 1)
        self.assertEqual(report.items[0].level, ItemLevel.ERROR)
        self.assertEqual(report.items[0].description, "Unable to validate archive's content")
        self.assertEqual(report.counters.errors, 1)
        self.assertEqual(self.backend.fetched, [])

    async def test_end_transaction_not_blocked_by_other_session(self):
        first = await self._initialised_session()
        second = await self._initialised_session()
        entered = asyncio.Event()
        release = asyncio.Event()

        async def slow_upload(archive_bytes, digest):
            entered.set()
            await release.wait()
            return UploadOutcome(report_url=REPORT_URL)

        with patch.object(self.backend, "upload", new_callable=AsyncMock, side_effect=slow_upload):
            task = asyncio.create_task(self.adapter.invoke_upload(first))
            await entered.wait()
            await asyncio.wait_for(self.adapter.end_transaction(second), timeout=1.0)
            self.assertNotIn(second, self.adapter.sessions)
            release.set()
            await task

        self.assertEqual(self.adapter.sessions.get(first).state, SessionState.UPLOADED)

    async def test_report_step_uses_upload_report_url(self):
        self.backend.upload_outcome = UploadOutcome(report_url="http://x/r1")
        token = await self._initialised_session()

        await self.adapter.invoke_upload(token)
        session = self.adapter.sessions.get(token)
        self.assertEqual(session.state, SessionState.UPLOADED)
        self.assertEqual(session.report_url, "http://x/r1")

        with patch.object(self.backend, "fetch_report", new_callable=AsyncMock) as fetch:
            fetch.return_value = ValidationOutcome()
            report = await self.adapter.invoke_report(token)

        fetch.assert_awaited_once_with("http://x/r1")
        self.assertEqual(report.result, Verdict.SUCCESS)

    async def test_failed_upload_keeps_session_initialised(self):
        self.backend.upload_outcome = UploadOutcome(message="Digest mismatch")
        token = await self._initialised_session()

        report = await self.adapter.invoke_upload(token)

        self.assertEqual(report.result, Verdict.FAILURE)
        self.assertEqual(report.items[0].description, "Digest mismatch")
        self.assertEqual(self.adapter.sessions.get(token).state, SessionState.INITIALISED)

        await self.adapter.invoke_report(token)
        self.assertEqual(self.backend.fetched, [])

    async def test_backend_unavailable_leaves_state_unchanged(self):
        token = await self._initialised_session()
        self.backend.fail = True

        with self.assertRaises(BackendUnavailableError):
            await self.adapter.invoke_upload(token)

        session = self.adapter.sessions.get(token)
        self.assertEqual(session.state, SessionState.INITIALISED)
        self.assertIsNone(session.report_url)

    async def test_upload_requires_initialised_session(self):
        token = self.adapter.begin_transaction()

        with self.assertRaises(InvalidRequestError):
            await self.adapter.invoke_upload(token)
        self.assertEqual(self.backend.uploads, [])

    async def test_unknown_session_rejected(self):
        with self.assertRaises(UnknownSessionError):
            await self.adapter.invoke_upload("missing")
        with self.assertRaises(UnknownSessionError):
            await self.adapter.invoke_report("missing")
        with self.assertRaises(UnknownSessionError):
            await self.adapter.process(InitialiseRequest(session_id="missing", archive=ARCHIVE, digest="d1"))

    async def test_reinitialise_replaces_archive(self):
        token = await self._initialised_session()
        first = self.adapter.sessions.get(token).archive_location

        await self.adapter.initialise(token, b"other", "d2")

        session = self.adapter.sessions.get(token)
        self.assertFalse(first.exists())
        self.assertEqual(session.digest, "d2")
        self.assertEqual(session.archive_location.read_bytes(), b"other")

    async def test_reinitialise_after_upload_rejected(self):
        token = await self._initialised_session()
        await self.adapter.invoke_upload(token)

        with self.assertRaises(InvalidRequestError):
            await self.adapter.initialise(token, b"other", "d2")

    async def test_direct_validation(self):
        self.backend.validation_outcome = ValidationOutcome(
            profile_errors=[Finding(rule_id="R1", message="bad", severity="Error")]
        )

        report = await self.adapter.validate(DirectValidationRequest(archive=ARCHIVE, digest="d1"))

        self.assertEqual(report.result, Verdict.FAILURE)
        self.assertEqual(report.items[0].description, "[Profile][R1] bad")
        self.assertEqual(self.backend.uploads, [(ARCHIVE, "d1")])
        self.assertEqual(self.backend.fetched, [REPORT_URL])
        outputs = report.context.get_item("output")
        self.assertIsNotNone(outputs.get_item("upload"))
        self.assertIsNotNone(outputs.get_item("validation"))
        self.assertEqual(list(self.root.iterdir()), [])
        self.assertEqual(len(self.adapter.sessions), 0)

    async def test_direct_validation_uploads_stored_archive(self):
        caller_bytes = bytearray(ARCHIVE)
        seen = {}

        async def spy_upload(archive_bytes, digest):
            seen["archive"] = archive_bytes
            seen["files"] = list(self.root.iterdir())
            return UploadOutcome(message="stop")

        with patch.object(self.backend, "upload", new_callable=AsyncMock, side_effect=spy_upload):
            report = await self.adapter.validate_direct(caller_bytes, "d1")

        self.assertIsNot(seen["archive"], caller_bytes)
        self.assertIsInstance(seen["archive"], bytes)
        self.assertEqual(seen["archive"], ARCHIVE)
        self.assertEqual(len(seen["files"]), 1)
        archive_item = report.context.get_item("input").get_item("archive")
        self.assertEqual(base64.b64decode(archive_item.value), ARCHIVE)
        self.assertEqual(list(self.root.iterdir()), [])

    async def test_archive_io_runs_off_event_loop(self):
        loop_thread = threading.get_ident()
        threads = []

        class RecordingStore(ArchiveStore):
            def save(self, archive_bytes):
                threads.append(threading.get_ident())
                return super().save(archive_bytes)

            def read(self, path):
                threads.append(threading.get_ident())
                return super().read(path)

            def delete(self, path):
                threads.append(threading.get_ident())
                return super().delete(path)

        self.adapter.archives = RecordingStore(root=str(self.root))

        token = await self._initialised_session()
        await self.adapter.invoke_upload(token)
        await self.adapter.end_transaction(token)
        await self.adapter.validate_direct(ARCHIVE, "d1")

        self.assertGreaterEqual(len(threads), 7)
        self.assertNotIn(loop_thread, threads)

    async def test_direct_validation_failed_upload_skips_report(self):
        self.backend.upload_outcome = UploadOutcome(message="Not a zip")

        report = await self.adapter.validate_direct(ARCHIVE, "d1")

        self.assertEqual(report.result, Verdict.FAILURE)
        self.assertEqual(self.backend.fetched, [])

    async def test_direct_validation_cleans_up_on_error(self):
        self.backend.fail = True

        with self.assertRaises(BackendUnavailableError):
            await self.adapter.validate_direct(ARCHIVE, "d1")

        self.assertEqual(list(self.root.iterdir()), [])

    async def test_validate_dispatches_session_operations(self):
        token = await self._initialised_session()

        await self.adapter.validate(SessionValidationRequest(session_id=token, operation=SessionOperation.UPLOAD))
        await self.adapter.validate(SessionValidationRequest(session_id=token, operation=SessionOperation.REPORT))

        self.assertEqual(len(self.backend.uploads), 1)
        self.assertEqual(self.backend.fetched, [REPORT_URL])

    async def test_startup_cleans_temporary_folder(self):
        (self.root / "stale.zip").write_bytes(b"old")

        await self.adapter.startup()
        await self.adapter.shutdown()

        self.assertFalse((self.root / "stale.zip").exists())


if __name__ == '__main__':
    unittest.main()
