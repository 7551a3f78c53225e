"""Services package for archive storage, session tracking, backend calls and report aggregation."""

from eark_validator.services.archive_store import ArchiveStore
from eark_validator.services.report_builder import ReportBuilder
from eark_validator.services.session_store import SessionStore
from eark_validator.services.backend_client import BackendValidatorClient

__all__ = [
    'ArchiveStore',
    'ReportBuilder',
    'SessionStore',
    'BackendValidatorClient',
]
