import base64

import pytest
from fastapi.testclient import TestClient

from main import app
from eark_validator.core.config import settings
from eark_validator.core.error_handling import BackendUnavailableError
from eark_validator.models.backend_models import Finding, UploadOutcome, ValidationOutcome
from eark_validator.services import protocol_adapter
from eark_validator.services.archive_store import ArchiveStore
from eark_validator.services.clients.base_client import BaseBackendClient
from eark_validator.services.protocol_adapter import ProtocolAdapter

ARCHIVE = b"PK\x03\x04archive"
REPORT_URL = "http://backend.test/report/1"


class _DummyBackend(BaseBackendClient):
    def __init__(self):
        super().__init__(endpoint="http://backend.test/api/validate/")
        self.fail = False
        self.uploads = 0
        self.fetches = 0

    async def upload(self, archive_bytes, digest):
        self.uploads += 1
        if self.fail:
            raise BackendUnavailableError("connection refused")
        return UploadOutcome(report_url=REPORT_URL, digest=digest)

    async def fetch_report(self, url):
        self.fetches += 1
        return ValidationOutcome(
            schema_valid=True,
            profile_warnings=[Finding(rule_id="CSIP1", message="check “this”", severity="Warn")],
        )


@pytest.fixture
def backend():
    return _DummyBackend()


@pytest.fixture
def client(monkeypatch, tmp_path, backend):
    # Relax auth and keep archives inside the test's temporary folder
    monkeypatch.setattr(settings, "REQUIRE_API_KEY", False)
    monkeypatch.setattr(settings, "TMP_FOLDER", str(tmp_path))

    # Stub the adapter's backend to avoid external calls
    adapter = ProtocolAdapter(backend=backend, archives=ArchiveStore(root=str(tmp_path)))
    monkeypatch.setattr(protocol_adapter, "_adapter", adapter)

    with TestClient(app) as test_client:
        yield test_client


def _archive_inputs():
    return [
        {
            "name": "archive",
            "value": base64.b64encode(ARCHIVE).decode("ascii"),
            "type": "binary",
            "embedding_method": "BASE64",
        },
        {"name": "digest", "value": "d1", "type": "string", "embedding_method": "STRING"},
    ]


def _operation(name):
    return {"name": "operation", "value": name, "type": "string", "embedding_method": "STRING"}


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["filesystem_writable"] is True
    assert data["live_sessions"] == 0


def test_module_definitions(client):
    response = client.get("/validation/definition")
    assert response.status_code == 200
    names = [operation["name"] for operation in response.json()["module"]["operations"]]
    assert names == ["validate", "upload", "report"]

    response = client.get("/processing/definition")
    assert response.status_code == 200
    module = response.json()["module"]
    assert module["id"] == settings.SERVICE_ID
    assert module["operations"][0]["name"] == "initialise"


def test_direct_validation(client, backend, tmp_path):
    response = client.post("/validation/validate", json={"input": _archive_inputs()})

    assert response.status_code == 200
    report = response.json()["report"]
    assert report["result"] == "WARNING"
    assert report["counters"]["warnings"] == 1
    assert report["items"][0]["description"] == '[Profile][CSIP1] check "this"'
    assert backend.uploads == 1
    assert backend.fetches == 1
    assert list(tmp_path.iterdir()) == []


def test_session_flow(client, backend, tmp_path):
    response = client.post("/processing/begin-transaction")
    assert response.status_code == 200
    session_id = response.json()["session_id"]

    response = client.post(
        "/processing/process",
        json={"session_id": session_id, "operation": "initialise", "input": _archive_inputs()},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["output"][0]["name"] == "session"
    assert data["output"][0]["value"] == session_id
    assert data["report"]["result"] == "SUCCESS"
    assert len(list(tmp_path.iterdir())) == 1

    response = client.post(
        "/validation/validate", json={"session_id": session_id, "input": [_operation("report")]}
    )
    assert response.json()["report"]["items"][0]["description"] == "Unable to validate archive's content"
    assert backend.fetches == 0

    response = client.post(
        "/validation/validate", json={"session_id": session_id, "input": [_operation("upload")]}
    )
    assert response.status_code == 200
    assert response.json()["report"]["result"] == "SUCCESS"

    response = client.post(
        "/validation/validate", json={"session_id": session_id, "input": [_operation("report")]}
    )
    assert response.status_code == 200
    assert response.json()["report"]["result"] == "WARNING"
    assert backend.fetches == 1

    response = client.post("/processing/end-transaction", json={"session_id": session_id})
    assert response.status_code == 200
    assert response.json() == {}
    assert list(tmp_path.iterdir()) == []

    response = client.post("/processing/end-transaction", json={"session_id": session_id})
    assert response.status_code == 200


def test_unknown_session_is_client_error(client):
    response = client.post(
        "/validation/validate", json={"session_id": "missing", "input": [_operation("upload")]}
    )

    assert response.status_code == 400
    assert "missing" in response.json()["detail"]
    assert response.headers["X-Request-ID"]


def test_missing_digest_is_client_error(client):
    response = client.post("/validation/validate", json={"input": _archive_inputs()[:1]})

    assert response.status_code == 400
    assert response.json()["detail"] == "This service expects one input to be provided named 'digest'"


def test_backend_unavailable_is_bad_gateway(client, backend):
    backend.fail = True

    response = client.post("/validation/validate", json={"input": _archive_inputs()})

    assert response.status_code == 502
    assert response.json()["detail"].startswith("Backend validator unavailable")


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_bearer_token_required_when_enabled(client, monkeypatch):
    monkeypatch.setattr(settings, "REQUIRE_API_KEY", True)
    monkeypatch.setattr(settings, "API_KEY", "test_key_12345")

    assert client.post("/processing/begin-transaction").status_code == 401

    response = client.post(
        "/processing/begin-transaction", headers={"Authorization": "Bearer wrong_key"}
    )
    assert response.status_code == 403

    response = client.post(
        "/processing/begin-transaction", headers={"Authorization": "Bearer test_key_12345"}
    )
    assert response.status_code == 200
