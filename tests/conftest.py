from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from intakeform.app import create_app
from intakeform.config import Settings

INTAKE_FORM = {
    "name": "Intake",
    "fields": [{"label": "VIN", "type": "text", "required": True}],
}


@pytest.fixture(params=["json", "sqlite"])
def backend(request: pytest.FixtureRequest) -> str:
    return request.param


@pytest.fixture
def settings(tmp_path: Path, backend: str, monkeypatch: pytest.MonkeyPatch) -> Settings:
    filename = "db.json" if backend == "json" else "app.db"
    monkeypatch.setenv("DATABASE_URL", f"{backend}:///{tmp_path / 'data' / filename}")
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.delenv("UPLOAD_MAX_BYTES", raising=False)
    monkeypatch.delenv("CLIENT_DIR", raising=False)
    return Settings()


@pytest.fixture
def app(settings: Settings):
    return create_app(settings)


@pytest.fixture
def client(app) -> TestClient:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def storage(app) -> Any:
    return app.state.storage


@pytest.fixture
def blobs(app) -> Any:
    return app.state.blobs


@pytest.fixture
def intake_form(client: TestClient) -> dict[str, Any]:
    res = client.post("/api/forms", json=INTAKE_FORM)
    assert res.status_code == 201
    return res.json()
