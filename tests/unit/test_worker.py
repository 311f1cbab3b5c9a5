"""Worker エンドポイントと OIDC 認証のユニットテスト

google.oauth2.id_token.verify_oauth2_token をモックして、
実際のトークン発行なしにテストする。
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from ewarrants.config import AppConfig
from ewarrants.domain.models import ReminderRunSummary
from ewarrants.entrypoints.api.app import app
from ewarrants.entrypoints.api.deps import get_config, get_reminder_job

_VALID_EMAIL = "scheduler@ewarrants.iam.gserviceaccount.com"
_HEADERS = {"Authorization": "Bearer valid.oidc.token"}
_ENV = {"WORKER_SERVICE_ACCOUNT_EMAIL": _VALID_EMAIL}
_URL = "/worker/expiry-reminders"


@pytest.fixture
def mock_job():
    job = MagicMock()
    job.run = AsyncMock(return_value=ReminderRunSummary(users=2, sent=1, errors=0))
    return job


@pytest.fixture
def client(mock_job):
    app.dependency_overrides[get_config] = lambda: AppConfig(project_id="test")
    app.dependency_overrides[get_reminder_job] = lambda: mock_job
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


def _verify_as(email):
    def _verify(token, request, audience):  # noqa: ARG001
        return {"email": email, "sub": "123"}

    return _verify


def test_valid_token_runs_job(client, mock_job):
    with patch.dict("os.environ", _ENV), patch(
        "ewarrants.entrypoints.api.worker_auth.id_token.verify_oauth2_token",
        side_effect=_verify_as(_VALID_EMAIL),
    ):
        response = client.post(_URL, headers=_HEADERS)

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "users": 2, "sent": 1, "errors": 0}
    mock_job.run.assert_awaited_once()


def test_missing_header_is_401(client, mock_job):
    with patch.dict("os.environ", _ENV):
        response = client.post(_URL)

    assert response.status_code == 401
    mock_job.run.assert_not_called()


def test_wrong_service_account_is_401(client, mock_job):
    with patch.dict("os.environ", _ENV), patch(
        "ewarrants.entrypoints.api.worker_auth.id_token.verify_oauth2_token",
        side_effect=_verify_as("intruder@example.com"),
    ):
        response = client.post(_URL, headers=_HEADERS)

    assert response.status_code == 401
    mock_job.run.assert_not_called()


def test_invalid_token_is_401(client):
    with patch.dict("os.environ", _ENV), patch(
        "ewarrants.entrypoints.api.worker_auth.id_token.verify_oauth2_token",
        side_effect=ValueError("bad signature"),
    ):
        response = client.post(_URL, headers=_HEADERS)

    assert response.status_code == 401


def test_unconfigured_service_account_fails_closed(client):
    with patch.dict("os.environ", {}, clear=True):
        response = client.post(_URL, headers=_HEADERS)

    assert response.status_code == 401


def test_local_mode_skips_verification(client, mock_job):
    with patch.dict("os.environ", {"LOCAL_MODE": "true"}):
        response = client.post(_URL)

    assert response.status_code == 200
    mock_job.run.assert_awaited_once()
