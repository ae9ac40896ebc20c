import os
from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from .main import app
from .security import ViewerId


@pytest.fixture
def api_key():
    return "test-api-key-12345"


@pytest.fixture
def client_with_api_key(api_key):
    with patch.dict(os.environ, {"API_KEY": api_key}):
        yield TestClient(app), api_key


@pytest.fixture
def viewer_client():
    viewer_app = FastAPI()

    @viewer_app.get("/whoami")
    async def whoami(viewer_id: ViewerId):
        return {"viewer": viewer_id}

    return TestClient(viewer_app)


class TestRootEndpointAuth:
    def test_root_returns_401_without_api_key(self, client_with_api_key):
        client, _ = client_with_api_key
        response = client.get("/")
        assert response.status_code == 401

    def test_root_returns_401_with_invalid_api_key(self, client_with_api_key):
        client, _ = client_with_api_key
        response = client.get("/", headers={"X-API-Key": "invalid-key"})
        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid or missing API key"}

    def test_root_returns_200_with_valid_api_key(self, client_with_api_key):
        client, api_key = client_with_api_key
        response = client.get("/", headers={"X-API-Key": api_key})
        assert response.status_code == 200
        assert response.json() == {"message": "Reelfeed API"}

    def test_unconfigured_key_rejects_everything(self):
        with patch.dict(os.environ, {}, clear=True):
            response = TestClient(app).get("/", headers={"X-API-Key": ""})
        assert response.status_code == 401


class TestHealthEndpointNoAuth:
    def test_health_returns_ok_without_api_key(self, client_with_api_key):
        client, _ = client_with_api_key
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestViewerHeader:
    def test_missing_header_is_anonymous(self, viewer_client):
        assert viewer_client.get("/whoami").json() == {"viewer": None}

    def test_blank_header_is_anonymous(self, viewer_client):
        response = viewer_client.get("/whoami", headers={"X-Viewer-Id": "   "})
        assert response.json() == {"viewer": None}

    def test_header_is_trimmed(self, viewer_client):
        response = viewer_client.get("/whoami", headers={"X-Viewer-Id": " user-7 "})
        assert response.json() == {"viewer": "user-7"}
