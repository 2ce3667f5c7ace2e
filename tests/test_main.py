"""Tests for the application shell: lifespan, middleware and server options."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from camrelay import main
from camrelay.app_config import AppEnvironConfig
from camrelay.main import HTTPLoggingMiddleware, build_granian_kwargs, lifespan
from camrelay.utils.app_errors import ConfigurationError


class TestHTTPLoggingMiddleware:
    @pytest.fixture
    def client(self) -> TestClient:
        app = FastAPI()
        app.add_middleware(HTTPLoggingMiddleware)

        @app.get("/ok")
        async def ok():
            return {"ok": True}

        @app.get("/boom")
        async def boom():
            raise RuntimeError("boom")

        return TestClient(app)

    def test_passes_through(self, client: TestClient):
        response = client.get("/ok")

        assert response.status_code == 200
        assert response.json() == {"ok": True}

    def test_unhandled_exception_becomes_500(self, client: TestClient):
        response = client.get("/boom")

        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert data["errcode"] == "E_INTERNAL_ERROR"
        assert "request_id" in data["message"]


class TestLifespan:
    def test_serves_health_and_pages(self):
        with TestClient(main.app) as client:
            health = client.get("/health")
            login = client.get("/login")
            index = client.get("/", follow_redirects=False)

        assert health.status_code == 200
        assert health.json()["success"] is True
        assert login.status_code == 200
        assert index.status_code == 307

    def test_refuses_to_start_without_secret(self, monkeypatch):
        monkeypatch.setattr(
            main,
            "get_app_environ_config",
            lambda: AppEnvironConfig.from_source({"JWT_SECRET": ""}),
        )
        app = FastAPI(lifespan=lifespan)

        with pytest.raises(ConfigurationError):
            with TestClient(app):
                pass

    def test_run_exits_on_configuration_error(self, monkeypatch):
        monkeypatch.setattr(
            main,
            "get_app_environ_config",
            lambda: AppEnvironConfig.from_source({"JWT_SECRET": ""}),
        )

        with pytest.raises(SystemExit) as exc_info:
            main.run()

        assert exc_info.value.code == 1


def test_build_granian_kwargs(monkeypatch):
    monkeypatch.setattr(
        main,
        "get_app_environ_config",
        lambda: AppEnvironConfig.from_source({"API_HOST": "127.0.0.1", "PORT": "8081"}),
    )

    kwargs = build_granian_kwargs()

    assert kwargs["interface"] == "asgi"
    assert kwargs["address"] == "127.0.0.1"
    assert kwargs["port"] == 8081
    assert kwargs["workers"] == 1
