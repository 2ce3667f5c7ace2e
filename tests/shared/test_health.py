from fastapi import FastAPI
from fastapi.testclient import TestClient

from camrelay.shared.api.health import router


def test_health_reports_ok():
    app = FastAPI()
    app.include_router(router)

    response = TestClient(app).get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["results"] == "OK"
