import pytest
from fastapi.testclient import TestClient

import config
import database
import main
from main import app


@pytest.fixture
def broken_store():
    def unavailable():
        raise RuntimeError("connection refused by mongo-primary:27017")

    app.dependency_overrides[database.get_db] = unavailable
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


def test_unexpected_failure_returns_generic_envelope(broken_store):
    res = broken_store.get("/api/categories/")
    assert res.status_code == 500
    assert res.json() == {"status": "FAILED", "msg": "Server Error", "data": None}
    assert "mongo-primary" not in res.text


def test_unexpected_failure_keeps_cors_headers(broken_store):
    res = broken_store.get("/api/categories/", headers={"Origin": "https://shop.example.com"})
    assert res.status_code == 500
    assert "access-control-allow-origin" in res.headers


@pytest.fixture
def fresh_settings():
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()


def test_run_refuses_to_start_without_config(monkeypatch, fresh_settings):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    started = []
    monkeypatch.setattr("uvicorn.run", lambda *args, **kwargs: started.append(args))

    with pytest.raises(SystemExit) as exc:
        main.run()
    assert exc.value.code == 1
    assert started == []
