from fastapi.testclient import TestClient
from liftlog.main import app
from liftlog import main as liftlog_main

client = TestClient(app)

def test_ping():
    r = client.get("/ping")
    assert r.status_code == 200
    assert r.json() == {"pong": True}

def test_root_names_service():
    assert client.get("/").json()["name"] == "LiftLog API"

def test_healthz_ok():
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}

def test_healthz_degraded(monkeypatch):
    # force SessionLocal to throw
    class Boom:
        def __enter__(self): raise RuntimeError("db down")
        def __exit__(self, *a): return False
    monkeypatch.setattr(liftlog_main, "SessionLocal", lambda: Boom())
    r = client.get("/healthz")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "degraded"
    assert "db down" in body["error"]

def test_version_and_request_id():
    r = client.get("/version", headers={"X-Request-ID": "abc123"})
    assert r.status_code == 200
    assert "version" in r.json()
    assert r.headers["X-Request-ID"] == "abc123"
