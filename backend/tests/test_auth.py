from fastapi.testclient import TestClient
from liftlog.main import app
from liftlog.security import create_access_token
import uuid

client = TestClient(app)
PWD = "StrongPassw0rd!"
def uniq_email(): return f"u_{uuid.uuid4().hex[:10]}@example.com"

def register(email, pwd=PWD):
    return client.post("/auth/register", json={"email": email, "name": "Lifter", "password": pwd})

def login(email, pwd=PWD):
    return client.post("/auth/login", json={"email": email, "password": pwd})

def test_register_login_and_me():
    email = uniq_email()
    r = register(email)
    assert r.status_code == 201
    assert r.json()["role"] == "user"

    r = login(email)
    assert r.status_code == 200
    token = r.json()["access_token"]

    r = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    body = r.json()
    assert body["email"] == email
    assert "password_hash" not in body

def test_password_policy_422():
    for pwd in ("short", "alllowercase123!", "NoDigitsHere!!", "NoSpecials12345"):
        assert register(uniq_email(), pwd).status_code == 422

def test_register_duplicate_email_400():
    e = uniq_email()
    assert register(e).status_code == 201
    assert register(e.upper()).status_code == 400

def test_login_unknown_email_401():
    assert login(uniq_email()).status_code == 401

def test_login_wrong_password_401():
    e = uniq_email()
    register(e)
    assert login(e, "WrongPass123!").status_code == 401

def test_expired_token_401():
    e = uniq_email()
    user_id = register(e).json()["id"]
    expired = create_access_token(str(user_id), expires_minutes=-1)
    r = client.get("/auth/me", headers={"Authorization": f"Bearer {expired}"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Token expired"

def test_garbage_token_401():
    r = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401

def test_token_for_missing_user_401():
    r = client.get("/auth/me", headers={"Authorization": f"Bearer {create_access_token('987654321')}"})
    assert r.status_code == 401
