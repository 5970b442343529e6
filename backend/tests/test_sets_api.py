from fastapi.testclient import TestClient
from liftlog.main import app
from liftlog.db import SessionLocal
from liftlog.repositories.user_repo import UserRepository
import uuid

client = TestClient(app)
PWD = "StrongPassw0rd!"
def uniq(): return f"{uuid.uuid4().hex[:10]}@example.com"

ROUTINE = {"exercises": [
    {"exercise_id": 1, "name": "Squat", "equipment": "Barbell", "target_sets": 3, "target_reps": 5, "target_weight": 100},
    {"exercise_id": 2, "name": "Band Row", "equipment": "Band", "target_sets": 2, "target_reps": 12},
]}

def make_user(email=None):
    email = email or uniq()
    client.post("/auth/register", json={"email": email, "name": "U", "password": PWD})
    tok = client.post("/auth/login", json={"email": email, "password": PWD}).json()["access_token"]
    return email, {"Authorization": f"Bearer {tok}"}

def session_with_set(H):
    sid = client.post("/sessions", headers=H, json=ROUTINE).json()["id"]
    r = client.post(f"/sessions/{sid}/sets", headers=H,
                    json={"exercise_id": 2, "reps": 12, "band_label": " Green "})
    assert r.status_code == 201
    return sid, r.json()["set"]

def test_band_label_trimmed_and_weight_defaults_to_zero():
    _, H = make_user()
    _, s = session_with_set(H)
    assert s["band_label"] == "Green"
    assert s["weight"] == 0
    assert s["exercise_id"] == 2

def test_update_set():
    _, H = make_user()
    _, s = session_with_set(H)
    r = client.put(f"/sets/{s['id']}", headers=H, json={"reps": 10, "band_label": "Blue"})
    assert r.status_code == 200
    updated = r.json()["set"]
    assert (updated["reps"], updated["band_label"], updated["set_index"]) == (10, "Blue", 1)

def test_update_rejects_empty_or_cleared_fields():
    _, H = make_user()
    _, s = session_with_set(H)
    assert client.put(f"/sets/{s['id']}", headers=H, json={}).status_code == 422
    assert client.put(f"/sets/{s['id']}", headers=H, json={"reps": None}).status_code == 422
    assert client.put(f"/sets/{s['id']}", headers=H, json={"reps": 0}).status_code == 422

def test_delete_then_readd_same_index():
    _, H = make_user()
    sid, s = session_with_set(H)
    assert client.delete(f"/sets/{s['id']}", headers=H).json() == {"ok": True}
    assert client.put(f"/sets/{s['id']}", headers=H, json={"reps": 1}).status_code == 404

    r = client.post(f"/sessions/{sid}/sets", headers=H,
                    json={"exercise_id": 2, "set_index": 1, "reps": 12, "band_label": "Green"})
    assert r.status_code == 201
    assert r.json()["set"]["set_index"] == 1

def test_missing_set_404():
    _, H = make_user()
    assert client.delete("/sets/999999", headers=H).status_code == 404

def test_other_users_set_is_forbidden_but_coach_may_edit():
    _, owner = make_user()
    _, stranger = make_user()
    coach_email, _ = make_user()

    db = SessionLocal()
    repo = UserRepository(db)
    repo.set_role(repo.get_by_email(coach_email).id, role="coach")
    db.close()
    coach = make_user(coach_email)[1]

    sid, s = session_with_set(owner)
    assert client.put(f"/sets/{s['id']}", headers=stranger, json={"reps": 3}).status_code == 403
    assert client.get(f"/sessions/{sid}", headers=stranger).status_code == 403

    assert client.put(f"/sets/{s['id']}", headers=coach, json={"reps": 3}).status_code == 200
    r = client.post(f"/sessions/{sid}/sets", headers=coach, json={"exercise_id": 1, "reps": 5, "weight": 100})
    assert r.status_code == 201
