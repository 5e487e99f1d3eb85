from datetime import timedelta

import pytest

from musicshare.core.security import create_access_token


@pytest.mark.unit
def test_register_returns_token_and_user(client):
    r = client.post(
        "/api/v1/auth/register",
        json={"username": "alice", "email": "Alice@Example.com", "password": "secret123"},
    )
    assert r.status_code == 201
    body = r.json()
    assert body["token_type"] == "bearer"
    assert body["access_token"]
    assert body["user"]["username"] == "alice"
    assert body["user"]["email"] == "alice@example.com"
    assert "password" not in body["user"]
    assert "password_hash" not in body["user"]


@pytest.mark.unit
def test_register_duplicate_username_and_email(client, register):
    register("alice")
    r = client.post(
        "/api/v1/auth/register",
        json={"username": "alice", "email": "other@example.com", "password": "secret123"},
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Username already registered"

    r = client.post(
        "/api/v1/auth/register",
        json={"username": "alice2", "email": "alice@example.com", "password": "secret123"},
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Email already registered"


@pytest.mark.unit
def test_login_and_me(client, register):
    register("alice", password="hunter22")

    r = client.post("/api/v1/auth/login", json={"email": "alice@example.com", "password": "hunter22"})
    assert r.status_code == 200
    token = r.json()["access_token"]

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["username"] == "alice"


@pytest.mark.unit
def test_login_wrong_password(client, register):
    register("alice", password="hunter22")
    r = client.post("/api/v1/auth/login", json={"email": "alice@example.com", "password": "nope-nope"})
    assert r.status_code == 401


@pytest.mark.unit
def test_token_form_login(client, register):
    register("alice", password="hunter22")
    r = client.post("/api/v1/auth/token", data={"username": "alice@example.com", "password": "hunter22"})
    assert r.status_code == 200
    assert r.json()["token_type"] == "bearer"


@pytest.mark.unit
def test_me_rejects_expired_and_unknown_user_tokens(client, register):
    user, _ = register("alice")
    expired = create_access_token({"sub": str(user["id"])}, expires_delta=timedelta(minutes=-1))
    ghost = create_access_token({"sub": "9999"})

    assert client.get("/api/v1/auth/me").status_code == 401
    assert client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {expired}"}).status_code == 401
    assert client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {ghost}"}).status_code == 401


@pytest.mark.unit
def test_profile_read_and_update(client, register):
    _, headers = register("alice")

    assert client.get("/api/v1/users/profile", headers=headers).json()["username"] == "alice"

    r = client.put("/api/v1/users/profile", json={"username": "alicia"}, headers=headers)
    assert r.status_code == 200
    assert r.json()["username"] == "alicia"
    assert r.json()["email"] == "alice@example.com"


@pytest.mark.unit
def test_profile_update_conflict(client, register):
    register("bob")
    _, headers = register("alice")

    r = client.put("/api/v1/users/profile", json={"email": "bob@example.com"}, headers=headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "Email already registered"


@pytest.mark.unit
def test_uploader_name_follows_profile_update(client, register):
    _, headers = register("alice")
    r = client.post(
        "/api/v1/music/upload",
        data={"title": "T", "artist": "A"},
        files={"audio": ("t.mp3", b"abc", "audio/mpeg")},
        headers=headers,
    )
    song_id = r.json()["song"]["id"]
    client.put("/api/v1/users/profile", json={"username": "alicia"}, headers=headers)

    assert client.get(f"/api/v1/music/{song_id}").json()["song"]["uploader_name"] == "alicia"


@pytest.mark.unit
@pytest.mark.parametrize("username", ["   ", " ab ", ""])
def test_register_rejects_blank_or_short_username_after_trimming(client, username):
    r = client.post(
        "/api/v1/auth/register",
        json={"username": username, "email": "someone@example.com", "password": "secret123"},
    )
    assert r.status_code == 422
    assert client.post(
        "/api/v1/auth/login", json={"email": "someone@example.com", "password": "secret123"}
    ).status_code == 401


@pytest.mark.unit
def test_register_trims_username(client):
    r = client.post(
        "/api/v1/auth/register",
        json={"username": "  carol  ", "email": "carol@example.com", "password": "secret123"},
    )
    assert r.status_code == 201
    assert r.json()["user"]["username"] == "carol"


@pytest.mark.unit
@pytest.mark.parametrize("username", ["   ", " ab "])
def test_profile_update_rejects_blank_username(client, register, username):
    _, headers = register("alice")
    r = client.put("/api/v1/users/profile", json={"username": username}, headers=headers)
    assert r.status_code == 422
    assert client.get("/api/v1/users/profile", headers=headers).json()["username"] == "alice"
