"""User API tests — registration, search, /users/me, profiles.

Pattern: test_<verb>_<noun>_<scenario>
"""

from datetime import timedelta

import pytest

from postboard.auth.jwt import issue_token


# ═══════════════════════════════════════════════════════════
# Registration
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_user(client):
    r = await client.post(
        "/users",
        json={
            "username": "john",
            "email": "John@Example.com",
            "password": "password1",
            "firstname": "John",
            "lastname": "Doe",
        },
    )
    assert r.status_code == 201
    user = r.json()
    assert user["username"] == "john"
    assert user["email"] == "john@example.com"
    assert user["firstname"] == "John"
    assert user["role"] == "user"
    assert "id" in user and "created_at" in user
    assert "password" not in user and "password_hash" not in user


@pytest.mark.asyncio
async def test_create_user_ignores_role(client):
    """Self-registration can't grant itself admin."""
    r = await client.post(
        "/users",
        json={
            "username": "sneaky",
            "email": "sneaky@example.com",
            "password": "password1",
            "role": "admin",
        },
    )
    assert r.status_code == 201
    assert r.json()["role"] == "user"


@pytest.mark.asyncio
async def test_create_user_duplicate_username(client):
    body = {"username": "john", "email": "john@example.com", "password": "password1"}
    assert (await client.post("/users", json=body)).status_code == 201

    r = await client.post("/users", json={**body, "email": "other@example.com"})
    assert r.status_code == 422
    assert r.json()["error"] == "validation_error"
    assert r.json()["details"][0]["field"] == "username"


@pytest.mark.asyncio
async def test_create_user_duplicate_email(client):
    body = {"username": "john", "email": "john@example.com", "password": "password1"}
    assert (await client.post("/users", json=body)).status_code == 201

    r = await client.post(
        "/users", json={**body, "username": "johnny", "email": "JOHN@example.com"}
    )
    assert r.status_code == 422
    assert r.json()["details"][0]["field"] == "email"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides,field",
    [
        ({"email": "not-an-email"}, "email"),
        ({"email": "a@b"}, "email"),
        ({"username": "me"}, "username"),
        ({"username": "has space"}, "username"),
        ({"password": "short"}, "password"),
    ],
)
async def test_create_user_invalid(client, overrides, field):
    body = {"username": "john", "email": "john@example.com", "password": "password1"}
    r = await client.post("/users", json={**body, **overrides})
    assert r.status_code == 422
    fields = [d["field"] for d in r.json()["details"]]
    assert field in fields


# ═══════════════════════════════════════════════════════════
# Search
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_search_users(client, register):
    await register(username="alice", firstname="Alice")
    await register(username="bob", firstname="Bob")

    r = await client.get("/users")
    assert r.status_code == 200
    assert [u["username"] for u in r.json()] == ["alice", "bob"]

    r = await client.get("/users", params={"firstname": "Bob"})
    assert [u["username"] for u in r.json()] == ["bob"]

    r = await client.get("/users", params={"email": "ALICE@example.com"})
    assert [u["username"] for u in r.json()] == ["alice"]


@pytest.mark.asyncio
async def test_search_users_pagination(client, register):
    for name in ("a1", "a2", "a3"):
        await register(username=name)

    r = await client.get("/users", params={"limit": 2, "offset": 1})
    assert [u["username"] for u in r.json()] == ["a2", "a3"]

    r = await client.get("/users", params={"limit": 0})
    assert r.status_code == 422


# ═══════════════════════════════════════════════════════════
# /users/me
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["GET", "PUT", "DELETE"])
async def test_me_without_token(client, method):
    r = await client.request(method, "/users/me", json={} if method == "PUT" else None)
    assert r.status_code == 401
    assert r.headers["WWW-Authenticate"] == "Bearer"
    assert r.json()["error"] == "unauthorized"


@pytest.mark.asyncio
async def test_me_with_invalid_token(client):
    r = await client.get("/users/me", headers={"Authorization": "Bearer invalid_token"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_me_with_expired_token(client, register):
    user, _ = await register(username="john")
    token = issue_token(user["id"], expires_delta=timedelta(seconds=-1))
    r = await client.get("/users/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.json()["message"] == "Token has expired"


@pytest.mark.asyncio
async def test_fetch_me(client, register):
    user, headers = await register(username="john")
    r = await client.get("/users/me", headers=headers)
    assert r.status_code == 200
    assert r.json()["id"] == user["id"]


@pytest.mark.asyncio
async def test_update_me(client, register):
    _, headers = await register(username="john")
    r = await client.put(
        "/users/me",
        json={"firstname": "Johnny", "email": "NEW@example.com"},
        headers=headers,
    )
    assert r.status_code == 200
    assert r.json()["firstname"] == "Johnny"
    assert r.json()["email"] == "new@example.com"
    assert r.json()["username"] == "john"


@pytest.mark.asyncio
async def test_update_me_cannot_change_role(client, register):
    _, headers = await register(username="john")
    r = await client.put("/users/me", json={"role": "admin"}, headers=headers)
    assert r.status_code == 200
    assert r.json()["role"] == "user"


@pytest.mark.asyncio
async def test_update_me_taken_username(client, register):
    await register(username="alice")
    _, headers = await register(username="bob")
    r = await client.put("/users/me", json={"username": "alice"}, headers=headers)
    assert r.status_code == 422
    assert r.json()["details"][0]["field"] == "username"


@pytest.mark.asyncio
async def test_update_me_keeping_own_username(client, register):
    _, headers = await register(username="bob")
    r = await client.put("/users/me", json={"username": "bob"}, headers=headers)
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_update_me_password(client, register):
    _, headers = await register(username="john", password="password1")
    r = await client.put("/users/me", json={"password": "password2"}, headers=headers)
    assert r.status_code == 200

    old = await client.post("/auth/login", json={"username": "john", "password": "password1"})
    new = await client.post("/auth/login", json={"username": "john", "password": "password2"})
    assert old.status_code == 401
    assert new.status_code == 200


@pytest.mark.asyncio
async def test_delete_me(client, register):
    _, headers = await register(username="john")
    r = await client.post("/posts", json={"text": "bye"}, headers=headers)
    post_id = r.json()["id"]

    r = await client.delete("/users/me", headers=headers)
    assert r.status_code == 200
    assert r.json() == {"success": True}

    # Account and posts are gone; the still-unexpired token no longer works.
    assert (await client.get("/users/john")).status_code == 404
    assert (await client.get(f"/posts/{post_id}")).status_code == 404
    assert (await client.get("/users/me", headers=headers)).status_code == 401


# ═══════════════════════════════════════════════════════════
# /users/{username}
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_fetch_user_by_username(client, register):
    user, _ = await register(username="alice")
    r = await client.get("/users/alice")
    assert r.status_code == 200
    assert r.json()["id"] == user["id"]


@pytest.mark.asyncio
async def test_fetch_user_not_found(client):
    r = await client.get("/users/ghost")
    assert r.status_code == 404
    assert r.json() == {"error": "not_found", "message": "User not found"}


@pytest.mark.asyncio
async def test_update_me_malformed_body_without_token(client):
    r = await client.put(
        "/users/me",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert r.status_code == 401
    assert r.json()["error"] == "unauthorized"
