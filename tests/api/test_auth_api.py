"""Registration, login and profile routes."""

from sqlalchemy import func, select

from vortexboard.models import ActivityLog, User


async def count_users(session_factory) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count(User.id)))).scalar_one()


async def test_register_returns_token_and_summary(client, transport):
    res = await client.post(
        "/api/auth/register",
        json={"name": "Alice", "email": "Alice@Example.com", "password": "secret123"},
    )

    assert res.status_code == 201
    body = res.json()
    assert body["success"] is True
    assert body["token"]
    assert body["user"]["email"] == "alice@example.com"
    assert body["user"]["role"] == "user"
    assert "password" not in body["user"]
    assert "hashed_password" not in body["user"]
    # Welcome email goes out in the background
    assert [m["Subject"] for m in transport.messages] == ["Welcome to VortexBoard!"]


async def test_register_duplicate_email_is_rejected(client, alice, session_factory):
    res = await client.post(
        "/api/auth/register",
        json={"name": "Other", "email": "ALICE@example.com", "password": "secret123"},
    )

    assert res.status_code == 400
    assert res.json() == {
        "success": False,
        "error": "User already exists with this email",
    }
    assert await count_users(session_factory) == 1


async def test_register_collects_validation_messages(client):
    res = await client.post(
        "/api/auth/register", json={"name": "", "email": "nope", "password": "1"}
    )

    assert res.status_code == 400
    assert res.json()["error"] == (
        "Name is required, Valid email is required, "
        "Password must be at least 6 characters"
    )


async def test_register_missing_fields(client):
    res = await client.post("/api/auth/register", json={"name": "Alice"})

    assert res.status_code == 400
    assert res.json()["error"] == "Email is required, Password is required"


async def test_login_with_wrong_password(client, alice):
    res = await client.post(
        "/api/auth/login", json={"email": alice["email"], "password": "wrong-password"}
    )

    assert res.status_code == 401
    body = res.json()
    assert body == {"success": False, "error": "Invalid credentials"}
    assert "token" not in body


async def test_login_with_unknown_email(client):
    res = await client.post(
        "/api/auth/login", json={"email": "ghost@example.com", "password": "secret123"}
    )
    assert res.status_code == 401


async def test_login_success(client, alice, session_factory):
    res = await client.post(
        "/api/auth/login", json={"email": alice["email"], "password": "secret123"}
    )

    assert res.status_code == 200
    body = res.json()
    assert body["token"]
    assert body["user"] == {
        "id": alice["id"],
        "name": "Alice",
        "email": "alice@example.com",
        "role": "user",
        "created_at": body["user"]["created_at"],
    }

    async with session_factory() as session:
        actions = (
            await session.execute(
                select(ActivityLog.action).where(ActivityLog.user_id == alice["id"])
            )
        ).scalars().all()
    assert sorted(actions) == ["user.login", "user.register"]


async def test_me_requires_token(client):
    res = await client.get("/api/auth/me")

    assert res.status_code == 401
    assert res.json()["error"] == "Not authorized to access this route"


async def test_me_rejects_garbage_token(client):
    res = await client.get("/api/auth/me", headers={"Authorization": "Bearer nonsense"})
    assert res.status_code == 401


async def test_me_returns_profile(client, alice):
    res = await client.get("/api/auth/me", headers=alice["headers"])

    assert res.status_code == 200
    assert res.json()["user"]["id"] == alice["id"]


async def test_update_details(client, alice, bob):
    res = await client.put(
        "/api/auth/updatedetails", json={"name": "Alicia"}, headers=alice["headers"]
    )
    assert res.status_code == 200
    assert res.json()["user"]["name"] == "Alicia"

    taken = await client.put(
        "/api/auth/updatedetails",
        json={"email": bob["email"]},
        headers=alice["headers"],
    )
    assert taken.status_code == 400
    assert taken.json()["error"] == "Email is already in use"


async def test_update_password(client, alice):
    wrong = await client.put(
        "/api/auth/updatepassword",
        json={"current_password": "nope", "new_password": "newsecret"},
        headers=alice["headers"],
    )
    assert wrong.status_code == 401
    assert wrong.json()["error"] == "Password is incorrect"

    res = await client.put(
        "/api/auth/updatepassword",
        json={"current_password": "secret123", "new_password": "newsecret"},
        headers=alice["headers"],
    )
    assert res.status_code == 200
    assert res.json()["token"]

    login = await client.post(
        "/api/auth/login", json={"email": alice["email"], "password": "newsecret"}
    )
    assert login.status_code == 200
