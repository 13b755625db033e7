from sqlalchemy import delete

from sharein.models.user import User


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


async def test_signup_returns_tokens(client):
    resp = await client.post("/api/auth/signup", json={"email": "alice@example.com", "password": "pw", "name": "Alice"})
    assert resp.status_code == 201
    body = resp.json()
    assert body["token"]
    assert body["refreshToken"]


async def test_signup_duplicate_email_is_conflict_case_insensitive(client, signup):
    await signup("alice@example.com")
    resp = await client.post("/api/auth/signup", json={"email": "  ALICE@Example.com ", "password": "other"})
    assert resp.status_code == 409
    assert resp.json() == {"message": "User already exists", "code": "conflict"}


async def test_signup_rejects_malformed_email(client):
    resp = await client.post("/api/auth/signup", json={"email": "not-an-email", "password": "pw"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "bad_request"


async def test_signin_success_token_accepted_by_verify(client, signup):
    user = await signup("bob@example.com", password="correct horse")
    resp = await client.post("/api/auth/signin", json={"email": "BOB@example.com", "password": "correct horse"})
    assert resp.status_code == 200
    body = resp.json()

    check = await client.post("/api/auth/verify-token", headers={"x-auth-token": body["token"]})
    assert check.status_code == 200
    assert check.json()["userId"] == user["id"]


async def test_signin_wrong_password_returns_no_token(client, signup):
    await signup("bob@example.com", password="correct horse")
    resp = await client.post("/api/auth/signin", json={"email": "bob@example.com", "password": "battery staple"})
    assert resp.status_code == 401
    assert resp.json() == {"message": "Invalid credentials", "code": "invalid_credentials"}
    assert "token" not in resp.json()


async def test_signin_unknown_email(client):
    resp = await client.post("/api/auth/signin", json={"email": "ghost@example.com", "password": "x"})
    assert resp.status_code == 401


async def test_refresh_token_round_trip(client, signup):
    user = await signup("carol@example.com", password="pw")
    tokens = (await client.post("/api/auth/signin", json={"email": "carol@example.com", "password": "pw"})).json()

    resp = await client.post("/api/auth/refresh-token", json={"refreshToken": tokens["refreshToken"]})
    assert resp.status_code == 200
    new_token = resp.json()["token"]
    assert "refreshToken" not in resp.json()

    check = await client.post("/api/auth/verify-token", headers={"x-auth-token": new_token})
    assert check.json()["userId"] == user["id"]


async def test_refresh_token_rejects_tampered_or_missing(client, signup):
    user = await signup("carol@example.com")
    resp = await client.post("/api/auth/refresh-token", json={"refreshToken": user["token"]})
    assert resp.status_code == 401
    assert resp.json()["code"] == "invalid_token"

    resp = await client.post("/api/auth/refresh-token", json={})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Refresh token required"


async def test_verify_token_requires_header(client):
    resp = await client.post("/api/auth/verify-token")
    assert resp.status_code == 401
    assert resp.json()["message"] == "No token, authorization denied"


async def test_verify_token_accepts_bearer_header(client, signup):
    user = await signup("dave@example.com")
    resp = await client.post("/api/auth/verify-token", headers={"Authorization": f"Bearer {user['token']}"})
    assert resp.status_code == 200


async def test_verify_token_rejects_garbage(client):
    resp = await client.post("/api/auth/verify-token", headers={"x-auth-token": "abc.def.ghi"})
    assert resp.status_code == 401
    assert resp.json()["code"] == "invalid_token"


async def test_token_for_deleted_user_is_rejected(client, signup, db):
    user = await signup("erin@example.com")
    await db.execute(delete(User).where(User.id == user["id"]))
    await db.commit()

    resp = await client.post("/api/auth/verify-token", headers=user["headers"])
    assert resp.status_code == 401


async def test_profile_omits_password_hash(client, signup):
    user = await signup("frank@example.com", name="Frank")
    resp = await client.get(f"/api/auth/profile/{user['id']}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["email"] == "frank@example.com"
    assert body["name"] == "Frank"
    assert "hashedPassword" not in body
    assert "hashed_password" not in body
    assert "password" not in body


async def test_profile_unknown_user(client):
    resp = await client.get("/api/auth/profile/does-not-exist")
    assert resp.status_code == 404
    assert resp.json() == {"message": "User not found", "code": "not_found"}
