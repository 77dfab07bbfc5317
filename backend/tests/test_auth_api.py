"""
End-to-end tests for registration, login, logout and the current-user endpoint
"""

from fastapi.testclient import TestClient
from jose import jwt

from tripplanner.core.rate_limit import limiter
from tripplanner.main import create_app

PASSWORD = "s3cret-pass"


def test_register_user(client):
    r = client.post("/api/auth/register", json={"name": "Ana", "email": "Ana@Example.com", "password": PASSWORD})
    assert r.status_code == 201
    assert r.json() == {"message": "User registered successfully."}
    # registration does not start a session
    assert "token" not in r.cookies


def test_register_duplicate_email(client):
    body = {"name": "Ana", "email": "ana@example.com", "password": PASSWORD}
    assert client.post("/api/auth/register", json=body).status_code == 201

    r = client.post("/api/auth/register", json={**body, "name": "Other", "email": "ANA@example.com"})
    assert r.status_code == 409
    assert r.json()["detail"] == "Email already registered."

    # original row unchanged
    client.post("/api/auth/login", json={"email": "ana@example.com", "password": PASSWORD})
    assert client.get("/api/auth/me").json()["user"]["name"] == "Ana"


def test_register_missing_fields(client):
    r = client.post("/api/auth/register", json={"email": "ana@example.com"})
    assert r.status_code == 400
    assert "errors" in r.json()


def test_login_sets_cookie_with_user_claims(client, login, settings):
    user = login()

    token = client.cookies.get("token")
    assert token
    claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    assert claims["user_id"] == user["user_id"]
    assert claims["sub"] == str(user["user_id"])
    assert claims["email"] == "ana@example.com"


def test_login_response_marks_cookie_http_only(client):
    client.post("/api/auth/register", json={"name": "Ana", "email": "ana@example.com", "password": PASSWORD})
    r = client.post("/api/auth/login", json={"email": "ana@example.com", "password": PASSWORD})
    set_cookie = r.headers["set-cookie"].lower()
    assert "httponly" in set_cookie
    assert "samesite=strict" in set_cookie
    assert "password_hash" not in r.text


def test_login_failures_are_indistinguishable(client, login):
    login()
    client.cookies.clear()

    wrong_password = client.post("/api/auth/login", json={"email": "ana@example.com", "password": "nope"})
    unknown_email = client.post("/api/auth/login", json={"email": "bob@example.com", "password": PASSWORD})

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"detail": "Invalid credentials."}


def test_me_requires_token(client):
    r = client.get("/api/auth/me")
    assert r.status_code == 401
    assert r.json()["detail"] == "No token provided."


def test_me_rejects_tampered_token(client):
    client.cookies.set("token", "not-a-jwt")
    r = client.get("/api/auth/me")
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid token."


def test_me_returns_current_user(client, login):
    user = login()
    r = client.get("/api/auth/me")
    assert r.status_code == 200
    assert r.json()["user"] == {"user_id": user["user_id"], "name": "Ana", "email": "ana@example.com"}


def test_logout_clears_cookie(client, login):
    login()
    r = client.post("/api/auth/logout")
    assert r.status_code == 200
    assert r.json() == {"message": "Logged out successfully."}
    assert client.get("/api/auth/me").status_code == 401


def test_health_and_request_id(client):
    r = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert r.status_code == 200
    assert r.json()["components"]["database"]["status"] == "healthy"
    assert r.headers["X-Request-ID"] == "abc-123"


def test_register_rate_limit_returns_detail(settings):
    limited = settings.model_copy(update={"ENABLE_RATE_LIMITING": True, "RATE_LIMIT_REGISTER": "2/minute"})
    limiter.reset()
    try:
        with TestClient(create_app(limited)) as c:
            codes = [
                c.post(
                    "/api/auth/register",
                    json={"name": "Ana", "email": f"ana{i}@example.com", "password": PASSWORD},
                ).status_code
                for i in range(2)
            ]
            r = c.post("/api/auth/register", json={"name": "Ana", "email": "ana9@example.com", "password": PASSWORD})
    finally:
        limiter.reset()

    assert codes == [201, 201]
    assert r.status_code == 429
    assert r.json()["detail"].startswith("Rate limit exceeded")
