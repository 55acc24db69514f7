"""End-to-end tests for the /auth endpoints against the in-memory directory."""

from datetime import timedelta

from app.core.security import create_access_token
from tests.conftest import bearer, register


def test_register_then_me(client):
    resp = register(client, email="u@test.com", password="secret1", name="U")

    assert resp.status_code == 200
    body = resp.json()
    assert body["token"]
    assert body["user"]["email"] == "u@test.com"

    me = client.get("/auth/me", headers=bearer(body["token"]))
    assert me.status_code == 200
    assert me.json() == {"id": body["user"]["id"], "email": "u@test.com", "name": "U", "phone": None}


def test_register_duplicate_is_case_insensitive(client):
    assert register(client, email="A@x.com").status_code == 200

    resp = register(client, email="a@x.com")

    assert resp.status_code == 400
    assert resp.json()["detail"]["error"] == "user_exists"


def test_register_validation_errors(client):
    weak = register(client, password="123")
    bad_email = register(client, email="not-an-email")
    missing = client.post("/auth/register", json={"email": "u@test.com"})

    assert weak.status_code == 400 and weak.json()["detail"]["error"] == "weak_password"
    assert bad_email.status_code == 400 and bad_email.json()["detail"]["error"] == "invalid_email"
    assert missing.status_code == 400 and missing.json()["detail"]["error"] == "validation_error"


def test_register_rejects_malformed_dots_and_hyphens(client):
    for email in ("a..b@x.com", "a@x..com", "a@-x.com", ".a@x.com"):
        resp = register(client, email=email)

        assert resp.status_code == 400, email
        assert resp.json()["detail"]["error"] == "invalid_email"
    assert client.app.state.directory.tables.users == {}


def test_login_success(client):
    register(client, email="u@test.com", password="secret1")

    resp = client.post("/auth/login", json={"email": "U@TEST.com", "password": "secret1"})

    assert resp.status_code == 200
    assert resp.json()["user"]["email"] == "u@test.com"


def test_login_missing_fields(client):
    resp = client.post("/auth/login", json={"email": "u@test.com"})
    assert resp.status_code == 400


def test_login_does_not_reveal_unknown_accounts(client):
    register(client, email="u@test.com", password="secret1")

    missing = client.post("/auth/login", json={"email": "missing@x.com", "password": "x"})
    wrong = client.post("/auth/login", json={"email": "u@test.com", "password": "wrong1"})

    assert missing.status_code == wrong.status_code == 401
    assert missing.json() == wrong.json()
    assert missing.json()["detail"]["error"] == "invalid_credentials"
    assert "exist" not in missing.text.lower()


def test_otp_flow_creates_phone_user(client):
    sent = client.post("/auth/send-otp", json={"phone": "+15551234567"})

    assert sent.status_code == 200
    otp = sent.json()["developmentOtp"]
    assert sent.json()["success"] is True
    assert len(otp) == 6 and otp.isdigit()

    verified = client.post("/auth/verify-otp", json={"phone": "+15551234567", "otp": otp})
    assert verified.status_code == 200
    user = verified.json()["user"]
    assert user["name"] == "User 4567"
    assert user["phone"] == "+15551234567"

    me = client.get("/auth/me", headers=bearer(verified.json()["token"]))
    assert me.json()["id"] == user["id"]

    again = client.post("/auth/verify-otp", json={"phone": "+15551234567", "otp": otp})
    assert again.status_code == 401
    assert again.json()["detail"]["error"] == "invalid_otp"


def test_send_otp_rejects_bad_phone(client):
    resp = client.post("/auth/send-otp", json={"phone": "12345"})

    assert resp.status_code == 400
    assert resp.json()["detail"]["error"] == "invalid_phone"


def test_verify_otp_wrong_code(client):
    client.post("/auth/send-otp", json={"phone": "+15551234567"})

    resp = client.post("/auth/verify-otp", json={"phone": "+15551234567", "otp": "not-it"})

    assert resp.status_code == 401


def test_me_requires_valid_token(client):
    no_header = client.get("/auth/me")
    garbage = client.get("/auth/me", headers=bearer("garbage"))
    wrong_scheme = client.get("/auth/me", headers={"Authorization": "Token abc"})

    for resp in (no_header, garbage, wrong_scheme):
        assert resp.status_code == 401
        assert resp.json()["detail"]["error"] == "invalid_token"
        assert resp.headers["www-authenticate"] == "Bearer"


def test_me_rejects_expired_token(client):
    user = register(client).json()["user"]
    expired = create_access_token(subject=str(user["id"]), contact=user["email"], expires_delta=timedelta(seconds=-1))

    resp = client.get("/auth/me", headers=bearer(expired))

    assert resp.status_code == 401
    assert resp.json()["detail"]["error"] == "invalid_token"


def test_me_for_deleted_user_is_not_found(client):
    token = create_access_token(subject="9999", contact="ghost@test.com")

    resp = client.get("/auth/me", headers=bearer(token))

    assert resp.status_code == 404
    assert resp.json()["detail"]["error"] == "user_not_found"


def test_me_reflects_live_profile(client):
    token = register(client).json()["token"]

    client.patch("/users/me/preferences", json={"theme": "dark"}, headers=bearer(token))
    prefs = client.get("/users/me/preferences", headers=bearer(token))

    assert prefs.status_code == 200
    assert prefs.json() == {"notifications": True, "voice_enabled": True, "theme": "dark", "ai_provider": "openai"}


def test_preferences_reject_unknown_theme(client):
    token = register(client).json()["token"]

    resp = client.patch("/users/me/preferences", json={"theme": "neon"}, headers=bearer(token))

    assert resp.status_code == 400
