from datetime import datetime, timedelta

from routetodev.auth import routes as auth_routes
from routetodev.extensions import db
from routetodev.models import User


def _register(client, **overrides):
    data = {
        "name": "Ada",
        "email": "Ada@Example.com ",
        "password": "longenough",
        "confirm_password": "longenough",
    }
    data.update(overrides)
    return client.post("/auth/register", data=data)


def test_register_creates_unverified_user_and_sends_email(client, monkeypatch):
    sent = []
    monkeypatch.setattr(auth_routes, "send_verification_email", lambda email, token, name: sent.append(token) or True)

    resp = _register(client)
    assert resp.status_code == 302
    assert "message=check-email" in resp.headers["Location"]

    user = User.query.filter_by(email="ada@example.com").one()
    assert not user.email_verified
    assert user.password_hash and user.password_hash != "longenough"
    assert sent == [user.email_verification_token]
    assert len(user.email_verification_token) == 64


def test_register_reports_mail_failure(client, monkeypatch):
    monkeypatch.setattr(auth_routes, "send_verification_email", lambda *a: False)
    resp = _register(client)
    assert "error=email-failed" in resp.headers["Location"]


def test_register_validation(client, make_user):
    assert _register(client, email="").status_code == 400
    assert b"Passwords do not match" in _register(client, confirm_password="different1").data
    assert b"at least 8 characters" in _register(client, password="short", confirm_password="short").data

    make_user(email="ada@example.com")
    assert b"Email already in use" in _register(client).data


def test_register_sends_through_flask_mail(client, app):
    from routetodev.extensions import mail

    with mail.record_messages() as outbox:
        _register(client)

    assert len(outbox) == 1
    assert outbox[0].recipients == ["ada@example.com"]
    assert "/auth/verify-email?token=" in outbox[0].body


def test_verify_email(client, make_user):
    user = make_user(email="v@example.com", verified=False)
    user.email_verification_token = "tok123"
    user.email_verification_expires = datetime.utcnow() + timedelta(hours=1)
    db.session.commit()

    resp = client.get("/auth/verify-email?token=tok123")
    assert resp.status_code == 200
    assert b"Email verified successfully" in resp.data

    user = db.session.get(User, user.id)
    assert user.email_verified
    assert user.email_verification_token is None

    # single use
    assert client.get("/auth/verify-email?token=tok123").status_code == 400


def test_verify_email_expired_or_missing(client, make_user):
    user = make_user(email="v@example.com", verified=False)
    user.email_verification_token = "old"
    user.email_verification_expires = datetime.utcnow() - timedelta(minutes=1)
    db.session.commit()

    assert client.get("/auth/verify-email?token=old").status_code == 400
    assert client.get("/auth/verify-email").status_code == 400
    assert not db.session.get(User, user.id).email_verified


def test_login_success_and_next(client, make_user):
    make_user(email="a@example.com", password="secret-pass")
    resp = client.post("/auth/login", data={"email": "A@example.com", "password": "secret-pass", "next": "/me"})
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/me")


def test_login_rejects_offsite_next(client, make_user):
    make_user(email="a@example.com", password="secret-pass")
    resp = client.post(
        "/auth/login",
        data={"email": "a@example.com", "password": "secret-pass", "next": "https://evil.example/"},
    )
    assert resp.status_code == 302
    assert "evil.example" not in resp.headers["Location"]


def test_login_bad_credentials(client, make_user):
    make_user(email="a@example.com", password="secret-pass")
    resp = client.post("/auth/login", data={"email": "a@example.com", "password": "nope"})
    assert resp.status_code == 401
    assert b"Invalid credentials" in resp.data


def test_login_requires_verified_email(client, make_user):
    make_user(email="a@example.com", password="secret-pass", verified=False)
    resp = client.post("/auth/login", data={"email": "a@example.com", "password": "secret-pass"})
    assert resp.status_code == 401
    assert b"verify your email" in resp.data


def test_logout(client, login, user):
    login(user)
    assert client.get("/me").status_code == 200
    client.post("/auth/logout")
    assert client.get("/me").status_code == 302


def test_google_login_disabled_without_credentials(client):
    assert client.get("/auth/google/login").status_code == 404
