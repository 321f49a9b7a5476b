"""
Authentication tests.

Verifies:
- Registration, login, logout and /me
- Password strength rules
- Session expiry, idle timeout and revocation
"""

from datetime import timedelta

import pytest

from stockbill.models import SessionToken
from stockbill.services import auth_service, session_service
from stockbill.services.auth_service import PasswordValidationError
from stockbill.validation import ConflictError

from conftest import TEST_PASSWORD, auth_headers, get_auth_token


class TestPasswords:

    @pytest.mark.parametrize("password", ["short1", "no digits here", "12345678"])
    def test_weak_passwords(self, password):
        with pytest.raises(PasswordValidationError):
            auth_service.validate_password_strength(password)

    def test_hash_and_verify(self):
        hashed = auth_service.hash_password(TEST_PASSWORD, rounds=4)
        assert hashed != TEST_PASSWORD
        assert auth_service.verify_password(TEST_PASSWORD, hashed)
        assert not auth_service.verify_password("Wrong123!", hashed)

    def test_malformed_hash(self):
        assert auth_service.verify_password(TEST_PASSWORD, "not-a-hash") is False


class TestUserService:

    def test_duplicate_email(self, db_session, staff_user):
        with pytest.raises(ConflictError):
            auth_service.create_user(
                db_session,
                name="Again",
                email="STAFF@example.com",
                password=TEST_PASSWORD,
                bcrypt_rounds=4,
            )

    def test_authenticate(self, db_session, staff_user):
        user = auth_service.authenticate(db_session, " Staff@Example.com ", TEST_PASSWORD)
        assert user.id == staff_user.id
        assert user.last_login_at is not None

    def test_inactive_user_cannot_authenticate(self, db_session, staff_user):
        staff_user.is_active = False
        db_session.commit()
        assert auth_service.authenticate(db_session, "staff@example.com", TEST_PASSWORD) is None


class TestSessions:

    def test_token_is_stored_hashed(self, db_session, staff_user):
        record, token = session_service.create_session(db_session, staff_user)
        assert record.token_hash == session_service.hash_token(token)
        assert record.token_hash != token

    def test_expired_session(self, db_session, staff_user):
        record, token = session_service.create_session(db_session, staff_user)
        record.expires_at = record.created_at - timedelta(seconds=1)
        db_session.commit()
        assert session_service.validate_session(db_session, token) is None

    def test_idle_session(self, db_session, staff_user):
        record, token = session_service.create_session(db_session, staff_user)
        record.last_used_at = record.last_used_at - timedelta(hours=3)
        db_session.commit()
        assert session_service.validate_session(db_session, token) is None

    def test_revoked_session(self, db_session, staff_user):
        _, token = session_service.create_session(db_session, staff_user)
        assert session_service.revoke_session(db_session, token) is True
        assert session_service.validate_session(db_session, token) is None
        assert session_service.revoke_session(db_session, token) is False


class TestAuthRoutes:

    def test_register(self, client, db_session):
        resp = client.post("/api/auth/register", json={
            "name": "New Clerk",
            "email": "Clerk@Example.com",
            "password": TEST_PASSWORD,
        })
        assert resp.status_code == 201
        assert resp.json["user"]["email"] == "clerk@example.com"
        assert resp.json["user"]["role"] == "staff"

        me = client.get("/api/auth/me", headers=auth_headers(resp.json["token"]))
        assert me.status_code == 200
        assert me.json["user"]["email"] == "clerk@example.com"

    def test_register_weak_password(self, client, db_session):
        resp = client.post("/api/auth/register", json={
            "name": "New Clerk",
            "email": "clerk@example.com",
            "password": "password",
        })
        assert resp.status_code == 400

    def test_register_duplicate(self, client, staff_user):
        resp = client.post("/api/auth/register", json={
            "name": "Copy",
            "email": "staff@example.com",
            "password": TEST_PASSWORD,
        })
        assert resp.status_code == 409

    def test_register_cannot_choose_role(self, client, db_session):
        resp = client.post("/api/auth/register", json={
            "name": "Sneaky",
            "email": "sneaky@example.com",
            "password": TEST_PASSWORD,
            "role": "admin",
        })
        assert resp.status_code == 400

    def test_login_and_logout(self, client, db_session, staff_user):
        token = get_auth_token(client, "staff@example.com", TEST_PASSWORD)
        assert token

        resp = client.post("/api/auth/logout", headers=auth_headers(token))
        assert resp.status_code == 200

        resp = client.get("/api/auth/me", headers=auth_headers(token))
        assert resp.status_code == 401
        assert db_session.query(SessionToken).filter_by(is_revoked=True).count() == 1

    def test_login_bad_password(self, client, staff_user):
        resp = client.post("/api/auth/login", json={"email": "staff@example.com", "password": "Wrong123!"})
        assert resp.status_code == 401

    def test_login_missing_fields(self, client, db_session):
        resp = client.post("/api/auth/login", json={"email": "staff@example.com"})
        assert resp.status_code == 400

    @pytest.mark.parametrize("body", [
        ["staff@example.com", TEST_PASSWORD],
        "staff@example.com",
        {"email": ["staff@example.com"], "password": TEST_PASSWORD},
    ])
    def test_login_body_must_be_object(self, client, staff_user, body):
        resp = client.post("/api/auth/login", json=body)
        assert resp.status_code == 400
        assert "error" in resp.json
