"""Password hashing, password policy and session-token round trips."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from core import clock
from core.config import Settings, settings
from core.errors import Forbidden, InvalidToken, ValidationError
from core.security import (
    TokenClaims,
    check_password_policy,
    create_access_token,
    decode_access_token,
    ensure_owner_or_admin,
    generate_invitation_token,
    hash_password,
    password_policy_error,
    verify_password,
)


class TestPasswords:

    def test_hash_verifies_and_is_salted(self):
        first = hash_password("Secret123")
        second = hash_password("Secret123")
        assert first != second
        assert first.startswith("$pbkdf2-sha256$")
        assert verify_password("Secret123", first)
        assert not verify_password("secret123", first)

    def test_verify_rejects_foreign_hash_format(self):
        assert verify_password("Secret123", "not-a-hash") is False

    @pytest.mark.parametrize(
        "password, message",
        [
            ("Ab1", "Password must be at least 8 characters"),
            ("lowercase1", "Password must contain at least one uppercase letter"),
            ("NoDigitsHere", "Password must contain at least one number"),
        ],
    )
    def test_policy_messages(self, password, message):
        assert password_policy_error(password) == message
        with pytest.raises(ValidationError) as exc:
            check_password_policy(password)
        assert exc.value.status_code == 400
        assert exc.value.detail == message

    def test_policy_accepts_strong_password(self):
        assert password_policy_error("Secret123") is None


class TestSessionTokens:

    def test_round_trip_carries_identity(self):
        token = create_access_token(7, "ana@example.com", "worker")
        assert decode_access_token(token) == TokenClaims(user_id=7, email="ana@example.com", role="worker")

    def test_payload_shape(self):
        token = create_access_token(7, "ana@example.com", "admin")
        payload = jwt.decode(token, settings.secret_key, algorithms=["HS256"])
        assert payload["sub"] == "7"
        assert payload["user_id"] == 7
        assert payload["role"] == "admin"
        assert payload["exp"] - payload["iat"] == 7 * 24 * 3600

    def test_still_valid_just_inside_seven_days(self, monkeypatch):
        issued = datetime.now(timezone.utc) - timedelta(days=7) + timedelta(minutes=1)
        monkeypatch.setattr(clock, "utcnow", lambda: issued)
        token = create_access_token(1, "a@example.com", "client")
        monkeypatch.undo()
        assert decode_access_token(token).user_id == 1

    def test_expired_after_seven_days(self, monkeypatch):
        issued = datetime.now(timezone.utc) - timedelta(days=7, minutes=1)
        monkeypatch.setattr(clock, "utcnow", lambda: issued)
        token = create_access_token(1, "a@example.com", "client")
        monkeypatch.undo()
        with pytest.raises(InvalidToken):
            decode_access_token(token)

    def test_tampered_token_is_rejected(self):
        token = create_access_token(1, "a@example.com", "client")
        header, payload, signature = token.split(".")
        forged = jwt.encode(
            {"user_id": 1, "email": "a@example.com", "role": "admin",
             "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            "some-other-secret-0123456789abcdef0123456789",
            algorithm="HS256",
        )
        with pytest.raises(InvalidToken):
            decode_access_token(forged)
        with pytest.raises(InvalidToken):
            decode_access_token(f"{header}.{payload}.{signature[::-1]}")

    def test_unknown_role_is_rejected(self):
        token = jwt.encode(
            {"user_id": 1, "email": "a@example.com", "role": "root",
             "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            settings.secret_key,
            algorithm="HS256",
        )
        with pytest.raises(InvalidToken):
            decode_access_token(token)

    def test_garbage_is_rejected(self):
        with pytest.raises(InvalidToken):
            decode_access_token("definitely.not.ajwt")


class TestGuards:

    def test_owner_or_admin(self):
        ensure_owner_or_admin(TokenClaims(3, "w@example.com", "worker"), 3)
        ensure_owner_or_admin(TokenClaims(1, "a@example.com", "admin"), 3)
        with pytest.raises(Forbidden):
            ensure_owner_or_admin(TokenClaims(4, "x@example.com", "worker"), 3)

    def test_invitation_tokens_are_unique_hex(self):
        tokens = {generate_invitation_token() for _ in range(50)}
        assert len(tokens) == 50
        assert all(len(t) == 64 and int(t, 16) >= 0 for t in tokens)


class TestSettings:

    def test_production_refuses_default_secret(self):
        with pytest.raises(ValueError):
            Settings(database_url="sqlite://", environment="production", secret_key="")

    def test_cookie_lifetime_matches_token_lifetime(self):
        assert settings.cookie_max_age == 7 * 24 * 3600
