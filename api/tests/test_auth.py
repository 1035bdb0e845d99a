"""
Authentication Tests
====================

Application token, bearer parsing, role checks and delegation to the hosted
auth service.
"""

import jwt
import pytest

from auth import dependencies, schemas, security, service
from core import auth_provider
from core.errors import (
    AppError,
    AuthError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
    status_for,
)


class TestTokens:

    def test_round_trip_carries_claims(self):
        token = security.build_access_token(user_id="u1", username="ana", role="admin")
        claims = security.decode_access_token(token)
        assert claims["userId"] == "u1"
        assert claims["username"] == "ana"
        assert claims["role"] == "admin"
        assert claims["exp"] - claims["iat"] == 7 * 24 * 60 * 60

    def test_unknown_role_falls_back_to_user(self):
        token = security.build_access_token(user_id="u1", username="ana", role="root")
        assert security.decode_access_token(token)["role"] == "user"

    def test_expired_token(self, monkeypatch):
        monkeypatch.setattr(security, "now_epoch_s", lambda: 1_000)
        token = security.build_access_token(user_id="u1", username="ana", role="user")
        with pytest.raises(security.AuthSecurityError, match="expired"):
            security.decode_access_token(token)

    def test_wrong_secret(self):
        token = jwt.encode({"userId": "u1"}, "other-secret", algorithm="HS256")
        with pytest.raises(security.AuthSecurityError, match="Invalid token"):
            security.decode_access_token(token)

    def test_token_without_subject(self):
        token = jwt.encode({"username": "ana"}, security.jwt_secret(), algorithm="HS256")
        with pytest.raises(security.AuthSecurityError):
            security.decode_access_token(token)


class TestBearerHeader:

    @pytest.mark.parametrize("header", [None, "", "Token abc", "Bearer", "Bearer   "])
    def test_rejects_malformed_headers(self, header):
        with pytest.raises(AuthError):
            dependencies._extract_bearer_token(header)

    def test_extracts_token(self):
        assert dependencies._extract_bearer_token("bearer abc.def") == "abc.def"

    @pytest.mark.asyncio
    async def test_current_user_from_claims(self, make_token):
        user = await service.get_user_from_access_token(make_token(role="admin", user_id="u9"))
        assert user == {"id": "u9", "username": "tester", "role": "admin"}

    @pytest.mark.asyncio
    async def test_refresh_failure_keeps_claims(self, monkeypatch, make_token):
        monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-key")

        async def unreachable(user_id):
            raise auth_provider.AuthProviderError("down")

        monkeypatch.setattr(auth_provider, "admin_get_user", unreachable)
        user = await service.get_user_from_access_token(make_token(user_id="u9"))
        assert user["id"] == "u9"


class TestRoles:

    def test_require_role(self):
        user = {"id": "u1", "role": "user"}
        assert service.require_role({"role": "admin"}, "admin") == {"role": "admin"}
        with pytest.raises(AuthorizationError):
            service.require_role(user, "admin")


class TestErrorStatus:

    @pytest.mark.parametrize(
        "error, expected",
        [
            (ValidationError("bad"), 400),
            (AuthError("no token"), 401),
            (AuthorizationError("admins only"), 403),
            (NotFoundError("missing"), 404),
            (ConflictError("taken"), 409),
            (AppError("boom"), 500),
        ],
    )
    def test_status_by_error_kind(self, error, expected):
        assert status_for(error) == expected

    def test_subclass_inherits_parent_status(self):
        class DuplicateNumber(ConflictError):
            pass

        assert status_for(DuplicateNumber("taken")) == 409

    def test_auth_service_error_keeps_upstream_status(self):
        assert status_for(auth_provider.AuthProviderError("Invalid login", status_code=400)) == 400
        assert status_for(auth_provider.AuthProviderError("down")) == 502


class TestLogin:

    def test_seed_alias_resolves_to_email(self, monkeypatch):
        monkeypatch.setenv("SEED_ADMIN_USERNAME", "admin")
        monkeypatch.setenv("SEED_ADMIN_EMAIL", "admin@escuelas.test")
        assert service.resolve_login_email("admin") == "admin@escuelas.test"
        assert service.resolve_login_email("ana@x.test") == "ana@x.test"

    @pytest.mark.asyncio
    async def test_rejected_credentials_are_401(self, monkeypatch):
        async def sign_in(*, email, password):
            raise auth_provider.AuthProviderError("Invalid login credentials", status_code=400)

        monkeypatch.setattr(auth_provider, "sign_in_with_password", sign_in)
        with pytest.raises(AuthError, match="Invalid credentials"):
            await service.login(schemas.LoginRequest(username="ana@x.test", password="secret1"))

    @pytest.mark.asyncio
    async def test_provider_outage_propagates(self, monkeypatch):
        async def sign_in(*, email, password):
            raise auth_provider.AuthProviderError("Failed to reach auth service")

        monkeypatch.setattr(auth_provider, "sign_in_with_password", sign_in)
        with pytest.raises(auth_provider.AuthProviderError):
            await service.login(schemas.LoginRequest(username="ana@x.test", password="secret1"))

    @pytest.mark.asyncio
    async def test_login_issues_application_token(self, monkeypatch):
        async def sign_in(*, email, password):
            return {
                "access_token": "upstream",
                "user": {"id": "u1", "email": email, "user_metadata": {"username": "ana", "role": "admin"}},
            }

        monkeypatch.setattr(auth_provider, "sign_in_with_password", sign_in)
        result = await service.login(schemas.LoginRequest(username="ana@x.test", password="secret1"))

        assert result["supabaseAccessToken"] == "upstream"
        assert result["user"]["role"] == "admin"
        assert security.decode_access_token(result["token"])["userId"] == "u1"


class TestRegister:

    @pytest.mark.parametrize(
        "payload",
        [
            {"username": "ana", "email": "ana@x.test", "password": ""},
            {"username": "ana", "email": "ana@x.test", "password": "12345"},
            {"username": "ana", "email": "ana@x.test", "password": "123456", "role": "root"},
        ],
    )
    def test_invalid_registration(self, payload):
        with pytest.raises(ValidationError):
            service.validate_registration(schemas.RegisterRequest(**payload))
