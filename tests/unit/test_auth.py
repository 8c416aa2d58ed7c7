"""Unit tests for JWT tokens and tenant access checks."""

import datetime as dt

import jwt
import pytest
from fastapi import HTTPException

from backoffice.security.auth import (
    CurrentUser,
    create_access_token,
    create_admin_token,
    decode_token,
    verify_tenant_access,
)
from backoffice.settings import settings


@pytest.mark.unit
class TestTokens:

    def test_access_token_claims(self):
        token = create_access_token("u-1", "manager", ["acme"], name="Morgan")
        payload = decode_token(f"Bearer {token}")

        assert payload["sub"] == "u-1"
        assert payload["role"] == "manager"
        assert payload["tenants"] == ["acme"]
        assert payload["name"] == "Morgan"

    def test_admin_token(self):
        payload = decode_token(f"Bearer {create_admin_token('root')}")

        assert payload["role"] == "admin"
        assert payload["tenants"] == ["*"]

    def test_unknown_role(self):
        with pytest.raises(ValueError):
            create_access_token("u-1", "owner")

    @pytest.mark.parametrize("header", [None, "", "Token abc", "Bearer not-a-jwt"])
    def test_invalid_headers(self, header):
        with pytest.raises(HTTPException) as exc_info:
            decode_token(header)
        assert exc_info.value.status_code == 401

    def test_expired_token(self):
        now = dt.datetime.now(dt.timezone.utc)
        token = jwt.encode(
            {"sub": "u-1", "role": "employee", "tenants": ["acme"], "exp": now - dt.timedelta(minutes=1)},
            settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
        )

        with pytest.raises(HTTPException) as exc_info:
            decode_token(f"Bearer {token}")
        assert exc_info.value.detail == "Token has expired"

    def test_wrong_secret(self):
        token = jwt.encode({"sub": "u-1"}, "some-other-secret", algorithm="HS256")

        with pytest.raises(HTTPException):
            decode_token(f"Bearer {token}")


@pytest.mark.unit
class TestTenantAccess:

    def test_listed_tenant(self):
        assert verify_tenant_access({"role": "employee", "tenants": ["acme"]}, "acme")

    def test_foreign_tenant(self):
        assert not verify_tenant_access({"role": "manager", "tenants": ["acme"]}, "globex")

    def test_wildcard(self):
        assert verify_tenant_access({"role": "employee", "tenants": ["*"]}, "globex")

    def test_admin_sees_all(self):
        assert verify_tenant_access({"role": "admin", "tenants": []}, "globex")

    def test_roles(self):
        user = CurrentUser(user_id="u-1", role="manager")

        assert user.has_role("admin", "manager")
        assert not user.is_admin
