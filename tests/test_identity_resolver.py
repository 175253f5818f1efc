import asyncio

import pytest
from starlette.requests import Request

from catalog_api.core.auth.identity_store import InMemoryIdentityStore
from catalog_api.core.auth.provider import IdentityResolver, JwtConfig, extract_credential
from catalog_api.core.errors import AuthError, ConfigurationError

from conftest import TEST_SECRET, make_token


def _request(headers=None):
    raw = [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in (headers or {}).items()]
    return Request({"type": "http", "method": "GET", "path": "/", "query_string": b"", "headers": raw})


def _resolver(store=None):
    return IdentityResolver(JwtConfig(signing_key=TEST_SECRET), store)


def _resolve(resolver, headers=None):
    return asyncio.run(resolver.resolve(_request(headers)))


def test_missing_header_is_no_credential():
    with pytest.raises(AuthError) as ei:
        _resolve(_resolver())
    assert ei.value.kind == AuthError.NO_CREDENTIAL
    assert ei.value.status_code == 401


def test_expired_token_is_invalid_credential():
    token = make_token("u-admin", "admin", expires_in=-60)
    with pytest.raises(AuthError) as ei:
        _resolve(_resolver(), {"Authorization": f"Bearer {token}"})
    assert ei.value.kind == AuthError.INVALID_CREDENTIAL
    assert ei.value.kind != AuthError.NO_CREDENTIAL


def test_wrong_signature_is_invalid_credential():
    token = make_token("u-admin", "admin", secret="another-secret")
    with pytest.raises(AuthError) as ei:
        _resolve(_resolver(), {"Authorization": f"Bearer {token}"})
    assert ei.value.kind == AuthError.INVALID_CREDENTIAL


def test_non_bearer_scheme_is_invalid_credential():
    with pytest.raises(AuthError) as ei:
        _resolve(_resolver(), {"Authorization": "Basic dXNlcjpwYXNz"})
    assert ei.value.kind == AuthError.INVALID_CREDENTIAL


def test_token_claim_is_authoritative_without_identity_store():
    token = make_token("u-42", "seller")
    identity = _resolve(_resolver(), {"Authorization": f"Bearer {token}"})
    assert identity.id == "u-42"
    assert identity.role == "seller"
    assert identity.token_expiry.tzinfo is not None


def test_missing_role_claim_without_store_is_invalid():
    token = make_token("u-42")
    with pytest.raises(AuthError) as ei:
        _resolve(_resolver(), {"Authorization": f"Bearer {token}"})
    assert ei.value.kind == AuthError.INVALID_CREDENTIAL


def test_identity_store_role_wins_over_stale_claim():
    store = InMemoryIdentityStore({"u-1": "user"})
    token = make_token("u-1", "admin")
    identity = _resolve(_resolver(store), {"Authorization": f"Bearer {token}"})
    assert identity.role == "user"


def test_unknown_identity_is_invalid_credential():
    store = InMemoryIdentityStore({"u-1": "user"})
    token = make_token("ghost", "admin")
    with pytest.raises(AuthError) as ei:
        _resolve(_resolver(store), {"Authorization": f"Bearer {token}"})
    assert ei.value.kind == AuthError.INVALID_CREDENTIAL


def test_cookie_fallback():
    token = make_token("u-7", "user")
    identity = _resolve(_resolver(), {"Cookie": f"token={token}"})
    assert identity.id == "u-7"


def test_header_wins_over_cookie():
    req = _request({"Authorization": "Bearer from-header", "Cookie": "token=from-cookie"})
    assert extract_credential(req) == "from-header"


def test_cookie_fallback_can_be_disabled():
    req = _request({"Cookie": "token=abc"})
    with pytest.raises(AuthError) as ei:
        extract_credential(req, cookie_name=None)
    assert ei.value.kind == AuthError.NO_CREDENTIAL


def test_empty_signing_key_is_configuration_error():
    with pytest.raises(ConfigurationError):
        IdentityResolver(JwtConfig(signing_key=""))


def test_identity_store_rejects_unknown_roles():
    with pytest.raises(ConfigurationError):
        InMemoryIdentityStore({"u-1": "superuser"})


def test_token_errors_do_not_chain_jwt_exceptions():
    expired = make_token("u-admin", "admin", expires_in=-60)
    forged = make_token("u-admin", "admin", secret="another-secret")
    for token in (expired, forged):
        with pytest.raises(AuthError) as ei:
            _resolve(_resolver(), {"Authorization": f"Bearer {token}"})
        assert ei.value.__cause__ is None
        assert ei.value.__suppress_context__ is True
