import asyncio
import time
from uuid import uuid4

import httpx
import jwt
import pytest
from fastapi import HTTPException

from babysense import supabase

SECRET = "test-secret-that-is-long-enough-for-hs256"


class BrokenJwks:
    def get_signing_key_from_jwt(self, token):
        raise jwt.PyJWKClientError("no keys")


@pytest.fixture
def shared_secret(monkeypatch):
    monkeypatch.setenv("SUPABASE_JWT_SECRET", SECRET)
    monkeypatch.setattr(supabase, "_jwks_client", lambda: BrokenJwks())
    supabase.supabase_settings.cache_clear()
    yield
    supabase.supabase_settings.cache_clear()


def _token(**claims):
    payload = {"aud": "authenticated", "exp": int(time.time()) + 3600, **claims}
    return jwt.encode(payload, SECRET, algorithm="HS256")


def test_bearer_token_parsing():
    assert supabase._bearer_token("Bearer abc") == "abc"
    for header in (None, "", "Token abc", "Bearer", "Bearer a b"):
        with pytest.raises(HTTPException) as excinfo:
            supabase._bearer_token(header)
        assert excinfo.value.status_code == 401


def test_parse_uuid_normalises_and_rejects():
    value = uuid4()
    assert supabase.parse_uuid(str(value).upper(), "baby_id") == str(value)
    with pytest.raises(HTTPException) as excinfo:
        supabase.parse_uuid("nope", "baby_id")
    assert excinfo.value.status_code == 400


def test_failed_response_keeps_upstream_status():
    resp = httpx.Response(409, text="duplicate key")

    with pytest.raises(HTTPException) as excinfo:
        supabase._check_response(resp, "insert", "reminders")

    assert excinfo.value.status_code == 409
    assert "duplicate key" in excinfo.value.detail


def test_successful_response_passes():
    supabase._check_response(httpx.Response(200, json=[]), "select", "babies")


def test_shared_secret_verification(shared_secret):
    user_id = str(uuid4())

    context = asyncio.run(supabase.get_user_context(f"Bearer {_token(sub=user_id, email='a@b.c')}"))

    assert context.user_id == user_id
    assert context.user_email == "a@b.c"
    assert context.supabase.access_token == context.access_token


def test_wrong_audience_rejected(shared_secret):
    token = _token(sub=str(uuid4()), aud="anon")

    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(supabase.verify_access_token(token))

    assert excinfo.value.status_code == 401
