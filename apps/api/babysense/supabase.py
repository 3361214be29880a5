"""Supabase PostgREST access on behalf of the signed-in parent."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, List, Optional
from uuid import UUID

import httpx
import jwt
from fastapi import Header, HTTPException
from jwt import PyJWKClient

logger = logging.getLogger(__name__)

INVALID_TOKEN = "Invalid or expired token."


@dataclass(frozen=True)
class SupabaseSettings:
    url: str
    anon_key: str
    jwks_url: str
    jwt_secret: Optional[str]
    audience: Optional[str]


@lru_cache
def supabase_settings() -> SupabaseSettings:
    url = os.getenv("SUPABASE_URL")
    anon_key = os.getenv("SUPABASE_ANON_KEY")
    if not url or not anon_key:
        raise RuntimeError("SUPABASE_URL and SUPABASE_ANON_KEY must be set.")
    url = url.rstrip("/")
    return SupabaseSettings(
        url=url,
        anon_key=anon_key,
        jwks_url=os.getenv("SUPABASE_JWKS_URL") or f"{url}/auth/v1/keys",
        jwt_secret=os.getenv("SUPABASE_JWT_SECRET") or None,
        audience=os.getenv("SUPABASE_JWT_AUD", "authenticated") or None,
    )


@lru_cache
def _jwks_client() -> PyJWKClient:
    return PyJWKClient(supabase_settings().jwks_url)


def parse_uuid(value: Optional[str], label: str) -> str:
    if not value:
        raise HTTPException(status_code=400, detail=f"Missing {label}.")
    try:
        return str(UUID(value))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid {label}.") from exc


def _bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing authorization token.")
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token or " " in token:
        raise HTTPException(status_code=401, detail="Invalid authorization token.")
    return token


def _decode(token: str, key: Any, algorithm: str, settings: SupabaseSettings) -> Dict[str, Any]:
    return jwt.decode(
        token,
        key,
        algorithms=[algorithm],
        audience=settings.audience,
        options={"verify_aud": settings.audience is not None},
    )


async def _fetch_auth_user(token: str, settings: SupabaseSettings) -> Dict[str, Any]:
    async with httpx.AsyncClient(timeout=10.0) as client:
        resp = await client.get(
            f"{settings.url}/auth/v1/user",
            headers={"Authorization": f"Bearer {token}", "apikey": settings.anon_key},
        )
    data = resp.json() if resp.status_code < 400 and resp.content else {}
    if not data.get("id"):
        raise HTTPException(status_code=401, detail=INVALID_TOKEN)
    return {"sub": data["id"], "email": data.get("email")}


async def verify_access_token(token: str) -> Dict[str, Any]:
    """Claims for ``token``: JWKS first, then the shared secret, then the auth API."""

    settings = supabase_settings()
    try:
        signing_key = _jwks_client().get_signing_key_from_jwt(token)
        return _decode(token, signing_key.key, "RS256", settings)
    except jwt.PyJWTError:
        logger.debug("JWKS verification failed, trying shared secret")

    if settings.jwt_secret:
        try:
            return _decode(token, settings.jwt_secret, "HS256", settings)
        except jwt.PyJWTError as exc:
            raise HTTPException(status_code=401, detail=INVALID_TOKEN) from exc

    return await _fetch_auth_user(token, settings)


def _check_response(resp: httpx.Response, action: str, table: str) -> None:
    if resp.status_code < 400:
        return
    try:
        body = resp.text or "<empty response>"
    except UnicodeDecodeError:
        body = "<unable to read response>"
    logger.warning(
        "supabase request failed",
        extra={"action": action, "table": table, "status": resp.status_code},
    )
    raise HTTPException(
        status_code=resp.status_code,
        detail=f"Supabase {action} on {table} failed: status={resp.status_code}, body={body}",
    )


@dataclass
class SupabaseClient:
    """Thin PostgREST client; row level security scopes every call to the token's user."""

    base_url: str
    anon_key: str
    access_token: str
    timeout: float = 15.0

    async def _send(
        self,
        method: str,
        table: str,
        action: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None,
        returning: bool = False,
    ) -> httpx.Response:
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if returning:
            headers["Prefer"] = "return=representation"
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.request(
                method,
                f"{self.base_url}/rest/v1/{table}",
                params=params,
                json=payload,
                headers=headers,
            )
        _check_response(resp, action, table)
        return resp

    async def select(self, table: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        resp = await self._send("GET", table, "select", params=params)
        return resp.json()

    async def insert(
        self,
        table: str,
        payload: Dict[str, Any],
        *,
        params: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        resp = await self._send("POST", table, "insert", params=params, payload=payload, returning=True)
        return resp.json() if resp.content else []

    async def update(self, table: str, payload: Dict[str, Any], params: Dict[str, Any]) -> List[Dict[str, Any]]:
        resp = await self._send("PATCH", table, "update", params=params, payload=payload, returning=True)
        return resp.json() if resp.content else []

    async def delete(self, table: str, params: Dict[str, Any]) -> None:
        await self._send("DELETE", table, "delete", params=params)


@dataclass
class UserContext:
    user_id: str
    user_email: Optional[str]
    access_token: str
    supabase: SupabaseClient


async def get_user_context(
    authorization: Optional[str] = Header(None),
) -> UserContext:
    token = _bearer_token(authorization)
    claims = await verify_access_token(token)
    settings = supabase_settings()
    return UserContext(
        user_id=parse_uuid(claims.get("sub"), "user_id"),
        user_email=claims.get("email"),
        access_token=token,
        supabase=SupabaseClient(base_url=settings.url, anon_key=settings.anon_key, access_token=token),
    )
