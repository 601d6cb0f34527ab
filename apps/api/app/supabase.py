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


@lru_cache
def _supabase_config() -> tuple[str, str]:
    url = os.getenv("SUPABASE_URL")
    anon_key = os.getenv("SUPABASE_ANON_KEY")
    if not url or not anon_key:
        raise RuntimeError("Missing SUPABASE_URL/SUPABASE_ANON_KEY for API access.")
    return url.rstrip("/"), anon_key


@lru_cache
def _jwks_url() -> str:
    base_url, _ = _supabase_config()
    return os.getenv("SUPABASE_JWKS_URL") or f"{base_url}/auth/v1/keys"


@lru_cache
def _jwks_client() -> PyJWKClient:
    return PyJWKClient(_jwks_url())


def _parse_bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing authorization token.")
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid authorization token.")
    return parts[1]


def parse_uuid(value: Optional[str], label: str) -> str:
    if not value:
        raise HTTPException(status_code=400, detail=f"Missing {label}.")
    try:
        return str(UUID(value))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid {label}.") from exc


def _describe_response(resp: httpx.Response) -> str:
    try:
        return resp.text or "<empty response>"
    except UnicodeDecodeError:
        return "<unable to read response>"


def _raise_supabase_error(
    resp: httpx.Response,
    action: str,
    *,
    object_label: Optional[str] = None,
) -> None:
    detail = _describe_response(resp)
    label = f" ({object_label})" if object_label else ""
    status = resp.status_code if resp.status_code >= 400 else 500
    raise HTTPException(
        status_code=status,
        detail=f"Supabase {action} failed{label}: status={resp.status_code}, body={detail}",
    )


async def _verify_access_token(token: str) -> Dict[str, Any]:
    audience = os.getenv("SUPABASE_JWT_AUD", "authenticated")
    options = {"verify_aud": bool(audience)}
    try:
        signing_key = _jwks_client().get_signing_key_from_jwt(token)
        return jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            audience=audience if audience else None,
            options=options,
        )
    except (jwt.PyJWTError, httpx.HTTPError) as exc:
        logger.debug("jwks verification failed, trying fallbacks", extra={"error": str(exc)})

    secret = os.getenv("SUPABASE_JWT_SECRET")
    if secret:
        try:
            return jwt.decode(
                token,
                secret,
                algorithms=["HS256"],
                audience=audience if audience else None,
                options=options,
            )
        except jwt.PyJWTError as exc:
            raise HTTPException(status_code=401, detail="Invalid or expired token.") from exc

    base_url, anon_key = _supabase_config()
    async with httpx.AsyncClient(timeout=10.0) as client:
        resp = await client.get(
            f"{base_url}/auth/v1/user",
            headers={
                "Authorization": f"Bearer {token}",
                "apikey": anon_key,
            },
        )
    if resp.status_code >= 400:
        raise HTTPException(status_code=401, detail="Invalid or expired token.")
    data = resp.json() if resp.content else {}
    user_id = data.get("id")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid or expired token.")
    return {"sub": user_id, "email": data.get("email")}


@dataclass
class SupabaseClient:
    base_url: str
    anon_key: str
    access_token: str

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    async def request(
        self,
        method: str,
        table: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        url = f"{self.base_url}/rest/v1/{table}"
        async with httpx.AsyncClient(timeout=15.0) as client:
            return await client.request(
                method,
                url,
                params=params,
                headers=self._headers(headers),
            )

    async def select(self, table: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        resp = await self.request("GET", table, params=params)
        if resp.status_code >= 400:
            _raise_supabase_error(resp, "select", object_label=f"table={table}")
        return resp.json()


@dataclass
class UserContext:
    user_id: str
    supabase: SupabaseClient


async def get_user_context(
    authorization: Optional[str] = Header(None),
) -> UserContext:
    token = _parse_bearer_token(authorization)
    payload = await _verify_access_token(token)
    user_id = parse_uuid(payload.get("sub"), "user_id")

    base_url, anon_key = _supabase_config()
    supabase = SupabaseClient(base_url=base_url, anon_key=anon_key, access_token=token)

    return UserContext(
        user_id=user_id,
        supabase=supabase,
    )
