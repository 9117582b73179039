from __future__ import annotations

import base64
import json
from functools import lru_cache
from typing import Any, Dict, Optional

import jwt
import requests
from fastapi import HTTPException, Request

from teamcal.core.settings import S


def _verification_enabled() -> bool:
    return bool(S.auth_issuer or S.auth_jwks_url)


def _jwks_url() -> str:
    return S.auth_jwks_url or f"{S.auth_issuer}/.well-known/jwks.json"


@lru_cache(maxsize=1)
def _jwks() -> Dict[str, Any]:
    resp = requests.get(_jwks_url(), timeout=10)
    resp.raise_for_status()
    return resp.json()


def _signing_key(kid: str) -> Any:
    for key in _jwks().get("keys", []):
        if key.get("kid") == kid:
            return jwt.algorithms.RSAAlgorithm.from_jwk(json.dumps(key))
    raise HTTPException(401, "Unknown signing key")


def verify_token(token: str) -> Dict[str, Any]:
    try:
        header = jwt.get_unverified_header(token)
    except jwt.PyJWTError as exc:
        raise HTTPException(401, "Invalid token header") from exc

    options = {"verify_aud": bool(S.auth_audience)}
    try:
        return jwt.decode(
            token,
            _signing_key(header.get("kid", "")),
            algorithms=["RS256"],
            audience=S.auth_audience or None,
            issuer=S.auth_issuer or None,
            options=options,
        )
    except jwt.ExpiredSignatureError as exc:
        raise HTTPException(401, "Token expired") from exc
    except jwt.PyJWTError as exc:
        raise HTTPException(401, "Invalid token") from exc


def unverified_sub(token: str) -> Optional[str]:
    if token.count(".") != 2:
        return None
    payload = token.split(".")[1]
    if not payload:
        return None
    try:
        data = json.loads(base64.urlsafe_b64decode(payload + "=" * (-len(payload) % 4)).decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        return None
    sub = data.get("sub") if isinstance(data, dict) else None
    return sub if isinstance(sub, str) and sub.strip() else None


def bearer_token(auth_header: Optional[str]) -> str:
    if not auth_header:
        raise HTTPException(401, "Missing Authorization header")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(401, "Invalid Authorization header")
    return token.strip()


async def get_authenticated_user_sub(request: Request) -> str:
    """Return the caller's user id.

    With an issuer or JWKS URL configured the bearer token must verify. Without
    one (local development) the ``X-User-Sub`` header, the token's ``sub``
    claim, or the raw bearer value is accepted.
    """
    if _verification_enabled():
        payload = verify_token(bearer_token(request.headers.get("authorization")))
        user_sub = payload.get("sub")
        if not user_sub:
            raise HTTPException(401, "Token missing subject")
        return str(user_sub)

    header_user = request.headers.get("x-user-sub")
    if header_user:
        return header_user
    token = bearer_token(request.headers.get("authorization"))
    return unverified_sub(token) or token
