"""
Токен доступа Google по сервисному аккаунту.

JWT-утверждение (RS256) подписывается приватным ключом аккаунта и
обменивается на bearer-токен. Токен не кешируется: каждый вызов
адаптера получает новый.
"""
import json
import logging
import time
from dataclasses import dataclass
from typing import Optional

import httpx
from jose import jwt

from mealops.core.errors import IntegrationNotConfigured, UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
ASSERTION_LIFETIME = 3600


@dataclass(frozen=True)
class ServiceAccount:
    client_email: str
    private_key: str
    private_key_id: Optional[str] = None
    token_uri: str = DEFAULT_TOKEN_URI

    @classmethod
    def from_json(cls, raw: Optional[str]) -> "ServiceAccount":
        if not raw:
            raise IntegrationNotConfigured("Google service account is not configured")
        try:
            data = json.loads(raw)
            return cls(
                client_email=data["client_email"],
                private_key=data["private_key"],
                private_key_id=data.get("private_key_id"),
                token_uri=data.get("token_uri") or DEFAULT_TOKEN_URI,
            )
        except (ValueError, KeyError) as e:
            raise IntegrationNotConfigured(f"Invalid Google service account JSON: {e}")


def build_assertion(account: ServiceAccount, scope: str, issued_at: Optional[int] = None) -> str:
    iat = int(time.time()) if issued_at is None else issued_at
    claims = {
        "iss": account.client_email,
        "scope": scope,
        "aud": account.token_uri,
        "iat": iat,
        "exp": iat + ASSERTION_LIFETIME,
    }
    headers = {"typ": "JWT"}
    if account.private_key_id:
        headers["kid"] = account.private_key_id
    return jwt.encode(claims, account.private_key, algorithm="RS256", headers=headers)


async def mint_access_token(client: httpx.AsyncClient, account: ServiceAccount, scope: str) -> str:
    try:
        response = await client.post(
            account.token_uri,
            data={"grant_type": JWT_BEARER_GRANT, "assertion": build_assertion(account, scope)},
        )
    except httpx.HTTPError as e:
        logger.error(f"Google token endpoint unreachable: {e}")
        raise UpstreamError("google", f"Google token request failed: {e}") from e
    if response.is_error:
        logger.error(f"Google token exchange failed: {response.status_code}")
        raise UpstreamError("google", "Failed to obtain Google access token", response.status_code, response.text)
    return response.json()["access_token"]
