from __future__ import annotations
import hmac
from fastapi import Security
from fastapi.security import APIKeyHeader
from sheetsync.config import settings
from sheetsync.exceptions import AuthenticationError

_api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def require_api_key(
    api_key: str | None = Security(_api_key_header),
) -> str:
    """Operator commands and table reads all require the shared key."""
    if not api_key or not hmac.compare_digest(api_key.encode(), settings.API_KEY.encode()):
        raise AuthenticationError("Invalid or missing API key")
    return api_key
