"""Bearer-token authentication for the local control service."""

import hmac
import logging
import secrets
import string

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from pal.files import write_private
from pal.settings import Settings

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)

TOKEN_PREFIX = "pal_"
TOKEN_CHARS = string.ascii_letters + string.digits
TOKEN_LENGTH = 32


def _generate_token() -> str:
    """Generate an API token with pal_ prefix."""
    random_part = "".join(secrets.choice(TOKEN_CHARS) for _ in range(TOKEN_LENGTH))
    return f"{TOKEN_PREFIX}{random_part}"


def load_or_create_token(settings: Settings) -> str:
    """Return the configured API token.

    PAL_API_TOKEN wins; otherwise the token in ``<home>/api-token`` is used,
    generated (owner-only) on first start.
    """
    if settings.api_token:
        return settings.api_token

    token_path = settings.api_token_path
    if token_path.exists():
        token = token_path.read_text(encoding="utf-8").strip()
        if token:
            return token

    token = _generate_token()
    write_private(token_path, token)
    logger.info(f"Generated API token in {token_path}")
    return token


async def require_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> str:
    """FastAPI dependency that requires the service's API token."""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Missing authentication token")

    token = credentials.credentials
    expected: str = request.app.state.api_token
    if not hmac.compare_digest(token.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Invalid authentication token")

    return token
