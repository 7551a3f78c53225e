"""
Optional bearer token check for protocol calls.

Disabled unless REQUIRE_API_KEY is set, since test bed instances normally
reach the validator over a private network without credentials.
"""
import logging
import secrets
from typing import Optional

from fastapi import Security, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from eark_validator.core.config import settings

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _reject(status_code: int, detail: str) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"}
    )


async def verify_api_key(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme)
) -> bool:
    """
    Verify the Bearer token of a protocol call.

    Args:
        credentials: Bearer token credentials from Authorization header

    Returns:
        True if the call is allowed

    Raises:
        HTTPException: 401 if the token is missing, 403 if invalid, 500 if misconfigured
    """
    if not settings.REQUIRE_API_KEY:
        return True

    expected = settings.API_KEY
    if not expected:
        logger.error("REQUIRE_API_KEY is set but no API_KEY is configured; rejecting call")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="API authentication is not properly configured"
        )

    if credentials is None:
        raise _reject(
            status.HTTP_401_UNAUTHORIZED,
            "Bearer token is required. Provide Authorization: Bearer <token> header."
        )

    if not secrets.compare_digest(credentials.credentials.encode(), expected.encode()):
        logger.warning("Rejected protocol call with an invalid bearer token")
        raise _reject(status.HTTP_403_FORBIDDEN, "Invalid bearer token")

    return True
