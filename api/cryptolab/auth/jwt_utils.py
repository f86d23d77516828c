from datetime import datetime, timedelta
from jose import jwt, JWTError
from jose.exceptions import ExpiredSignatureError
from fastapi import HTTPException, status
from typing import Optional, Dict
import logging

from ..config.settings import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM, JWT_SECRET_KEY

logger = logging.getLogger(__name__)

# ────────────────────────────────────────────────────────────────────
#  Helpers
# ────────────────────────────────────────────────────────────────────
def _credentials_exc(detail: str = "Could not validate credentials") -> HTTPException:
    logger.warning(f"Authentication failed: {detail}")
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )

# ────────────────────────────────────────────────────────────────────
#  Public API
# ────────────────────────────────────────────────────────────────────
def create_access_token(
    subject: str,
    extra_claims: Optional[Dict] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a new JWT access token.

    Args:
        subject: The user id
        extra_claims: Additional payload fields (email, role)
        expires_delta: Optional custom expiration time

    Returns:
        str: The encoded JWT token
    """
    if not subject:
        raise ValueError("subject must be provided")

    data = {"sub": str(subject)}
    if extra_claims:
        data.update(extra_claims)

    now = datetime.utcnow()
    expire = now + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    data.update({"exp": expire, "iat": now})

    return jwt.encode(data, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> Dict:
    """
    Verify and decode a JWT token.

    Raises:
        HTTPException: 401 if the token is malformed, tampered with or expired
    """
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise _credentials_exc("Token has expired")
    except JWTError as e:
        logger.warning(f"Token validation failed: {str(e)}")
        raise _credentials_exc("Token is not valid")

    if not all(key in payload for key in ["sub", "exp", "iat"]):
        raise _credentials_exc("Token missing required claims")

    return payload
