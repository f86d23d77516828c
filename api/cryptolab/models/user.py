import types
from datetime import datetime
from typing import List, Optional

import bcrypt
import logging
from passlib.context import CryptContext
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from ..config.database import Base
from ..core.permissions import DEFAULT_ROLE, ROLE_PERMISSIONS, permissions_for

# passlib still reads bcrypt.__about__, which bcrypt 4.1 removed
if not hasattr(bcrypt, "__about__"):
    bcrypt.__about__ = types.SimpleNamespace(__version__=getattr(bcrypt, "__version__", ""))

if hasattr(bcrypt, "_bcrypt") and not hasattr(bcrypt._bcrypt, "__about__"):
    bcrypt._bcrypt.__about__ = bcrypt.__about__

logger = logging.getLogger(__name__)

# Password hashing
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__truncate_error=False
)

MAX_PASSWORD_BYTES = 72


def _normalize_password(password: str) -> str:
    password_bytes = password.encode('utf-8')
    if len(password_bytes) > MAX_PASSWORD_BYTES:
        logger.warning("Password exceeds bcrypt 72-byte limit; truncating")
        return password_bytes[:MAX_PASSWORD_BYTES].decode('utf-8', 'ignore')
    return password


def hash_password(password: str) -> str:
    return pwd_context.hash(_normalize_password(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a password against its bcrypt hash; malformed hashes never match"""
    try:
        return pwd_context.verify(_normalize_password(plain_password), hashed_password)
    except ValueError as exc:
        logger.error(f"Password verification failed: {exc}")
        return False


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    surname = Column(String(100), nullable=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=DEFAULT_ROLE)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    @property
    def permissions(self) -> List[str]:
        return permissions_for(self.role)


class UserWrite(BaseModel):
    name: str = Field(..., min_length=1)
    surname: Optional[str] = None
    email: str = Field(..., min_length=3)
    # Required on create, optional on update (blank keeps the current hash)
    password: Optional[str] = None
    role: str = DEFAULT_ROLE
    is_active: bool = True

    class Config:
        str_strip_whitespace = True

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        if "@" not in value:
            raise ValueError("email must be a valid email address")
        return value.lower()

    @field_validator("role", mode="before")
    @classmethod
    def _known_role(cls, value):
        value = value or DEFAULT_ROLE
        if value not in ROLE_PERMISSIONS:
            raise ValueError(f"role must be one of: {', '.join(ROLE_PERMISSIONS)}")
        return value


class UserResponse(BaseModel):
    id: int
    name: str
    surname: Optional[str] = None
    email: str
    role: str
    is_active: bool
    permissions: List[str] = Field(default_factory=list)
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserLogin(BaseModel):
    email: str
    password: str


class UserLoginResponse(BaseModel):
    token: str
    access_token: str
    token_type: str
    user: UserResponse
