from datetime import datetime
from typing import Any, Dict, Optional
import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models.user import User, hash_password, verify_password
from . import audit_service

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by email"""
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID"""
        return self.db.get(User, user_id)

    def prepare_values(self, values: Dict[str, Any], existing: Optional[User]) -> None:
        """Check e-mail uniqueness and turn the plain password into a hash.

        On update a missing password keeps the stored hash.
        """
        query = self.db.query(User.id).filter(User.email == values["email"])
        if existing is not None:
            query = query.filter(User.id != existing.id)
        if query.first():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User with this email already exists")

        password = values.pop("password", None)
        if password:
            values["password_hash"] = hash_password(password)
        elif existing is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="password: Field required")

    def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """Return the active user with these credentials and stamp last_login, or None"""
        user = self.get_user_by_email(email)
        if not user:
            logger.warning(f"Login attempt for unknown email: {email}")
            return None

        if not verify_password(password, user.password_hash):
            logger.warning(f"Password verification failed for {email}")
            return None

        if not user.is_active:
            logger.warning(f"Login attempt for inactive user {email}")
            return None

        user.last_login = datetime.utcnow()
        self.db.commit()
        self.db.refresh(user)
        return user

    def ensure_admin(self, email: str, password: str) -> Optional[User]:
        """Create the default administrator unless a user with that e-mail exists"""
        if self.get_user_by_email(email):
            return None

        user = User(
            name="Admin",
            surname="User",
            email=email.strip().lower(),
            password_hash=hash_password(password),
            role="admin",
            is_active=True,
        )
        try:
            self.db.add(user)
            self.db.flush()
            audit_service.record(self.db, None, "CREATE", "user", user.id, details="Seeded default administrator")
            self.db.commit()
        except IntegrityError:
            # Another worker seeded it first
            self.db.rollback()
            return None

        logger.info(f"Created default admin user: {email}")
        return user
