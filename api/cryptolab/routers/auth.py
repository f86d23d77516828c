from fastapi import APIRouter, HTTPException, Depends, status, Request
from sqlalchemy.orm import Session
import time
import logging

from ..auth.jwt_utils import create_access_token
from ..config.database import get_db
from ..config.settings import MAX_LOGIN_ATTEMPTS, RATE_LIMIT_WINDOW
from ..core.security import get_current_user
from ..models.user import User, UserLogin, UserLoginResponse, UserResponse
from ..services.user_service import UserService

logger = logging.getLogger(__name__)

# Rate limiting with in-memory storage, per process
login_attempts = {}

router = APIRouter(prefix="/api/auth", tags=["auth"])


def check_rate_limit(request: Request) -> None:
    """Check if the client has exceeded rate limits"""
    client_ip = request.client.host if request.client else "unknown"
    current_time = time.time()

    # Clean up old attempts
    if client_ip in login_attempts:
        login_attempts[client_ip] = {
            timestamp: count for timestamp, count in login_attempts[client_ip].items()
            if current_time - timestamp < RATE_LIMIT_WINDOW
        }

    # Count recent attempts
    recent_attempts = sum(login_attempts.get(client_ip, {}).values())

    if recent_attempts >= MAX_LOGIN_ATTEMPTS:
        logger.warning(f"Too many login attempts from {client_ip}")
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many login attempts. Please try again later."
        )

    # Record this attempt
    if client_ip not in login_attempts:
        login_attempts[client_ip] = {}
    login_attempts[client_ip][current_time] = login_attempts[client_ip].get(current_time, 0) + 1


def issue_token(user: User) -> str:
    return create_access_token(str(user.id), extra_claims={"email": user.email, "role": user.role})


@router.post("/login", response_model=UserLoginResponse)
async def login(request: Request, login_data: UserLogin, db: Session = Depends(get_db)):
    """Exchange e-mail and password for a JWT"""
    logger.info(f"Login attempt received: email={login_data.email}")
    check_rate_limit(request)

    user = UserService(db).authenticate_user(login_data.email, login_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"}
        )

    token = issue_token(user)
    logger.info(f"User {user.id} logged in")
    return {
        "token": token,
        "access_token": token,
        "token_type": "bearer",
        "user": UserResponse.model_validate(user),
    }


@router.get("/profile", response_model=UserResponse)
async def get_profile(current_user: User = Depends(get_current_user)):
    return current_user
