import os
from pathlib import Path
from dotenv import load_dotenv
import logging
import sys
from typing import List, Set
from urllib.parse import quote_plus

# Load environment variables
load_dotenv()

# Environment check
ENV = os.getenv("ENV", "development")
IS_PRODUCTION = ENV == "production"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO" if IS_PRODUCTION else "DEBUG")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format=LOG_FORMAT,
    handlers=[logging.StreamHandler(sys.stdout)]
)

# Reduce noise from database drivers and HTTP libraries
logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
logging.getLogger('sqlalchemy.pool').setLevel(logging.WARNING)
logging.getLogger('urllib3').setLevel(logging.WARNING)
logging.getLogger('httpx').setLevel(logging.WARNING)
logging.getLogger('httpcore').setLevel(logging.WARNING)
logging.getLogger('multipart').setLevel(logging.WARNING)
logging.getLogger('multipart.multipart').setLevel(logging.WARNING)
logging.getLogger('passlib').setLevel(logging.ERROR)
logging.getLogger('uvicorn').setLevel(logging.INFO)

logger = logging.getLogger(__name__)

# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# Security Settings
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
if not JWT_SECRET_KEY and IS_PRODUCTION:
    raise ValueError("JWT_SECRET_KEY must be set in production environment")
elif not JWT_SECRET_KEY:
    logger.warning("JWT_SECRET_KEY not found in environment variables. Using a default key for development only.")
    JWT_SECRET_KEY = "crypto-lab-dev-secret"  # Only for development

JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))  # 24 hours default

# Default administrator created on startup
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")
if not ADMIN_PASSWORD and IS_PRODUCTION:
    raise ValueError("ADMIN_PASSWORD must be set in production environment")
elif not ADMIN_PASSWORD:
    ADMIN_PASSWORD = "admin123"  # Only for development

# Database Configuration
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = int(os.getenv("DB_PORT", "3306"))
DB_USER = os.getenv("DB_USER", "root")
DB_PASSWORD = os.getenv("DB_PASSWORD", "")
DB_NAME = os.getenv("DB_NAME", "cryptography_resources")


def build_database_url() -> str:
    """Explicit DATABASE_URL wins, otherwise assemble a MySQL URL from the DB_* variables"""
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    return (
        f"mysql+pymysql://{quote_plus(DB_USER)}:{quote_plus(DB_PASSWORD)}"
        f"@{DB_HOST}:{DB_PORT}/{DB_NAME}?charset=utf8mb4"
    )


DATABASE_URL = build_database_url()

# Server
PORT = int(os.getenv("PORT", "5001"))

# Directory Configuration
UPLOADS_DIR = os.path.abspath(os.getenv("UPLOADS_DIR", os.path.join(BASE_DIR, "uploads")))
UPLOADS_URL_PREFIX = "/uploads"

try:
    os.makedirs(UPLOADS_DIR, exist_ok=True)
except Exception as e:
    logger.warning(f"Could not create directory {UPLOADS_DIR}: {e}")

# File Configuration
IMAGE_EXTENSIONS: Set[str] = {".jpg", ".jpeg", ".png", ".gif"}
DOCUMENT_EXTENSIONS: Set[str] = {".pdf", ".ppt", ".pptx", ".doc", ".docx"}
MAX_IMAGE_SIZE = int(os.getenv("MAX_IMAGE_SIZE", "5242880"))  # 5MB default
MAX_DOCUMENT_SIZE = int(os.getenv("MAX_DOCUMENT_SIZE", "20971520"))  # 20MB default
MAX_VIDEO_SIZE = int(os.getenv("MAX_VIDEO_SIZE", "52428800"))  # 50MB default

# API Settings
API_TITLE = "Cryptography Resource Manager API"
API_VERSION = "1.0.0"
API_DESCRIPTION = "Courses, lectures, professors, projects, events and resources of the cryptography research group"

# CORS Configuration
CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5001",
]


def clean_cors_origins(origins):
    """Clean and validate CORS origins, removing semicolons and invalid characters"""
    cleaned_origins = []
    for origin in origins:
        if isinstance(origin, str):
            cleaned = origin.strip().replace(';', '').replace(',', '').strip()
            if cleaned and (cleaned.startswith('http://') or cleaned.startswith('https://')):
                cleaned_origins.append(cleaned)
            else:
                logger.warning(f"Invalid CORS origin format: '{origin}' -> cleaned: '{cleaned}'")
        elif isinstance(origin, (list, tuple)):
            cleaned_origins.extend(clean_cors_origins(origin))

    # Remove duplicates while preserving order
    seen = set()
    unique_origins = []
    for origin in cleaned_origins:
        if origin not in seen:
            seen.add(origin)
            unique_origins.append(origin)
    return unique_origins


ALLOWED_ORIGINS: List[str] = clean_cors_origins(CORS_ORIGINS)

# Environment override (comma or semicolon separated), plus the dashboard URL
ENV_CORS_ORIGINS = os.getenv("CORS_ORIGINS")
if ENV_CORS_ORIGINS:
    env_origins = [o.strip() for o in ENV_CORS_ORIGINS.replace(';', ',').split(',') if o.strip()]
    env_origins = clean_cors_origins(env_origins)
    if env_origins:
        ALLOWED_ORIGINS = env_origins
        logger.info(f"CORS origins overridden from environment: {ALLOWED_ORIGINS}")
    else:
        logger.warning("Environment CORS_ORIGINS parsed but no valid origins found, using defaults")

CLIENT_URL = os.getenv("CLIENT_URL")
if CLIENT_URL:
    ALLOWED_ORIGINS = clean_cors_origins(ALLOWED_ORIGINS + [CLIENT_URL])

CORS_ORIGINS = ALLOWED_ORIGINS
CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Content-Type", "Authorization", "x-auth-token", "Origin", "Accept"]
CORS_MAX_AGE = int(os.getenv("CORS_MAX_AGE", "600"))

# Security Settings
RATE_LIMIT_WINDOW = int(os.getenv("RATE_LIMIT_WINDOW", "300"))
MAX_LOGIN_ATTEMPTS = int(os.getenv("MAX_LOGIN_ATTEMPTS", "5"))

logger.info(f"Starting application in {ENV} mode")
logger.debug(f"Uploads Directory: {UPLOADS_DIR}")
logger.debug(f"CORS Origins: {CORS_ORIGINS}")
