from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
import time
import os
import logging
import traceback
from datetime import datetime

from .config.database import SessionLocal, init_db
from .config.settings import (
    ADMIN_EMAIL, ADMIN_PASSWORD,
    API_TITLE, API_VERSION, API_DESCRIPTION,
    CORS_ORIGINS, CORS_METHODS, CORS_HEADERS, CORS_MAX_AGE,
    IS_PRODUCTION, UPLOADS_DIR, UPLOADS_URL_PREFIX,
)
from .core.errors import validation_message
from .routers import (
    auth,
    courses,
    events,
    health,
    lectures,
    professors,
    projects,
    resources,
    upload,
    users,
)
from .services.user_service import UserService
from .utils.media import MediaError

logger = logging.getLogger(__name__)

app = FastAPI(
    title=API_TITLE,
    version=API_VERSION,
    description=API_DESCRIPTION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    swagger_ui_parameters={"defaultModelsExpandDepth": -1},  # Collapse models by default
)


# Custom OpenAPI schema to include the dashboard's token header
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
    )
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "Bearer": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": "Enter JWT token in the format: Bearer <token>"
        },
        "AuthToken": {
            "type": "apiKey",
            "in": "header",
            "name": "x-auth-token",
        },
    }
    openapi_schema["security"] = [{"Bearer": []}, {"AuthToken": []}]
    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=CORS_METHODS,
    allow_headers=CORS_HEADERS,
    max_age=CORS_MAX_AGE,
)


# Anything not turned into a response by an exception handler ends up here
@app.middleware("http")
async def error_handling_middleware(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception as e:
        error_id = f"ERR-{int(datetime.now().timestamp())}-{os.urandom(4).hex()}"
        logger.error(f"{error_id}: {type(e).__name__}: {str(e)} [{request.method} {request.url.path}]")
        logger.error(f"Traceback: {traceback.format_exc()}")

        error_detail = str(e) if not IS_PRODUCTION else "Internal server error"
        return JSONResponse(
            status_code=500,
            content={
                "message": "Internal server error",
                "error_id": error_id,
                "detail": error_detail,
                "timestamp": datetime.now().isoformat(),
                "path": str(request.url.path),
                "method": request.method
            }
        )


@app.middleware("http")
async def add_timing_middleware(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Every error body carries a human readable `message`"""
    if exc.status_code >= 500:
        logger.error(f"HTTPException: {exc.status_code} - {exc.detail}")
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        content={"message": message, "detail": exc.detail},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    message = validation_message(exc.errors())
    return JSONResponse(status_code=400, content={"message": message, "detail": message})


@app.exception_handler(MediaError)
async def media_exception_handler(request: Request, exc: MediaError):
    logger.warning(f"Rejected media on {request.url.path}: {str(exc)}")
    return JSONResponse(status_code=400, content={"message": str(exc), "detail": str(exc)})


for module in (auth, users, courses, lectures, professors, projects, events, resources, upload, health):
    app.include_router(module.router)

app.mount(UPLOADS_URL_PREFIX, StaticFiles(directory=UPLOADS_DIR), name="uploads")


@app.get("/")
async def root():
    return {"message": f"{API_TITLE} is running", "version": API_VERSION}


@app.on_event("startup")
async def startup_event():
    """Create tables and the default administrator"""
    init_db()
    db = SessionLocal()
    try:
        UserService(db).ensure_admin(ADMIN_EMAIL, ADMIN_PASSWORD)
    finally:
        db.close()
    logger.info(f"Application started successfully at {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"Application shutting down at {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
