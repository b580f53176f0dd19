"""TaskTrack Core FastAPI application - no authentication, acting user asserted by id."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import schemas
from ..config import get_settings
from ..database import SessionLocal, get_db
from ..errors import ForbiddenError, NotFoundError, TaskTrackerError, ValidationError
from ..seed import create_schema, seed_users
from .routers import tasks, users

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("tasktrack-core")

# Domain error → HTTP status (InvalidTransitionError is a ValidationError)
ERROR_STATUS_CODES: dict[type[TaskTrackerError], int] = {
    ValidationError: 400,
    ForbiddenError: 403,
    NotFoundError: 404,
}


class TaskTrackCORSMiddleware(CORSMiddleware):
    """CORSMiddleware whose preflight answer is an empty 200."""

    def preflight_response(self, request_headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response
        headers = {
            key: value for key, value in response.headers.items()
            if key not in ("content-length", "content-type")
        }
        return Response(status_code=response.status_code, headers=headers)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.seed_users:
        create_schema()
        db = SessionLocal()
        try:
            seed_users(db)
        finally:
            db.close()
    logger.info("Starting TaskTrack Core API")
    yield


# Create FastAPI app
app = FastAPI(
    title="TaskTrack Core API",
    description="Task Management API - PM → Dev → QA workflow",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS middleware - any origin, answers preflight requests itself
app.add_middleware(
    TaskTrackCORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type"],
)

app.include_router(users.router, prefix="/api/users")
app.include_router(tasks.router, prefix="/api/tasks")


def status_code_for(exc: TaskTrackerError) -> int:
    """Map a domain error to its HTTP status code."""
    for error_type in type(exc).__mro__:
        if error_type in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[error_type]
    return 500


@app.exception_handler(TaskTrackerError)
async def task_tracker_error_handler(request: Request, exc: TaskTrackerError):
    return JSONResponse(status_code=status_code_for(exc), content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed requests as 400 with the offending field names."""
    missing = []
    invalid = []
    for error in exc.errors():
        field = str(error["loc"][-1]) if error.get("loc") else "body"
        if error.get("type") == "missing":
            missing.append(field)
        else:
            invalid.append(field)

    if missing:
        message = f"Missing required fields: {', '.join(missing)}"
    else:
        message = f"Invalid fields: {', '.join(invalid)}"
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.get("/")
def root():
    """Root endpoint with API index."""
    return {
        "message": "Task Management API",
        "endpoints": {
            "users": "/api/users",
            "tasks": "/api/tasks",
            "health": "/health",
        },
    }


@app.get("/health", response_model=schemas.HealthResponse)
def health_check(db: Session = Depends(get_db)):
    """Health check endpoint with a database round trip."""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {e}")
        return {"status": "degraded", "database": "disconnected"}
    return {"status": "ok", "database": "connected"}


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    uvicorn.run("tasktrack_core.api.main:app", host="0.0.0.0", port=8000)
