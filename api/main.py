import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import asyncpg
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth.router import router as auth_router
from case_files.router import router as case_files_router
from core import config, db
from core.errors import AppError, status_for
from core.log import setup_logging
from dispositions.router import router as dispositions_router
from schools.router import router as schools_router
from teachers.router import router as teachers_router

setup_logging()
logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Initialize the DB pool once per process.
    await db.init_pool()
    try:
        yield
    finally:
        await db.close_pool()


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _failure(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message, **extra})


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("request_failed path=%s status=%s error=%s", request.url.path, status_code, exc.message)
    return _failure(status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return _failure(400, "Invalid request data.", errors=errors)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _failure(exc.status_code, str(exc.detail))


@app.exception_handler(asyncpg.PostgresError)
async def store_error_handler(request: Request, exc: asyncpg.PostgresError) -> JSONResponse:
    if isinstance(exc, asyncpg.ForeignKeyViolationError):
        status_code, message = 400, "Referenced record does not exist or is still in use."
    elif isinstance(exc, asyncpg.UniqueViolationError):
        status_code, message = 409, "A record with the same unique value already exists."
    else:
        status_code, message = 500, "Database error."
        logger.exception("store_error path=%s", request.url.path)

    extra = {} if config.is_production() else {"error": str(exc)}
    return _failure(status_code, message, **extra)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error path=%s", request.url.path)
    extra = {} if config.is_production() else {"error": str(exc)}
    return _failure(500, "Internal server error.", **extra)


app.include_router(auth_router, tags=["auth"])
app.include_router(teachers_router, tags=["teachers"])
app.include_router(schools_router, tags=["schools"])
app.include_router(case_files_router, tags=["case-files"])
app.include_router(dispositions_router, tags=["dispositions"])


def _health() -> dict:
    return {
        "status": "ok",
        "uptime": round(time.monotonic() - STARTED_AT, 3),
        "version": config.api_version(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": config.app_env(),
    }


@app.get("/health")
def health() -> dict:
    return _health()


@app.get("/api/health")
def api_health() -> dict:
    return _health()


@app.get("/")
def root() -> dict:
    return {"message": "records api", "version": config.api_version()}
