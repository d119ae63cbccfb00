"""FastAPI application: middleware, error handlers and routers."""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from db import dispose_engine
from services.access import PermissionDenied
from settings import cors_origins

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info("CRM API starting")
    yield
    await dispose_engine()
    logger.info("CRM API stopped")


app = FastAPI(
    title="CRM Dashboard API",
    version="0.1.0",
    description="Contacts, pipeline, calendar, notifications and reporting for the CRM dashboard",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error handlers: every failure is returned as {"error": ...}
# ---------------------------------------------------------------------------


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid payload", "detail": jsonable_errors(exc)},
    )


@app.exception_handler(PermissionDenied)
async def permission_error_handler(request: Request, exc: PermissionDenied) -> JSONResponse:
    return JSONResponse(status_code=403, content={"error": str(exc)})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": "Database error"})


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

from api.routes import (
    activity,
    appointments,
    config,
    contacts,
    dashboard,
    imports,
    notifications,
    pipeline,
    profile,
    users,
)

app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(activity.router, prefix="/api/activity", tags=["activity"])
app.include_router(imports.router, prefix="/api", tags=["import-export"])
app.include_router(dashboard.router, prefix="/api", tags=["dashboard"])
app.include_router(contacts.router, prefix="/api/contacts", tags=["contacts"])
app.include_router(pipeline.router, prefix="/api/pipeline", tags=["pipeline"])
app.include_router(appointments.router, prefix="/api/appointments", tags=["appointments"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["notifications"])
app.include_router(config.router, prefix="/api/config", tags=["config"])
app.include_router(profile.router, prefix="/api/profile", tags=["profile"])


@app.get("/health")
async def health():
    return {"status": "ok"}
