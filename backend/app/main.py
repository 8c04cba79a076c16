"""
MapNav API - application entry point.

Visit tracking, saved locations, routing and place search for the map
front-end. Every data endpoint answers in the `{success, data, error}`
envelope, including its failures.
"""
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from app.core.config import settings
from app.core.database import close_db, init_db
from app.core.logging import configure_logging, get_logger
from app.middleware import ErrorHandlerMiddleware, RequestIdMiddleware
from app.routers import (
    health_router,
    locations_router,
    route_router,
    search_router,
    visits_router,
)

configure_logging()
logger = get_logger(__name__)

API_ROUTERS = (visits_router, locations_router, route_router, search_router)


def init_sentry() -> None:
    if not settings.sentry_dsn:
        return
    import sentry_sdk

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        release=settings.app_version,
        traces_sample_rate=0.1,
    )
    logger.info("Sentry initialized")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info(
        "Starting application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )
    init_sentry()
    await init_db()

    yield

    logger.info("Shutting down application")
    await close_db()


def failure(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    logger.info("Invalid request", path=request.url.path, errors=len(exc.errors()))
    return failure(status.HTTP_400_BAD_REQUEST, "Invalid request")


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return failure(exc.status_code, str(exc.detail))


def create_app() -> FastAPI:
    """Build the FastAPI application with middleware, handlers and routers."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Navigation, saved places and visit analytics API",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # Last added runs outermost: CORS, then request ids, then crash handling
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)

    app.include_router(health_router)
    for router in API_ROUTERS:
        app.include_router(router, prefix="/api")

    logger.info("Application created", routes=len(app.routes))
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
