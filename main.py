import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from config import Settings
from logger import setup_logging
from models.database import init_db
from models.errors import DomainError
from routes import health, users, teams, pull_request
from services.container import Container, build_container


logger = logging.getLogger(__name__)


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
    )


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    level = logging.ERROR if exc.is_transient else logging.INFO
    logger.log(level, "request error", extra={
        "code": exc.api_code,
        "kind": exc.kind.value,
        "status": exc.status_code,
        "path": request.url.path,
    })
    # Internal failures never leak their detail
    message = "internal server error" if exc.is_transient else exc.message
    return _error(exc.status_code, exc.api_code, message)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error(status.HTTP_400_BAD_REQUEST, "BAD_REQUEST", "invalid request body or parameters")


def create_app(settings: Optional[Settings] = None, container: Optional[Container] = None) -> FastAPI:
    settings = settings or (container.settings if container else Settings.from_env())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = getattr(app.state, "container", None) is None
        if owned:
            setup_logging(settings.log_level, settings.log_format)
            app.state.container = build_container(settings)
        await init_db(app.state.container.engine)
        logger.info("service started")

        yield

        if owned:
            await app.state.container.dispose()
        logger.info("service stopped")

    app = FastAPI(title="PR Reviewer Assignment Service", lifespan=lifespan)
    app.state.settings = settings
    if container is not None:
        app.state.container = container

    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("unhandled error", extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
            })
            response = _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", "internal server error")
        response.headers["X-Request-ID"] = request_id
        logger.info("request", extra={
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
        })
        return response

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(teams.router)
    app.include_router(pull_request.router)

    return app


# `uvicorn main:app`; the container is built on startup
app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host=app.state.settings.server_host, port=app.state.settings.server_port)
