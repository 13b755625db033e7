import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from sharein.core.config import Settings
from sharein.core.database import create_engine, create_session_factory, init_models
from sharein.core.errors import ServiceError
from sharein.core.security import TokenIssuer
from sharein.core.storage import ObjectStorage
from sharein.monitoring.setup import setup_monitoring
from sharein.routes import auth, files
from sharein.tasks.cleanup import run_periodic_sweep
from sharein.utils.email import Mailer

logger = logging.getLogger("sharein")

_STATUS_CODES = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    413: "payload_too_large",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    state = app.state
    try:
        await init_models(state.engine)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    try:
        await run_in_threadpool(state.storage.initialize_bucket)
        logger.info("Object storage initialized")
    except Exception as e:
        logger.error(f"Object storage initialization failed: {e}")
        raise

    sweep_task = None
    if state.settings.CLEANUP_INTERVAL_SECONDS > 0:
        sweep_task = asyncio.create_task(run_periodic_sweep(state.settings, state.session_factory, state.storage))
        logger.info("Background sweep task started")

    yield

    if sweep_task is not None:
        sweep_task.cancel()
        try:
            await sweep_task
        except asyncio.CancelledError:
            logger.info("Sweep task cancelled")
    await state.engine.dispose()
    logger.info("Application shutdown complete")


def _error_body(message: str, code: str) -> dict:
    return {"message": message, "code": code}


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        if exc.status_code >= 500:
            logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, exc.code),
            headers=exc.headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(str(exc.detail), _STATUS_CODES.get(exc.status_code, "error")),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
            message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
        else:
            message = "Invalid request"
        return JSONResponse(status_code=400, content=_error_body(message, "bad_request"))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error: %s %s -> %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content=_error_body("Server error", "server_error"))


def create_app(
    settings: Settings | None = None,
    storage: ObjectStorage | None = None,
    mailer: Mailer | None = None,
) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(title="ShareIn", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = create_engine(settings)
    app.state.session_factory = create_session_factory(app.state.engine)
    app.state.token_issuer = TokenIssuer(settings)
    app.state.storage = storage or ObjectStorage(settings)
    app.state.mailer = mailer or Mailer(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(auth)
    app.include_router(files)

    setup_monitoring(app, expose_metrics=settings.METRICS_ENABLED)

    @app.get("/health")
    async def health_check():
        return {"status": "ok"}

    return app


def run():
    settings = Settings()
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(
        create_app(settings),
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        timeout_keep_alive=60,
        limit_concurrency=100,
    )


if __name__ == "__main__":
    run()
