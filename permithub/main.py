import os
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from .config import settings
from .db import Base, engine, SessionLocal
from .errors import Conflict, Forbidden, InvalidInput, NotFound, PermitHubError, Unauthenticated
from .logging import setup_logging, RequestIdMiddleware
from .auth.router import router as auth_router
from .routes.users import router as users_router
from .routes.teams import router as teams_router
from .routes.clients import router as clients_router
from .routes.appointments import router as appointments_router
from .services.bootstrap import has_admin, provision_admin
from .services.entity_store import EntityStore
from .storage.factory import build_blob_store
from .storage.provider import BlobStore


logger = structlog.get_logger(__name__)

STATUS_CODES = {
    Unauthenticated: 401,
    Forbidden: 403,
    NotFound: 404,
    InvalidInput: 400,
    Conflict: 409,
}


def status_code_for(exc: PermitHubError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_CODES:
            return STATUS_CODES[cls]
    return 500


def register_error_handlers(app: FastAPI) -> None:
    async def _domain_error(request: Request, exc: PermitHubError):
        code = status_code_for(exc)
        logger.info("request_failed", path=request.url.path, status=code, error=type(exc).__name__, detail=exc.detail)
        return JSONResponse(status_code=code, content={"detail": exc.detail})

    async def _validation_error(request: Request, exc: RequestValidationError):
        # Schema violations are invalid input like any other
        errors = [
            {"loc": list(e.get("loc", [])), "msg": e.get("msg", "")}
            for e in exc.errors()
        ]
        return JSONResponse(status_code=400, content={"detail": "Invalid input", "errors": errors})

    app.add_exception_handler(PermitHubError, _domain_error)
    app.add_exception_handler(RequestValidationError, _validation_error)


def create_app(blob_store: Optional[BlobStore] = None) -> FastAPI:
    setup_logging()
    app = FastAPI(title=settings.app_name)
    app.state.blob_store = blob_store if blob_store is not None else build_blob_store(settings)

    # Middlewares
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    register_error_handlers(app)

    # Routers
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(teams_router)
    app.include_router(clients_router)
    app.include_router(appointments_router)

    # Metrics
    if settings.metrics_enabled:
        from prometheus_fastapi_instrumentator import Instrumentator

        Instrumentator().instrument(app).expose(app)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.on_event("startup")
    def _startup():
        logger.info("startup")
        # Ensure local SQLite directory exists
        if settings.database_url.startswith("sqlite:///./"):
            os.makedirs("var", exist_ok=True)
        if settings.auto_create_db:
            Base.metadata.create_all(bind=engine)
            logger.info("tables_verified")
        if settings.bootstrap_admin_username and settings.bootstrap_admin_password:
            db = SessionLocal()
            try:
                store = EntityStore(db)
                if not has_admin(store):
                    provision_admin(store, settings.bootstrap_admin_username, settings.bootstrap_admin_password)
            finally:
                db.close()
        elif settings.auto_create_db:
            db = SessionLocal()
            try:
                if not has_admin(EntityStore(db)):
                    logger.warning("no_admin_provisioned", hint="run scripts/provision_admin.py")
            finally:
                db.close()

    return app


app = create_app()
