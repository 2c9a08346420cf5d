from contextlib import asynccontextmanager
from typing import Dict, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from .api.routes import api_router
from .config import Settings, load_settings
from .db import build_db
from .errors import CallflowError
from .services.provider_registry import build_providers
from .services.telephony import ProviderName, TelephonyProvider

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
        ]
    )


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


def create_app(
    settings: Optional[Settings] = None,
    db=None,
    providers: Optional[Dict[ProviderName, TelephonyProvider]] = None,
) -> FastAPI:
    """Composition root: owns the store, the shared HTTP client and the provider adapters."""
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        http_client = httpx.AsyncClient(timeout=settings.provider_timeout_seconds)
        app.state.http_client = http_client
        if app.state.providers is None:
            app.state.providers = build_providers(settings, http_client)
        try:
            yield
        finally:
            await http_client.aclose()

    app = FastAPI(title="Callflow", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = db if db is not None else build_db(settings)
    app.state.providers = providers

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(CallflowError)
    async def handle_callflow_error(request: Request, exc: CallflowError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _validation_message(exc)})

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"error": str(exc) or "Internal server error"})

    app.include_router(api_router, prefix="/api")

    @app.get("/")
    async def root():
        return {"status": "ok"}

    return app


_settings = load_settings()
configure_logging(_settings.log_level)
app = create_app(_settings)
