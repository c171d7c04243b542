import logging
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from conferencia.api import api_router
from conferencia.core import settings
from conferencia.core.logging import configure_logging

logger = logging.getLogger(__name__)

# Carica variabili .env una sola volta all'import del modulo
load_dotenv(Path(__file__).parent.parent / ".env")


def _build_cors_origins() -> list[str]:
    """
    Normalizza e applica politiche di sicurezza CORS in modo centralizzato.
    """
    allowed_origins = settings.cors_origins or []

    if isinstance(allowed_origins, str):
        allowed_origins = [allowed_origins]

    # SECURITY: rimuovi qualsiasi "*"
    allowed_origins = [origin for origin in allowed_origins if origin != "*"]

    if not allowed_origins:
        allowed_origins = [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]

    return allowed_origins


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info(
        "%s avviato (margine default %s%%, diagnostica %s)",
        settings.app_name,
        settings.default_margin_percent,
        "attiva" if settings.diagnostics_enabled else "disattiva",
    )
    yield


def create_app() -> FastAPI:
    """
    Factory dell'app FastAPI.

    Espone i router di conferenza.api sotto ``settings.api_v1_prefix``; nessun
    database: ogni conferenza è calcolata e restituita nella stessa richiesta.
    """
    application = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    application.include_router(api_router)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=_build_cors_origins(),
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
        max_age=3600,
    )

    return application


app = create_app()
