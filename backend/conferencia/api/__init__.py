from fastapi import APIRouter

from conferencia.core import settings as app_settings
from .routes import comparacao, health

api_router = APIRouter(prefix=app_settings.api_v1_prefix)
api_router.include_router(comparacao.router, tags=["comparacao"])
api_router.include_router(health.router, tags=["health"])

__all__ = ["api_router"]
