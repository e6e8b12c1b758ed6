"""
Punto de entrada de la API de sincronizacion Firestore <-> base local.

La app arranca sin contexto y lo construye en el startup a partir de
Settings; scripts y tests pueden pasar uno ya armado a create_application.
"""
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings, get_cors_origins
from app.core.events import startup_handler, shutdown_handler
from app.api.v1.router import api_router
from app.api.middlewares.error_handler import ErrorHandlerMiddleware
from app.infrastructure.external.firestore_sync.sync_context import SyncContext
from app.shared.exceptions.base import AppException


def create_application(sync_context: Optional[SyncContext] = None) -> FastAPI:
    """
    Factory de la aplicacion FastAPI.

    Args:
        sync_context: Pipeline ya construido (stores inyectados). Si es None
            se crea en el startup con la configuracion del entorno.
    """
    application = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Sincronización Firestore <-> base local y reportes de transacciones",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    application.state.sync_context = sync_context

    application.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(settings.CORS_ORIGINS),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(ErrorHandlerMiddleware)

    application.add_event_handler("startup", startup_handler(application))
    application.add_event_handler("shutdown", shutdown_handler(application))

    application.include_router(api_router, prefix="/api")

    # Errores de sync / validacion / indices -> JSON con su status propio
    @application.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @application.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """Estado de la aplicacion y del pipeline de sincronizacion."""
        context = request.app.state.sync_context
        return {
            "status": "healthy" if context is not None else "starting",
            "app_name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "sync_ready": context is not None,
            "database": context.repository.engine.dialect.name if context is not None else None,
        }

    return application


app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
