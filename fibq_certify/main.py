"""
FastAPI Application Entry Point
Main application setup and route registration
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from fibq_certify.config import settings
from fibq_certify.database import connect_db, database, disconnect_db
from fibq_certify.routes import admin, auth, public
from fibq_certify.services.activity_log_service import ActivityLogService
from fibq_certify.services.certificate_service import CertificateService
from fibq_certify.services.export_service import ExportService
from fibq_certify.services.record_store import (
    CertificateStore,
    DatabaseCertificateStore,
    DatabaseTemplateStore,
    TemplateStore,
)
from fibq_certify.services.template_service import TemplateCatalog

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


class NoCacheMiddleware(BaseHTTPMiddleware):
    """Prevent browsers from caching rendered certificate HTML"""
    async def dispatch(self, request: Request, call_next):
        response: Response = await call_next(request)
        ct = response.headers.get("content-type", "")
        if "text/html" in ct:
            response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
            response.headers["Pragma"] = "no-cache"
            response.headers["Expires"] = "0"
        return response


def create_app(
    template_store: TemplateStore = None,
    certificate_store: CertificateStore = None,
    export_service: ExportService = None,
    activity_log: ActivityLogService = None,
) -> FastAPI:
    """
    Build the application

    Stores and services default to the database-backed ones; passing them
    in replaces the database entirely, and startup then skips connecting.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        description="Certificate templates, issuance, verification and export",
        version="1.0.0",
        debug=settings.DEBUG
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure this in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(NoCacheMiddleware)

    uses_database = template_store is None or certificate_store is None
    app.state.template_catalog = TemplateCatalog(template_store or DatabaseTemplateStore(database))
    app.state.certificate_service = CertificateService(certificate_store or DatabaseCertificateStore(database))
    app.state.export_service = export_service or ExportService()
    app.state.activity_log = activity_log or ActivityLogService(database)

    # Photos, logos and backgrounds may be served from here
    app.mount("/static", StaticFiles(directory=settings.STATIC_DIR, check_dir=False), name="static")

    @app.on_event("startup")
    async def startup():
        if uses_database:
            await connect_db()
        logger.info("%s started in %s mode", settings.APP_NAME, settings.APP_ENV)

    @app.on_event("shutdown")
    async def shutdown():
        if uses_database:
            await disconnect_db()
        logger.info("%s stopped", settings.APP_NAME)

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": "1.0.0"
        }

    app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
    app.include_router(admin.router, prefix="/admin", tags=["Admin"])
    app.include_router(public.router, tags=["Public"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "fibq_certify.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
