from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from obf.config import configure_logging, settings
from obf.errors import Unauthorized
from obf.routers.admin.routes import router as admin_router
from obf.routers.backpack.routes import router as backpack_router
from obf.routers.criteria.routes import router as criteria_router
from obf.routers.events.routes import router as events_router
from obf.routers.navigation.routes import router as navigation_router
from obf.routers.participants.routes import router as participants_router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION)

    app.include_router(events_router)
    app.include_router(criteria_router)
    app.include_router(participants_router)
    app.include_router(backpack_router)
    app.include_router(navigation_router)
    app.include_router(admin_router)

    @app.exception_handler(Unauthorized)
    async def unauthorized_handler(request: Request, exc: Unauthorized) -> JSONResponse:
        logger.info("Denied %s %s: %s", request.method, request.url.path, exc.capability)
        return JSONResponse({"detail": "Permission denied"}, status_code=403)

    @app.get("/health", name="main.health")
    def health():
        return {"status": "ok", "version": settings.APP_VERSION}

    return app


app = create_app()
