# =======================================================================================
# keycustody/main.py - FastAPI Application Entry Point
# =======================================================================================
import logging
import uvicorn
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from . import __version__
from .config import config
from .api.dependencies import get_database
from .api.routes.dashboard import router as dashboard_router, live_router
from .api.routes.keys import router as keys_router
from .api.routes.preferences import router as preferences_router
from .api.routes.scan import router as scan_router
from .api.routes.scanner import router as scanner_router
from .database import DatabaseManager, db_manager
from .models.schemas import HealthResponse
from .workers.scan_worker import start_scan_worker, stop_scan_worker

logger = logging.getLogger(__name__)


def configure_logging():
    logging.basicConfig(
        level=logging.DEBUG if config.API_DEBUG else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_app(init_resources: bool = True) -> FastAPI:
    app = FastAPI(
        title="Key Custody API",
        version=__version__,
        description="Barcode based key sign-in/sign-out with a live custody dashboard",
        debug=config.API_DEBUG,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(scan_router, prefix="/api", tags=["scan"])
    app.include_router(keys_router, prefix="/api", tags=["keys"])
    app.include_router(dashboard_router, prefix="/api", tags=["dashboard"])
    app.include_router(scanner_router, prefix="/api", tags=["scanner"])
    app.include_router(preferences_router, prefix="/api", tags=["preferences"])
    app.include_router(live_router, tags=["live"])

    @app.get("/api/health", response_model=HealthResponse, tags=["health"])
    def api_health(db: DatabaseManager = Depends(get_database)):
        try:
            db.ping()
            return HealthResponse(status="ok", dataAvailable=True, message=None)
        except SQLAlchemyError as e:
            logger.error("Health check failed: %s", e)
            return HealthResponse(status="error", dataAvailable=False, message=str(e))

    if init_resources:
        @app.on_event("startup")
        async def startup_event():
            db_manager.create_schema()
            start_scan_worker()
            logger.info("Key Custody API started")

        @app.on_event("shutdown")
        async def shutdown_event():
            stop_scan_worker()
            db_manager.dispose()

    return app


app = create_app()


def run():
    """Console entry point: `key-custody`."""
    configure_logging()
    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)
