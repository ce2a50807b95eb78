import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from inventory.api import maintenance, movements, products, reports
from inventory.config import settings
from inventory.database import Database
from inventory.exceptions import (
    ConnectionClosed,
    InsufficientStock,
    InventoryError,
    NotFound,
    StorageFailure,
    ValidationFailed,
)
from inventory.services.backup_service import BackupService
from inventory.services.ledger_service import LedgerService

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    NotFound: 404,
    InsufficientStock: 409,
    ValidationFailed: 422,
    ConnectionClosed: 503,
    StorageFailure: 500,
}


def _status_for(exc: InventoryError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 400


def create_app(database_url: str | None = None, backup_dir: str | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logging.basicConfig(level=settings.LOG_LEVEL)
        database = Database(database_url or settings.DATABASE_URL)
        app.state.database = database
        app.state.ledger = LedgerService(database)
        app.state.backups = BackupService(database, backup_dir or settings.BACKUP_DIR)
        yield
        database.close()

    app = FastAPI(
        title=f"{settings.APP_NAME} API",
        description="Products, stock movement ledger, listings and reporting",
        version="1.0.0",
        lifespan=lifespan,
    )

    @app.exception_handler(InventoryError)
    async def inventory_error_handler(request: Request, exc: InventoryError):
        status = _status_for(exc)
        if status >= 500:
            logger.error("%s on %s: %s", exc.code, request.url.path, exc.message)
        return JSONResponse(status_code=status, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Return JSON for unhandled exceptions so the client can parse the error."""
        logger.error("Unhandled error: %s\n%s", exc, traceback.format_exc())
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    app.include_router(products.router, prefix="/api/v1")
    app.include_router(movements.router, prefix="/api/v1")
    app.include_router(reports.router, prefix="/api/v1")
    app.include_router(maintenance.router, prefix="/api/v1")

    @app.get("/health")
    def health():
        database = getattr(app.state, "database", None)
        return {"status": "ok", "database": "open" if database and database.is_open else "closed"}

    return app


app = create_app()
