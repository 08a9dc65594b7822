"""
Ledger Share - FastAPI Application.

This is the entry point for the application.
All routers are registered here.
"""

from fastapi import FastAPI

from ledger_share.config import get_settings
from ledger_share.log_config import setup_logging
from ledger_share.api.health import router as health_router
from ledger_share.api.ledger import router as ledger_router
from ledger_share.api.sharing import router as sharing_router
from ledger_share.api.snapshots import router as snapshots_router
from ledger_share.api.sync import router as sync_router

settings = get_settings()
setup_logging(settings.LOG_LEVEL)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Peer-to-peer sharing and sync of personal expense ledgers",
)

# Register routers
app.include_router(health_router)
app.include_router(ledger_router)
app.include_router(sharing_router)
app.include_router(snapshots_router)
app.include_router(sync_router)
