import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api.exceptions import register_exception_handlers
from .api.middleware import register_request_id_middleware
from .api.routes import router as accounts_router, transfer_router
from .core.config import get_settings
from .core.db import init_db
from .core.logging_config import setup_logging

settings = get_settings()
setup_logging(settings.log_level, settings.environment)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("app.started", extra={"environment": settings.environment})
    yield
    logger.info("app.stopped")

app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.include_router(accounts_router)
app.include_router(transfer_router)
register_exception_handlers(app)
register_request_id_middleware(app)

@app.get("/health")
def read_health() -> dict[str, str]:
    return {"status": "ok"}
