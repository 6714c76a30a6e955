import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api.exceptions import register_exception_handlers
from .api.routes import router as accounts_router, transaction_router
from .core import db
from .core.config import get_settings

settings = get_settings()
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    db.init_db()
    logger.info("app.startup", extra={"app_name": settings.app_name})
    yield
    db.engine.dispose()

app = FastAPI(
    title=settings.app_name,
    description="Accounts with check-digit numbers and an atomic credit/debit ledger",
    lifespan=lifespan,
)

app.include_router(accounts_router)
app.include_router(transaction_router)
register_exception_handlers(app)

@app.get("/health")
def read_health() -> dict[str, str]:
    return {"status": "ok"}
