import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from gc_onboarding.api.admin_onboarding import router as admin_onboarding_router
from gc_onboarding.api.onboarding import router as onboarding_router
from gc_onboarding.config.settings import settings
from gc_onboarding.core.logger import setup_logger
from gc_onboarding.db.models import Base
from gc_onboarding.db.session import get_engine

setup_logger(level=settings.log_level, log_file=settings.log_file, json_logs=settings.log_json)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Ensure tables exist before serving requests.

    FastAPI requires async for the lifespan context manager even though
    nothing here awaits.
    """
    logger.info("Ensuring database tables exist")
    Base.metadata.create_all(bind=get_engine())
    logger.info("Database tables verified")

    await asyncio.sleep(0)
    yield
    logger.info("Shutting down onboarding service")


app = FastAPI(title="GC Onboarding", lifespan=lifespan)

app.include_router(onboarding_router)
app.include_router(admin_onboarding_router)


@app.get("/health")
def health():
    return {"status": "ok"}
