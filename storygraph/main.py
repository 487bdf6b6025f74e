from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from storygraph.config import configure_logging, settings
from storygraph.modules.authoring.router import router as authoring_router
from storygraph.modules.packaging.router import router as packaging_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(_app: FastAPI):
    configure_logging()
    logger.info("Serving story data from %s (env=%s)", settings.data_csv_dir, settings.env)
    yield


app = FastAPI(title=settings.app_name, lifespan=_lifespan)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(authoring_router)
app.include_router(packaging_router)
