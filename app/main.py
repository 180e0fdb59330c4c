import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.errors import register_error_handlers
from app.api.routes.inventory import router as inventory_router
from app.api.routes.reports import router as reports_router
from app.core.config import settings
from app.core.logging import setup_logging
from app.db.database import SessionLocal, create_tables
from app.services.seed import seed_demo_data

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    setup_logging()
    create_tables()
    if settings.seed_demo_data:
        db = SessionLocal()
        try:
            seed_demo_data(db)
        finally:
            db.close()
    logger.info("%s started", settings.app_name)
    yield


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_error_handlers(app)
app.include_router(inventory_router)
app.include_router(reports_router)


@app.get("/health", tags=["System"])
def health_check():
    return {"status": "ok"}
