import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routers import functions, insights, integrations, ops, plan, tasks
from storage import db
from zenith_tasks.config import get_settings

settings = get_settings()

# Logging configuration
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(message)s"
)
logger = logging.getLogger(__name__)

CORS_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.use_database:
        await db.init_db_pool(settings.database_url)
        await db.init_schema()
    logger.info(f"Zenith Tasks started (llm_provider={settings.llm_provider})")
    yield
    await db.close_db_pool()


app = FastAPI(title="Zenith Tasks", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=CORS_HEADERS,
)

app.include_router(ops.router)
app.include_router(tasks.router)
app.include_router(plan.router)
app.include_router(insights.router)
app.include_router(integrations.router)
app.include_router(functions.router)
