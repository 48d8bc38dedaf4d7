# api/main.py
from dotenv import load_dotenv
import os

env = os.getenv("APP_ENV", "local")
load_dotenv(".env.local" if env == "local" else ".env")

from fastapi import FastAPI
from contextlib import asynccontextmanager
from typing import List
import logging
from database.db import init_db
from fastapi.middleware.cors import CORSMiddleware

from api.routers import analysis, assistant, health, library

LOCAL_ORIGINS = ["http://localhost:3000", "http://localhost:5173"]

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)
logger.info(f"🔧 Loaded environment: {env}")


def cors_origins(app_env: str) -> List[str]:
    if app_env == "local":
        return LOCAL_ORIGINS
    return [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "").split(",") if o.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Paper Insights starting, creating store tables")
    try:
        init_db()
    except Exception as e:
        logger.error(f"❌ Failed to initialize database: {e}", exc_info=True)
        raise
    yield
    logger.info("🛑 Paper Insights stopped")


app = FastAPI(
    title="Paper Insights API",
    version="1.0.0",
    description="Structured analysis of research papers: summary, findings, methodology, gaps and cross-paper connections.",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(env),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(analysis.router, prefix="/analysis", tags=["Analysis"])
app.include_router(library.router, prefix="/library", tags=["Library"])
app.include_router(assistant.router, prefix="/assistant", tags=["Reading Assistant"])
