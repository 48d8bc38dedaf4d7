# File: database/db.py
import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./paper_insights.db")


def build_engine(url: str = DATABASE_URL):
    if url.startswith("sqlite"):
        # FastAPI serves requests from a threadpool
        return create_engine(url, echo=False, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        echo=False,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_pre_ping=True,
    )


engine = build_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db(bind=None):
    from database.models.store_model import StoredValue  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
