import logging
import os
import sys
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_SESSION_SECRET = "super-secret-wfg"


class Settings(BaseSettings):
    DATABASE_URL: Optional[str] = None
    SESSION_SECRET: str = DEFAULT_SESSION_SECRET
    SESSION_BACKEND: str = "memory"  # memory or redis
    REDIS_URL: str = "redis://localhost:6379/0"
    SESSION_MAX_AGE_SECONDS: int = 86400
    SESSION_COOKIE_NAME: str = "session"
    COOKIE_SECURE: bool = False
    BCRYPT_ROUNDS: int = 12
    STATIC_DIR: str = os.path.join(os.path.dirname(os.path.abspath(__file__)), "public")
    LOG_LEVEL: str = "INFO"
    PORT: int = 3000


settings = Settings()


def require_database_url(settings: Settings) -> str:
    """Exit the process when no database URL is configured."""
    if not settings.DATABASE_URL:
        logger.critical("DATABASE_URL is not set, refusing to start")
        sys.exit(1)
    return settings.DATABASE_URL


DATABASE_URL = require_database_url(settings)

if DATABASE_URL.startswith("sqlite"):
    # Local and test runs share one in-memory connection across threads
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    engine = create_engine(
        DATABASE_URL,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=300,  # Supabase pooler drops idle connections
        pool_pre_ping=True
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# Dependency to get DB session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
