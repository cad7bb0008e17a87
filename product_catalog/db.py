# product_catalog/db.py

"""
Database configuration and session management for the Product Catalog app.
"""
import os

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

# Read DB settings from environment variables, with defaults for local/dev
POSTGRES_USER = os.getenv("POSTGRES_USER", "postgres")
POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
POSTGRES_DB = os.getenv("POSTGRES_DB", "postgres")
POSTGRES_HOST = os.getenv("POSTGRES_HOST", "localhost")
POSTGRES_PORT = os.getenv("POSTGRES_PORT", "5432")

# A full DATABASE_URL wins over the composed PostgreSQL one (e.g. SQLite for tests)
DATABASE_URL = os.getenv("DATABASE_URL") or (
    "postgresql://"
    f"{POSTGRES_USER}:{POSTGRES_PASSWORD}@"
    f"{POSTGRES_HOST}:{POSTGRES_PORT}/{POSTGRES_DB}"
)

# SQLite connections are shared with the threadpool FastAPI runs sync routes in
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, pool_pre_ping=True, connect_args=connect_args)

# autocommit=False: every write is committed explicitly by the accessor.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """
    Dependency to provide a new database session for FastAPI endpoints.
    A session is created for each request and automatically closed after use.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
