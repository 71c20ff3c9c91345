from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from .settings import settings

# Single source of truth for Base
Base = declarative_base()

_connect_args = {"check_same_thread": False} if settings.divtrack_db_url.startswith("sqlite") else {}

engine = create_engine(
    settings.divtrack_db_url,
    future=True,
    connect_args=_connect_args,
)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
)
