from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from reqflow.core.config import get_settings

settings = get_settings()


def build_engine(database_url: str):
    """Create an engine for ``database_url``."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
