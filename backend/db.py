import logging

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from config import resolve_database_url

logger = logging.getLogger(__name__)


def build_engine(database_url: str | None) -> Engine | None:
    """Create the store engine, or None when no connection is configured."""
    if not database_url:
        logger.warning("DATABASE_URL missing in production; entry store is unavailable")
        return None

    # Log database driver for observability
    db_driver = database_url.split(":", 1)[0] if ":" in database_url else "unknown"
    logger.info(f"DB_URL_DRIVER={db_driver}")

    connect_args = {}
    if database_url.startswith("sqlite"):
        # Sync endpoints run on a thread pool
        connect_args["check_same_thread"] = False
    return create_engine(database_url, echo=False, connect_args=connect_args)


DATABASE_URL = resolve_database_url()
engine = build_engine(DATABASE_URL)


def create_db_and_tables(target: Engine | None = None):
    """Create database and tables if they don't exist.
    This is safe to call multiple times - it won't wipe existing data.
    """
    target = target if target is not None else engine
    if target is None:
        return
    SQLModel.metadata.create_all(target)
