"""Picks the storage backend once, at startup.

The relational backend is tried first. Any failure while connecting,
creating tables or seeding commits the process to the in-memory backend for
its whole lifetime; there is no retry.
"""
import logging
from typing import Optional

from . import database, models
from .seed import seed_sample_data
from .storage import DatabaseStorage, IStorage, MemStorage

logger = logging.getLogger(__name__)


class StorageInitError(RuntimeError):
    """Neither backend could be initialized."""


def connect_database(database_url: str, seed: bool = True) -> DatabaseStorage:
    engine = database.make_engine(database_url)
    try:
        database.check_connection(engine)
        models.Base.metadata.create_all(bind=engine)
        storage = DatabaseStorage(database.make_session_factory(engine))
        if seed:
            seed_sample_data(storage)
    except Exception:
        engine.dispose()
        raise
    return storage


def select_storage(database_url: Optional[str] = None, seed: bool = True) -> IStorage:
    if database_url:
        try:
            storage = connect_database(database_url, seed=seed)
        except Exception:
            logger.exception("Database connection error, using in-memory storage")
        else:
            logger.info("Using database storage")
            return storage
    else:
        logger.warning("DATABASE_URL is not set, using in-memory storage")

    try:
        storage = MemStorage(seed=seed)
    except Exception as exc:
        raise StorageInitError("No storage backend could be initialized") from exc
    logger.info("Using in-memory storage")
    return storage
