import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from .models import Base

logger = logging.getLogger(__name__)

IN_MEMORY_URL = "sqlite://"


def _build_engine(url: str):
    if url in (IN_MEMORY_URL, "sqlite:///:memory:"):
        # One shared connection, otherwise every checkout sees an empty database
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if url.startswith("sqlite"):
        # Allow multithreaded test client usage
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True)


def create_tables(engine):
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")


def init_database(url: str = IN_MEMORY_URL):
    """Build an engine plus session factory with all tables in place.

    Each call returns an independent database, so tests can hold isolated
    stores side by side.
    """
    engine = _build_engine(url or IN_MEMORY_URL)
    create_tables(engine)
    session_factory = sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )
    logger.info(f"Database engine created for: {(url or IN_MEMORY_URL).split('://')[0]}://...")
    return engine, session_factory
