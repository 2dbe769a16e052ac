from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine
from sqlalchemy.orm import sessionmaker

from memwatch.core.config import settings
from memwatch.core.logging import db_logger
from memwatch.schemas.operating_config import OperatingConfig


def build_database_url(cfg: OperatingConfig, driver: str = settings.DATABASE_DRIVER) -> URL:
    return URL.create(
        driver,
        username=cfg.user or None,
        password=cfg.password or None,
        host=cfg.host or None,
        port=int(cfg.port) if cfg.port else None,
        database=cfg.database or None,
    )


def create_db_engine(cfg: OperatingConfig) -> Engine:
    """
    Open the engine used for the process lifetime and verify it with a ping.

    Only the collection loop writes through it.
    """
    url = build_database_url(cfg)
    engine = create_engine(
        url,
        pool_size=2,
        max_overflow=2,
        # Set pool recycle to avoid stale connections
        pool_recycle=3600,
        pool_timeout=30,
        # Enable connection pre-ping to detect stale connections
        pool_pre_ping=True,
        echo=settings.DEBUG,
    )
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))

    db_logger.info(
        f"Database engine ready: {url.render_as_string(hide_password=True)}"
    )
    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def close_session(session):
    """Safely closes a session, handling any errors."""
    try:
        session.close()
        return True
    except Exception as e:
        db_logger.error(f"Error closing database session: {str(e)}")
        return False
