from sqlalchemy import create_engine, pool, event
from sqlalchemy.orm import declarative_base, sessionmaker
from moviereviews.config import get_settings
import logging

logger = logging.getLogger(__name__)

settings = get_settings()
DATABASE_URL = settings.database_url


def build_engine(database_url: str):
    """
    Create the SQLAlchemy engine for the given URL.

    SQLite (local development, tests) gets a thread-tolerant connection;
    server databases get a QueuePool sized from settings.
    """
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=settings.db_echo
        )

    # QueuePool maintains a pool of connections that can be reused
    return create_engine(
        database_url,
        poolclass=pool.QueuePool,
        pool_size=settings.db_pool_size,  # Number of connections to keep open
        max_overflow=settings.db_max_overflow,  # Max connections beyond pool_size
        pool_timeout=settings.db_pool_timeout,  # Seconds to wait for connection
        pool_recycle=settings.db_pool_recycle,  # Recycle connections after 1 hour
        pool_pre_ping=True,  # Test connections before using them
        echo=settings.db_echo
    )


engine = build_engine(DATABASE_URL)


@event.listens_for(engine, "connect")
def receive_connect(dbapi_conn, connection_record):
    """Log when a new connection is created"""
    logger.debug("Database connection established")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


# Dependency for FastAPI routes
def get_db():
    """
    Database session dependency for FastAPI.
    Automatically handles session creation and cleanup.

    Usage:
        @router.get("/endpoint")
        def endpoint(db: Session = Depends(get_db)):
            # Use db here
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create all tables that don't exist yet"""
    # Import models so they are registered on Base.metadata
    import moviereviews.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables verified")
