from sqlmodel import SQLModel, create_engine
from sqlalchemy.engine import Engine
from studywithme.core.config import settings
import logging

logger = logging.getLogger(__name__)


def build_engine(db_url: str) -> Engine:
    """Create a SQLAlchemy engine for the snapshot store."""
    # Ensure the URL uses postgresql:// (not postgres://) for SQLAlchemy
    if db_url.startswith("postgres://"):
        db_url = db_url.replace("postgres://", "postgresql://", 1)

    logger.info(f"Connecting to database: {db_url[:20]}...")  # Log partial URL for debugging

    if db_url.startswith("sqlite"):
        # Request handlers and the startup hook may run on different threads
        return create_engine(
            db_url,
            echo=False,
            connect_args={"check_same_thread": False},
        )

    return create_engine(
        db_url,
        echo=False,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=5,
        max_overflow=10,
    )


engine = build_engine(settings.database_url)


def init_db(bind: Engine = None):
    """Initialize database tables."""
    # Import models to register them with SQLModel
    from studywithme.models import Snapshot  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)
