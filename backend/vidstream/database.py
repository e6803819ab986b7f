"""
Database connection and session management

SQLAlchemy 2.0 style. Holds the client's local durable state (watch
progress, recently watched list, active sync code) as key-value rows.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from vidstream.config import get_settings

settings = get_settings()

# SQLite connections are shared with the playback thread
_connect_args = (
    {"check_same_thread": False}
    if settings.state_database_url.startswith("sqlite")
    else {}
)

# Create database engine
engine = create_engine(
    settings.state_database_url,
    pool_pre_ping=True,
    echo=settings.debug,
    connect_args=_connect_args,
)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create base class for models
Base = declarative_base()


def init_db(bind=None):
    """Initialize database (create all tables)"""
    # Import all models to register them with Base
    from vidstream.models import KeyValueEntry  # noqa
    Base.metadata.create_all(bind=bind if bind is not None else engine)
