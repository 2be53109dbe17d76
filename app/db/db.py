import logging
from contextlib import contextmanager

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine

from app.config import get_settings
from app.errors import ClaimsError, StorageFailure

logger = logging.getLogger(__name__)

settings = get_settings()


def enable_sqlite_foreign_keys(engine):
    """SQLite only enforces foreign keys (and ON DELETE actions) per connection."""

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


connect_args = {}
if settings.database_url.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(settings.database_url, connect_args=connect_args)

if settings.database_url.startswith("sqlite"):
    enable_sqlite_foreign_keys(engine)


def create_db_and_tables():
    # register every table on the metadata
    from app.models import audit_log, claim_request, found_item, lost_item, notification, user  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session():
    with Session(engine) as session:
        yield session


def session_factory() -> Session:
    return Session(engine)


@contextmanager
def atomic(session: Session):
    """Commit on success; roll back and map storage errors on failure."""
    try:
        yield session
        session.commit()
    except ClaimsError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Transaction rolled back")
        raise StorageFailure(error=e.__class__.__name__) from e
