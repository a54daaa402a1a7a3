import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

import config
from errors import Internal, VfsError

logger = logging.getLogger(__name__)


def configure_sqlite(engine):
    """Let SQLAlchemy own BEGIN so savepoints nest inside the outer transaction."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


connect_args = {}
if config.DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(config.DATABASE_URL, echo=config.SQL_ECHO, connect_args=connect_args)
if engine.dialect.name == "sqlite":
    configure_sqlite(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db):
    """Run one operation as a single unit of work.

    Commits on success. Any failure rolls everything back; database faults
    are reported as Internal so callers only ever see VfsError kinds.
    """
    try:
        yield db
        db.commit()
    except VfsError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Backing store failure")
        raise Internal(str(exc)) from exc
    except Exception as exc:
        db.rollback()
        logger.exception("Unexpected failure")
        raise Internal(str(exc)) from exc
