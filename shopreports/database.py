import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from shopreports.settings import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def make_engine(url: str, echo: bool = False) -> Engine:
    connect_args = {}
    kwargs = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        if url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise every session sees its own empty database
            kwargs["poolclass"] = StaticPool
    return create_engine(url, echo=echo, connect_args=connect_args, **kwargs)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = make_engine(settings.database_url, echo=settings.echo_sql)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def load_schema(bind: Engine = None) -> None:
    """Create the users, products, orders and order_details tables if missing."""
    # models must be imported so their tables are registered on Base.metadata
    from shopreports import models  # noqa: F401

    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    logger.info(f"Schema loaded on {bind.url.render_as_string(hide_password=True)}")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
