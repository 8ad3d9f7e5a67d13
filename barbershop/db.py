# barbershop/db.py

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from barbershop.config import get_settings


def make_engine(database_url: str, echo: bool = False) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False  # required for SQLite + FastAPI

    engine = create_engine(database_url, echo=echo, connect_args=connect_args)

    if database_url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def enable_sqlite_fk(dbapi_connection, _):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


settings = get_settings()

# Engine = connection to the database
engine = make_engine(settings.database_url, echo=settings.sql_echo)


def init_db(target: Engine = engine) -> None:
    # models must be imported so their tables are registered on the metadata
    from barbershop import models  # noqa: F401

    SQLModel.metadata.create_all(target)


