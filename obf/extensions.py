from __future__ import annotations

from typing import Any

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
    create_engine,
    event,
    func,
    select,
)
from sqlalchemy.orm import (
    declarative_base,
    relationship,
    scoped_session,
    sessionmaker,
)
from sqlalchemy.pool import StaticPool

Base = declarative_base()


class Database:
    Model = Base
    Column = Column
    Integer = Integer
    String = String
    Text = Text
    Float = Float
    Boolean = Boolean
    DateTime = DateTime
    ForeignKey = ForeignKey
    Table = Table
    UniqueConstraint = UniqueConstraint
    Index = Index
    relationship = staticmethod(relationship)
    func = func
    select = staticmethod(select)

    def __init__(self, database_url: str):
        engine_kwargs: dict[str, Any] = {"future": True}
        if database_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                engine_kwargs["poolclass"] = StaticPool
        self.engine = create_engine(database_url, **engine_kwargs)
        if database_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
        self.SessionLocal = sessionmaker(bind=self.engine, autoflush=False, autocommit=False, future=True)
        self.session = scoped_session(self.SessionLocal)

    def remove_session(self) -> None:
        self.session.remove()

    def create_all(self) -> None:
        Base.metadata.create_all(self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(self.engine)

    def __getattr__(self, item: str) -> Any:
        return getattr(Base, item)


def _enable_sqlite_foreign_keys(dbapi_connection, _record) -> None:
    # SQLite ignores ON DELETE CASCADE unless the pragma is set per connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


from obf.config import settings

db = Database(settings.SQLALCHEMY_DATABASE_URI)
