"""SQLite-backed key/value store."""
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy import String, Text, create_engine, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker

from quizcore.errors import PersistenceFailure


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


class KeyValueEntry(Base):
    """One stored value. Rows are replaced whole, never patched."""

    __tablename__ = "kv_entries"

    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


class SqlKeyValueStore:
    """Key/value store on any SQLAlchemy URL; each write is its own transaction."""

    def __init__(self, url: str):
        self.engine = create_engine(
            url,
            connect_args={"check_same_thread": False} if url.startswith("sqlite") else {},
        )
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as exc:
            raise PersistenceFailure("init", url, exc) from exc

    def get(self, key: str) -> str | None:
        try:
            with self.SessionLocal() as db:
                entry = db.get(KeyValueEntry, key)
                return entry.value if entry else None
        except SQLAlchemyError as exc:
            raise PersistenceFailure("read", key, exc) from exc

    def set(self, key: str, value: str) -> None:
        try:
            with self.SessionLocal() as db, db.begin():
                db.merge(
                    KeyValueEntry(
                        key=key, value=value, updated_at=datetime.now(timezone.utc)
                    )
                )
        except SQLAlchemyError as exc:
            raise PersistenceFailure("write", key, exc) from exc

    def remove(self, key: str) -> None:
        try:
            with self.SessionLocal() as db, db.begin():
                db.execute(delete(KeyValueEntry).where(KeyValueEntry.key == key))
        except SQLAlchemyError as exc:
            raise PersistenceFailure("remove", key, exc) from exc

    def keys(self) -> list[str]:
        try:
            with self.SessionLocal() as db:
                return list(db.execute(select(KeyValueEntry.key)).scalars().all())
        except SQLAlchemyError as exc:
            raise PersistenceFailure("list", "*", exc) from exc

    def dispose(self) -> None:
        self.engine.dispose()
