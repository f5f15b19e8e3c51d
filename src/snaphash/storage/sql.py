# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2024-2026 The Birthmark Standard Foundation

"""
SQL document backend.

Stores each logical document as one row of the ``stored_documents`` table.
Any SQLAlchemy URL works; SQLite is the default for single-installation use.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Generator, Optional

from sqlalchemy import Column, DateTime, String, Text, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .base import DocumentBackend

logger = logging.getLogger(__name__)

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoredDocument(Base):
    """One persisted document (the record collection is a single row)."""

    __tablename__ = "stored_documents"

    key = Column(String(255), primary_key=True)
    body = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<StoredDocument(key={self.key}, size={len(self.body or '')})>"


class SqlDocumentBackend(DocumentBackend):
    """SQLAlchemy-backed document storage."""

    def __init__(self, database_url: str = "sqlite:///./data/snaphash.db", echo: bool = False):
        """
        Initialize the database connection and create tables if needed.

        Args:
            database_url: SQLAlchemy URL
                          Example: "sqlite:///./data/snaphash.db"
            echo: Log emitted SQL
        """
        engine_kwargs = {"echo": echo}
        if database_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                # One shared connection, otherwise every session sees an empty database
                engine_kwargs["poolclass"] = StaticPool

        self.engine = create_engine(database_url, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

        Base.metadata.create_all(bind=self.engine)

        logger.info(f"SQL storage initialized: {self.engine.url.render_as_string(hide_password=True)}")

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Transactional session; SQLAlchemy failures surface as OSError."""
        db = self.SessionLocal()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise OSError(f"database error: {e}") from e
        finally:
            db.close()

    def read(self, key: str) -> Optional[str]:
        with self.session() as db:
            row = db.get(StoredDocument, key)
            return row.body if row is not None else None

    def write(self, key: str, document: str) -> None:
        with self.session() as db:
            row = db.get(StoredDocument, key)
            if row is None:
                db.add(StoredDocument(key=key, body=document))
            else:
                row.body = document

    def close(self) -> None:
        self.engine.dispose()
