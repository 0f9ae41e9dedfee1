"""Persistence layer for the three keyed records of a user.

Each user (identified by an opaque token) has up to three records:
``mortgageData``, ``timelineEvents`` and ``investments``. They are stored
independently as JSON text, so saving one never rewrites the others. It
defaults to SQLite for local development, but accepts any
SQLAlchemy-compatible URL (e.g. PostgreSQL/MySQL).
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Mapping

from sqlalchemy import Column, DateTime, String, Text, create_engine, select
from sqlalchemy.orm import declarative_base, sessionmaker

from mortgage_calc.snapshot import EVENTS_KEY, INVESTMENTS_KEY, MORTGAGE_KEY, RECORD_KEYS

logger = logging.getLogger(__name__)

Base = declarative_base()

DEFAULT_DATABASE_URL = "sqlite:///mortgage_state.sqlite3"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoredRecordModel(Base):
    __tablename__ = "stored_records"

    user_token = Column(String(64), primary_key=True)
    key = Column(String(32), primary_key=True)
    payload_json = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)


class UnknownRecordError(KeyError):
    """Raised for a record key other than the three supported ones."""


class StateStore:
    """Database-backed keyed record store."""

    def __init__(self, url: str) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)

    @staticmethod
    def _check_key(key: str) -> None:
        if key not in RECORD_KEYS:
            raise UnknownRecordError(key)

    def load(self, user_token: str, key: str, default: Any = None) -> Any:
        self._check_key(key)
        if not user_token:
            return default
        with self._session_factory() as session:
            row = session.get(StoredRecordModel, (user_token, key))
            if row is None:
                return default
            return json.loads(row.payload_json)

    def load_all(self, user_token: str) -> Dict[str, Any]:
        """Return all three records, with empty defaults for missing ones."""
        records: Dict[str, Any] = {MORTGAGE_KEY: None, EVENTS_KEY: [], INVESTMENTS_KEY: []}
        if not user_token:
            return records
        with self._session_factory() as session:
            rows = session.execute(
                select(StoredRecordModel).where(StoredRecordModel.user_token == user_token)
            ).scalars()
            for row in rows:
                records[row.key] = json.loads(row.payload_json)
        return records

    def save(self, user_token: str, key: str, value: Any) -> None:
        self._check_key(key)
        if not user_token:
            return
        with self._session_factory() as session:
            self._upsert(session, user_token, key, value)
            session.commit()

    def clear(self, user_token: str) -> None:
        if not user_token:
            return
        with self._session_factory() as session:
            session.execute(
                StoredRecordModel.__table__.delete().where(
                    StoredRecordModel.user_token == user_token
                )
            )
            session.commit()
        logger.info("Cleared stored records for user %s", user_token)

    def replace_all(self, user_token: str, records: Mapping[str, Any]) -> None:
        """Wholesale-replace a user's records in a single transaction.

        Records whose value is ``None`` are left absent. Either every record is
        written or, on failure, none is.
        """
        for key in records:
            self._check_key(key)
        if not user_token:
            return
        with self._session_factory() as session:
            with session.begin():
                session.execute(
                    StoredRecordModel.__table__.delete().where(
                        StoredRecordModel.user_token == user_token
                    )
                )
                for key, value in records.items():
                    if value is not None:
                        self._upsert(session, user_token, key, value)
        logger.info("Replaced stored records for user %s", user_token)

    @staticmethod
    def _upsert(session, user_token: str, key: str, value: Any) -> None:
        payload = json.dumps(value)
        row = session.get(StoredRecordModel, (user_token, key))
        if row is None:
            session.add(StoredRecordModel(user_token=user_token, key=key, payload_json=payload))
        else:
            row.payload_json = payload


def create_store_from_env(url: str | None) -> StateStore:
    return StateStore(url or DEFAULT_DATABASE_URL)
