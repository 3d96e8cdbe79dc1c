"""
Result persistence and history queries.

Results are stored in a single ``speedtest_results`` table through
SQLAlchemy, so any SQLAlchemy URL works (SQLite by default, MySQL or
PostgreSQL given the matching driver).  The engine is owned by a
``ResultStore`` instance: opened explicitly, closed explicitly, never
shared through module globals.
"""
from __future__ import annotations

import logging
import math
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import JSON, DateTime, Float, Integer, String, create_engine, desc, func
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from .constants import RESULT_PRECISION
from .exceptions import ResultValidationError
from .models import HistoryRecord, ServerStats, SpeedTestResult

LOGGER = logging.getLogger(__name__)

_NUMERIC_FIELDS = ("download_speed", "upload_speed", "ping", "jitter")


# ---------------------------------------------------------------------------
# ORM model
# ---------------------------------------------------------------------------

class Base(DeclarativeBase):
    pass


class SpeedtestRow(Base):
    __tablename__ = "speedtest_results"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    server_name: Mapped[str] = mapped_column(String(255), index=True)
    server_url: Mapped[str] = mapped_column(String(255), index=True)
    test_timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    download_speed: Mapped[Optional[float]] = mapped_column(Float)
    upload_speed: Mapped[Optional[float]] = mapped_column(Float)
    ping: Mapped[Optional[float]] = mapped_column(Float)
    jitter: Mapped[Optional[float]] = mapped_column(Float)
    server_info: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    errors: Mapped[List[str]] = mapped_column(JSON, default=list)
    notes: Mapped[List[str]] = mapped_column(JSON, default=list)

    def to_record(self) -> HistoryRecord:
        ts = self.test_timestamp
        if ts.tzinfo is None:
            # SQLite drops the offset; values are always written in UTC.
            ts = ts.replace(tzinfo=timezone.utc)
        return HistoryRecord(
            id=self.id,
            test_timestamp=ts,
            server_name=self.server_name,
            server_url=self.server_url,
            download_speed=self.download_speed,
            upload_speed=self.upload_speed,
            ping=self.ping,
            jitter=self.jitter,
            server_info=dict(self.server_info or {}),
            errors=tuple(self.errors or ()),
            notes=tuple(self.notes or ()),
        )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def validate_result(result: SpeedTestResult) -> List[str]:
    """Return every problem with *result*; an empty list means valid.

    Absent measurements (``None``) are allowed.  A present measurement must
    be a finite number >= 0.
    """
    problems: List[str] = []

    for name in ("server_name", "server_url"):
        value = getattr(result, name, None)
        if value is None or (isinstance(value, str) and not value.strip()):
            problems.append(f"{name} is required")
        elif not isinstance(value, str):
            problems.append(f"{name} must be a string")

    for name in _NUMERIC_FIELDS:
        value = getattr(result, name, None)
        if value is None:
            continue
        if (
            isinstance(value, bool)
            or not isinstance(value, (int, float))
            or not math.isfinite(value)
            or value < 0
        ):
            problems.append(f"{name} must be a finite non-negative number")

    if result.server_info is not None and not isinstance(result.server_info, dict):
        problems.append("server_info must be an object")

    return problems


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class ResultStore:
    """SQLAlchemy-backed sink for ``SpeedTestResult`` records."""

    def __init__(self, database_url: str) -> None:
        self.database_url = database_url
        self._engine: Optional[Engine] = None
        self._Session: Optional[sessionmaker] = None

    # -- Lifecycle ----------------------------------------------------------

    def open(self) -> ResultStore:
        if self._engine is None:
            self._engine = create_engine(self.database_url, future=True)
            Base.metadata.create_all(self._engine)
            self._Session = sessionmaker(
                bind=self._engine, future=True, expire_on_commit=False
            )
            LOGGER.debug("Opened result store at %s", self._engine.url)
        return self

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._Session = None
            LOGGER.debug("Closed result store")

    def __enter__(self) -> ResultStore:
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        self.close()

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @contextmanager
    def _session(self) -> Iterator[Session]:
        if self._Session is None:
            raise RuntimeError("ResultStore is not open; call open() first")
        session = self._Session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # -- Writes -------------------------------------------------------------

    def save(self, result: SpeedTestResult) -> HistoryRecord:
        """Validate and store *result*; returns it with ``id`` and timestamp."""
        problems = validate_result(result)
        if problems:
            raise ResultValidationError(problems)

        with self._session() as session:
            row = SpeedtestRow(
                server_name=result.server_name,
                server_url=result.server_url,
                test_timestamp=datetime.now(timezone.utc),
                download_speed=result.download_speed,
                upload_speed=result.upload_speed,
                ping=result.ping,
                jitter=result.jitter,
                server_info=dict(result.server_info or {}),
                errors=list(result.errors),
                notes=list(result.notes),
            )
            session.add(row)
            session.flush()
            record = row.to_record()

        return record

    # -- Reads --------------------------------------------------------------

    def query_history(
        self,
        limit: int = 10,
        server_name: Optional[str] = None,
    ) -> List[HistoryRecord]:
        """Most recent records first, optionally for one server name."""
        with self._session() as session:
            query = session.query(SpeedtestRow)
            if server_name:
                query = query.filter(SpeedtestRow.server_name == server_name)
            rows = (
                query.order_by(desc(SpeedtestRow.test_timestamp), desc(SpeedtestRow.id))
                .limit(limit)
                .all()
            )
            return [row.to_record() for row in rows]

    def latest(self, server_url: str) -> Optional[HistoryRecord]:
        with self._session() as session:
            row = (
                session.query(SpeedtestRow)
                .filter(SpeedtestRow.server_url == server_url)
                .order_by(desc(SpeedtestRow.test_timestamp), desc(SpeedtestRow.id))
                .first()
            )
            return row.to_record() if row else None

    def stats(self, server_url: str) -> ServerStats:
        """Averages over every stored result for *server_url*."""
        with self._session() as session:
            avg_dl, avg_ul, avg_ping, avg_jitter, count = (
                session.query(
                    func.avg(SpeedtestRow.download_speed),
                    func.avg(SpeedtestRow.upload_speed),
                    func.avg(SpeedtestRow.ping),
                    func.avg(SpeedtestRow.jitter),
                    func.count(SpeedtestRow.id),
                )
                .filter(SpeedtestRow.server_url == server_url)
                .one()
            )

        def _round(value: Optional[float]) -> Optional[float]:
            return round(float(value), RESULT_PRECISION) if value is not None else None

        return ServerStats(
            server_url=server_url,
            avg_download=_round(avg_dl),
            avg_upload=_round(avg_ul),
            avg_ping=_round(avg_ping),
            avg_jitter=_round(avg_jitter),
            count=int(count or 0),
        )
