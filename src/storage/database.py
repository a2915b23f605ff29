"""
Database layer using SQLAlchemy 2.0 with async support.

Provides:
- SQLAlchemy ORM model for the decision log
- Database: an explicitly constructed engine + session factory with
  init/teardown, owned by whoever creates it (the API lifespan)
- DecisionLogStore: append-only persistence of decision attempts
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Optional, Sequence
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, Index, String, Uuid, select
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from src.config import Settings, get_settings
from src.models.decision import DecisionLogRecord

logger = logging.getLogger(__name__)

# JSONB on PostgreSQL, plain JSON on other backends
JSONPayload = JSON().with_variant(JSONB(), "postgresql")


# Base class for all ORM models
class Base(DeclarativeBase):
    """Base class for SQLAlchemy ORM models."""
    pass


# -----------------------------------------------------------------------------
# ORM Models
# -----------------------------------------------------------------------------

class DecisionLogDB(Base):
    """Decision log table (append-only)."""

    __tablename__ = "decision_logs"

    log_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    model_id: Mapped[str] = mapped_column(String(128), nullable=False)
    input_data: Mapped[dict] = mapped_column(JSONPayload, nullable=False)
    decision_result: Mapped[Any] = mapped_column(JSONPayload, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_decision_logs_model", "model_id"),
        Index("idx_decision_logs_created", "created_at"),
    )


# -----------------------------------------------------------------------------
# Database Engine & Session
# -----------------------------------------------------------------------------

class Database:
    """
    Async engine and session factory for one database URL.

    Nothing is connected until first use; ``dispose()`` releases the
    pool. Construct one per process and pass it to the stores that need it.
    """

    def __init__(
        self,
        url: str,
        pool_size: int = 5,
        max_overflow: int = 10,
        echo: bool = False,
    ):
        self.url = url
        engine_kwargs: dict[str, Any] = {"echo": echo}
        if not url.startswith("sqlite"):
            engine_kwargs.update(pool_size=pool_size, max_overflow=max_overflow)
        self._engine: Optional[AsyncEngine] = create_async_engine(url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "Database":
        settings = settings or get_settings()
        return cls(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            echo=settings.debug,
        )

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database has been disposed")
        return self._engine

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get an async database session, committed on clean exit."""
        if self._engine is None:
            raise RuntimeError("Database has been disposed")
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def init_schema(self) -> None:
        """Create all tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Release every pooled connection. The object is unusable afterwards."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            logger.info("Database engine disposed")


# -----------------------------------------------------------------------------
# Decision Log Store
# -----------------------------------------------------------------------------

class DecisionLogStore:
    """
    Append-only store of decision attempts.

    Records are created once per decision and never modified or
    deleted. Accepts either a Database (one session per call) or an
    already open AsyncSession (caller controls the transaction).
    """

    def __init__(self, source: Database | AsyncSession):
        self._source = source

    @asynccontextmanager
    async def _session(self) -> AsyncGenerator[AsyncSession, None]:
        if isinstance(self._source, Database):
            async with self._source.session() as session:
                yield session
        else:
            yield self._source

    async def record(
        self,
        model_id: str,
        input_data: dict[str, Any],
        decision_result: Any,
    ) -> UUID:
        """Persist one (model, input, result) triple and return its log ID."""
        entry = DecisionLogDB(
            log_id=uuid4(),
            model_id=model_id,
            input_data=input_data,
            decision_result=decision_result,
            created_at=datetime.now(timezone.utc),
        )
        async with self._session() as session:
            session.add(entry)
            await session.flush()
        logger.info("Recorded decision %s for model %s", entry.log_id, model_id)
        return entry.log_id

    async def record_batch(
        self,
        model_id: str,
        inputs: Sequence[dict[str, Any]],
        results: Sequence[Any],
    ) -> list[UUID]:
        """Persist one record per input/result pair, in a single transaction."""
        if len(inputs) != len(results):
            raise ValueError(f"{len(results)} results for {len(inputs)} inputs")

        now = datetime.now(timezone.utc)
        entries = [
            DecisionLogDB(
                log_id=uuid4(),
                model_id=model_id,
                input_data=input_data,
                decision_result=result,
                created_at=now,
            )
            for input_data, result in zip(inputs, results)
        ]
        async with self._session() as session:
            session.add_all(entries)
            await session.flush()
        logger.info("Recorded %d batch decisions for model %s", len(entries), model_id)
        return [e.log_id for e in entries]

    async def get(self, log_id: UUID) -> Optional[DecisionLogRecord]:
        """Get one record by log ID."""
        async with self._session() as session:
            entry = await session.get(DecisionLogDB, log_id)
            return DecisionLogRecord.model_validate(entry) if entry else None

    async def list_recent(
        self,
        model_id: Optional[str] = None,
        limit: int = 50,
    ) -> list[DecisionLogRecord]:
        """Most recent records first, optionally for one model only."""
        query = select(DecisionLogDB).order_by(DecisionLogDB.created_at.desc()).limit(limit)
        if model_id:
            query = query.where(DecisionLogDB.model_id == model_id)
        async with self._session() as session:
            result = await session.execute(query)
            return [DecisionLogRecord.model_validate(e) for e in result.scalars().all()]
