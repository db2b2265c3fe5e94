"""SQLAlchemy ORM models for database persistence."""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, Index, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class KeyValueDB(Base):
    """Database model for values stored per owner (bot) and key."""

    __tablename__ = "kvs"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    owner_id: Mapped[str] = mapped_column(String(255), nullable=False)  # bot id
    key: Mapped[str] = mapped_column(String(500), nullable=False)  # e.g. a thread id
    value: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    modified_on: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_kvs_owner_key", "owner_id", "key"),
        UniqueConstraint("owner_id", "key", name="uq_kvs_owner_key"),
    )
