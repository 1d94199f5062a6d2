"""SQLAlchemy models for all database tables."""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    TIMESTAMP,
    UniqueConstraint,
    Uuid,
    func,
    literal,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tradenexus.core.database import Base

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Supplier(Base):
    """Supplier known to the memory store (1688 shops, forwarders, factories)."""

    __tablename__ = "suppliers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False)
    platform: Mapped[str | None] = mapped_column(String, nullable=True)  # 1688 | alibaba | aliexpress | offline
    url: Mapped[str | None] = mapped_column(String, nullable=True)
    country: Mapped[str | None] = mapped_column(String, nullable=True)
    rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    capabilities: Mapped[list["SupplierCapability"]] = relationship(
        "SupplierCapability", back_populates="supplier", cascade="all, delete-orphan"
    )


class SupplierCapability(Base):
    """A capability a supplier offers, optionally time-limited."""

    __tablename__ = "supplier_capabilities"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    supplier_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("suppliers.id", ondelete="CASCADE"), nullable=False
    )
    capability: Mapped[str] = mapped_column(String, nullable=False)
    details: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    valid_until: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    supplier: Mapped["Supplier"] = relationship("Supplier", back_populates="capabilities")

    __table_args__ = (
        Index("idx_supplier_capabilities_capability", "capability"),
    )


class Quote(Base):
    """Price snapshot for a product, freight lane or service with a validity window."""

    __tablename__ = "quotes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    item_type: Mapped[str] = mapped_column(String, nullable=False)  # product | freight | service
    item_name: Mapped[str] = mapped_column(String, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="USD")
    unit: Mapped[str | None] = mapped_column(String, nullable=True)
    route: Mapped[str | None] = mapped_column(String, nullable=True)  # e.g. CN-DE
    terms: Mapped[str | None] = mapped_column(String, nullable=True)  # FOB | CIF | EXW
    # Denormalised reference; not a foreign key
    supplier_id: Mapped[str | None] = mapped_column(String, nullable=True)
    valid_until: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    source: Mapped[str] = mapped_column(String, nullable=False, default="memory_agent")
    extra_metadata: Mapped[dict | None] = mapped_column("metadata", JSONType, nullable=True)
    is_deprecated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_quotes_item_type", "item_type"),
        Index("idx_quotes_valid_until", "valid_until"),
    )


# At most one live quote per (supplier, item, type). NULL supplier counts as ''.
Index(
    "uq_quotes_live_natural_key",
    func.coalesce(Quote.supplier_id, literal("")),
    Quote.item_name,
    Quote.item_type,
    unique=True,
    postgresql_where=Quote.is_deprecated.is_(False),
    sqlite_where=Quote.is_deprecated.is_(False),
)


class KnowledgeChunk(Base):
    """Regulation, contract or spec text fragment tied to a country."""

    __tablename__ = "knowledge_chunks"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    category: Mapped[str] = mapped_column(String, nullable=False)
    country: Mapped[str | None] = mapped_column(String, nullable=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    source: Mapped[str | None] = mapped_column(String, nullable=True)
    version: Mapped[str | None] = mapped_column(String, nullable=True)
    extra_metadata: Mapped[dict | None] = mapped_column("metadata", JSONType, nullable=True)
    is_deprecated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    superseded_by: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_knowledge_chunks_natural_key", "title", "category", "country"),
    )


class ConversationMemory(Base):
    """Summarised interaction with a user."""

    __tablename__ = "conversation_memories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    session_id: Mapped[str | None] = mapped_column(String, nullable=True)
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    key_entities: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    user_preferences: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    action_items: Mapped[list | None] = mapped_column(JSONType, nullable=True)
    sentiment: Mapped[str | None] = mapped_column(String, nullable=True)  # positive | neutral | negative
    importance: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    last_interaction: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_conversation_memories_user", "user_id"),
    )


class EntityRelation(Base):
    """Directed labelled edge between two named entities."""

    __tablename__ = "entity_relations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    from_type: Mapped[str] = mapped_column(String, nullable=False)
    from_id: Mapped[str] = mapped_column(String, nullable=False)
    from_name: Mapped[str] = mapped_column(String, nullable=False)
    relation_type: Mapped[str] = mapped_column(String, nullable=False)
    to_type: Mapped[str] = mapped_column(String, nullable=False)
    to_id: Mapped[str] = mapped_column(String, nullable=False)
    to_name: Mapped[str] = mapped_column(String, nullable=False)
    properties: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    confidence: Mapped[float | None] = mapped_column(Float, nullable=True)
    source: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "from_type", "from_id", "relation_type", "to_type", "to_id",
            name="uq_entity_relations_edge",
        ),
        Index("idx_entity_relations_from", "from_type", "from_id"),
    )


class Job(Base):
    """Background job record.

    Status moves pending -> running -> completed | failed.
    """

    __tablename__ = "jobs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    input_data: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    output_data: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    queue_job_id: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    started_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_jobs_user_status", "user_id", "status"),
    )
