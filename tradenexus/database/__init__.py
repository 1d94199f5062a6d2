"""Database module for SQLAlchemy models."""

from tradenexus.database.models import (
    ConversationMemory,
    EntityRelation,
    Job,
    KnowledgeChunk,
    Quote,
    Supplier,
    SupplierCapability,
)

__all__ = [
    "ConversationMemory",
    "EntityRelation",
    "Job",
    "KnowledgeChunk",
    "Quote",
    "Supplier",
    "SupplierCapability",
]
