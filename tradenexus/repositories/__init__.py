"""Repository layer modules."""

from tradenexus.repositories.conversation_repository import ConversationRepository
from tradenexus.repositories.job_repository import JobRepository
from tradenexus.repositories.knowledge_repository import KnowledgeRepository
from tradenexus.repositories.quote_repository import QuoteRepository
from tradenexus.repositories.relation_repository import RelationRepository
from tradenexus.repositories.supplier_repository import SupplierRepository

__all__ = [
    "ConversationRepository",
    "JobRepository",
    "KnowledgeRepository",
    "QuoteRepository",
    "RelationRepository",
    "SupplierRepository",
]
