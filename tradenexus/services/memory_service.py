"""Long-term memory service.

Four record kinds back the memory store:

- factual memory: quotes with a validity window, superseded by newer quotes
  for the same (supplier, item, type) key
- semantic memory: knowledge chunks (regulations, contracts, specs), versioned
  by (title, category, country)
- associative memory: directed entity relations, overwritten in place
- conversation memory: per-user interaction summaries

Every operation opens its own session from the session maker, so independent
lookups can run concurrently.
"""

import asyncio
from datetime import timedelta
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar, Union
from uuid import UUID

import pydantic
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tradenexus.core.exceptions import (
    SupplierNotFoundError,
    UnknownMemoryTypeError,
    ValidationError,
)
from tradenexus.database.models import (
    ConversationMemory,
    EntityRelation,
    KnowledgeChunk,
    Quote,
    Supplier,
    SupplierCapability,
    utcnow,
)
from tradenexus.repositories import (
    ConversationRepository,
    KnowledgeRepository,
    QuoteRepository,
    RelationRepository,
    SupplierRepository,
)
from tradenexus.schemas.memory import (
    CapabilityCreate,
    ConversationCreate,
    HybridMemories,
    KnowledgeCreate,
    MemoryStats,
    QuoteCreate,
    RelationCreate,
    SupplierCreate,
)
from tradenexus.utils.logging import get_logger

LOGGER = get_logger(__name__)

T = TypeVar("T")

FACTS_HEADER = "[Long-term memory - Facts]"
REGULATIONS_HEADER = "[Long-term memory - Regulations]"
ASSOCIATIONS_HEADER = "[Long-term memory - Associations]"
USER_HEADER = "[User preference memory]"

HYBRID_QUOTE_LIMIT = 5
HYBRID_KNOWLEDGE_LIMIT = 5
HYBRID_RELATION_LIMIT = 10
HYBRID_USER_LIMIT = 3


def _format_price(price: Union[Decimal, float]) -> str:
    value = price if isinstance(price, Decimal) else Decimal(str(price))
    return format(value.normalize(), "f")


def format_quotes_context(quotes: List[Quote]) -> str:
    return "\n".join(
        f"• {q.item_name}: {_format_price(q.price)} {q.currency} "
        f"({q.terms or 'N/A'}) - valid until {q.valid_until.strftime('%Y-%m-%d')}"
        for q in quotes
    )


def format_knowledge_context(chunks: List[KnowledgeChunk]) -> str:
    return "\n".join(
        f"• [{k.category}] {k.title}: {k.content[:200]}..." for k in chunks
    )


def format_relations_context(relations: List[EntityRelation]) -> str:
    return "\n".join(
        f"• {r.from_name} --[{r.relation_type}]--> {r.to_name}" for r in relations
    )


def format_user_memory_context(memories: List[ConversationMemory]) -> str:
    return "\n".join(
        f"• {m.summary} (importance: {m.importance}/10)" for m in memories
    )


def assemble_memory_context(memories: HybridMemories) -> str:
    """Join the non-empty memory blocks into one prompt-ready string.

    Blocks appear in the order facts, regulations, associations, user
    preferences, each under its header and separated by a blank line.
    """
    parts = []

    if memories.factual_memory:
        parts.append(f"{FACTS_HEADER}\n{memories.factual_memory}")
    if memories.semantic_memory:
        parts.append(f"{REGULATIONS_HEADER}\n{memories.semantic_memory}")
    if memories.graph_memory:
        parts.append(f"{ASSOCIATIONS_HEADER}\n{memories.graph_memory}")
    if memories.user_context:
        parts.append(f"{USER_HEADER}\n{memories.user_context}")

    return "\n\n".join(parts)


async def _nothing() -> list:
    return []


class MemoryService:
    """Service for reading and writing long-term memory."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        """Initialize memory service.

        Args:
            session_maker: Factory used to open one session per operation
        """
        self.session_maker = session_maker

    async def _retry_on_conflict(
        self, operation: Callable[[AsyncSession], Awaitable[T]], what: str
    ) -> T:
        """Run a write in a fresh session, retrying once on a unique-key conflict."""
        try:
            async with self.session_maker() as session:
                return await operation(session)
        except IntegrityError:
            LOGGER.warning(
                "Concurrent write conflict, retrying once",
                extra={"operation": what},
            )

        async with self.session_maker() as session:
            return await operation(session)

    # --- Factual memory ---

    async def save_quote(self, data: QuoteCreate) -> Quote:
        """Save a quote, deprecating the live quote it supersedes.

        The deprecation and insert commit together; the new quote is valid
        for ``validity_days`` from now.
        """
        fields = {
            "item_type": data.item_type,
            "item_name": data.item_name,
            "price": Decimal(str(data.price)),
            "currency": data.currency,
            "unit": data.unit,
            "route": data.route,
            "terms": data.terms,
            "supplier_id": data.supplier_id,
            "valid_until": utcnow() + timedelta(days=data.validity_days),
            "source": data.source,
            "extra_metadata": data.metadata,
        }

        async def write(session: AsyncSession) -> Tuple[Quote, int]:
            return await QuoteRepository(session).supersede_and_create(**fields)

        quote, deprecated = await self._retry_on_conflict(write, "save_quote")
        if deprecated:
            LOGGER.info(
                "Deprecated superseded quote",
                extra={"item_name": data.item_name, "count": deprecated},
            )
        LOGGER.info(
            "Saved quote",
            extra={"quote_id": str(quote.id), "item_name": quote.item_name},
        )
        return quote

    async def get_valid_quotes(
        self,
        item_type: Optional[str] = None,
        route: Optional[str] = None,
        supplier_id: Optional[str] = None,
        limit: int = 10,
    ) -> List[Quote]:
        """Live, unexpired quotes, cheapest first."""
        async with self.session_maker() as session:
            return await QuoteRepository(session).find_valid(
                now=utcnow(),
                item_type=item_type,
                route=route,
                supplier_id=supplier_id,
                limit=limit,
            )

    async def prune_expired_quotes(self) -> int:
        """Deprecate every live quote past its validity date.

        Returns:
            Number of quotes deprecated; zero on an immediate re-run
        """
        async with self.session_maker() as session:
            count = await QuoteRepository(session).deprecate_expired(utcnow())

        LOGGER.info("Pruned expired quotes", extra={"count": count})
        return count

    # --- Semantic memory ---

    async def save_knowledge(self, data: KnowledgeCreate) -> KnowledgeChunk:
        fields = {
            "category": data.category,
            "country": data.country,
            "title": data.title,
            "content": data.content,
            "source": data.source,
            "version": data.version,
            "extra_metadata": data.metadata,
        }

        async with self.session_maker() as session:
            chunk, superseded = await KnowledgeRepository(session).save_versioned(**fields)

        if superseded is not None:
            LOGGER.info(
                "Knowledge chunk superseded",
                extra={"chunk_id": str(superseded.id), "superseded_by": superseded.superseded_by},
            )
        LOGGER.info("Saved knowledge chunk", extra={"chunk_id": str(chunk.id), "title": chunk.title})
        return chunk

    async def search_knowledge(
        self,
        query: str,
        category: Optional[str] = None,
        country: Optional[str] = None,
        limit: int = 5,
    ) -> List[KnowledgeChunk]:
        async with self.session_maker() as session:
            return await KnowledgeRepository(session).search(
                query, category=category, country=country, limit=limit
            )

    # --- Conversation memory ---

    async def save_conversation_memory(self, data: ConversationCreate) -> ConversationMemory:
        async with self.session_maker() as session:
            memory = await ConversationRepository(session).create(
                user_id=data.user_id,
                session_id=data.session_id,
                summary=data.summary,
                key_entities=data.key_entities,
                user_preferences=data.user_preferences,
                action_items=data.action_items,
                sentiment=data.sentiment,
                importance=data.importance,
                last_interaction=utcnow(),
            )

        LOGGER.info("Saved conversation memory", extra={"user_id": data.user_id})
        return memory

    async def get_user_memories(self, user_id: str, limit: int = 10) -> List[ConversationMemory]:
        async with self.session_maker() as session:
            return await ConversationRepository(session).get_for_user(user_id, limit=limit)

    # --- Associative memory ---

    async def save_relation(self, data: RelationCreate) -> EntityRelation:
        """Insert a relation or overwrite properties/confidence of the existing edge."""
        fields = data.model_dump()

        async def write(session: AsyncSession) -> Tuple[EntityRelation, bool]:
            return await RelationRepository(session).upsert(**fields)

        relation, created = await self._retry_on_conflict(write, "save_relation")
        LOGGER.info(
            "Saved relation" if created else "Updated relation",
            extra={
                "from": data.from_name,
                "relation_type": data.relation_type,
                "to": data.to_name,
            },
        )
        return relation

    async def traverse_graph(
        self,
        start_type: str,
        start_id: Optional[str] = None,
        start_name: Optional[str] = None,
        relation_type: Optional[str] = None,
        depth: int = 1,
    ) -> List[EntityRelation]:
        """Walk outgoing relations from an entity, up to ``depth`` levels.

        Only the first level is filtered by ``relation_type`` and name. Each
        relation appears once, and an entity is never expanded twice, so
        cycles terminate.
        """
        results: List[EntityRelation] = []
        seen_relations = set()
        expanded = set()

        async with self.session_maker() as session:
            repo = RelationRepository(session)
            frontier = await repo.find_outgoing(
                start_type, from_id=start_id, from_name=start_name, relation_type=relation_type
            )
            if start_id:
                expanded.add((start_type, start_id))

            level = 1
            while frontier:
                next_targets = []
                for relation in frontier:
                    if relation.id in seen_relations:
                        continue
                    seen_relations.add(relation.id)
                    results.append(relation)
                    next_targets.append((relation.to_type, relation.to_id))

                if level >= depth:
                    break

                frontier = []
                for target in next_targets:
                    if target in expanded:
                        continue
                    expanded.add(target)
                    frontier.extend(await repo.find_outgoing(target[0], from_id=target[1]))
                level += 1

        return results

    # --- Suppliers ---

    async def save_supplier(self, data: SupplierCreate) -> Supplier:
        async with self.session_maker() as session:
            supplier = await SupplierRepository(session).create(**data.model_dump())

        LOGGER.info("Saved supplier", extra={"supplier_id": str(supplier.id), "supplier_name": supplier.name})
        return supplier

    async def add_supplier_capability(
        self, supplier_id: UUID, data: CapabilityCreate
    ) -> SupplierCapability:
        async with self.session_maker() as session:
            repo = SupplierRepository(session)
            supplier = await repo.get_by_id(supplier_id)
            if supplier is None:
                raise SupplierNotFoundError(f"Supplier {supplier_id} not found")

            capability = await repo.add_capability(supplier_id=supplier_id, **data.model_dump())
            return await repo.get_capability(capability.id)

    async def find_suppliers_with_capability(self, capability: str) -> List[SupplierCapability]:
        async with self.session_maker() as session:
            return await SupplierRepository(session).find_capabilities(capability, utcnow())

    # --- Hybrid retrieval ---

    async def find_related(self, term: str) -> List[EntityRelation]:
        """Relations with either endpoint name containing ``term``, most confident first."""
        async with self.session_maker() as session:
            return await RelationRepository(session).find_by_entity_name(
                term, limit=HYBRID_RELATION_LIMIT
            )

    async def hybrid_search(
        self,
        query: str,
        user_id: Optional[str] = None,
        country: Optional[str] = None,
        product_type: Optional[str] = None,
        route: Optional[str] = None,
    ) -> HybridMemories:
        """Query all four memory kinds concurrently and flatten each to text.

        Relations are only looked up with a ``product_type`` and user memories
        only with a ``user_id``.
        """
        quotes, knowledge, relations, user_memories = await asyncio.gather(
            self.get_valid_quotes(route=route, limit=HYBRID_QUOTE_LIMIT),
            self.search_knowledge(query, country=country, limit=HYBRID_KNOWLEDGE_LIMIT),
            self.find_related(product_type) if product_type else _nothing(),
            self.get_user_memories(user_id, limit=HYBRID_USER_LIMIT) if user_id else _nothing(),
        )

        return HybridMemories(
            factual_memory=format_quotes_context(quotes),
            semantic_memory=format_knowledge_context(knowledge),
            graph_memory=format_relations_context(relations),
            user_context=format_user_memory_context(user_memories),
        )

    def assemble_memory_context(self, memories: HybridMemories) -> str:
        return assemble_memory_context(memories)

    # --- Agent helpers ---

    async def extract_and_save_memory(
        self, text: str, memory_type: str, data: Dict[str, Any]
    ) -> Union[Quote, KnowledgeChunk, EntityRelation]:
        """Persist a memory extracted from ``text`` by the model.

        Raises:
            UnknownMemoryTypeError: If ``memory_type`` is not quote, regulation or relation
            ValidationError: If ``data`` does not describe a valid record of that type
        """
        if memory_type not in ("quote", "regulation", "relation"):
            raise UnknownMemoryTypeError(f"Unknown memory type: {memory_type}")

        try:
            if memory_type == "quote":
                record = QuoteCreate.model_validate(data)
            elif memory_type == "regulation":
                record = KnowledgeCreate.model_validate({"category": "regulation", **data})
            else:
                record = RelationCreate.model_validate(data)
        except pydantic.ValidationError as e:
            fields = sorted({".".join(str(part) for part in err["loc"]) for err in e.errors()})
            raise ValidationError(
                f"Invalid {memory_type} data: {', '.join(fields)}", original_error=e
            ) from e

        if memory_type == "quote":
            return await self.save_quote(record)
        if memory_type == "regulation":
            return await self.save_knowledge(record)
        return await self.save_relation(record)

    async def get_memory_stats(self) -> MemoryStats:
        async def count_quotes() -> int:
            async with self.session_maker() as session:
                return await QuoteRepository(session).count_live()

        async def count_knowledge() -> int:
            async with self.session_maker() as session:
                return await KnowledgeRepository(session).count_live()

        async def count_relations() -> int:
            async with self.session_maker() as session:
                return await RelationRepository(session).count()

        async def count_conversations() -> int:
            async with self.session_maker() as session:
                return await ConversationRepository(session).count()

        quotes, knowledge, relations, conversations = await asyncio.gather(
            count_quotes(), count_knowledge(), count_relations(), count_conversations()
        )

        return MemoryStats(
            factual_memory={"quotes": quotes},
            semantic_memory={"knowledgeChunks": knowledge},
            associative_memory={"relations": relations},
            conversation_memory={"summaries": conversations},
            total_memories=quotes + knowledge + relations + conversations,
        )
