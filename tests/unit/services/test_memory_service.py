"""Unit tests for the long-term memory service."""

from datetime import timedelta
from unittest.mock import patch
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from tradenexus.core.exceptions import SupplierNotFoundError, UnknownMemoryTypeError, ValidationError
from tradenexus.database.models import KnowledgeChunk, Quote, utcnow
from tradenexus.repositories import QuoteRepository
from tradenexus.schemas.memory import (
    CapabilityCreate,
    ConversationCreate,
    HybridMemories,
    KnowledgeCreate,
    QuoteCreate,
    RelationCreate,
    SupplierCreate,
)
from tradenexus.services.memory_service import (
    ASSOCIATIONS_HEADER,
    FACTS_HEADER,
    REGULATIONS_HEADER,
    USER_HEADER,
    assemble_memory_context,
)


def _quote(**overrides) -> QuoteCreate:
    fields = {
        "item_type": "freight",
        "item_name": "40HQ Shenzhen-Hamburg",
        "price": 2800,
        "currency": "USD",
        "route": "CN-DE",
        "terms": "FOB",
        "supplier_id": "forwarder-1",
    }
    fields.update(overrides)
    return QuoteCreate(**fields)


def _relation(from_id: str, to_id: str, **overrides) -> RelationCreate:
    fields = {
        "from_type": "entity",
        "from_id": from_id,
        "from_name": from_id.upper(),
        "relation_type": "serves",
        "to_type": "entity",
        "to_id": to_id,
        "to_name": to_id.upper(),
    }
    fields.update(overrides)
    return RelationCreate(**fields)


class TestFactualMemory:
    """Quotes with validity windows and natural-key supersession."""

    @pytest.mark.asyncio
    async def test_newer_quote_supersedes_live_one(self, memory_service):
        first = await memory_service.save_quote(_quote(price=3000))
        second = await memory_service.save_quote(_quote(price=2800))

        quotes = await memory_service.get_valid_quotes(item_type="freight")

        assert [q.id for q in quotes] == [second.id]
        assert first.id != second.id

        stats = await memory_service.get_memory_stats()
        assert stats.factual_memory == {"quotes": 1}

    @pytest.mark.asyncio
    async def test_missing_supplier_shares_one_natural_key(self, memory_service):
        await memory_service.save_quote(_quote(supplier_id=None, price=10))
        latest = await memory_service.save_quote(_quote(supplier_id=None, price=12))

        quotes = await memory_service.get_valid_quotes()

        assert [q.id for q in quotes] == [latest.id]

    @pytest.mark.asyncio
    async def test_quote_validity_defaults_to_thirty_days(self, memory_service):
        before = utcnow().replace(tzinfo=None)
        quote = await memory_service.save_quote(_quote())

        valid_until = quote.valid_until.replace(tzinfo=None)
        assert timedelta(days=29) < valid_until - before <= timedelta(days=30, seconds=5)
        assert quote.source == "memory_agent"
        assert quote.is_deprecated is False

    @pytest.mark.asyncio
    async def test_valid_quotes_are_sorted_by_price_and_filtered(self, memory_service):
        await memory_service.save_quote(_quote(item_name="Lane A", price=900))
        await memory_service.save_quote(_quote(item_name="Lane B", price=300))
        await memory_service.save_quote(_quote(item_name="Lane C", price=500, route="CN-US"))

        quotes = await memory_service.get_valid_quotes(route="CN-DE")

        assert [q.item_name for q in quotes] == ["Lane B", "Lane A"]

    @pytest.mark.asyncio
    async def test_prune_deprecates_expired_quotes_once(self, memory_service, session_maker):
        await memory_service.save_quote(_quote(item_name="Still valid"))
        async with session_maker() as session:
            session.add(
                Quote(
                    item_type="product",
                    item_name="Expired offer",
                    price=1,
                    currency="USD",
                    valid_until=utcnow() - timedelta(days=1),
                    source="memory_agent",
                )
            )
            await session.commit()

        assert await memory_service.prune_expired_quotes() == 1
        assert await memory_service.prune_expired_quotes() == 0

        quotes = await memory_service.get_valid_quotes()
        assert [q.item_name for q in quotes] == ["Still valid"]


class TestSemanticMemory:
    """Knowledge chunks versioned by title, category and country."""

    @pytest.mark.asyncio
    async def test_new_version_supersedes_previous(self, memory_service, session_maker):
        old = await memory_service.save_knowledge(
            KnowledgeCreate(
                category="regulation",
                country="DE",
                title="Battery Directive",
                content="Old battery rules",
                version="2023",
            )
        )
        new = await memory_service.save_knowledge(
            KnowledgeCreate(
                category="regulation",
                country="DE",
                title="Battery Directive",
                content="New battery rules",
                version="2024",
            )
        )

        async with session_maker() as session:
            stored = (
                await session.execute(select(KnowledgeChunk).where(KnowledgeChunk.id == old.id))
            ).scalar_one()

        assert stored.is_deprecated is True
        assert stored.superseded_by == "Battery Directive v2024"

        results = await memory_service.search_knowledge("battery", country="DE")
        assert [k.id for k in results] == [new.id]

    @pytest.mark.asyncio
    async def test_same_version_keeps_both_live(self, memory_service):
        for content in ("Part one", "Part two"):
            await memory_service.save_knowledge(
                KnowledgeCreate(category="labeling", title="CE marking", content=content, version="1")
            )

        results = await memory_service.search_knowledge("CE marking")

        assert len(results) == 2

    @pytest.mark.asyncio
    async def test_new_version_deprecates_only_newest_live_chunk(self, memory_service):
        first, second = [
            await memory_service.save_knowledge(
                KnowledgeCreate(category="labeling", title="CE marking", content=content, version="1")
            )
            for content in ("Part one", "Part two")
        ]

        latest = await memory_service.save_knowledge(
            KnowledgeCreate(category="labeling", title="CE marking", content="Revised", version="2")
        )

        results = await memory_service.search_knowledge("CE marking")
        assert [k.id for k in results] == [latest.id, first.id]
        assert second.id not in {k.id for k in results}

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive_over_content(self, memory_service):
        await memory_service.save_knowledge(
            KnowledgeCreate(category="tariff", country="US", title="Section 301", content="Extra DUTY on LED lights")
        )

        assert len(await memory_service.search_knowledge("duty")) == 1
        assert await memory_service.search_knowledge("duty", country="DE") == []


class TestAssociativeMemory:
    """Entity relations and graph traversal."""

    @pytest.mark.asyncio
    async def test_saving_same_edge_overwrites_in_place(self, memory_service):
        first = await memory_service.save_relation(_relation("a", "b", confidence=0.4))
        second = await memory_service.save_relation(
            _relation("a", "b", confidence=0.9, properties={"moq": 100})
        )

        assert second.id == first.id
        assert second.confidence == 0.9
        assert second.properties == {"moq": 100}
        assert (await memory_service.get_memory_stats()).associative_memory == {"relations": 1}

    @pytest.mark.asyncio
    async def test_traverse_follows_outgoing_edges_to_depth(self, memory_service):
        await memory_service.save_relation(_relation("a", "b"))
        await memory_service.save_relation(_relation("b", "c"))
        await memory_service.save_relation(_relation("c", "d"))

        one = await memory_service.traverse_graph("entity", start_id="a", depth=1)
        two = await memory_service.traverse_graph("entity", start_id="a", depth=2)

        assert [(r.from_id, r.to_id) for r in one] == [("a", "b")]
        assert [(r.from_id, r.to_id) for r in two] == [("a", "b"), ("b", "c")]

    @pytest.mark.asyncio
    async def test_traverse_terminates_on_cycles(self, memory_service):
        await memory_service.save_relation(_relation("a", "b"))
        await memory_service.save_relation(_relation("b", "c"))
        await memory_service.save_relation(_relation("c", "a"))

        relations = await memory_service.traverse_graph("entity", start_id="a", depth=5)

        assert sorted((r.from_id, r.to_id) for r in relations) == [("a", "b"), ("b", "c"), ("c", "a")]

    @pytest.mark.asyncio
    async def test_traverse_filters_first_level_by_relation_type(self, memory_service):
        await memory_service.save_relation(_relation("a", "b", relation_type="produces"))
        await memory_service.save_relation(_relation("a", "c", relation_type="serves"))

        relations = await memory_service.traverse_graph("entity", start_id="a", relation_type="produces")

        assert [r.to_id for r in relations] == ["b"]


class TestSuppliers:
    @pytest.mark.asyncio
    async def test_capability_lookup_skips_expired(self, memory_service):
        supplier = await memory_service.save_supplier(SupplierCreate(name="Yiwu Lights", platform="1688"))
        await memory_service.add_supplier_capability(supplier.id, CapabilityCreate(capability="OEM LED strips"))
        await memory_service.add_supplier_capability(
            supplier.id,
            CapabilityCreate(capability="LED panels", valid_until=utcnow() - timedelta(days=1)),
        )

        capabilities = await memory_service.find_suppliers_with_capability("led")

        assert [c.capability for c in capabilities] == ["OEM LED strips"]
        assert capabilities[0].supplier.name == "Yiwu Lights"

    @pytest.mark.asyncio
    async def test_capability_for_unknown_supplier_raises(self, memory_service):
        with pytest.raises(SupplierNotFoundError):
            await memory_service.add_supplier_capability(uuid4(), CapabilityCreate(capability="OEM"))


class TestHybridRetrieval:
    """Concurrent lookup across memory kinds and context assembly."""

    @pytest.mark.asyncio
    async def test_hybrid_search_assembles_blocks_in_order(self, memory_service):
        await memory_service.save_quote(_quote(item_name="LED strip 5m", item_type="product", price=1.5))
        await memory_service.save_knowledge(
            KnowledgeCreate(category="certification", country="DE", title="CE for LED", content="CE marking required")
        )
        await memory_service.save_relation(
            _relation("yiwu", "led", from_name="Yiwu Lights", to_name="LED strip", relation_type="produces")
        )
        await memory_service.save_conversation_memory(
            ConversationCreate(user_id="user-1", summary="Prefers sea freight", importance=8)
        )

        memories = await memory_service.hybrid_search(
            "CE", user_id="user-1", country="DE", product_type="LED", route="CN-DE"
        )
        context = memory_service.assemble_memory_context(memories)

        assert "• LED strip 5m: 1.5 USD (FOB)" in memories.factual_memory
        assert memories.semantic_memory.startswith("• [certification] CE for LED: CE marking required")
        assert memories.graph_memory == "• Yiwu Lights --[produces]--> LED strip"
        assert memories.user_context == "• Prefers sea freight (importance: 8/10)"

        positions = [context.index(h) for h in (FACTS_HEADER, REGULATIONS_HEADER, ASSOCIATIONS_HEADER, USER_HEADER)]
        assert positions == sorted(positions)

    @pytest.mark.asyncio
    async def test_hybrid_search_skips_optional_lookups(self, memory_service):
        await memory_service.save_relation(_relation("a", "b"))
        await memory_service.save_conversation_memory(ConversationCreate(user_id="user-1", summary="Note"))

        memories = await memory_service.hybrid_search("anything")

        assert memories.graph_memory == ""
        assert memories.user_context == ""
        assert memory_service.assemble_memory_context(memories) == ""


class TestAssembleMemoryContext:
    def test_empty_blocks_are_omitted(self):
        context = assemble_memory_context(
            HybridMemories(factual_memory="• quote", user_context="• pref")
        )

        assert context == f"{FACTS_HEADER}\n• quote\n\n{USER_HEADER}\n• pref"

    def test_all_empty_gives_empty_string(self):
        assert assemble_memory_context(HybridMemories()) == ""


class TestExtractAndStats:
    @pytest.mark.asyncio
    async def test_regulation_extraction_defaults_category(self, memory_service):
        chunk = await memory_service.extract_and_save_memory(
            "EU battery rules changed",
            "regulation",
            {"title": "Battery Regulation", "content": "Due diligence", "country": "EU"},
        )

        assert chunk.category == "regulation"

    @pytest.mark.asyncio
    async def test_unknown_memory_type_raises(self, memory_service):
        with pytest.raises(UnknownMemoryTypeError):
            await memory_service.extract_and_save_memory("text", "gossip", {})

    @pytest.mark.asyncio
    async def test_stats_count_live_records_only(self, memory_service):
        await memory_service.save_quote(_quote(price=1))
        await memory_service.save_quote(_quote(price=2))
        await memory_service.save_knowledge(KnowledgeCreate(category="contract", title="MSA", content="Terms"))
        await memory_service.save_relation(_relation("a", "b"))
        await memory_service.save_conversation_memory(ConversationCreate(user_id="u", summary="s"))

        stats = await memory_service.get_memory_stats()

        assert stats.factual_memory == {"quotes": 1}
        assert stats.semantic_memory == {"knowledgeChunks": 1}
        assert stats.conversation_memory == {"summaries": 1}
        assert stats.total_memories == 4

    @pytest.mark.asyncio
    async def test_incomplete_extracted_quote_raises_validation_error(self, memory_service):
        with pytest.raises(ValidationError) as exc_info:
            await memory_service.extract_and_save_memory("quote", "quote", {"itemName": "x"})

        assert "price" in exc_info.value.message
        assert await memory_service.get_valid_quotes() == []


def _duplicate_key_error() -> IntegrityError:
    return IntegrityError("INSERT INTO quotes", {}, Exception("duplicate key value"))


class TestWriteConflictRetry:
    @pytest.mark.asyncio
    async def test_single_conflict_is_retried_and_committed(self, memory_service):
        original = QuoteRepository.supersede_and_create
        attempts = []

        async def conflict_once(self, **fields):
            attempts.append(fields["item_name"])
            if len(attempts) == 1:
                raise _duplicate_key_error()
            return await original(self, **fields)

        with patch.object(QuoteRepository, "supersede_and_create", conflict_once):
            quote = await memory_service.save_quote(_quote())

        assert len(attempts) == 2
        assert [q.id for q in await memory_service.get_valid_quotes()] == [quote.id]

    @pytest.mark.asyncio
    async def test_second_consecutive_conflict_propagates(self, memory_service):
        attempts = []

        async def always_conflict(self, **fields):
            attempts.append(fields["item_name"])
            raise _duplicate_key_error()

        with patch.object(QuoteRepository, "supersede_and_create", always_conflict):
            with pytest.raises(IntegrityError):
                await memory_service.save_quote(_quote())

        assert len(attempts) == 2
        assert await memory_service.get_valid_quotes() == []
