"""Unit tests for the memory agent tool executor."""

import pytest

from tradenexus.core.exceptions import UnknownToolError, ValidationError
from tradenexus.services.memory_tools import MEMORY_TOOLS, MemoryToolExecutor, get_tool_names


@pytest.fixture
def executor(memory_service) -> MemoryToolExecutor:
    return MemoryToolExecutor(memory_service)


def test_tool_definitions_use_function_calling_format():
    assert get_tool_names() == [
        "save_quote",
        "save_regulation",
        "save_relation",
        "summarize_conversation",
        "query_memory",
    ]
    for tool in MEMORY_TOOLS:
        assert tool["type"] == "function"
        assert tool["function"]["parameters"]["type"] == "object"


@pytest.mark.asyncio
async def test_save_quote_maps_supplier_name(executor):
    result = await executor.execute(
        "save_quote",
        {"item_type": "product", "item_name": "USB-C cable", "price": 0.8, "supplier": "Shenzhen Cables"},
    )

    assert result["supplierId"] == "Shenzhen Cables"
    assert result["currency"] == "USD"
    assert result["source"] == "memory_agent"


@pytest.mark.asyncio
async def test_save_regulation_uses_effective_year_as_version(executor):
    result = await executor.execute(
        "save_regulation",
        {
            "country": "EU",
            "category": "regulation",
            "title": "EUDR",
            "content": "Deforestation-free supply chains",
            "effective_year": "2025",
        },
    )

    assert result["version"] == "2025"
    assert result["metadata"] == {"effective_year": "2025"}


@pytest.mark.asyncio
async def test_save_relation_defaults_ids_to_names(executor):
    result = await executor.execute(
        "save_relation",
        {
            "from_entity": "Yiwu Lights",
            "from_type": "supplier",
            "relation": "produces",
            "to_entity": "LED strip",
            "to_type": "product",
            "confidence": 0.7,
        },
    )

    assert result["fromId"] == "Yiwu Lights"
    assert result["toId"] == "LED strip"
    assert result["relationType"] == "produces"


@pytest.mark.asyncio
async def test_summarize_conversation_requires_user(executor):
    with pytest.raises(ValidationError):
        await executor.execute("summarize_conversation", {"summary": "s", "key_entities": {}})

    result = await executor.execute(
        "summarize_conversation",
        {"summary": "Wants CE-certified lights", "key_entities": {"focus_country": "DE"}, "importance": 7},
        user_id="user-1",
    )

    assert result["userId"] == "user-1"
    assert result["importance"] == 7


@pytest.mark.asyncio
async def test_query_memory_hybrid_returns_assembled_context(executor):
    await executor.execute(
        "save_relation",
        {
            "from_entity": "Yiwu Lights",
            "from_type": "supplier",
            "relation": "produces",
            "to_entity": "LED strip",
            "to_type": "product",
        },
    )

    result = await executor.execute("query_memory", {"query_type": "hybrid", "keywords": "LED"})

    assert "Yiwu Lights --[produces]--> LED strip" in result["memories"]["graphMemory"]
    assert result["assembledContext"].startswith("[Long-term memory - Associations]")


@pytest.mark.asyncio
async def test_invalid_arguments_raise_validation_error(executor):
    with pytest.raises(ValidationError):
        await executor.execute("save_quote", {"item_type": "spaceship", "item_name": "x", "price": 1})


@pytest.mark.asyncio
async def test_unknown_tool_and_query_type(executor):
    with pytest.raises(UnknownToolError):
        await executor.execute("delete_everything", {})

    with pytest.raises(ValidationError):
        await executor.execute("query_memory", {"query_type": "vibes", "keywords": "x"})
