"""Function-calling tools for the memory agent.

``MEMORY_TOOLS`` holds the tool definitions in OpenAI function-calling format;
``MemoryToolExecutor`` maps a tool call coming back from the model onto the
memory service.
"""

from typing import Any, Dict, List, Optional

import pydantic

from tradenexus.core.exceptions import UnknownToolError, ValidationError
from tradenexus.prompts.system_prompts import MEMORY_AGENT_SYSTEM_PROMPT
from tradenexus.schemas.memory import (
    ConversationCreate,
    ConversationResponse,
    KnowledgeCreate,
    KnowledgeResponse,
    QuoteCreate,
    QuoteResponse,
    RelationCreate,
    RelationResponse,
)
from tradenexus.services.memory_service import MemoryService
from tradenexus.utils.logging import get_logger

LOGGER = get_logger(__name__)

ENTITY_TYPES = ["supplier", "product", "country", "forwarder", "certification", "hs_code"]
RELATION_TYPES = ["produces", "requires", "serves", "has_certification", "restricts", "applies_to"]

MEMORY_TOOLS: List[Dict[str, Any]] = [
    {
        "type": "function",
        "function": {
            "name": "save_quote",
            "description": (
                "Save quote information to long-term memory. Call this when the "
                "conversation mentions a concrete price, freight rate or offer."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "item_type": {
                        "type": "string",
                        "enum": ["product", "freight", "service"],
                        "description": "Quote kind: product, freight or service",
                    },
                    "item_name": {"type": "string", "description": "Product or service name"},
                    "price": {"type": "number", "description": "Price value"},
                    "currency": {
                        "type": "string",
                        "default": "USD",
                        "description": "Currency code, e.g. USD, CNY, EUR",
                    },
                    "supplier": {"type": "string", "description": "Supplier name"},
                    "validity_days": {
                        "type": "integer",
                        "default": 30,
                        "description": "Number of days the quote stays valid",
                    },
                    "terms": {"type": "string", "description": "Trade terms, e.g. FOB, CIF, EXW"},
                    "route": {
                        "type": "string",
                        "description": "Logistics route, e.g. CN-DE (China to Germany)",
                    },
                },
                "required": ["item_type", "item_name", "price"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "save_regulation",
            "description": (
                "Save regulation or policy information to the knowledge base. Call this "
                "when a search turns up a new regulation, tariff policy or certification requirement."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "country": {
                        "type": "string",
                        "description": "Country or region code, e.g. US, DE, EU, CN",
                    },
                    "category": {
                        "type": "string",
                        "enum": ["regulation", "tariff", "certification", "restriction", "labeling"],
                        "description": "Regulation kind",
                    },
                    "title": {"type": "string", "description": "Regulation title"},
                    "content": {"type": "string", "description": "Summary of the regulation"},
                    "effective_year": {"type": "string", "description": "Year the regulation takes effect"},
                    "source": {"type": "string", "description": "Source URL"},
                },
                "required": ["country", "category", "title", "content"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "save_relation",
            "description": (
                "Save an entity relation to the knowledge graph. Call this when you find a "
                "supplier capability, a product certification requirement or a forwarder's service area."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "from_entity": {"type": "string", "description": "Source entity name"},
                    "from_type": {"type": "string", "enum": ENTITY_TYPES, "description": "Source entity type"},
                    "relation": {"type": "string", "enum": RELATION_TYPES, "description": "Relation type"},
                    "to_entity": {"type": "string", "description": "Target entity name"},
                    "to_type": {"type": "string", "enum": ENTITY_TYPES, "description": "Target entity type"},
                    "confidence": {
                        "type": "number",
                        "minimum": 0,
                        "maximum": 1,
                        "description": "Confidence (0-1)",
                    },
                },
                "required": ["from_entity", "from_type", "relation", "to_entity", "to_type"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "summarize_conversation",
            "description": (
                "Summarize the current conversation into long-term memory. Call this when the "
                "conversation ends or the user states an important preference."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "summary": {
                        "type": "string",
                        "description": "Short summary of the user's focus and what was discussed",
                    },
                    "key_entities": {
                        "type": "object",
                        "description": 'Key entities, e.g. {"focus_country": "DE", "focus_product": "LED lights"}',
                        "properties": {
                            "focus_country": {"type": "string"},
                            "focus_product": {"type": "string"},
                            "focus_supplier": {"type": "string"},
                        },
                    },
                    "user_preferences": {
                        "type": "object",
                        "description": 'User preferences, e.g. {"prefers_sea_freight": true, "budget_sensitive": true}',
                    },
                    "importance": {
                        "type": "integer",
                        "minimum": 1,
                        "maximum": 10,
                        "description": "Importance score (1-10)",
                    },
                    "action_items": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Follow-up items",
                    },
                },
                "required": ["summary", "key_entities"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "query_memory",
            "description": "Query long-term memory. Retrieve related history before answering a question.",
            "parameters": {
                "type": "object",
                "properties": {
                    "query_type": {
                        "type": "string",
                        "enum": ["quote", "knowledge", "relation", "hybrid"],
                        "description": "Query kind",
                    },
                    "keywords": {"type": "string", "description": "Search keywords"},
                    "filters": {
                        "type": "object",
                        "description": "Filter conditions",
                        "properties": {
                            "country": {"type": "string"},
                            "category": {"type": "string"},
                            "route": {"type": "string"},
                            "item_type": {"type": "string"},
                        },
                    },
                },
                "required": ["query_type", "keywords"],
            },
        },
    },
]


def get_tool_names() -> List[str]:
    return [tool["function"]["name"] for tool in MEMORY_TOOLS]


def _dump(model: pydantic.BaseModel) -> Dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)


class MemoryToolExecutor:
    """Executes memory tool calls against the memory service."""

    system_prompt = MEMORY_AGENT_SYSTEM_PROMPT

    def __init__(self, memory_service: MemoryService):
        self.memory_service = memory_service

    async def execute(
        self, name: str, arguments: Dict[str, Any], user_id: Optional[str] = None
    ) -> Any:
        """Run one tool call and return a JSON-serialisable result.

        Args:
            name: Tool name from ``MEMORY_TOOLS``
            arguments: Tool arguments as produced by the model
            user_id: Owner of conversation summaries and hybrid lookups

        Raises:
            UnknownToolError: If ``name`` is not a memory tool
            ValidationError: If the arguments do not fit the tool
        """
        handler = {
            "save_quote": self._save_quote,
            "save_regulation": self._save_regulation,
            "save_relation": self._save_relation,
            "summarize_conversation": self._summarize_conversation,
            "query_memory": self._query_memory,
        }.get(name)
        if handler is None:
            raise UnknownToolError(f"Unknown memory tool: {name}")

        LOGGER.info("Executing memory tool", extra={"tool": name, "user_id": user_id})
        try:
            return await handler(arguments or {}, user_id)
        except pydantic.ValidationError as e:
            raise ValidationError(f"Invalid arguments for {name}: {e}", original_error=e) from e

    async def _save_quote(self, args: Dict[str, Any], user_id: Optional[str]) -> Dict[str, Any]:
        data = QuoteCreate(
            item_type=args.get("item_type"),
            item_name=args.get("item_name"),
            price=args.get("price"),
            currency=args.get("currency") or "USD",
            supplier_id=args.get("supplier"),
            validity_days=args.get("validity_days") or 30,
            terms=args.get("terms"),
            route=args.get("route"),
            source="memory_agent",
        )
        quote = await self.memory_service.save_quote(data)
        return _dump(QuoteResponse.model_validate(quote))

    async def _save_regulation(self, args: Dict[str, Any], user_id: Optional[str]) -> Dict[str, Any]:
        effective_year = args.get("effective_year")
        data = KnowledgeCreate(
            category=args.get("category"),
            country=args.get("country"),
            title=args.get("title"),
            content=args.get("content"),
            source=args.get("source"),
            version=effective_year,
            metadata={"effective_year": effective_year} if effective_year else None,
        )
        chunk = await self.memory_service.save_knowledge(data)
        return _dump(KnowledgeResponse.model_validate(chunk))

    async def _save_relation(self, args: Dict[str, Any], user_id: Optional[str]) -> Dict[str, Any]:
        from_name = args.get("from_entity")
        to_name = args.get("to_entity")
        data = RelationCreate(
            from_type=args.get("from_type"),
            from_id=args.get("from_id") or from_name,
            from_name=from_name,
            relation_type=args.get("relation"),
            to_type=args.get("to_type"),
            to_id=args.get("to_id") or to_name,
            to_name=to_name,
            confidence=args.get("confidence"),
            source="memory_agent",
        )
        relation = await self.memory_service.save_relation(data)
        return _dump(RelationResponse.model_validate(relation))

    async def _summarize_conversation(
        self, args: Dict[str, Any], user_id: Optional[str]
    ) -> Dict[str, Any]:
        if not user_id:
            raise ValidationError("summarize_conversation requires a user_id")

        data = ConversationCreate(
            user_id=user_id,
            summary=args.get("summary"),
            key_entities=args.get("key_entities") or {},
            user_preferences=args.get("user_preferences"),
            action_items=args.get("action_items"),
            importance=args.get("importance") or 5,
        )
        memory = await self.memory_service.save_conversation_memory(data)
        return _dump(ConversationResponse.model_validate(memory))

    async def _query_memory(self, args: Dict[str, Any], user_id: Optional[str]) -> Any:
        query_type = args.get("query_type")
        keywords = args.get("keywords") or ""
        filters = args.get("filters") or {}

        if query_type == "quote":
            quotes = await self.memory_service.get_valid_quotes(
                item_type=filters.get("item_type"),
                route=filters.get("route"),
            )
            return [_dump(QuoteResponse.model_validate(q)) for q in quotes]

        if query_type == "knowledge":
            chunks = await self.memory_service.search_knowledge(
                keywords,
                category=filters.get("category"),
                country=filters.get("country"),
            )
            return [_dump(KnowledgeResponse.model_validate(k)) for k in chunks]

        if query_type == "relation":
            relations = await self.memory_service.find_related(keywords)
            return [_dump(RelationResponse.model_validate(r)) for r in relations]

        if query_type == "hybrid":
            memories = await self.memory_service.hybrid_search(
                keywords,
                user_id=user_id,
                country=filters.get("country"),
                product_type=keywords or None,
                route=filters.get("route"),
            )
            return {
                "memories": _dump(memories),
                "assembledContext": self.memory_service.assemble_memory_context(memories),
            }

        raise ValidationError(f"Unknown query_type: {query_type}")
