"""Long-term memory API endpoints."""

from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from tradenexus.core.dependencies import get_memory_service, get_tool_executor
from tradenexus.schemas.memory import (
    CapabilityCreate,
    CapabilityResponse,
    ConversationCreate,
    ConversationResponse,
    ExtractMemoryRequest,
    HybridSearchRequest,
    HybridSearchResponse,
    KnowledgeCreate,
    KnowledgeResponse,
    MemoryStats,
    PruneResponse,
    QuoteCreate,
    QuoteResponse,
    RelationCreate,
    RelationResponse,
    SupplierCreate,
    SupplierResponse,
    ToolCallRequest,
    ToolCallResponse,
)
from tradenexus.services.memory_service import MemoryService
from tradenexus.services.memory_tools import MEMORY_TOOLS, MemoryToolExecutor
from tradenexus.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()

MemoryServiceDep = Annotated[MemoryService, Depends(get_memory_service)]


# --- Factual memory ---


@router.post(
    "/quote",
    response_model=QuoteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Save a quote",
    operation_id="save_quote",
)
async def save_quote(payload: QuoteCreate, memory_service: MemoryServiceDep) -> QuoteResponse:
    """Save a quote; the live quote for the same supplier/item/type is deprecated."""
    quote = await memory_service.save_quote(payload)
    return QuoteResponse.model_validate(quote)


@router.get(
    "/quotes",
    response_model=List[QuoteResponse],
    summary="List valid quotes",
    operation_id="get_valid_quotes",
)
async def get_valid_quotes(
    memory_service: MemoryServiceDep,
    item_type: Annotated[Optional[str], Query(alias="itemType")] = None,
    route: Optional[str] = None,
    supplier_id: Annotated[Optional[str], Query(alias="supplierId")] = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> List[QuoteResponse]:
    quotes = await memory_service.get_valid_quotes(
        item_type=item_type, route=route, supplier_id=supplier_id, limit=limit
    )
    return [QuoteResponse.model_validate(q) for q in quotes]


@router.post(
    "/quotes/prune",
    response_model=PruneResponse,
    summary="Deprecate expired quotes",
    operation_id="prune_expired_quotes",
)
async def prune_expired_quotes(memory_service: MemoryServiceDep) -> PruneResponse:
    count = await memory_service.prune_expired_quotes()
    return PruneResponse(pruned=count)


# --- Semantic memory ---


@router.post(
    "/knowledge",
    response_model=KnowledgeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Save a knowledge chunk",
    operation_id="save_knowledge",
)
async def save_knowledge(payload: KnowledgeCreate, memory_service: MemoryServiceDep) -> KnowledgeResponse:
    chunk = await memory_service.save_knowledge(payload)
    return KnowledgeResponse.model_validate(chunk)


@router.get(
    "/knowledge/search",
    response_model=List[KnowledgeResponse],
    summary="Search the knowledge base",
    operation_id="search_knowledge",
)
async def search_knowledge(
    memory_service: MemoryServiceDep,
    q: str = "",
    category: Optional[str] = None,
    country: Optional[str] = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 5,
) -> List[KnowledgeResponse]:
    chunks = await memory_service.search_knowledge(q, category=category, country=country, limit=limit)
    return [KnowledgeResponse.model_validate(k) for k in chunks]


# --- Conversation memory ---


@router.post(
    "/conversation",
    response_model=ConversationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Save a conversation summary",
    operation_id="save_conversation_memory",
)
async def save_conversation(
    payload: ConversationCreate, memory_service: MemoryServiceDep
) -> ConversationResponse:
    memory = await memory_service.save_conversation_memory(payload)
    return ConversationResponse.model_validate(memory)


@router.get(
    "/conversation/{user_id}",
    response_model=List[ConversationResponse],
    summary="Get a user's memories",
    operation_id="get_user_memories",
)
async def get_user_memories(
    user_id: str,
    memory_service: MemoryServiceDep,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> List[ConversationResponse]:
    memories = await memory_service.get_user_memories(user_id, limit=limit)
    return [ConversationResponse.model_validate(m) for m in memories]


# --- Associative memory ---


@router.post(
    "/relation",
    response_model=RelationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Save an entity relation",
    operation_id="save_relation",
)
async def save_relation(payload: RelationCreate, memory_service: MemoryServiceDep) -> RelationResponse:
    relation = await memory_service.save_relation(payload)
    return RelationResponse.model_validate(relation)


@router.get(
    "/graph/traverse",
    response_model=List[RelationResponse],
    summary="Traverse the entity graph",
    operation_id="traverse_graph",
)
async def traverse_graph(
    memory_service: MemoryServiceDep,
    type: str,
    id: Optional[str] = None,
    name: Optional[str] = None,
    relation: Optional[str] = None,
    depth: Annotated[int, Query(ge=1, le=5)] = 1,
) -> List[RelationResponse]:
    relations = await memory_service.traverse_graph(
        type, start_id=id, start_name=name, relation_type=relation, depth=depth
    )
    return [RelationResponse.model_validate(r) for r in relations]


# --- Suppliers ---


@router.get(
    "/suppliers/capability",
    response_model=List[CapabilityResponse],
    summary="Find suppliers with a capability",
    operation_id="find_suppliers_with_capability",
)
async def find_suppliers_with_capability(
    memory_service: MemoryServiceDep,
    capability: str,
) -> List[CapabilityResponse]:
    capabilities = await memory_service.find_suppliers_with_capability(capability)
    return [CapabilityResponse.model_validate(c) for c in capabilities]


@router.post(
    "/suppliers",
    response_model=SupplierResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a supplier",
    operation_id="save_supplier",
)
async def save_supplier(payload: SupplierCreate, memory_service: MemoryServiceDep) -> SupplierResponse:
    supplier = await memory_service.save_supplier(payload)
    return SupplierResponse.model_validate(supplier)


@router.post(
    "/suppliers/{supplier_id}/capabilities",
    response_model=CapabilityResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a supplier capability",
    operation_id="add_supplier_capability",
)
async def add_supplier_capability(
    supplier_id: UUID,
    payload: CapabilityCreate,
    memory_service: MemoryServiceDep,
) -> CapabilityResponse:
    capability = await memory_service.add_supplier_capability(supplier_id, payload)
    return CapabilityResponse.model_validate(capability)


# --- Retrieval ---


@router.post(
    "/search/hybrid",
    response_model=HybridSearchResponse,
    summary="Hybrid search across all memory kinds",
    operation_id="hybrid_search",
)
async def hybrid_search(
    payload: HybridSearchRequest, memory_service: MemoryServiceDep
) -> HybridSearchResponse:
    """Query facts, regulations, associations and user memory, then assemble a prompt context."""
    memories = await memory_service.hybrid_search(
        payload.query,
        user_id=payload.user_id,
        country=payload.country,
        product_type=payload.product_type,
        route=payload.route,
    )
    return HybridSearchResponse(
        memories=memories,
        assembled_context=memory_service.assemble_memory_context(memories),
    )


@router.get(
    "/stats",
    response_model=MemoryStats,
    summary="Memory statistics",
    operation_id="get_memory_stats",
)
async def get_memory_stats(memory_service: MemoryServiceDep) -> MemoryStats:
    return await memory_service.get_memory_stats()


# --- Memory agent ---


@router.post(
    "/extract",
    status_code=status.HTTP_201_CREATED,
    summary="Save a memory extracted by the model",
    operation_id="extract_and_save_memory",
)
async def extract_and_save_memory(payload: ExtractMemoryRequest, memory_service: MemoryServiceDep) -> dict:
    record = await memory_service.extract_and_save_memory(payload.text, payload.type, payload.data)
    response_model = {
        "quote": QuoteResponse,
        "regulation": KnowledgeResponse,
        "relation": RelationResponse,
    }[payload.type]
    return response_model.model_validate(record).model_dump(mode="json", by_alias=True)


@router.get(
    "/tools",
    summary="Memory agent tool definitions",
    operation_id="get_memory_tools",
)
async def get_memory_tools() -> dict:
    return {"tools": MEMORY_TOOLS, "systemPrompt": MemoryToolExecutor.system_prompt}


@router.post(
    "/tools/execute",
    response_model=ToolCallResponse,
    summary="Execute a memory tool call",
    operation_id="execute_memory_tool",
)
async def execute_memory_tool(
    payload: ToolCallRequest,
    executor: Annotated[MemoryToolExecutor, Depends(get_tool_executor)],
) -> ToolCallResponse:
    result = await executor.execute(payload.name, payload.arguments, user_id=payload.user_id)
    return ToolCallResponse(name=payload.name, result=result)
