"""Request and response schemas for the memory API.

Field names are snake_case in Python and camelCase on the wire; both spellings
are accepted on input.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

QuoteItemType = Literal["product", "freight", "service"]
KnowledgeCategory = Literal[
    "regulation",
    "contract",
    "product_spec",
    "tariff",
    "certification",
    "restriction",
    "labeling",
]
Sentiment = Literal["positive", "neutral", "negative"]


class CamelModel(BaseModel):
    """Base model serialising to camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# --- Requests ---


class QuoteCreate(CamelModel):
    """New price/offer snapshot."""

    item_type: QuoteItemType
    item_name: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    currency: str = Field(default="USD", min_length=1, max_length=8)
    unit: Optional[str] = None
    route: Optional[str] = Field(default=None, description="Logistics lane, e.g. CN-DE")
    terms: Optional[str] = Field(default=None, description="Trade terms, e.g. FOB, CIF, EXW")
    supplier_id: Optional[str] = None
    validity_days: int = Field(default=30, ge=1, le=3650)
    source: str = "memory_agent"
    metadata: Optional[Dict[str, Any]] = None


class KnowledgeCreate(CamelModel):
    """Regulation, contract or spec text fragment."""

    category: KnowledgeCategory
    country: Optional[str] = None
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    source: Optional[str] = None
    version: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class ConversationCreate(CamelModel):
    """Summary of a conversation worth remembering."""

    user_id: str = Field(..., min_length=1)
    session_id: Optional[str] = None
    summary: str = Field(..., min_length=1)
    key_entities: Dict[str, Any] = Field(default_factory=dict)
    user_preferences: Optional[Dict[str, Any]] = None
    action_items: Optional[List[Any]] = None
    sentiment: Optional[Sentiment] = None
    importance: int = Field(default=5, ge=1, le=10)


class RelationCreate(CamelModel):
    """Directed edge between two entities."""

    from_type: str = Field(..., min_length=1)
    from_id: str = Field(..., min_length=1)
    from_name: str = Field(..., min_length=1)
    relation_type: str = Field(..., min_length=1)
    to_type: str = Field(..., min_length=1)
    to_id: str = Field(..., min_length=1)
    to_name: str = Field(..., min_length=1)
    properties: Optional[Dict[str, Any]] = None
    confidence: Optional[float] = Field(default=None, ge=0, le=1)
    source: Optional[str] = None


class SupplierCreate(CamelModel):
    name: str = Field(..., min_length=1)
    platform: Optional[str] = None
    url: Optional[str] = None
    country: Optional[str] = None
    rating: Optional[float] = Field(default=None, ge=0, le=5)


class CapabilityCreate(CamelModel):
    capability: str = Field(..., min_length=1)
    details: Optional[Dict[str, Any]] = None
    valid_until: Optional[datetime] = None


class HybridSearchRequest(CamelModel):
    query: str = ""
    user_id: Optional[str] = None
    country: Optional[str] = None
    product_type: Optional[str] = None
    route: Optional[str] = None


class ExtractMemoryRequest(CamelModel):
    """Structured memory extracted from free text by the model."""

    text: str = ""
    type: Literal["quote", "regulation", "relation"]
    data: Dict[str, Any]


class ToolCallRequest(CamelModel):
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)
    user_id: Optional[str] = None


# --- Responses ---


class QuoteResponse(CamelModel):
    id: UUID
    item_type: str
    item_name: str
    price: float
    currency: str
    unit: Optional[str] = None
    route: Optional[str] = None
    terms: Optional[str] = None
    supplier_id: Optional[str] = None
    valid_until: datetime
    source: str
    metadata: Optional[Dict[str, Any]] = Field(
        default=None,
        validation_alias=AliasChoices("extra_metadata", "metadata"),
        serialization_alias="metadata",
    )
    is_deprecated: bool
    created_at: datetime


class KnowledgeResponse(CamelModel):
    id: UUID
    category: str
    country: Optional[str] = None
    title: str
    content: str
    source: Optional[str] = None
    version: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(
        default=None,
        validation_alias=AliasChoices("extra_metadata", "metadata"),
        serialization_alias="metadata",
    )
    is_deprecated: bool
    superseded_by: Optional[str] = None
    created_at: datetime


class ConversationResponse(CamelModel):
    id: UUID
    user_id: str
    session_id: Optional[str] = None
    summary: str
    key_entities: Dict[str, Any]
    user_preferences: Optional[Dict[str, Any]] = None
    action_items: Optional[List[Any]] = None
    sentiment: Optional[str] = None
    importance: int
    last_interaction: datetime
    created_at: datetime


class RelationResponse(CamelModel):
    id: UUID
    from_type: str
    from_id: str
    from_name: str
    relation_type: str
    to_type: str
    to_id: str
    to_name: str
    properties: Optional[Dict[str, Any]] = None
    confidence: Optional[float] = None
    source: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class SupplierResponse(CamelModel):
    id: UUID
    name: str
    platform: Optional[str] = None
    url: Optional[str] = None
    country: Optional[str] = None
    rating: Optional[float] = None
    created_at: datetime


class CapabilityResponse(CamelModel):
    id: UUID
    supplier_id: UUID
    capability: str
    details: Optional[Dict[str, Any]] = None
    valid_until: Optional[datetime] = None
    supplier: Optional[SupplierResponse] = None


class PruneResponse(CamelModel):
    pruned: int


class HybridMemories(CamelModel):
    """Flattened text block per memory kind; empty string when nothing matched."""

    factual_memory: str = ""
    semantic_memory: str = ""
    graph_memory: str = ""
    user_context: str = ""


class HybridSearchResponse(CamelModel):
    memories: HybridMemories
    assembled_context: str


class MemoryStats(CamelModel):
    factual_memory: Dict[str, int]
    semantic_memory: Dict[str, int]
    associative_memory: Dict[str, int]
    conversation_memory: Dict[str, int]
    total_memories: int


class ToolCallResponse(CamelModel):
    name: str
    result: Any
