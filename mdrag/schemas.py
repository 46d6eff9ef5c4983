"""Wire contracts for the providers and the typed search request."""
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class EmbeddingRequest(BaseModel):
    model: str
    prompt: str


class EmbeddingResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    embedding: List[float] = Field(validation_alias=AliasChoices("embedding", "vector"))


class RerankRequest(BaseModel):
    query: str
    documents: List[str]
    top_k: Optional[int] = None


class RerankResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    index: int = Field(ge=0)
    document: Optional[str] = None
    score: float
    rank: Optional[int] = None


class RerankResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    query: Optional[str] = None
    results: List[RerankResult]
    processing_time_ms: Optional[float] = None
    device: Optional[str] = None


class SearchRequest(BaseModel):
    """Validated arguments of a search call."""
    model_config = ConfigDict(extra="ignore")

    query: str
    top_k: int = Field(default=5, ge=1)
    use_reranker: bool = False

    @field_validator("query")
    @classmethod
    def _query_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("query cannot be blank")
        return value
