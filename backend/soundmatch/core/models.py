"""Shared data models for the sound catalog, external responses and the API."""

from __future__ import annotations

import math
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SOUND_BITE_CLASS = "SoundBite"


def normalize_tags(tags: Any) -> list[str]:
    """Turn a comma-separated string or a list into trimmed, non-empty tags."""

    if tags is None:
        return []
    if isinstance(tags, str):
        items = tags.split(",")
    elif isinstance(tags, (list, tuple)):
        items = [str(tag) for tag in tags]
    else:
        raise ValueError("Tags must be a list or a comma-separated string")
    return [tag.strip() for tag in items if tag.strip()]


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Catalog entities
# ---------------------------------------------------------------------------


class SoundBite(CamelModel):
    """A stored audio clip with descriptive metadata."""

    id: str = Field(description="Identifier assigned by the vector database")
    title: str
    description: str
    audio_url: str = Field(alias="audioUrl", description="Local path or remote URL")
    tags: list[str] = Field(default_factory=list)
    duration: float = Field(ge=0, description="Clip length in seconds")


class RankedSoundBite(SoundBite):
    """Search hit with a query-time confidence score; never persisted."""

    confidence: float = Field(ge=0, le=100)


class NewSoundBite(CamelModel):
    """Insert payload for a sound bite."""

    title: str
    description: str
    audio_url: str = Field(alias="audioUrl")
    tags: list[str] = Field(default_factory=list)
    duration: float

    @field_validator("title", "description", "audio_url", mode="before")
    @classmethod
    def _require_text(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Missing required fields: title, description, audioUrl, duration")
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value: Any) -> list[str]:
        return normalize_tags(value)

    @field_validator("duration", mode="before")
    @classmethod
    def _parse_duration(cls, value: Any) -> float:
        if value is None or value == "":
            raise ValueError("Missing required fields: title, description, audioUrl, duration")
        if isinstance(value, bool):
            raise ValueError("Duration must be a positive number")
        try:
            duration = float(value)
        except (TypeError, ValueError):
            raise ValueError("Duration must be a positive number") from None
        if not math.isfinite(duration) or duration <= 0:
            raise ValueError("Duration must be a positive number")
        return duration

    def to_properties(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


# ---------------------------------------------------------------------------
# Weaviate response shapes
# ---------------------------------------------------------------------------


class GraphQLError(BaseModel):
    message: str


class SearchAdditional(BaseModel):
    id: str
    distance: float
    certainty: Optional[float] = None


class SoundBiteHit(CamelModel):
    """One row of a nearText query on the SoundBite class."""

    title: str
    description: str
    audio_url: str = Field(alias="audioUrl")
    tags: Optional[list[str]] = None
    duration: float
    additional: SearchAdditional = Field(alias="_additional")


class SoundBiteGetData(CamelModel):
    get: dict[str, Optional[list[SoundBiteHit]]] = Field(alias="Get")


class SoundBiteSearchResponse(BaseModel):
    data: Optional[SoundBiteGetData] = None
    errors: Optional[list[GraphQLError]] = None


class StoredAdditional(BaseModel):
    id: str


class StoredSoundBite(CamelModel):
    title: str
    description: str
    audio_url: str = Field(alias="audioUrl")
    tags: Optional[list[str]] = None
    duration: float
    additional: StoredAdditional = Field(alias="_additional")

    def to_sound_bite(self) -> SoundBite:
        return SoundBite(
            id=self.additional.id,
            title=self.title,
            description=self.description,
            audio_url=self.audio_url,
            tags=self.tags or [],
            duration=self.duration,
        )


class SoundBiteListData(CamelModel):
    get: dict[str, Optional[list[StoredSoundBite]]] = Field(alias="Get")


class SoundBiteListResponse(BaseModel):
    data: Optional[SoundBiteListData] = None
    errors: Optional[list[GraphQLError]] = None


class AggregateMeta(BaseModel):
    count: int


class AggregateGroup(BaseModel):
    meta: AggregateMeta


class AggregateData(CamelModel):
    aggregate: dict[str, Optional[list[AggregateGroup]]] = Field(alias="Aggregate")


class AggregateResponse(BaseModel):
    data: Optional[AggregateData] = None
    errors: Optional[list[GraphQLError]] = None


class ClassProperty(CamelModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str
    data_type: list[str] = Field(alias="dataType")
    description: Optional[str] = None


class ClassDefinition(CamelModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    class_name: str = Field(alias="class")
    description: Optional[str] = None
    vectorizer: Optional[str] = None
    properties: list[ClassProperty] = Field(default_factory=list)


class Schema(BaseModel):
    classes: list[ClassDefinition] = Field(default_factory=list)


class CreatedObject(CamelModel):
    id: str
    class_name: Optional[str] = Field(default=None, alias="class")
    properties: dict[str, Any] = Field(default_factory=dict)


class BatchErrorItem(BaseModel):
    message: str


class BatchErrors(BaseModel):
    error: list[BatchErrorItem] = Field(default_factory=list)


class BatchResultStatus(BaseModel):
    errors: Optional[BatchErrors] = None


class BatchObjectResult(BaseModel):
    id: Optional[str] = None
    result: Optional[BatchResultStatus] = None


class WeaviateMeta(BaseModel):
    version: Optional[str] = None
    hostname: Optional[str] = None


# ---------------------------------------------------------------------------
# OpenAI response shapes
# ---------------------------------------------------------------------------


class ChatMessage(BaseModel):
    role: str
    content: Optional[str] = None


class ChatChoice(BaseModel):
    index: int = 0
    message: ChatMessage
    finish_reason: Optional[str] = None


class ChatUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatCompletion(BaseModel):
    id: Optional[str] = None
    model: Optional[str] = None
    choices: list[ChatChoice] = Field(default_factory=list)
    usage: Optional[ChatUsage] = None


# ---------------------------------------------------------------------------
# API contracts
# ---------------------------------------------------------------------------


class SoundSearchRequest(BaseModel):
    query: str
    limit: int = Field(default=10, gt=0)
    threshold: float = Field(default=0.7, ge=0.0, le=1.0)

    @field_validator("query", mode="before")
    @classmethod
    def _check_query(cls, value: Any) -> str:
        if not isinstance(value, str) or not value:
            raise ValueError("Query is required and must be a string")
        if not value.strip():
            raise ValueError("Query cannot be empty")
        return value


class ImageAnalysisResponse(CamelModel):
    success: bool = True
    description: str
    processing_time: int = Field(alias="processingTime")


class SoundSearchResponse(CamelModel):
    success: bool = True
    results: list[RankedSoundBite]
    total_count: int = Field(alias="totalCount")
    processing_time: int = Field(alias="processingTime")


class SoundMatchResponse(SoundSearchResponse):
    description: str


class UploadSoundResponse(BaseModel):
    success: bool = True
    data: SoundBite


class ClassInfo(ClassDefinition):
    object_count: int = Field(default=0, alias="objectCount")


class SchemaInfo(BaseModel):
    classes: list[ClassInfo] = Field(default_factory=list)


class SchemaInfoResponse(BaseModel):
    success: bool = True
    schema_: SchemaInfo = Field(alias="schema")

    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
