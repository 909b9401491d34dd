"""Weaviate-backed sound bite catalog."""

from __future__ import annotations

import json
import logging
from time import monotonic
from typing import Any, Iterable, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as ShapeMismatch

from ..core import ExternalServiceError, ResponseShapeError, ValidationError
from ..core.models import (
    SOUND_BITE_CLASS,
    AggregateResponse,
    BatchObjectResult,
    CreatedObject,
    GraphQLError,
    NewSoundBite,
    RankedSoundBite,
    Schema,
    SoundBite,
    SoundBiteListResponse,
    SoundBiteSearchResponse,
    WeaviateMeta,
)
from ..core.ranking import rank_results

logger = logging.getLogger("soundmatch.vector_store")

ModelT = TypeVar("ModelT", bound=BaseModel)

SEARCH_FIELDS = "title description audioUrl tags duration _additional { distance certainty id }"
LIST_FIELDS = "title description audioUrl tags duration _additional { id }"

SOUND_BITE_SCHEMA: dict[str, Any] = {
    "class": SOUND_BITE_CLASS,
    "description": "A sound bite with audio content and metadata",
    "vectorizer": "text2vec-openai",
    "moduleConfig": {
        "text2vec-openai": {
            "model": "ada",
            "modelVersion": "002",
            "type": "text",
        },
    },
    "properties": [
        {"dataType": ["string"], "description": "The title of the sound bite", "name": "title"},
        {"dataType": ["text"], "description": "Detailed description of the sound", "name": "description"},
        {"dataType": ["string"], "description": "URL to the audio file", "name": "audioUrl"},
        {"dataType": ["string[]"], "description": "Tags associated with the sound", "name": "tags"},
        {"dataType": ["number"], "description": "Duration of the sound in seconds", "name": "duration"},
    ],
}

_BATCH_RESULTS = TypeAdapter(List[BatchObjectResult])


class WeaviateVectorStore:
    """Thin async client over the Weaviate REST and GraphQL endpoints."""

    def __init__(
        self,
        url: str,
        api_key: str | None = None,
        openai_api_key: str | None = None,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url.rstrip("/")
        headers: dict[str, str] = {}
        if openai_api_key:
            # Forwarded to the text2vec-openai vectorizer module.
            headers["X-OpenAI-Api-Key"] = openai_api_key
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(
            base_url=self.url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def connect(self) -> None:
        """Log the Weaviate version we are talking to; never raises."""

        try:
            meta = await self.meta()
        except ExternalServiceError as exc:
            logger.warning("Weaviate at %s is not reachable yet: %s", self.url, exc)
            return
        logger.info("Connected to Weaviate %s at %s", meta.version or "?", self.url)

    async def close(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search_sounds(
        self, query: str, limit: int = 10, threshold: float = 0.7
    ) -> List[RankedSoundBite]:
        """Run a nearText query and return hits ranked by confidence."""

        if not isinstance(query, str) or not query.strip():
            raise ValidationError("Query cannot be empty")
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise ValidationError("Limit must be a positive integer")
        if not 0 <= threshold <= 1:
            raise ValidationError("Threshold must be between 0 and 1")

        action = "search sounds"
        graphql = (
            "{ Get { %s(nearText: {concepts: [%s]}, limit: %d) { %s } } }"
            % (SOUND_BITE_CLASS, json.dumps(query, ensure_ascii=False), limit, SEARCH_FIELDS)
        )
        started = monotonic()
        payload = await self._graphql(graphql, action)
        response = self._decode(SoundBiteSearchResponse, payload, action)
        self._raise_graphql_errors(response.errors, action)
        if response.data is None:
            raise ResponseShapeError(f"Failed to {action}: response carried no data")

        hits = response.data.get.get(SOUND_BITE_CLASS) or []
        ranked = rank_results(hits, threshold)
        logger.info(
            "nearText query returned %d candidates, %d above threshold=%.2f (limit=%d, %.0fms)",
            len(hits),
            len(ranked),
            threshold,
            limit,
            (monotonic() - started) * 1000,
        )
        return ranked

    # ------------------------------------------------------------------
    # Objects
    # ------------------------------------------------------------------

    async def add_sound_bite(self, sound_bite: NewSoundBite) -> SoundBite:
        action = "add sound bite"
        properties = sound_bite.to_properties()
        payload = await self._request(
            "POST",
            "/v1/objects",
            action,
            json={"class": SOUND_BITE_CLASS, "properties": properties},
        )
        created = self._decode(CreatedObject, payload, action)
        logger.info("Stored sound bite id=%s title=%r", created.id, sound_bite.title)
        return SoundBite(id=created.id, **properties)

    async def batch_import(self, sound_bites: Iterable[NewSoundBite]) -> int:
        action = "batch import"
        objects = [
            {"class": SOUND_BITE_CLASS, "properties": item.to_properties()}
            for item in sound_bites
        ]
        if not objects:
            return 0
        payload = await self._request(
            "POST", "/v1/batch/objects", action, json={"objects": objects}
        )
        try:
            results = _BATCH_RESULTS.validate_python(payload)
        except ShapeMismatch as exc:
            raise ResponseShapeError(
                f"Failed to {action}: unexpected response shape ({exc.error_count()} errors)"
            ) from exc

        messages = [
            err.message
            for result in results
            if result.result and result.result.errors
            for err in result.result.errors.error
        ]
        if messages:
            logger.error("Batch import rejected %d objects: %s", len(messages), messages[0])
            raise ExternalServiceError(f"Failed to {action}: {messages[0]}")
        logger.info("Batch imported %d sound bites", len(objects))
        return len(objects)

    async def list_sound_bites(self, limit: int = 100) -> List[SoundBite]:
        action = "list sound bites"
        graphql = "{ Get { %s(limit: %d) { %s } } }" % (SOUND_BITE_CLASS, limit, LIST_FIELDS)
        payload = await self._graphql(graphql, action)
        response = self._decode(SoundBiteListResponse, payload, action)
        self._raise_graphql_errors(response.errors, action)
        if response.data is None:
            raise ResponseShapeError(f"Failed to {action}: response carried no data")
        rows = response.data.get.get(SOUND_BITE_CLASS) or []
        return [row.to_sound_bite() for row in rows]

    async def get_sound_bite(self, object_id: str) -> Optional[SoundBite]:
        action = "get sound bite"
        payload = await self._request(
            "GET", f"/v1/objects/{object_id}", action, allow_missing=True
        )
        if payload is None:
            return None
        obj = self._decode(CreatedObject, payload, action)
        try:
            return SoundBite.model_validate({**obj.properties, "id": obj.id})
        except ShapeMismatch as exc:
            raise ResponseShapeError(
                f"Failed to {action}: object {object_id} is not a sound bite"
            ) from exc

    async def delete_sound_bite(self, object_id: str) -> bool:
        """Delete one object; returns False when it did not exist."""

        action = "delete sound bite"
        response = await self._send("DELETE", f"/v1/objects/{object_id}", action)
        if response.status_code == 404:
            logger.warning("Sound bite %s not found; nothing deleted", object_id)
            return False
        self._check_status(response, action)
        logger.info("Deleted sound bite %s", object_id)
        return True

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    async def get_schema(self) -> Schema:
        action = "get schema"
        payload = await self._request("GET", "/v1/schema", action)
        return self._decode(Schema, payload, action)

    async def schema_exists(self) -> bool:
        try:
            schema = await self.get_schema()
        except ExternalServiceError as exc:
            logger.warning("Schema probe failed, assuming no SoundBite class: %s", exc)
            return False
        return any(cls.class_name == SOUND_BITE_CLASS for cls in schema.classes)

    async def create_schema(self) -> None:
        await self._request("POST", "/v1/schema", "create schema", json=SOUND_BITE_SCHEMA)
        logger.info("Created %s class", SOUND_BITE_CLASS)

    async def clear_sound_bites(self) -> None:
        """Drop the SoundBite class together with every stored object."""

        await self._request("DELETE", f"/v1/schema/{SOUND_BITE_CLASS}", "clear sound bites")
        logger.info("Deleted %s class", SOUND_BITE_CLASS)

    async def count_objects(self, class_name: str = SOUND_BITE_CLASS) -> int:
        action = f"count {class_name} objects"
        graphql = "{ Aggregate { %s { meta { count } } } }" % class_name
        payload = await self._graphql(graphql, action)
        response = self._decode(AggregateResponse, payload, action)
        self._raise_graphql_errors(response.errors, action)
        if response.data is None:
            raise ResponseShapeError(f"Failed to {action}: response carried no data")
        groups = response.data.aggregate.get(class_name) or []
        return groups[0].meta.count if groups else 0

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    async def meta(self) -> WeaviateMeta:
        payload = await self._request("GET", "/v1/meta", "reach Weaviate")
        return self._decode(WeaviateMeta, payload, "reach Weaviate")

    async def test_connection(self) -> bool:
        try:
            await self.meta()
        except ExternalServiceError as exc:
            logger.warning("Weaviate connection test failed: %s", exc)
            return False
        return True

    # ------------------------------------------------------------------
    # Transport helpers
    # ------------------------------------------------------------------

    async def _graphql(self, query: str, action: str) -> Any:
        return await self._request("POST", "/v1/graphql", action, json={"query": query})

    async def _send(self, method: str, path: str, action: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Weaviate %s %s failed: %s", method, path, exc)
            raise ExternalServiceError(f"Failed to {action}: {exc}") from exc

    async def _request(
        self,
        method: str,
        path: str,
        action: str,
        allow_missing: bool = False,
        **kwargs: Any,
    ) -> Any:
        response = await self._send(method, path, action, **kwargs)
        if allow_missing and response.status_code == 404:
            return None
        self._check_status(response, action)
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ResponseShapeError(f"Failed to {action}: response was not JSON") from exc

    @staticmethod
    def _check_status(response: httpx.Response, action: str) -> None:
        if response.is_success:
            return
        detail = _error_detail(response)
        logger.error(
            "Weaviate %s %s returned %d: %s",
            response.request.method,
            response.request.url.path,
            response.status_code,
            detail,
        )
        raise ExternalServiceError(f"Failed to {action}: {detail}")

    @staticmethod
    def _decode(model: Type[ModelT], payload: Any, action: str) -> ModelT:
        try:
            return model.model_validate(payload)
        except ShapeMismatch as exc:
            logger.error("Unexpected Weaviate response for %s: %s", action, exc)
            raise ResponseShapeError(
                f"Failed to {action}: unexpected response shape ({exc.error_count()} errors)"
            ) from exc

    @staticmethod
    def _raise_graphql_errors(errors: Optional[list[GraphQLError]], action: str) -> None:
        if errors:
            logger.error("GraphQL errors during %s: %s", action, [e.message for e in errors])
            raise ExternalServiceError(f"Failed to {action}: {errors[0].message}")


def _error_detail(response: httpx.Response) -> str:
    """Pull a readable message out of a Weaviate error body."""

    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(body, dict):
        errors = body.get("error")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            message = errors[0].get("message")
            if message:
                return str(message)
        if isinstance(body.get("message"), str):
            return body["message"]
    return f"HTTP {response.status_code}"
