from __future__ import annotations

import json
from typing import Callable

import httpx
import pytest

from soundmatch.config import Settings
from soundmatch.services import VisionDescriber, WeaviateVectorStore

OPENAI_KEY = "sk-test-0123456789abcdefghij"


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    def graphql_queries(self) -> list[str]:
        return [
            json.loads(req.content)["query"]
            for req in self.requests
            if req.url.path == "/v1/graphql"
        ]


def hit(title: str, distance: float, object_id: str | None = None, **extra) -> dict:
    row = {
        "title": title,
        "description": f"{title} description",
        "audioUrl": f"https://example.com/{title.lower().replace(' ', '-')}.mp3",
        "tags": ["test"],
        "duration": 10,
        "_additional": {
            "id": object_id or f"id-{title.lower().replace(' ', '-')}",
            "distance": distance,
            "certainty": 1 - distance / 2,
        },
    }
    row.update(extra)
    return row


def search_payload(rows: list[dict]) -> dict:
    return {"data": {"Get": {"SoundBite": rows}}}


@pytest.fixture
def settings() -> Settings:
    return Settings(
        openai_api_key=OPENAI_KEY,
        weaviate_url="http://weaviate.test",
        cors_origins=["http://localhost:3000"],
        max_file_size=1024,
    )


@pytest.fixture
def make_store() -> Callable[[Callable[[httpx.Request], httpx.Response]], tuple[WeaviateVectorStore, RecordingTransport]]:
    def _make(handler):
        transport = RecordingTransport(handler)
        store = WeaviateVectorStore(
            url="http://weaviate.test",
            api_key="weaviate-key",
            openai_api_key=OPENAI_KEY,
            transport=transport,
        )
        return store, transport

    return _make


@pytest.fixture
def make_describer() -> Callable[[Callable[[httpx.Request], httpx.Response]], tuple[VisionDescriber, RecordingTransport]]:
    def _make(handler):
        transport = RecordingTransport(handler)
        describer = VisionDescriber(api_key=OPENAI_KEY, transport=transport)
        return describer, transport

    return _make


def completion(content: str | None) -> dict:
    return {
        "id": "chatcmpl-1",
        "model": "chatgpt-4o-latest",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
    }
