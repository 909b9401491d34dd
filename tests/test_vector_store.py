import json

import httpx
import pytest

from soundmatch.core import ExternalServiceError, ResponseShapeError, ValidationError
from soundmatch.core.models import NewSoundBite
from soundmatch.services.vector_store import SOUND_BITE_SCHEMA

from .conftest import hit, search_payload


def _unreachable(request):
    raise AssertionError(f"unexpected request {request.method} {request.url}")


async def test_search_ranks_and_filters(make_store):
    rows = [hit("Far", 1.8), hit("Close", 0.2), hit("Middle", 1.0)]
    store, transport = make_store(lambda request: httpx.Response(200, json=search_payload(rows)))

    results = await store.search_sounds("rain on a tin roof", limit=3, threshold=0.5)

    assert [r.title for r in results] == ["Close", "Middle"]
    assert [r.confidence for r in results] == pytest.approx([90, 50])
    assert all(r.confidence >= 50 for r in results)


async def test_search_sends_near_text_query(make_store):
    store, transport = make_store(lambda request: httpx.Response(200, json=search_payload([])))

    await store.search_sounds('a "quoted" sound', limit=4, threshold=0.1)

    request = transport.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/v1/graphql"
    assert request.headers["X-OpenAI-Api-Key"].startswith("sk-")
    assert request.headers["Authorization"] == "Bearer weaviate-key"
    query = transport.graphql_queries()[0]
    assert "SoundBite(nearText: {concepts: [\"a \\\"quoted\\\" sound\"]}, limit: 4)" in query
    for field in ("title", "description", "audioUrl", "tags", "duration", "distance", "certainty", "id"):
        assert field in query


async def test_search_keeps_non_ascii_query_text(make_store):
    store, transport = make_store(lambda request: httpx.Response(200, json=search_payload([])))

    await store.search_sounds("sad trombone 🎺 café", limit=3, threshold=0.5)

    query = transport.graphql_queries()[0]
    assert "concepts: [\"sad trombone 🎺 café\"]" in query
    assert "\\u" not in query


async def test_search_zero_threshold_returns_all_candidates(make_store):
    rows = [hit("A", 0.3), hit("B", 1.5), hit("C", 2.0)]
    store, _ = make_store(lambda request: httpx.Response(200, json=search_payload(rows)))

    results = await store.search_sounds("anything", threshold=0)

    assert len(results) == 3


async def test_search_no_matches_is_empty_list(make_store):
    store, _ = make_store(lambda request: httpx.Response(200, json=search_payload([hit("Far", 1.9)])))

    assert await store.search_sounds("silence", threshold=0.7) == []


async def test_search_missing_class_is_empty_list(make_store):
    store, _ = make_store(lambda request: httpx.Response(200, json={"data": {"Get": {"SoundBite": None}}}))

    assert await store.search_sounds("silence") == []


@pytest.mark.parametrize("query", ["", "   ", None, 7])
async def test_empty_query_rejected_before_any_request(make_store, query):
    store, transport = make_store(_unreachable)

    with pytest.raises(ValidationError):
        await store.search_sounds(query)

    assert transport.requests == []


async def test_invalid_limit_and_threshold_rejected(make_store):
    store, transport = make_store(_unreachable)

    with pytest.raises(ValidationError):
        await store.search_sounds("rain", limit=0)
    with pytest.raises(ValidationError):
        await store.search_sounds("rain", threshold=1.5)
    assert transport.requests == []


async def test_search_graphql_errors_raise(make_store):
    store, _ = make_store(
        lambda request: httpx.Response(200, json={"errors": [{"message": "no such class"}]})
    )

    with pytest.raises(ExternalServiceError, match="Failed to search sounds: no such class"):
        await store.search_sounds("rain")


async def test_search_http_error_is_wrapped(make_store):
    store, _ = make_store(
        lambda request: httpx.Response(401, json={"error": [{"message": "unauthorized"}]})
    )

    with pytest.raises(ExternalServiceError, match="unauthorized"):
        await store.search_sounds("rain")


async def test_search_network_error_is_wrapped(make_store):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    store, _ = make_store(refuse)

    with pytest.raises(ExternalServiceError, match="Failed to search sounds: connection refused"):
        await store.search_sounds("rain")


async def test_search_shape_mismatch_fails_fast(make_store):
    broken = {"data": {"Get": {"SoundBite": [{"title": "No distance"}]}}}
    store, _ = make_store(lambda request: httpx.Response(200, json=broken))

    with pytest.raises(ResponseShapeError):
        await store.search_sounds("rain")


async def test_add_sound_bite_returns_created_record(make_store):
    def handler(request):
        body = json.loads(request.content)
        assert body["class"] == "SoundBite"
        assert body["properties"]["tags"] == ["a", "b", "c"]
        return httpx.Response(200, json={"id": "new-id", "class": "SoundBite", "properties": body["properties"]})

    store, transport = make_store(handler)
    new = NewSoundBite.model_validate(
        {"title": "Bell", "description": "A bell", "audioUrl": "/bell.mp3", "tags": "a, b ,c", "duration": "2"}
    )

    created = await store.add_sound_bite(new)

    assert transport.requests[0].url.path == "/v1/objects"
    assert created.id == "new-id"
    assert created.duration == 2.0
    assert created.tags == ["a", "b", "c"]


async def test_batch_import_reports_object_errors(make_store):
    def handler(request):
        objects = json.loads(request.content)["objects"]
        results = [{"id": str(i), "result": {}} for i, _ in enumerate(objects)]
        results[1]["result"] = {"errors": {"error": [{"message": "vectorizer failed"}]}}
        return httpx.Response(200, json=results)

    store, _ = make_store(handler)
    sounds = [
        NewSoundBite(title=f"S{i}", description="d", audio_url="/s.mp3", duration=1)
        for i in range(3)
    ]

    with pytest.raises(ExternalServiceError, match="vectorizer failed"):
        await store.batch_import(sounds)


async def test_batch_import_counts_objects(make_store):
    store, transport = make_store(
        lambda request: httpx.Response(200, json=[{"id": "1", "result": {}}, {"id": "2"}])
    )
    sounds = [
        NewSoundBite(title=f"S{i}", description="d", audio_url="/s.mp3", duration=1)
        for i in range(2)
    ]

    assert await store.batch_import(sounds) == 2
    assert transport.requests[0].url.path == "/v1/batch/objects"


async def test_schema_exists_is_best_effort(make_store):
    store, _ = make_store(lambda request: httpx.Response(500, text="boom"))
    assert await store.schema_exists() is False

    store, _ = make_store(
        lambda request: httpx.Response(200, json={"classes": [SOUND_BITE_SCHEMA]})
    )
    assert await store.schema_exists() is True


async def test_create_and_clear_schema(make_store):
    store, transport = make_store(lambda request: httpx.Response(200, json={}))

    await store.create_schema()
    await store.clear_sound_bites()

    create, clear = transport.requests
    assert create.method == "POST" and create.url.path == "/v1/schema"
    assert json.loads(create.content)["vectorizer"] == "text2vec-openai"
    assert clear.method == "DELETE" and clear.url.path == "/v1/schema/SoundBite"


async def test_count_objects_uses_aggregate(make_store):
    payload = {"data": {"Aggregate": {"SoundBite": [{"meta": {"count": 7}}]}}}
    store, transport = make_store(lambda request: httpx.Response(200, json=payload))

    assert await store.count_objects() == 7
    assert "Aggregate" in transport.graphql_queries()[0]


async def test_list_sound_bites(make_store):
    rows = [
        {"title": "Dog", "description": "Barking", "audioUrl": "/dog.mp3", "tags": None,
         "duration": 25, "_additional": {"id": "dog-1"}},
    ]
    store, _ = make_store(lambda request: httpx.Response(200, json=search_payload(rows)))

    sounds = await store.list_sound_bites(limit=5)

    assert sounds[0].id == "dog-1"
    assert sounds[0].tags == []


async def test_get_and_delete_missing_object(make_store):
    store, _ = make_store(lambda request: httpx.Response(404))

    assert await store.get_sound_bite("missing") is None
    assert await store.delete_sound_bite("missing") is False


async def test_get_and_delete_existing_object(make_store):
    obj = {
        "id": "abc",
        "class": "SoundBite",
        "properties": {"title": "Rain", "description": "Rain", "audioUrl": "/rain.mp3",
                       "tags": ["rain"], "duration": 30},
    }

    def handler(request):
        if request.method == "GET":
            return httpx.Response(200, json=obj)
        return httpx.Response(204)

    store, transport = make_store(handler)

    sound = await store.get_sound_bite("abc")
    assert sound is not None and sound.title == "Rain"
    assert await store.delete_sound_bite("abc") is True
    assert transport.requests[-1].url.path == "/v1/objects/abc"


async def test_test_connection(make_store):
    store, _ = make_store(lambda request: httpx.Response(200, json={"version": "1.24.1"}))
    assert await store.test_connection() is True

    store, _ = make_store(lambda request: httpx.Response(503))
    assert await store.test_connection() is False
