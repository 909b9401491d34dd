"""FastAPI application exposing image analysis and semantic sound search."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from time import monotonic
from typing import Optional

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import ConfigurationError, Settings
from .core import ExternalServiceError, SoundMatchError, ValidationError
from .core.models import (
    ClassInfo,
    ErrorResponse,
    ImageAnalysisResponse,
    NewSoundBite,
    SchemaInfo,
    SchemaInfoResponse,
    SoundMatchResponse,
    SoundSearchRequest,
    SoundSearchResponse,
    UploadSoundResponse,
)
from .services import (
    SoundMatcher,
    VisionDescriber,
    WeaviateVectorStore,
    image_to_data_url,
    validate_image_upload,
)

logger = logging.getLogger("soundmatch")

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def configure_logging(level: str = "INFO") -> None:
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            "%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


def build_vector_store(settings: Settings) -> WeaviateVectorStore:
    return WeaviateVectorStore(
        url=settings.weaviate_url,
        api_key=settings.weaviate_api_key,
        openai_api_key=settings.openai_api_key,
        timeout=settings.http_timeout_seconds,
    )


def build_describer(settings: Settings) -> VisionDescriber:
    return VisionDescriber(
        api_key=settings.require_openai_key(),
        model=settings.openai_model,
        base_url=settings.openai_base_url,
        max_tokens=settings.openai_max_tokens,
        temperature=settings.openai_temperature,
        timeout=settings.http_timeout_seconds,
    )


def _elapsed_ms(started: float) -> int:
    return int((monotonic() - started) * 1000)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = tuple(first.get("loc", ()))
    if loc and loc[0] in ("body", "query", "form"):
        loc = loc[1:]
    field = ".".join(str(part) for part in loc)
    if first.get("type") == "missing":
        return f"Missing required field: {field}" if field else "Missing request body"
    message = str(first.get("msg", "Invalid request"))
    if message.startswith("Value error, "):
        return message[len("Value error, "):]
    return f"{field}: {message}" if field else message


# ==========================================
# Dependencies
# ==========================================


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_vector_store(request: Request) -> WeaviateVectorStore:
    store = request.app.state.vector_store
    if store is None:
        raise ExternalServiceError("Vector database client is not available")
    return store


def get_describer(request: Request) -> VisionDescriber:
    describer = request.app.state.describer
    if describer is None:
        raise ExternalServiceError(
            "Image analysis is unavailable: OPENAI_API_KEY is not configured"
        )
    return describer


async def read_image(image: Optional[UploadFile], settings: Settings) -> str:
    if image is None:
        raise ValidationError("No image file provided")
    content = await image.read()
    validate_image_upload(
        content,
        image.content_type,
        settings.max_file_size,
        settings.supported_formats,
    )
    return image_to_data_url(content, image.content_type)


# ==========================================
# App factory
# ==========================================


def create_app(
    settings: Settings | None = None,
    describer: VisionDescriber | None = None,
    vector_store: WeaviateVectorStore | None = None,
) -> FastAPI:
    """Build the API; clients passed in are used as-is and not closed."""

    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = []
        if app.state.vector_store is None:
            app.state.vector_store = build_vector_store(settings)
            owned.append(app.state.vector_store)
        if app.state.describer is None:
            try:
                app.state.describer = build_describer(settings)
                owned.append(app.state.describer)
            except ConfigurationError as exc:
                logger.warning("Image analysis disabled: %s", exc)
        await app.state.vector_store.connect()
        logger.info("SoundMatch API ready (model=%s)", settings.openai_model)
        yield
        for client in owned:
            await client.close()
        logger.info("Shutdown complete; closed external clients")

    app = FastAPI(
        title="SoundMatch",
        description="Find the sound an image evokes",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.describer = describer
    app.state.vector_store = vector_store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SoundMatchError)
    async def handle_soundmatch_error(request: Request, exc: SoundMatchError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        message = _validation_message(exc)
        logger.info("%s %s rejected: %s", request.method, request.url.path, message)
        return JSONResponse(status_code=400, content={"success": False, "error": message})

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("%s %s failed unexpectedly", request.method, request.url.path)
        return JSONResponse(
            status_code=500, content={"success": False, "error": "Internal server error"}
        )

    @app.post(
        "/api/analyze-image",
        response_model=ImageAnalysisResponse,
        responses=ERROR_RESPONSES,
    )
    async def analyze_image(
        image: Optional[UploadFile] = File(None),
        settings: Settings = Depends(get_settings),
        describer: VisionDescriber = Depends(get_describer),
    ) -> ImageAnalysisResponse:
        data_url = await read_image(image, settings)
        started = monotonic()
        description = await describer.describe(data_url)
        return ImageAnalysisResponse(
            description=description,
            processing_time=_elapsed_ms(started),
        )

    @app.post(
        "/api/search-sounds",
        response_model=SoundSearchResponse,
        responses=ERROR_RESPONSES,
    )
    async def search_sounds(
        body: SoundSearchRequest,
        store: WeaviateVectorStore = Depends(get_vector_store),
    ) -> SoundSearchResponse:
        started = monotonic()
        results = await store.search_sounds(body.query, body.limit, body.threshold)
        return SoundSearchResponse(
            results=results,
            total_count=len(results),
            processing_time=_elapsed_ms(started),
        )

    @app.post(
        "/api/match-sound",
        response_model=SoundMatchResponse,
        responses=ERROR_RESPONSES,
    )
    async def match_sound(
        image: Optional[UploadFile] = File(None),
        limit: int = Form(10, gt=0),
        threshold: float = Form(0.7, ge=0.0, le=1.0),
        settings: Settings = Depends(get_settings),
        describer: VisionDescriber = Depends(get_describer),
        store: WeaviateVectorStore = Depends(get_vector_store),
    ) -> SoundMatchResponse:
        data_url = await read_image(image, settings)
        match = await SoundMatcher(describer, store).match(data_url, limit, threshold)
        return SoundMatchResponse(
            description=match.description,
            results=match.results,
            total_count=len(match.results),
            processing_time=match.processing_ms,
        )

    @app.post(
        "/api/upload-sound",
        response_model=UploadSoundResponse,
        responses=ERROR_RESPONSES,
    )
    async def upload_sound(
        body: NewSoundBite,
        store: WeaviateVectorStore = Depends(get_vector_store),
    ) -> UploadSoundResponse:
        created = await store.add_sound_bite(body)
        return UploadSoundResponse(data=created)

    @app.get(
        "/api/schema",
        response_model=SchemaInfoResponse,
        responses={500: {"model": ErrorResponse}},
    )
    async def schema(
        store: WeaviateVectorStore = Depends(get_vector_store),
    ) -> SchemaInfoResponse:
        current = await store.get_schema()
        classes: list[ClassInfo] = []
        for definition in current.classes:
            try:
                count = await store.count_objects(definition.class_name)
            except ExternalServiceError as exc:
                logger.warning("Could not count %s objects: %s", definition.class_name, exc)
                count = 0
            classes.append(
                ClassInfo.model_validate(
                    {**definition.model_dump(by_alias=True), "objectCount": count}
                )
            )
        return SchemaInfoResponse(schema_=SchemaInfo(classes=classes))

    @app.get("/health")
    async def health(request: Request) -> dict:
        store: WeaviateVectorStore | None = request.app.state.vector_store
        describer: VisionDescriber | None = request.app.state.describer
        return {
            "status": "ok",
            "service": "soundmatch",
            "weaviate": await store.test_connection() if store else False,
            "openai": {
                "configured": describer.validate_config() if describer else False,
                "reachable": await describer.test_connection() if describer else False,
            },
        }

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "soundmatch.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        log_level="info",
    )
