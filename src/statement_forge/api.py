"""HTTP surface: FastAPI app exposing generation, edit and conversion endpoints."""

from __future__ import annotations

import logging
from collections.abc import Callable
from importlib.metadata import PackageNotFoundError, version

from fastapi import Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from statement_forge.clients import providers
from statement_forge.clients.collaborators import (
    CredentialStore,
    EmptyStyleStore,
    EnvCredentialStore,
    PassThroughScanner,
    SensitiveContentScanner,
    StyleStore,
)
from statement_forge.clients.llm_client import LLMClient
from statement_forge.config import AppConfig, load_config
from statement_forge.errors import SensitiveContentError, StatementForgeError
from statement_forge.models.credentials import ApiKeys
from statement_forge.models.edit import EditRequest
from statement_forge.models.generation import ConvertRequest, GenerationRequest
from statement_forge.pipeline.dispatcher import presets_from_config
from statement_forge.pipeline.sentence_converter import SentenceConverter
from statement_forge.pipeline.statement_generator import StatementGenerator
from statement_forge.pipeline.surgical_editor import SurgicalEditor

logger = logging.getLogger(__name__)

ClientResolver = Callable[..., LLMClient]

try:
    __version__ = version("statement-forge")
except PackageNotFoundError:
    __version__ = "0.0.0"


def _scan(scanner: SensitiveContentScanner, *texts: str | None) -> None:
    labels: list[str] = []
    for text in texts:
        if not text:
            continue
        result = scanner.scan(text)
        if result.blocked:
            labels.extend(m.label for m in result.matches if m.label not in labels)
    if labels:
        raise SensitiveContentError(labels)


def _generation_texts(request: GenerationRequest) -> list[str | None]:
    texts: list[str | None] = [request.custom_context, request.existing_statement]
    for a in request.accomplishments:
        texts.extend([a.action_verb, a.details, a.impact, a.metrics])
    return texts


def create_app(
    config: AppConfig | None = None,
    *,
    credentials: CredentialStore | None = None,
    styles: StyleStore | None = None,
    scanner: SensitiveContentScanner | None = None,
    client_resolver: ClientResolver = providers.resolve,
) -> FastAPI:
    """Build the app. Collaborators default to the standalone implementations."""
    config = config or load_config()
    credentials = credentials or EnvCredentialStore()
    styles = styles or EmptyStyleStore()
    scanner = scanner or PassThroughScanner()

    app = FastAPI(
        title="Statement Forge API",
        description="LLM-assisted EPB and award statement generation",
        version=__version__,
    )

    @app.exception_handler(StatementForgeError)
    async def _forge_error_handler(request: Request, exc: StatementForgeError) -> JSONResponse:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.error_code)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def _validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        detail = detail.removeprefix("Value error, ")
        return JSONResponse(
            status_code=400,
            content={"error": detail, "errorCode": "invalid_request"},
        )

    def user_keys(x_user_id: str | None = Header(default=None)) -> ApiKeys | None:
        return credentials.get_credentials(x_user_id)

    def resolve_client(model: str, keys: ApiKeys | None) -> LLMClient:
        return client_resolver(
            model,
            keys,
            timeout=config.llm.timeout,
            max_attempts=config.llm.max_attempts,
        )

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok", "version": __version__}

    @app.post("/api/generate")
    async def generate(
        body: GenerationRequest,
        x_user_id: str | None = Header(default=None),
        keys: ApiKeys | None = Depends(user_keys),
    ) -> dict:
        _scan(scanner, *_generation_texts(body))
        # style comes from the store only; a client-sent snapshot is discarded
        body = body.model_copy(update={"style": styles.get_style_configuration(x_user_id)})
        client = resolve_client(body.model, keys)
        generator = StatementGenerator(client, config.generation, config.llm.timeout)
        result = await generator.generate(body)
        return result.model_dump(by_alias=True)

    @app.post("/api/feedback/apply")
    async def apply_feedback(
        body: EditRequest,
        keys: ApiKeys | None = Depends(user_keys),
    ) -> dict:
        _scan(scanner, body.replacement_text)
        editor = SurgicalEditor(
            lambda: resolve_client(config.llm.feedback_model, keys),
            config.edit,
            presets_from_config(config.generation, config.llm.timeout)["surgical"],
        )
        outcome = await editor.apply(body)
        return outcome.to_response()

    @app.post("/api/convert-sentences")
    async def convert_sentences(
        body: ConvertRequest,
        keys: ApiKeys | None = Depends(user_keys),
    ) -> dict:
        _scan(scanner, body.statement)
        converter = SentenceConverter(
            resolve_client(body.model, keys), config.generation, config.llm.timeout
        )
        result = await converter.convert(body)
        return {"versions": result.versions}

    return app
