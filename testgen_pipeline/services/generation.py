"""
Generation Service - Business logic for test generation.

Orchestrates the full pipeline:
1. Validate the request (RequestLoader)
2. Build the prompt
3. Stream the provider response (StreamOrchestrator)
4. Extract test files from the final text

`stream_events()` is the streaming entry point used by the HTTP surface;
`generate()` drains the same stream into a single ServiceResult for
callers that want one answer (MCP tool, scripts).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import Any

from ..config import Settings, get_settings
from ..constants import PROGRESS_CONNECTING, PROGRESS_EXTRACTING, PROGRESS_PREPARING
from ..core.errors import GenerationError
from ..core.events import (
    CompleteEvent,
    ErrorEvent,
    EventEmitter,
    GenerationEvent,
    ProgressEvent,
)
from ..core.extractor import extract_tests
from ..core.models import GeneratedTest, ModelConfig
from ..core.orchestrator import StreamOrchestrator, StreamState
from ..core.prompts import build_prompt
from ..core.providers import ProviderAdapter, create_adapter
from ..core.registry import DEFAULT_REGISTRY, ModelRegistry
from ..logging_config import log_adapter
from .base import ErrorCode, ServiceResult
from .request_loader import LoadedRequest, RequestLoader

logger = logging.getLogger(__name__)

AdapterFactory = Callable[[ModelConfig, Settings], ProviderAdapter]


@dataclass(frozen=True)
class GenerationResult:
    """
    Complete result of a non-streaming generation.

    Attributes:
        tests: Generated test files, in order of appearance
        model: Id of the model that produced them
        message: Summary message of the complete event
        progress: Progress percents reported along the way
    """
    tests: tuple[GeneratedTest, ...]
    model: str
    message: str
    progress: tuple[int, ...] = field(default=())

    def to_dict(self) -> dict:
        return {
            "model": self.model,
            "message": self.message,
            "tests": [test.to_dict() for test in self.tests],
        }


class GenerationService:
    """
    Service for generating unit tests with an LLM.

    Dependencies are injected via __init__ so tests can swap the provider
    adapter without touching the network.
    """

    def __init__(
        self,
        registry: ModelRegistry | None = None,
        request_loader: RequestLoader | None = None,
        adapter_factory: AdapterFactory | None = None,
        settings: Settings | None = None,
    ):
        """
        Initialize the generation service.

        Args:
            registry: Model catalog (default catalog if None)
            request_loader: RequestLoader instance (created from registry/settings if None)
            adapter_factory: Builds the provider adapter for a model (`create_adapter` if None)
            settings: Runtime settings (loaded from the environment if None)
        """
        self._settings = settings or get_settings()
        self._registry = registry if registry is not None else DEFAULT_REGISTRY
        self._loader = request_loader or RequestLoader(
            self._registry, max_size=self._settings.max_upload_size
        )
        self._adapter_factory = adapter_factory or create_adapter

    @property
    def registry(self) -> ModelRegistry:
        return self._registry

    def list_models(self) -> list[dict]:
        """Catalog entries as JSON-ready dicts."""
        return [model.to_dict() for model in self._registry.models()]

    def prepare(self, payload: dict[str, Any]) -> ServiceResult[LoadedRequest]:
        """Validate a raw request body. Nothing is sent to a provider."""
        return self._loader.load(payload)

    async def stream_events(
        self,
        loaded: LoadedRequest,
        cancel_event: asyncio.Event | None = None,
        cid: str | None = None,
    ) -> AsyncIterator[GenerationEvent]:
        """
        Run one generation, yielding progress events and exactly one
        terminal (complete or error) event.

        Failures never propagate as exceptions: they end the stream with an
        error event. Cancellation of the consuming task still propagates.
        """
        log = log_adapter(logger, cid)
        request, model = loaded.request, loaded.model
        emitter = EventEmitter()

        log.info(
            "generation.start model=%s language=%s framework=%s files=%d",
            model.id, request.selected_language, request.test_framework,
            len(request.uploaded_files),
        )
        yield emitter.progress("Preparing prompt...", PROGRESS_PREPARING)

        try:
            payload = build_prompt(request, model)
            if payload.truncated:
                log.warning(
                    "generation.truncated model=%s omitted_chars=%d omitted_files=%s",
                    model.id, payload.omitted_chars, ",".join(payload.omitted_files),
                )

            yield emitter.progress(
                f"Connecting to {model.display_name or model.id}...", PROGRESS_CONNECTING
            )
            adapter = self._adapter_factory(model, self._settings)
            orchestrator = StreamOrchestrator(
                adapter,
                model,
                timeout_seconds=self._settings.generation_timeout_seconds,
                cancel_event=cancel_event,
                log=log,
            )
            async with aclosing(orchestrator.run(payload)) as progress_events:
                async for progress in progress_events:
                    yield emitter.emit(progress)

            if orchestrator.state is not StreamState.COMPLETED:
                error = orchestrator.error or GenerationError("stream ended without a terminal state")
                yield emitter.error(error.user_message, error.code)
                return

            yield emitter.progress("Extracting test files...", PROGRESS_EXTRACTING)
            tests = extract_tests(orchestrator.text, request)
        except GenerationError as e:
            log.warning("generation.failed model=%s code=%s detail=%s", model.id, e.code, e.detail)
            yield emitter.error(e.user_message, e.code)
            return
        except Exception:
            log.exception("generation.internal_error model=%s", model.id)
            yield emitter.error(GenerationError.user_message, ErrorCode.INTERNAL_ERROR.value)
            return

        log.info("generation.complete model=%s tests=%d", model.id, len(tests))
        yield emitter.complete(tests, f"Generated {len(tests)} test file(s)")

    async def generate(
        self,
        payload: dict[str, Any],
        cancel_event: asyncio.Event | None = None,
        cid: str | None = None,
    ) -> ServiceResult[GenerationResult]:
        """
        Validate and run a generation, returning only the final outcome.

        Example:
            service = GenerationService()
            result = await service.generate({
                "inputCode": "function add(a, b) { return a + b; }",
                "selectedLanguage": "javascript",
                "testFramework": "jest",
                "aiModel": "gpt-4o",
            })
            if result.success:
                print(result.data.tests[0].code)
        """
        prepared = self.prepare(payload)
        if not prepared.success:
            return ServiceResult.fail(
                prepared.error.code, prepared.error.message, prepared.error.details
            )

        percents: list[int] = []
        terminal: CompleteEvent | ErrorEvent | None = None
        async for event in self.stream_events(prepared.data, cancel_event=cancel_event, cid=cid):
            if isinstance(event, ProgressEvent):
                percents.append(event.percent)
            else:
                terminal = event

        if isinstance(terminal, CompleteEvent):
            return ServiceResult.ok(GenerationResult(
                tests=terminal.tests,
                model=prepared.data.model.id,
                message=terminal.message,
                progress=tuple(percents),
            ))

        if terminal is None:
            return ServiceResult.fail(ErrorCode.INTERNAL_ERROR, "Generation ended without a result")
        return ServiceResult.fail(ErrorCode.from_code(terminal.code), terminal.message)
