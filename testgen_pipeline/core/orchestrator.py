"""
Stream orchestrator - drives one provider stream to a terminal state.

States:

    IDLE -> STREAMING -> COMPLETED
                      -> FAILED (provider error, timeout or cancellation)

The only suspension point is "await next delta". Each wait races the
provider against the remaining wall-clock budget and the optional cancel
signal, so timeout and cancellation are single transitions. The provider
stream is closed on every exit path and never retried.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from enum import Enum

from ..constants import (
    CHARS_PER_TOKEN,
    GENERATION_TIMEOUT_SECONDS,
    PROGRESS_STREAM_CEILING,
    PROGRESS_STREAM_FLOOR,
)
from .errors import (
    GenerationCancelled,
    GenerationError,
    ProviderError,
    ProviderTimeoutError,
    ProviderUnknownError,
)
from .events import ProgressEvent
from .models import ModelConfig, PromptPayload
from .providers.base import ProviderAdapter

logger = logging.getLogger(__name__)

_END = object()


class StreamState(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"


async def _pull(stream: AsyncIterator[str]):
    try:
        return await stream.__anext__()
    except StopAsyncIteration:
        return _END


async def _discard(task: asyncio.Task) -> None:
    """Cancel a pending pull and wait for it to settle."""
    task.cancel()
    await asyncio.wait({task})
    if not task.cancelled():
        task.exception()  # mark retrieved; the outcome is already decided


def estimate_percent(
    received_chars: int,
    config: ModelConfig,
    floor: int = PROGRESS_STREAM_FLOOR,
    ceiling: int = PROGRESS_STREAM_CEILING,
) -> int:
    """
    Progress while streaming: share of the expected output received so far.

    Expected output is `max_tokens * CHARS_PER_TOKEN` characters; the share
    is mapped linearly onto [floor, ceiling] and capped at ceiling.
    """
    expected = config.max_tokens * CHARS_PER_TOKEN
    share = min(1.0, received_chars / expected)
    return floor + int((ceiling - floor) * share)


class StreamOrchestrator:
    """
    Single-use state machine around one provider stream.

    Usage:
        orchestrator = StreamOrchestrator(adapter, config, timeout_seconds=60)
        async for progress in orchestrator.run(payload):
            ...
        if orchestrator.state is StreamState.COMPLETED:
            text = orchestrator.text
        else:
            error = orchestrator.error
    """

    def __init__(
        self,
        adapter: ProviderAdapter,
        config: ModelConfig,
        *,
        timeout_seconds: float = GENERATION_TIMEOUT_SECONDS,
        cancel_event: asyncio.Event | None = None,
        progress_floor: int = PROGRESS_STREAM_FLOOR,
        progress_ceiling: int = PROGRESS_STREAM_CEILING,
        log: logging.Logger | logging.LoggerAdapter | None = None,
    ):
        self._adapter = adapter
        self._config = config
        self._timeout = timeout_seconds
        self._cancel_event = cancel_event
        self._floor = progress_floor
        self._ceiling = progress_ceiling
        self._log = log or logger

        self.state = StreamState.IDLE
        self.error: GenerationError | None = None
        self._chunks: list[str] = []
        self._received = 0
        self._deltas = 0

    @property
    def text(self) -> str:
        """Accumulated output, deltas concatenated in delivery order."""
        return "".join(self._chunks)

    @property
    def delta_count(self) -> int:
        return self._deltas

    async def run(self, payload: PromptPayload) -> AsyncIterator[ProgressEvent]:
        """Consume the provider stream, yielding progress until a terminal state."""
        if self.state is not StreamState.IDLE:
            raise RuntimeError("StreamOrchestrator instances are single-use")

        loop = asyncio.get_running_loop()
        stream = self._adapter.stream(payload, self._config)
        self.state = StreamState.STREAMING
        deadline = loop.time() + self._timeout
        last_percent = self._floor
        self._log.info("stream.start model=%s adapter=%s", self._config.id, self._adapter.name)

        try:
            while True:
                delta = await self._next_delta(stream, deadline - loop.time())
                if delta is _END:
                    break
                if not delta:
                    continue

                self._chunks.append(delta)
                self._received += len(delta)
                self._deltas += 1

                percent = estimate_percent(self._received, self._config, self._floor, self._ceiling)
                if self._deltas == 1:
                    self._log.info("stream.first_delta model=%s", self._config.id)
                if self._deltas == 1 or percent > last_percent:
                    last_percent = max(percent, last_percent)
                    yield ProgressEvent(
                        message=f"Generating tests... ({self._received} characters received)",
                        percent=last_percent,
                    )
        except (ProviderError, GenerationCancelled) as e:
            self._fail(e)
        except (asyncio.CancelledError, GeneratorExit):
            # Caller went away: discard partial output and propagate
            self._fail(GenerationCancelled("stream abandoned by caller"))
            raise
        except Exception as e:
            self._log.exception("stream.adapter_error model=%s", self._config.id)
            self._fail(ProviderUnknownError(f"{type(e).__name__}: {e}"))
        finally:
            await self._close(stream)

        if self.state is StreamState.STREAMING:
            self.state = StreamState.COMPLETED
            self._log.info(
                "stream.completed model=%s deltas=%d chars=%d",
                self._config.id, self._deltas, self._received,
            )

    async def _next_delta(self, stream: AsyncIterator[str], remaining: float):
        if self._cancel_event is not None and self._cancel_event.is_set():
            raise GenerationCancelled("cancel requested")
        if remaining <= 0:
            raise ProviderTimeoutError(f"generation exceeded {self._timeout}s")

        pull = asyncio.ensure_future(_pull(stream))
        waiters = {pull}
        cancel_wait = None
        if self._cancel_event is not None:
            cancel_wait = asyncio.ensure_future(self._cancel_event.wait())
            waiters.add(cancel_wait)

        try:
            done, _ = await asyncio.wait(
                waiters, timeout=remaining, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            if cancel_wait is not None:
                cancel_wait.cancel()
            if not pull.done():
                await _discard(pull)

        if cancel_wait is not None and cancel_wait in done:
            if pull in done and not pull.cancelled():
                pull.exception()
            raise GenerationCancelled("cancel requested")
        if pull in done:
            return pull.result()
        raise ProviderTimeoutError(f"generation exceeded {self._timeout}s")

    def _fail(self, error: GenerationError) -> None:
        self.state = StreamState.FAILED
        self.error = error
        self._chunks.clear()
        kind = error.kind.value if isinstance(error, ProviderError) else "-"
        self._log.warning(
            "stream.failed model=%s code=%s kind=%s detail=%s",
            self._config.id, error.code, kind, error.detail,
        )

    async def _close(self, stream: AsyncIterator[str]) -> None:
        aclose = getattr(stream, "aclose", None)
        if aclose is None:
            return
        try:
            await aclose()
        except RuntimeError:
            # Generator still running in a settled pull task; nothing left to close
            self._log.debug("stream.close_skipped model=%s", self._config.id)
