"""
Tests for the Service Layer.

These tests demonstrate the key benefits:
- Services tested WITHOUT HTTP or MCP infrastructure
- Provider adapters injected through a factory
- Comprehensive coverage of success and failure paths
"""

import asyncio

import pytest

from testgen_pipeline.core import errors as core_errors
from testgen_pipeline.core.events import CompleteEvent, ErrorEvent, ProgressEvent
from testgen_pipeline.services import (
    ErrorCode,
    GenerationService,
    RequestLoader,
    ServiceResult,
)

from conftest import JEST_RESPONSE, FakeAdapter, chunked


def service_with(adapter, settings):
    """GenerationService whose factory always returns `adapter`, recording calls."""
    calls = []

    def factory(config, service_settings):
        calls.append(config)
        return adapter

    return GenerationService(adapter_factory=factory, settings=settings), calls


async def collect_events(service, loaded):
    return [event async for event in service.stream_events(loaded)]


# =============================================================================
# ServiceResult Tests
# =============================================================================

class TestServiceResult:
    """Tests for the ServiceResult pattern."""

    def test_ok_creates_success_result(self):
        result = ServiceResult.ok({"key": "value"})

        assert result.success is True
        assert result.data == {"key": "value"}
        assert result.error is None

    def test_fail_creates_failure_result(self):
        result = ServiceResult.fail(
            ErrorCode.UNKNOWN_MODEL,
            "Unknown AI model: gpt-99",
            details={"model": "gpt-99"}
        )

        assert result.success is False
        assert result.data is None
        assert result.error.code == ErrorCode.UNKNOWN_MODEL
        assert result.error.details == {"model": "gpt-99"}

    def test_map_and_unwrap(self):
        assert ServiceResult.ok(5).map(lambda x: x * 2).unwrap() == 10

        failed = ServiceResult.fail(ErrorCode.INTERNAL_ERROR, "error")
        assert failed.map(lambda x: x * 2).success is False
        assert failed.unwrap_or("default") == "default"
        with pytest.raises(ValueError, match="error"):
            failed.unwrap()

    def test_error_to_dict(self):
        result = ServiceResult.fail(ErrorCode.FILE_TOO_LARGE, "Too big", details={"size": 2})

        assert result.error.to_dict() == {
            "code": "file_too_large",
            "message": "Too big",
            "details": {"size": 2},
        }


class TestErrorCode:
    """Core error codes map onto service error codes."""

    @pytest.mark.parametrize("error_type", [
        core_errors.GenerationError,
        core_errors.ProviderUnauthorizedError,
        core_errors.ProviderRateLimitedError,
        core_errors.ProviderTimeoutError,
        core_errors.ProviderMalformedError,
        core_errors.ProviderUnknownError,
        core_errors.ExtractionError,
        core_errors.NoCodeBlocksError,
        core_errors.AmbiguousTargetError,
        core_errors.GenerationCancelled,
    ])
    def test_every_core_code_is_known(self, error_type):
        assert ErrorCode.from_code(error_type.code).value == error_type.code

    def test_unknown_code_is_internal(self):
        assert ErrorCode.from_code("nope") is ErrorCode.INTERNAL_ERROR


# =============================================================================
# RequestLoader Tests
# =============================================================================

class TestRequestLoader:
    """Tests for request validation."""

    def test_valid_payload(self, jest_payload):
        result = RequestLoader().load(jest_payload)

        assert result.success
        assert result.data.model.id == "gpt-4o"
        assert result.data.request.selected_language == "javascript"
        assert result.data.request.uploaded_files == ()

    def test_normalizes_language_and_framework(self, jest_payload):
        jest_payload.update(selectedLanguage="JavaScript", testFramework=" JEST ")
        request = RequestLoader().load(jest_payload).unwrap().request

        assert request.selected_language == "javascript"
        assert request.test_framework == "jest"

    def test_unknown_model(self, jest_payload):
        jest_payload["aiModel"] = "gpt-99"
        result = RequestLoader().load(jest_payload)

        assert result.error.code == ErrorCode.UNKNOWN_MODEL
        assert "gpt-99" in result.error.message

    def test_missing_model(self, jest_payload):
        del jest_payload["aiModel"]
        assert RequestLoader().load(jest_payload).error.code == ErrorCode.MISSING_INPUT

    def test_no_input_at_all(self, jest_payload):
        jest_payload["inputCode"] = "   \n"
        result = RequestLoader().load(jest_payload)

        assert result.error.code == ErrorCode.MISSING_INPUT

    def test_uploads_only(self, jest_payload):
        jest_payload["inputCode"] = ""
        jest_payload["uploadedFiles"] = [{"name": "math.js", "content": "export const x = 1;"}]
        result = RequestLoader().load(jest_payload)

        assert result.success
        assert result.data.request.uploaded_files[0].name == "math.js"

    def test_unsupported_language(self, jest_payload):
        jest_payload["selectedLanguage"] = "cobol"
        assert RequestLoader().load(jest_payload).error.code == ErrorCode.UNSUPPORTED_LANGUAGE

    def test_framework_must_fit_language(self, jest_payload):
        jest_payload["testFramework"] = "pytest"
        result = RequestLoader().load(jest_payload)

        assert result.error.code == ErrorCode.UNSUPPORTED_FRAMEWORK
        assert result.error.details["available"] == ["jest", "mocha", "vitest"]

    def test_file_too_large(self, jest_payload):
        jest_payload["uploadedFiles"] = [{"name": "big.js", "content": "x" * 101}]
        result = RequestLoader(max_size=100).load(jest_payload)

        assert result.error.code == ErrorCode.FILE_TOO_LARGE

    def test_total_size_counts_all_sources(self, jest_payload):
        jest_payload["inputCode"] = "a" * 60
        jest_payload["uploadedFiles"] = [{"name": "b.js", "content": "b" * 60}]
        result = RequestLoader(max_size=100).load(jest_payload)

        assert result.error.code == ErrorCode.FILE_TOO_LARGE

    def test_size_is_measured_in_bytes(self, jest_payload):
        jest_payload["inputCode"] = "é" * 60  # 120 bytes
        assert RequestLoader(max_size=100).load(jest_payload).error.code == ErrorCode.FILE_TOO_LARGE

    def test_too_many_files(self, jest_payload):
        jest_payload["uploadedFiles"] = [
            {"name": f"f{i}.js", "content": "x"} for i in range(3)
        ]
        result = RequestLoader(max_files=2).load(jest_payload)

        assert result.error.code == ErrorCode.VALIDATION_ERROR
        assert "Too many files" in result.error.message

    @pytest.mark.parametrize("files,message", [
        ([{"name": "", "content": "x"}], "missing a file name"),
        ([{"name": "a.js", "content": "  "}], "is empty"),
        ([{"name": "a.js", "content": "x"}, {"name": "a.js", "content": "y"}], "Duplicate"),
        ([{"name": "input.js", "content": "x"}], "reserved"),
        (["a.js"], "must be an object"),
    ])
    def test_invalid_uploads(self, jest_payload, files, message):
        jest_payload["uploadedFiles"] = files
        result = RequestLoader().load(jest_payload)

        assert result.error.code == ErrorCode.VALIDATION_ERROR
        assert message in result.error.message

    def test_wrong_types(self, jest_payload):
        assert RequestLoader().load("not a dict").error.code == ErrorCode.VALIDATION_ERROR

        jest_payload["uploadedFiles"] = "a.js"
        assert RequestLoader().load(jest_payload).error.code == ErrorCode.VALIDATION_ERROR


# =============================================================================
# GenerationService Tests
# =============================================================================

class TestGenerationService:
    """Tests for GenerationService with a scripted provider."""

    @pytest.mark.asyncio
    async def test_jest_add_scenario(self, jest_payload, settings):
        adapter = FakeAdapter(chunked(JEST_RESPONSE))
        service, calls = service_with(adapter, settings)

        loaded = service.prepare(jest_payload).unwrap()
        events = await collect_events(service, loaded)

        progress = [e for e in events if isinstance(e, ProgressEvent)]
        assert progress[0].percent == 5
        assert progress[1].percent == 10
        assert progress[-1].percent == 97
        assert [e.percent for e in progress] == sorted(e.percent for e in progress)

        terminal = events[-1]
        assert isinstance(terminal, CompleteEvent)
        assert sum(isinstance(e, (CompleteEvent, ErrorEvent)) for e in events) == 1
        (test,) = terminal.tests
        assert test.framework == "jest"
        assert test.file_name == "input.test.js"
        assert "expect(add(2, 3)).toBe(5);" in test.code
        assert calls == [loaded.model]
        assert adapter.closed

    @pytest.mark.asyncio
    async def test_prompt_reaches_adapter(self, jest_payload, settings):
        adapter = FakeAdapter(chunked(JEST_RESPONSE))
        service, _ = service_with(adapter, settings)

        await collect_events(service, service.prepare(jest_payload).unwrap())

        payload, config = adapter.calls[0]
        assert "### Source: input.js" in payload.user
        assert config.id == "gpt-4o"

    @pytest.mark.asyncio
    async def test_unknown_model_opens_no_stream(self, jest_payload, settings):
        jest_payload["aiModel"] = "gpt-99"
        adapter = FakeAdapter(chunked(JEST_RESPONSE))
        service, calls = service_with(adapter, settings)

        result = await service.generate(jest_payload)

        assert result.error.code == ErrorCode.UNKNOWN_MODEL
        assert calls == []
        assert not adapter.opened

    @pytest.mark.asyncio
    async def test_provider_error_becomes_error_event(self, jest_payload, settings):
        adapter = FakeAdapter(["```javascript\n"], error=core_errors.ProviderUnauthorizedError("401"))
        service, _ = service_with(adapter, settings)

        events = await collect_events(service, service.prepare(jest_payload).unwrap())

        terminal = events[-1]
        assert isinstance(terminal, ErrorEvent)
        assert terminal.code == "provider_unauthorized"
        assert terminal.message == core_errors.ProviderUnauthorizedError.user_message
        assert "401" not in terminal.message

    @pytest.mark.asyncio
    async def test_cancel_after_two_deltas_ends_with_cancelled_error(self, jest_payload, settings):
        cancel_event = asyncio.Event()
        adapter = FakeAdapter(chunked(JEST_RESPONSE), hang_after=2, on_hang=cancel_event.set)
        service, _ = service_with(adapter, settings)

        loaded = service.prepare(jest_payload).unwrap()
        events = [
            event async for event in service.stream_events(loaded, cancel_event=cancel_event)
        ]

        terminals = [e for e in events if isinstance(e, (CompleteEvent, ErrorEvent))]
        assert len(terminals) == 1
        assert events[-1] is terminals[0]
        assert isinstance(terminals[0], ErrorEvent)
        assert terminals[0].code == "cancelled"
        assert not any(isinstance(e, CompleteEvent) for e in events)
        assert adapter.closed

    @pytest.mark.asyncio
    async def test_consumer_leaving_mid_stream_closes_provider(self, jest_payload, settings):
        adapter = FakeAdapter(chunked(JEST_RESPONSE), hang_after=2)
        service, _ = service_with(adapter, settings)

        stream = service.stream_events(service.prepare(jest_payload).unwrap())
        seen = []
        async for event in stream:
            seen.append(event)
            if adapter.opened and isinstance(event, ProgressEvent) and event.percent > 10:
                break
        await stream.aclose()

        assert not any(isinstance(e, (CompleteEvent, ErrorEvent)) for e in seen)
        assert adapter.closed

    @pytest.mark.asyncio
    async def test_output_without_code_is_extraction_error(self, jest_payload, settings):
        service, _ = service_with(FakeAdapter(["Sorry, no tests today."]), settings)

        result = await service.generate(jest_payload)

        assert result.success is False
        assert result.error.code == ErrorCode.EXTRACTION_NO_CODE

    @pytest.mark.asyncio
    async def test_unexpected_failure_is_internal_error(self, jest_payload, settings):
        def broken_factory(config, service_settings):
            raise RuntimeError("factory exploded")

        service = GenerationService(adapter_factory=broken_factory, settings=settings)
        events = await collect_events(service, service.prepare(jest_payload).unwrap())

        terminal = events[-1]
        assert isinstance(terminal, ErrorEvent)
        assert terminal.code == "internal_error"
        assert "exploded" not in terminal.message

    @pytest.mark.asyncio
    async def test_generate_returns_tests(self, jest_payload, settings):
        service, _ = service_with(FakeAdapter(chunked(JEST_RESPONSE)), settings)

        result = await service.generate(jest_payload)

        assert result.success
        assert result.data.model == "gpt-4o"
        assert result.data.tests[0].source_file_ref == "input.js"
        assert result.data.progress[0] == 5
        assert result.data.to_dict()["tests"][0]["fileName"] == "input.test.js"

    def test_list_models(self, settings):
        models = GenerationService(settings=settings).list_models()

        assert {"gpt-4o", "claude-3-5-sonnet-20241022"} <= {m["id"] for m in models}
