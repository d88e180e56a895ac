"""Shared fixtures: a scripted provider adapter and common requests."""

from __future__ import annotations

import asyncio

import pytest

from testgen_pipeline.config import Settings
from testgen_pipeline.core.models import GenerationRequest, UploadedFile
from testgen_pipeline.core.providers.base import ProviderAdapter
from testgen_pipeline.core.registry import DEFAULT_REGISTRY


JEST_RESPONSE = (
    "Here are the tests.\n"
    "\n"
    "### File: input.test.js (tests input.js)\n"
    "```javascript\n"
    "const { add } = require('./input');\n"
    "\n"
    "describe('add', () => {\n"
    "  it('adds two numbers', () => {\n"
    "    expect(add(2, 3)).toBe(5);\n"
    "  });\n"
    "});\n"
    "```\n"
)


def chunked(text: str, size: int = 16) -> list[str]:
    """Split text into deltas of `size` characters."""
    return [text[i:i + size] for i in range(0, len(text), size)]


class FakeAdapter(ProviderAdapter):
    """
    Scripted provider adapter.

    Args:
        deltas: Text deltas to yield, in order
        error: Exception raised after all deltas were yielded
        delay: Seconds to sleep before each delta
        hang_after: Block forever once this many deltas were yielded
        on_hang: Callback invoked right before hanging
    """

    name = "fake"

    def __init__(self, deltas=(), error=None, delay=0.0, hang_after=None, on_hang=None):
        self.deltas = list(deltas)
        self.error = error
        self.delay = delay
        self.hang_after = hang_after
        self.on_hang = on_hang
        self.opened = False
        self.closed = False
        self.calls = []

    async def stream(self, payload, config):
        self.opened = True
        self.calls.append((payload, config))
        try:
            for index, delta in enumerate(self.deltas):
                if self.hang_after is not None and index >= self.hang_after:
                    break
                if self.delay:
                    await asyncio.sleep(self.delay)
                yield delta
            if self.hang_after is not None:
                if self.on_hang is not None:
                    self.on_hang()
                await asyncio.Event().wait()
            if self.error is not None:
                raise self.error
        finally:
            self.closed = True


@pytest.fixture
def settings():
    """Settings with no credentials and a short timeout."""
    return Settings(generation_timeout_seconds=5.0)


@pytest.fixture
def gpt4o():
    return DEFAULT_REGISTRY.lookup("gpt-4o")


@pytest.fixture
def js_request():
    return GenerationRequest(
        input_code="function add(a, b) { return a + b; }\nmodule.exports = { add };\n",
        uploaded_files=(),
        selected_language="javascript",
        test_framework="jest",
        ai_model="gpt-4o",
    )


@pytest.fixture
def multi_file_request():
    return GenerationRequest(
        input_code="",
        uploaded_files=(
            UploadedFile(name="math.js", content="export const add = (a, b) => a + b;\n"),
            UploadedFile(name="strings.js", content="export const upper = (s) => s.toUpperCase();\n"),
        ),
        selected_language="javascript",
        test_framework="jest",
        ai_model="gpt-4o",
    )


@pytest.fixture
def jest_payload():
    """Raw request body for the add(a, b) scenario."""
    return {
        "inputCode": "function add(a, b) { return a + b; }\nmodule.exports = { add };\n",
        "uploadedFiles": [],
        "selectedLanguage": "javascript",
        "testFramework": "jest",
        "aiModel": "gpt-4o",
    }
