"""
Tests for Core Tool Handlers.

Tests the tool handler files:
- generate_tests.py
- list_models.py
"""

import pytest
from unittest.mock import patch

from testgen_pipeline.handlers.core import HANDLERS, TOOLS
from testgen_pipeline.handlers.core.generate_tests import (
    TOOL_DEFINITION as GENERATE_TOOL,
    handle as handle_generate,
)
from testgen_pipeline.handlers.core.list_models import (
    TOOL_DEFINITION as LIST_MODELS_TOOL,
    handle as handle_list_models,
)
from testgen_pipeline.services import GenerationService

from conftest import JEST_RESPONSE, FakeAdapter, chunked

SERVICE_FACTORY = "testgen_pipeline.handlers.core.generate_tests.create_generation_service"

ARGUMENTS = {
    "code": "function add(a, b) { return a + b; }\nmodule.exports = { add };\n",
    "language": "javascript",
    "framework": "jest",
    "model": "gpt-4o",
}


def fake_service(adapter, settings):
    return GenerationService(adapter_factory=lambda config, s: adapter, settings=settings)


# =============================================================================
# Tool Definition Tests
# =============================================================================

class TestToolDefinitions:
    """Tests for TOOL_DEFINITION objects."""

    def test_generate_tool_definition(self):
        """generate_tests tool has correct structure."""
        assert GENERATE_TOOL.name == "generate_tests"
        assert "generate" in GENERATE_TOOL.description.lower()
        assert "model" in GENERATE_TOOL.inputSchema["required"]

    def test_list_models_tool_definition(self):
        assert LIST_MODELS_TOOL.name == "list_models"
        assert "properties" in LIST_MODELS_TOOL.inputSchema

    def test_registry_matches_definitions(self):
        assert {tool.name for tool in TOOLS} == set(HANDLERS)


# =============================================================================
# Handler Tests
# =============================================================================

class TestGenerateHandler:
    """Tests for generate_tests handler."""

    @pytest.mark.asyncio
    async def test_generate_returns_test_files(self, settings):
        service = fake_service(FakeAdapter(chunked(JEST_RESPONSE)), settings)

        with patch(SERVICE_FACTORY, return_value=service):
            result = await handle_generate(ARGUMENTS)

        assert len(result) == 1
        text = result[0].text
        assert "Generated 1 test file(s)" in text
        assert "input.test.js" in text
        assert "expect(add(2, 3)).toBe(5);" in text

    @pytest.mark.asyncio
    async def test_unknown_model_returns_error(self, settings):
        adapter = FakeAdapter(chunked(JEST_RESPONSE))

        with patch(SERVICE_FACTORY, return_value=fake_service(adapter, settings)):
            result = await handle_generate({**ARGUMENTS, "model": "gpt-99"})

        assert result[0].text.startswith("Error:")
        assert "gpt-99" in result[0].text
        assert not adapter.opened

    @pytest.mark.asyncio
    async def test_no_input_returns_error(self, settings):
        with patch(SERVICE_FACTORY, return_value=fake_service(FakeAdapter([]), settings)):
            result = await handle_generate({**ARGUMENTS, "code": ""})

        assert "Error:" in result[0].text

    @pytest.mark.asyncio
    async def test_uploaded_files(self, settings):
        response = "### File: math.test.js (tests math.js)\n```javascript\ntest('add', () => {});\n```\n"
        service = fake_service(FakeAdapter([response]), settings)

        with patch(SERVICE_FACTORY, return_value=service):
            result = await handle_generate({
                **ARGUMENTS,
                "code": "",
                "files": [{"name": "math.js", "content": "export const add = (a, b) => a + b;"}],
            })

        assert "math.test.js  (tests math.js, jest)" in result[0].text


class TestListModelsHandler:
    """Tests for list_models handler."""

    @pytest.mark.asyncio
    async def test_lists_models(self):
        result = await handle_list_models({})

        text = result[0].text
        assert "gpt-4o (openai)" in text
        assert "claude-3-opus-20240229 (anthropic)" in text
