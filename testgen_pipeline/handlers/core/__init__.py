"""Registry for core MCP tool definitions and handlers."""

# Tool definitions and handlers
from .generate_tests import (
    TOOL_DEFINITION as GENERATE_TESTS_TOOL,
    handle as handle_generate_tests,
)

from .list_models import (
    TOOL_DEFINITION as LIST_MODELS_TOOL,
    handle as handle_list_models,
)


# All Core tool definitions
TOOLS = [
    GENERATE_TESTS_TOOL,
    LIST_MODELS_TOOL,
]

# Tool name to handler mapping
HANDLERS = {
    "generate_tests": handle_generate_tests,
    "list_models": handle_list_models,
}


__all__ = [
    # Tool definitions
    "TOOLS",
    "GENERATE_TESTS_TOOL",
    "LIST_MODELS_TOOL",
    # Handlers
    "HANDLERS",
    "handle_generate_tests",
    "handle_list_models",
]
