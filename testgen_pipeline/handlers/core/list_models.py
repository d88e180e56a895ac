"""MCP handler for list_models."""

from __future__ import annotations

from mcp.types import TextContent, Tool

from ...core.registry import DEFAULT_REGISTRY

TOOL_DEFINITION = Tool(
    name="list_models",
    description="List the AI models available for test generation and their limits.",
    inputSchema={
        "type": "object",
        "properties": {}
    }
)


async def handle(arguments: dict) -> list[TextContent]:
    """Return the model catalog as text, one model per line."""
    lines = [f"{len(DEFAULT_REGISTRY)} model(s) available:", ""]
    for model in DEFAULT_REGISTRY.models():
        lines.append(
            f"  - {model.id} ({model.provider.value}): "
            f"max_tokens={model.max_tokens}, context_limit={model.context_limit}, "
            f"max_code_length={model.max_code_length}"
        )
    return [TextContent(type="text", text="\n".join(lines))]
