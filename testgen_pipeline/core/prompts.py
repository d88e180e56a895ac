"""
Prompt assembly for test generation.

The builder is pure: the same (request, model config) always produces the
same PromptPayload. Oversized input is truncated, never rejected:
sources are consumed in order under a character budget equal to
`ModelConfig.max_code_length`, so the kept text is exactly the first
`max_code_length` characters of the concatenated source contents.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from pathlib import PurePosixPath

from ..constants import (
    CHARS_PER_TOKEN,
    INPUT_SOURCE_STEM,
    MIN_OUTPUT_TOKENS,
    TRUNCATION_MARKER,
)
from .conventions import (
    UNIVERSAL_REQUIREMENTS,
    FrameworkProfile,
    LanguageProfile,
    get_framework,
    get_language,
)
from .models import GenerationRequest, ModelConfig, PromptPayload, SourceFile

_BACKTICK_RUN = re.compile(r"`+")


@dataclass(frozen=True)
class BudgetedSources:
    """Sources after applying the character budget."""
    kept: tuple[tuple[SourceFile, str], ...]  # (source, possibly truncated content)
    omitted_chars: int
    omitted_files: tuple[str, ...]

    @property
    def truncated(self) -> bool:
        return self.omitted_chars > 0


# =============================================================================
# Sources
# =============================================================================

def resolve_profiles(request: GenerationRequest) -> tuple[LanguageProfile, FrameworkProfile]:
    """Look up the language and framework profiles of a validated request."""
    language = get_language(request.selected_language)
    framework = get_framework(request.test_framework)
    if language is None or framework is None:
        raise ValueError(
            f"Unsupported combination: {request.selected_language}/{request.test_framework}"
        )
    return language, framework


def source_files(request: GenerationRequest) -> list[SourceFile]:
    """Pasted code first (as input<ext>), then uploads in their original order."""
    language, _ = resolve_profiles(request)
    sources: list[SourceFile] = []
    if request.input_code.strip():
        sources.append(
            SourceFile(name=f"{INPUT_SOURCE_STEM}{language.extension}", content=request.input_code)
        )
    sources.extend(SourceFile(name=f.name, content=f.content) for f in request.uploaded_files)
    return sources


def expected_test_file_name(source_name: str, language: LanguageProfile, framework: FrameworkProfile) -> str:
    """Conventional test file name for a source, e.g. add.js -> add.test.js."""
    stem = PurePosixPath(source_name.replace("\\", "/")).stem
    return framework.test_file_name(stem, language.extension)


def apply_budget(sources: list[SourceFile], limit: int) -> BudgetedSources:
    """Keep the first `limit` characters of the concatenated contents."""
    kept: list[tuple[SourceFile, str]] = []
    omitted_files: list[str] = []
    omitted_chars = 0
    remaining = limit

    for source in sources:
        size = len(source.content)
        if remaining <= 0:
            omitted_files.append(source.name)
            omitted_chars += size
        elif size <= remaining:
            kept.append((source, source.content))
            remaining -= size
        else:
            omitted = size - remaining
            head = source.content[:remaining]
            kept.append((source, head + TRUNCATION_MARKER.format(omitted=omitted, total=size)))
            omitted_chars += omitted
            remaining = 0

    return BudgetedSources(
        kept=tuple(kept),
        omitted_chars=omitted_chars,
        omitted_files=tuple(omitted_files),
    )


# =============================================================================
# Prompt sections
# =============================================================================

def _bullets(lines) -> str:
    return "\n".join(f"- {line}" for line in lines)


def _fence_for(content: str) -> str:
    """A backtick fence longer than any backtick run inside `content`."""
    longest = max((len(run) for run in _BACKTICK_RUN.findall(content)), default=0)
    return "`" * max(3, longest + 1)


def build_system_prompt(language: LanguageProfile, framework: FrameworkProfile) -> str:
    """System instructions from the three axes plus the output format."""
    return "\n".join([
        f"You are an expert {language.name} engineer who writes thorough, "
        f"idiomatic unit tests with {framework.name}.",
        "",
        f"## {language.name} conventions",
        _bullets(language.conventions),
        "",
        f"## {framework.name} conventions",
        _bullets(framework.conventions),
        "",
        "## Requirements",
        _bullets(UNIVERSAL_REQUIREMENTS),
        "",
        "## Output format",
        "For every test file you write:",
        "1. A line `### File: <test file name> (tests <source file name>)`.",
        f"2. Directly after it, one fenced code block tagged `{language.fence_tag}` "
        "containing the complete test file.",
        "Only test code goes inside code blocks. Keep any explanation outside them and brief.",
    ])


def build_user_prompt(
    budgeted: BudgetedSources,
    language: LanguageProfile,
    framework: FrameworkProfile,
    config: ModelConfig,
) -> str:
    """User content: task statement, sources and expected test files."""
    parts = [
        f"Generate {framework.name} unit tests for the following {language.name} code.",
        "",
    ]

    for source, content in budgeted.kept:
        fence = _fence_for(content)
        parts.extend([
            f"### Source: {source.name}",
            f"{fence}{language.fence_tag}",
            content,
            fence,
            "",
        ])

    if budgeted.truncated:
        note = (
            f"Note: the input exceeded the {config.max_code_length}-character limit of "
            f"{config.id}; {budgeted.omitted_chars} characters were omitted."
        )
        if budgeted.omitted_files:
            note += " Omitted files: " + ", ".join(budgeted.omitted_files) + "."
        parts.extend([note, ""])

    parts.append("Expected test files:")
    for source, _ in budgeted.kept:
        parts.append(
            f"- {expected_test_file_name(source.name, language, framework)} (tests {source.name})"
        )

    return "\n".join(parts)


# =============================================================================
# Entry point
# =============================================================================

def output_token_budget(prompt_chars: int, config: ModelConfig) -> int:
    """Output cap left after the prompt, within [MIN_OUTPUT_TOKENS, max_tokens]."""
    prompt_tokens = math.ceil(prompt_chars / CHARS_PER_TOKEN)
    available = config.context_limit - prompt_tokens
    return max(MIN_OUTPUT_TOKENS, min(config.max_tokens, available))


def build_prompt(request: GenerationRequest, config: ModelConfig) -> PromptPayload:
    """
    Build the prompt payload for a validated request.

    Args:
        request: Validated generation request
        config: Config of the requested model

    Returns:
        PromptPayload ready for any provider adapter
    """
    language, framework = resolve_profiles(request)
    budgeted = apply_budget(source_files(request), config.max_code_length)

    system = build_system_prompt(language, framework)
    user = build_user_prompt(budgeted, language, framework, config)

    return PromptPayload(
        system=system,
        user=user,
        max_tokens=output_token_budget(len(system) + len(user), config),
        truncated=budgeted.truncated,
        omitted_chars=budgeted.omitted_chars,
        omitted_files=budgeted.omitted_files,
    )
