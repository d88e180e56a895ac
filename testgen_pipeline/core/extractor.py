"""
Artifact extractor - turns final model text into GeneratedTest records.

Pure text parsing:
1. Find closed fenced code regions (``` or ~~~). Unclosed trailing fences,
   empty blocks and non-code blocks (shell, json, ...) are ignored.
2. Collect file hints for each block, nearest first:
   info string (```js add.test.js), comment on the first code line, then
   preceding lines (since the previous block) from the closest upwards.
3. Associate the block with a source file. With one source everything
   targets it; with several the hint must resolve to one of them, otherwise
   the whole extraction fails instead of guessing.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from .conventions import CODE_EXTENSIONS, FrameworkProfile, LanguageProfile
from .errors import AmbiguousTargetError, NoCodeBlocksError
from .models import GeneratedTest, GenerationRequest, SourceFile
from .prompts import expected_test_file_name, resolve_profiles, source_files

NON_CODE_TAGS = frozenset({
    "bash", "sh", "shell", "zsh", "console", "terminal", "powershell", "ps1", "cmd",
    "text", "txt", "plaintext", "output", "log",
    "json", "yaml", "yml", "toml", "ini", "diff", "markdown", "md",
})

_FENCE_OPEN = re.compile(r"^[ \t]{0,3}(?P<fence>`{3,}|~{3,})(?P<info>.*)$")
_COMMENT_PREFIX = re.compile(r"^\s*(?://|#|/\*|--|;|<!--|\*)")
_FILE_NAME = re.compile(
    r"(?<![\w.\-/])((?:[\w\-]+/)*[\w\-]+(?:\.[\w\-]+)*\.(?:%s))(?![\w\-])"
    % "|".join(CODE_EXTENSIONS),
    re.IGNORECASE,
)
_TEST_AFFIXES = (
    re.compile(r"^(?:tests?|spec)[_\-.]", re.IGNORECASE),   # test_add, spec-add
    re.compile(r"[_\-.](?:tests?|specs?)$", re.IGNORECASE),  # add.test, add_test, add-spec
    re.compile(r"(?<=[a-z0-9])(?:Tests?|Spec)$"),           # CalculatorTest(s)
)


@dataclass
class FencedBlock:
    """One closed fenced code region."""
    tag: str
    info: str
    code: str
    preceding: list[str] = field(default_factory=list)  # lines since previous block


# =============================================================================
# Scanning
# =============================================================================

def find_fenced_blocks(text: str) -> list[FencedBlock]:
    """Return all closed fenced regions in order of appearance."""
    blocks: list[FencedBlock] = []
    preceding: list[str] = []
    lines = text.splitlines()
    i = 0

    while i < len(lines):
        match = _FENCE_OPEN.match(lines[i])
        # A backtick fence's info string may not contain backticks
        if not match or (match.group("fence")[0] == "`" and "`" in match.group("info")):
            preceding.append(lines[i])
            i += 1
            continue

        fence = match.group("fence")
        info = match.group("info").strip()
        closing = re.compile(r"^[ \t]{0,3}%s{%d,}[ \t]*$" % (re.escape(fence[0]), len(fence)))

        body: list[str] = []
        j = i + 1
        while j < len(lines) and not closing.match(lines[j]):
            body.append(lines[j])
            j += 1

        if j >= len(lines):
            # Unclosed: output was cut off mid-block
            break

        tag = info.split()[0].lower() if info else ""
        blocks.append(FencedBlock(tag=tag, info=info, code="\n".join(body), preceding=preceding))
        preceding = []
        i = j + 1

    return blocks


def file_names_in(line: str) -> list[str]:
    return [m.group(1) for m in _FILE_NAME.finditer(line)]


def hint_for(block: FencedBlock) -> list[str]:
    """File names hinting at the block's target, nearest first."""
    names = file_names_in(block.info)

    first_line = next((line for line in block.code.splitlines() if line.strip()), "")
    if _COMMENT_PREFIX.match(first_line):
        names.extend(file_names_in(first_line))

    for line in reversed(block.preceding):
        names.extend(file_names_in(line))
    return names


# =============================================================================
# Association
# =============================================================================

def _basename(name: str) -> str:
    return PurePosixPath(name.replace("\\", "/")).name


def strip_test_affixes(stem: str) -> str:
    """add.test -> add, test_add -> add, CalculatorTest -> Calculator."""
    stripped = stem
    for pattern in _TEST_AFFIXES:
        stripped = pattern.sub("", stripped, count=1)
    return stripped or stem


def _is_test_name(name: str) -> bool:
    stem = PurePosixPath(_basename(name)).stem
    return strip_test_affixes(stem) != stem


def _match_source(name: str, sources: list[SourceFile]) -> SourceFile | None:
    """The one source a hint names; None when none or several match."""
    path = name.replace("\\", "/").lower()
    exact = [s for s in sources if s.name.replace("\\", "/").lower() == path]
    if len(exact) == 1:
        return exact[0]

    base = _basename(name).lower()
    matches = [s for s in sources if _basename(s.name).lower() == base]
    if not matches:
        core = strip_test_affixes(PurePosixPath(base).stem).lower()
        matches = [s for s in sources if PurePosixPath(_basename(s.name)).stem.lower() == core]
    return matches[0] if len(matches) == 1 else None


def _associate(
    block: FencedBlock,
    sources: list[SourceFile],
) -> tuple[SourceFile | None, str | None]:
    """Return (target source, hinted test file name) for a block."""
    hints = hint_for(block)
    test_name = next((_basename(h) for h in hints if _is_test_name(h)), None)

    if len(sources) == 1:
        return sources[0], test_name

    for hint in hints:
        source = _match_source(hint, sources)
        if source is not None:
            return source, test_name
    return None, test_name


def _unique(name: str, used: set[str]) -> str:
    if name not in used:
        return name
    path = PurePosixPath(name)
    n = 2
    while f"{path.stem}_{n}{path.suffix}" in used:
        n += 1
    return f"{path.stem}_{n}{path.suffix}"


# =============================================================================
# Entry point
# =============================================================================

def extract_tests(text: str, request: GenerationRequest) -> list[GeneratedTest]:
    """
    Extract generated test files from the model output.

    Args:
        text: Full accumulated output of a completed stream
        request: The request the output answers

    Returns:
        Non-empty list of GeneratedTest, in order of appearance

    Raises:
        NoCodeBlocksError: no usable fenced code block
        AmbiguousTargetError: several sources and a block could not be matched
    """
    language, framework = resolve_profiles(request)
    sources = source_files(request)

    blocks = [
        block for block in find_fenced_blocks(text)
        if block.code.strip() and block.tag not in NON_CODE_TAGS
    ]
    if not blocks:
        raise NoCodeBlocksError(f"no usable fenced code blocks in {len(text)} characters")

    tests: list[GeneratedTest] = []
    used: set[str] = set()
    for index, block in enumerate(blocks):
        source, test_name = _associate(block, sources)
        if source is None:
            raise AmbiguousTargetError(
                f"block {index} has no resolvable target among {len(sources)} sources"
            )

        file_name = _unique(test_name or _default_name(source, language, framework), used)
        used.add(file_name)
        tests.append(GeneratedTest(
            framework=framework.key,
            language=language.key,
            file_name=file_name,
            code=block.code.strip("\n") + "\n",
            source_file_ref=source.name,
        ))

    return tests


def _default_name(source: SourceFile, language: LanguageProfile, framework: FrameworkProfile) -> str:
    return expected_test_file_name(source.name, language, framework)
