"""
Shared constants used across the project.
"""

from typing import Final

# Request limits
MAX_UPLOAD_SIZE: Final[int] = 1_000_000  # 1MB, per file and in total
MAX_UPLOAD_FILES: Final[int] = 20

# Pasted code has no file name; it is exposed to the model as "input<ext>"
INPUT_SOURCE_STEM: Final[str] = "input"

# AI Configuration
AI_TEMPERATURE: Final[float] = 0.2
CHARS_PER_TOKEN: Final[int] = 4
MIN_OUTPUT_TOKENS: Final[int] = 256
TRUNCATION_MARKER: Final[str] = "\n... [truncated: {omitted} of {total} characters omitted] ...\n"

# Streaming
GENERATION_TIMEOUT_SECONDS: Final[float] = 120.0
PROVIDER_CONNECT_TIMEOUT_SECONDS: Final[float] = 20.0

# Progress milestones (percent)
PROGRESS_PREPARING: Final[int] = 5
PROGRESS_CONNECTING: Final[int] = 10
PROGRESS_STREAM_FLOOR: Final[int] = 15
PROGRESS_STREAM_CEILING: Final[int] = 95
PROGRESS_EXTRACTING: Final[int] = 97
PROGRESS_COMPLETE: Final[int] = 100

# Providers
ANTHROPIC_API_VERSION: Final[str] = "2023-06-01"
DEFAULT_ANTHROPIC_BASE_URL: Final[str] = "https://api.anthropic.com"
