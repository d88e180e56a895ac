"""
Request Loader Service - Validates raw generation payloads.

Turns the external request body into an immutable GenerationRequest plus
the resolved ModelConfig. Everything rejected here fails fast: no prompt
is built and no provider stream is opened.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..constants import INPUT_SOURCE_STEM, MAX_UPLOAD_FILES, MAX_UPLOAD_SIZE
from ..core.conventions import FRAMEWORKS, LANGUAGES, get_framework, get_language
from ..core.models import GenerationRequest, ModelConfig, UploadedFile
from ..core.registry import DEFAULT_REGISTRY, ModelRegistry
from .base import ErrorCode, ServiceResult


@dataclass(frozen=True)
class LoadedRequest:
    """
    Result of successfully validating a payload.

    Attributes:
        request: The validated, normalized request
        model: Config of the requested model
    """
    request: GenerationRequest
    model: ModelConfig


def _size(text: str) -> int:
    return len(text.encode("utf-8"))


class RequestLoader:
    """
    Validates generation payloads.

    Handles:
    - Required fields and field types
    - Model lookup in the registry
    - Language / framework support
    - Upload count and size limits

    This class is stateless - all configuration is passed to __init__.
    """

    def __init__(
        self,
        registry: ModelRegistry = DEFAULT_REGISTRY,
        max_size: int = MAX_UPLOAD_SIZE,
        max_files: int = MAX_UPLOAD_FILES,
    ):
        """
        Initialize the request loader.

        Args:
            registry: Model catalog used to resolve `aiModel`
            max_size: Maximum size in bytes, per file and for all input together
            max_files: Maximum number of uploaded files
        """
        self._registry = registry
        self._max_size = max_size
        self._max_files = max_files

    def load(self, payload: dict[str, Any]) -> ServiceResult[LoadedRequest]:
        """
        Validate a request body.

        Args:
            payload: Dict with inputCode, uploadedFiles, selectedLanguage,
                testFramework and aiModel

        Returns:
            ServiceResult with LoadedRequest on success, error on failure
        """
        if not isinstance(payload, dict):
            return ServiceResult.fail(ErrorCode.VALIDATION_ERROR, "Request body must be a JSON object")

        # Model
        model_id = payload.get("aiModel")
        if not isinstance(model_id, str) or not model_id.strip():
            return ServiceResult.fail(ErrorCode.MISSING_INPUT, "Please select an AI model ('aiModel')")
        model = self._registry.lookup(model_id.strip())
        if model is None:
            return ServiceResult.fail(
                ErrorCode.UNKNOWN_MODEL,
                f"Unknown AI model: {model_id}",
                details={"model": model_id, "available": self._registry.ids()}
            )

        # Language / framework
        language_key = payload.get("selectedLanguage")
        if not isinstance(language_key, str) or not language_key.strip():
            return ServiceResult.fail(ErrorCode.MISSING_INPUT, "Please select a language ('selectedLanguage')")
        language = get_language(language_key)
        if language is None:
            return ServiceResult.fail(
                ErrorCode.UNSUPPORTED_LANGUAGE,
                f"Unsupported language: {language_key}",
                details={"available": sorted(LANGUAGES)}
            )

        framework_key = payload.get("testFramework")
        if not isinstance(framework_key, str) or not framework_key.strip():
            return ServiceResult.fail(ErrorCode.MISSING_INPUT, "Please select a test framework ('testFramework')")
        framework = get_framework(framework_key)
        if framework is None or framework.key not in language.frameworks:
            return ServiceResult.fail(
                ErrorCode.UNSUPPORTED_FRAMEWORK,
                f"Test framework '{framework_key}' is not supported for {language.name}",
                details={
                    "available": list(language.frameworks),
                    "known": sorted(FRAMEWORKS),
                }
            )

        # Sources
        input_code = payload.get("inputCode") or ""
        if not isinstance(input_code, str):
            return ServiceResult.fail(ErrorCode.VALIDATION_ERROR, "'inputCode' must be a string")

        files_result = self._load_files(payload.get("uploadedFiles") or [])
        if not files_result.success:
            return ServiceResult.fail(
                files_result.error.code, files_result.error.message, files_result.error.details
            )
        files = files_result.data

        if not input_code.strip() and not files:
            return ServiceResult.fail(
                ErrorCode.MISSING_INPUT,
                "Please provide either 'inputCode' or at least one uploaded file"
            )

        total = _size(input_code) + sum(_size(f.content) for f in files)
        if _size(input_code) > self._max_size or total > self._max_size:
            return ServiceResult.fail(
                ErrorCode.FILE_TOO_LARGE,
                f"Input too large: {total} bytes (max: {self._max_size})",
                details={"size": total, "max_size": self._max_size}
            )

        if input_code.strip():
            input_name = f"{INPUT_SOURCE_STEM}{language.extension}"
            if any(f.name == input_name for f in files):
                return ServiceResult.fail(
                    ErrorCode.VALIDATION_ERROR,
                    f"Uploaded file name '{input_name}' is reserved for pasted code"
                )

        request = GenerationRequest(
            input_code=input_code,
            uploaded_files=tuple(files),
            selected_language=language.key,
            test_framework=framework.key,
            ai_model=model.id,
        )
        return ServiceResult.ok(LoadedRequest(request=request, model=model))

    def _load_files(self, raw_files: Any) -> ServiceResult[list[UploadedFile]]:
        if not isinstance(raw_files, list):
            return ServiceResult.fail(ErrorCode.VALIDATION_ERROR, "'uploadedFiles' must be a list")
        if len(raw_files) > self._max_files:
            return ServiceResult.fail(
                ErrorCode.VALIDATION_ERROR,
                f"Too many files: {len(raw_files)} (max: {self._max_files})"
            )

        files: list[UploadedFile] = []
        seen: set[str] = set()
        for index, raw in enumerate(raw_files):
            if not isinstance(raw, dict):
                return ServiceResult.fail(
                    ErrorCode.VALIDATION_ERROR, f"uploadedFiles[{index}] must be an object"
                )
            name, content = raw.get("name"), raw.get("content")
            if not isinstance(name, str) or not name.strip():
                return ServiceResult.fail(
                    ErrorCode.VALIDATION_ERROR, f"uploadedFiles[{index}] is missing a file name"
                )
            if not isinstance(content, str) or not content.strip():
                return ServiceResult.fail(
                    ErrorCode.VALIDATION_ERROR, f"Uploaded file '{name}' is empty"
                )
            if _size(content) > self._max_size:
                return ServiceResult.fail(
                    ErrorCode.FILE_TOO_LARGE,
                    f"File too large: {name} ({_size(content)} bytes, max: {self._max_size})",
                    details={"file": name, "size": _size(content), "max_size": self._max_size}
                )
            name = name.strip()
            if name in seen:
                return ServiceResult.fail(
                    ErrorCode.VALIDATION_ERROR, f"Duplicate uploaded file name: {name}"
                )
            seen.add(name)
            files.append(UploadedFile(name=name, content=content))

        return ServiceResult.ok(files)
