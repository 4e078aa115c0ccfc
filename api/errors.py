"""Reality Debugger — exception hierarchy.

Handlers in main.py map these onto HTTP status codes.
"""

PREVIEW_CHARS = 500


class RealityDebugError(Exception):
    """Base exception for analysis and storage failures."""


class MissingApiKeyError(RealityDebugError):
    """Raised on first use when GEMINI_API_KEY is not configured."""

    def __init__(self, env_var: str = "GEMINI_API_KEY"):
        super().__init__(f"{env_var} is not configured. Set the env var or enable MOCK_MODE.")
        self.env_var = env_var


class ModelCallError(RealityDebugError):
    """Raised when the Gemini call itself fails."""


class MalformedResponseError(RealityDebugError):
    """Raised when the model's text cannot be parsed as JSON."""

    def __init__(self, error: str, raw_text: str):
        self.preview = raw_text[:PREVIEW_CHARS]
        super().__init__(f"Failed to parse model response as JSON: {error}. Response: {self.preview}")


class SchemaMismatchError(RealityDebugError):
    """Raised when a parsed response does not match the report schema."""

    def __init__(self, reason: str):
        super().__init__(f"Report did not match schema: {reason}")
        self.reason = reason


class RepairFailedError(RealityDebugError):
    """Raised when the single repair attempt also fails."""

    def __init__(self, original_reason: str, repair_reason: str):
        super().__init__(
            f"Validation failed ({original_reason}) and repair failed ({repair_reason})"
        )
        self.original_reason = original_reason
        self.repair_reason = repair_reason


class UploadNotFoundError(RealityDebugError):
    """Raised when no stored upload matches a file id."""

    def __init__(self, file_id: str):
        super().__init__("File not found")
        self.file_id = file_id


class AmbiguousUploadError(RealityDebugError):
    """Raised when more than one stored blob matches a file id."""

    def __init__(self, file_id: str, matches: list[str]):
        super().__init__(f"Multiple stored files match id {file_id}: {', '.join(matches)}")
        self.file_id = file_id
        self.matches = matches
