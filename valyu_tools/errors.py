"""Error types surfaced by the Valyu tools. Messages never contain the API key."""
from typing import Any, Optional

from langchain_core.tools import ToolException

MISSING_KEY_MESSAGE = (
    "VALYU_API_KEY is required. Set it in environment variables or pass it in config."
)


class ValyuToolError(ToolException):
    """Base class; LangChain's handle_tool_error turns these into agent observations."""


class MissingCredential(ValyuToolError):
    def __init__(self, message: str = MISSING_KEY_MESSAGE):
        super().__init__(message)


class ToolValidationError(ValyuToolError):
    """Agent-supplied arguments did not match the tool's input schema."""

    def __init__(self, tool_name: str, errors: list[dict[str, Any]]):
        self.tool_name = tool_name
        self.errors = errors
        details = "; ".join(
            f"{'.'.join(str(p) for p in e.get('loc', ())) or 'input'}: {e.get('msg', 'invalid')}"
            for e in errors
        )
        super().__init__(f"Invalid arguments for {tool_name}: {details}")


class UpstreamError(ValyuToolError):
    """Valyu answered with a non-success HTTP status."""

    def __init__(self, status: int, body: str, action: str = "call Valyu"):
        self.status = status
        self.body = body
        super().__init__(f"Failed to {action}: Valyu API error: {status} - {body}")


class NetworkError(ValyuToolError):
    """No response was received (DNS, connection reset, timeout...)."""

    def __init__(self, cause: BaseException, action: str = "call Valyu"):
        self.cause = cause
        super().__init__(f"Failed to {action}: {type(cause).__name__}: {cause}")


class ResponseDecodeError(ValyuToolError):
    def __init__(self, cause: BaseException, action: str = "call Valyu"):
        self.cause = cause
        super().__init__(f"Failed to {action}: response was not valid JSON ({cause})")


class PartialSectionFailure(ValyuToolError):
    """One company-research section failed; recorded in the report, never raised."""

    def __init__(self, section: str, cause: Optional[BaseException] = None):
        self.section = section
        self.cause = cause
        reason = str(cause) if cause is not None else "unknown error"
        super().__init__(f"Section '{section}' failed: {reason}")
