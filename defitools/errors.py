"""
Error types raised by tools, the client context and the registry.

Every error carries a stable ``code`` string. The CLI writes that code into
its JSON error output and the agent toolkit copies it into the ``error``
field of a failed result envelope.
"""

from typing import Optional


class ToolError(Exception):
    code = "EXECUTION_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ConfigurationError(ToolError):
    """A tool factory was built without a credential it needs."""

    code = "MISSING_API_KEY"


class ArgumentError(ToolError):
    """Arguments failed schema validation. Raised before any network call."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, issues: Optional[list[dict]] = None):
        super().__init__(message)
        self.issues = issues or []


class ChainNotSupportedError(ToolError):
    code = "CHAIN_NOT_SUPPORTED"

    def __init__(self, chain_id: int, tool_name: Optional[str] = None):
        if tool_name:
            message = f"Chain {chain_id} not supported by tool {tool_name}"
        else:
            message = f"Chain {chain_id} is not supported"
        super().__init__(message)
        self.chain_id = chain_id
        self.tool_name = tool_name


class ProviderError(ToolError):
    """
    An upstream API answered with a non-2xx status, or could not be reached.
    ``status`` is None for transport failures (DNS, refused connection, timeout).
    """

    code = "PROVIDER_ERROR"

    def __init__(self, provider: str, status: Optional[int] = None, detail: str = ""):
        if status is None:
            message = f"{provider} request failed: {detail}"
        else:
            message = f"{provider} error {status}: {detail}" if detail else f"{provider} error {status}"
        super().__init__(message)
        self.provider = provider
        self.status = status
        self.detail = detail


class ParseError(ToolError):
    """The upstream response was missing a field the tool depends on."""

    code = "PARSE_ERROR"


class UnknownToolError(ToolError):
    code = "UNKNOWN_TOOL"

    def __init__(self, name: str, available: list[str], suggestion: Optional[str] = None):
        message = f"Tool {name} not found"
        if suggestion:
            message += f". Did you mean: {suggestion}?"
        super().__init__(message)
        self.name = name
        self.available = available
        self.suggestion = suggestion


class DuplicateToolError(ToolError):
    code = "DUPLICATE_TOOL"

    def __init__(self, name: str):
        super().__init__(f"Tool {name} is registered more than once")
        self.name = name
