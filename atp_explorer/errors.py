"""
Exception hierarchy for the XRPC explorer.

Every error raised by the session engine is recoverable: the controller turns
it into an inline message or a transient notice and the session continues.
"""


class ExplorerError(Exception):
    """Base exception for explorer errors."""

    pass


class CommandNotFoundError(ExplorerError):
    """Unknown command identifier."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown command: {name}")


class ParameterValidationError(ExplorerError):
    """Parameter value rejected during entry."""

    def __init__(self, parameter: str, message: str):
        self.parameter = parameter
        super().__init__(message)


class ProtocolError(ExplorerError):
    """Transport or API failure reported by the protocol client."""

    def __init__(self, message: str, status: int | None = None):
        self.status = status
        super().__init__(message)


class AuthError(ProtocolError):
    """Session login failed."""

    pass


class ClipboardError(ExplorerError):
    """Clipboard write failed."""

    pass


class ExportError(ExplorerError):
    """Writing an exported response to disk failed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Failed to write file {path}: {reason}")


class ResponseUnavailableError(ExplorerError):
    """No response payload is current."""

    def __init__(self, message: str = "No response to copy or export"):
        super().__init__(message)


class HistoryIndexError(ExplorerError, IndexError):
    """History index outside the retained entries."""

    def __init__(self, index: int, size: int):
        self.index = index
        self.size = size
        super().__init__(f"History index {index} out of range (size {size})")


class DispatchInProgressError(ExplorerError):
    """A dispatch is already outstanding for this session."""

    def __init__(self, command_id: str):
        self.command_id = command_id
        super().__init__(f"Request already in progress: {command_id}")


class ConfigError(ExplorerError):
    """Configuration file could not be parsed or validated."""

    pass
