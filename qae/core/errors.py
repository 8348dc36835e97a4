from enum import Enum


class ErrorCode(str, Enum):
    INVALID_ARGS = "INVALID_ARGS"
    INVALID_PATTERN = "INVALID_PATTERN"
    INVALID_GLOB = "INVALID_GLOB"
    UNKNOWN_TYPE = "UNKNOWN_TYPE"
    MISSING_DEPENDENCY = "MISSING_DEPENDENCY"
    IO_ERROR = "IO_ERROR"


class QaeError(Exception):
    """Fatal error for the whole run. The CLI prints it and exits with 1."""

    def __init__(self, code: ErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class ConfigError(QaeError):
    """Invalid pattern, glob or type, or an incompatible flag combination."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INVALID_ARGS):
        super().__init__(code, message)


class MissingDependencyError(QaeError):
    def __init__(self, message: str):
        super().__init__(ErrorCode.MISSING_DEPENDENCY, message)
