class ConsoleError(Exception):
    """Base class for console errors."""


class ConfigError(ConsoleError):
    """Raised when config loading or validation fails."""


class ValidationError(ConsoleError):
    """Raised when a plan document is malformed. Carries every problem found."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        summary = "; ".join(self.errors[:3])
        if len(self.errors) > 3:
            summary += f" (+{len(self.errors) - 3} more)"
        super().__init__(f"Invalid plan document: {summary}")


class OperatorInputError(ConsoleError):
    """Raised when operator input is rejected locally; no request is sent."""


class EngineRequestError(ConsoleError):
    """Raised when a request to the execution engine fails."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        self.message = message
        super().__init__(message if status_code is None else f"HTTP {status_code}: {message}")


class NotFound(EngineRequestError):
    """Raised when the referenced plan or flow does not exist."""


class Unauthorized(EngineRequestError):
    """Raised on 401; the session credential has been cleared."""


class ServerError(EngineRequestError):
    """Raised on 5xx responses."""


class NetworkError(EngineRequestError):
    """Raised when the request never reached the engine."""
