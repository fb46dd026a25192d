"""Exception hierarchy for wordpress-boost.

Everything raised while handling a single MCP message derives from
``BoostError`` so the dispatcher can turn it into a JSON-RPC error
envelope without catching unrelated failures by accident.
"""

from __future__ import annotations


class BoostError(Exception):
    """Base class for all wordpress-boost errors."""


class ConfigError(BoostError):
    """The boost configuration file exists but cannot be used."""


class InstallNotFoundError(BoostError):
    """No WordPress installation was found at or above the given path."""


class DuplicateToolError(BoostError):
    """Two registered tools advertise the same tool name."""


class ToolError(BoostError):
    """A tool rejected its arguments or failed while executing."""


# --- Dispatch errors ---


class DispatchError(BoostError):
    """A request could not be routed to a handler."""


class UnknownMethodError(DispatchError):
    def __init__(self, method: str) -> None:
        super().__init__(f"Unknown method: {method}")
        self.method = method


class UnknownToolError(DispatchError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class MissingToolNameError(DispatchError):
    def __init__(self) -> None:
        super().__init__("Tool name is required")


class InvalidParamsError(DispatchError):
    """``params`` was present but was not a JSON object."""
