"""Structured error types for mineagent."""


class MineAgentError(Exception):
    """Base error for all mineagent operations."""
    pass


class TaskError(MineAgentError):
    """Error raised while a task is running."""

    def __init__(self, task_name: str, message: str):
        self.task_name = task_name
        super().__init__(f"{task_name} error: {message}")


class PreconditionError(MineAgentError):
    """Raised when a required predecessor artifact is missing."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class UnknownOreError(MineAgentError):
    """Raised when an ore name matches nothing in the ore guide."""

    def __init__(self, query: str, known: list[str] | None = None):
        self.query = query
        self.known = list(known or [])
        hint = f" Known ores: {', '.join(self.known)}" if self.known else ""
        super().__init__(f"Unknown ore '{query}'.{hint}")


class ConfigError(MineAgentError):
    """Raised for unreadable or invalid configuration files."""

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(f"{key}: {message}")
