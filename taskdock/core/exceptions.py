"""
Base exception hierarchy

Provides a consistent exception structure across taskdock
with clear error messages and recovery hints.
"""


class TaskdockError(Exception):
    """
    Base exception for all taskdock errors

    Attributes:
        message: Error message, without context or hint
        recovery_hint: Optional hint telling the user what to do next
        context: Identifiers of the resource and operation involved
    """

    def __init__(
        self,
        message: str,
        recovery_hint: str = "",
        context: dict | None = None,
    ):
        self.message = message
        self.recovery_hint = recovery_hint
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"[{context_str}]")
        if self.recovery_hint:
            parts.append(f"Hint: {self.recovery_hint}")
        return " ".join(parts)


class ConfigurationError(TaskdockError):
    """Configuration-related errors"""

    def __init__(self, message: str, recovery_hint: str = ""):
        super().__init__(
            message,
            recovery_hint=recovery_hint or "Check TASKDOCK_* environment variables and your .env file",
        )
