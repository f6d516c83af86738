"""Core command types."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CommandTemplate:
    """A named, pre-configured shell command template."""
    name: str
    template: str  # Must contain exactly one {{payload}} placeholder
    description: str = ""


@dataclass
class CommandRequest:
    """Request parsed out of a chat message."""
    name: str  # Executor name from `# executor: <name>`; empty if absent
    payload: str


@dataclass
class ExecutionResult:
    """Result of running a rendered command through the shell."""
    command: str
    stdout: str = ""
    stderr: str = ""
    exit_status: int | None = None  # None if the process never ran to completion
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
