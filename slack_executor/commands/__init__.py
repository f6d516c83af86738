"""Command parsing, lookup and execution."""

from .command import CommandTemplate, CommandRequest, ExecutionResult
from .registry import CommandRegistry, load_registry, registry_from_mapping
from .template import render
from .parser import extract_request
from .executor import run, run_command

__all__ = [
    "CommandTemplate",
    "CommandRequest",
    "ExecutionResult",
    "CommandRegistry",
    "load_registry",
    "registry_from_mapping",
    "render",
    "extract_request",
    "run",
    "run_command",
]
