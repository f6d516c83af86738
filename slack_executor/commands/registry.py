"""Command registry - holds the executors loaded from config."""

import json
from pathlib import Path
from types import MappingProxyType
from typing import Iterable

from slack_executor.commands.command import CommandTemplate
from slack_executor.errors import ConfigError, UnknownExecutor


class CommandRegistry:
    """Read-only mapping of executor name -> CommandTemplate.

    Built once at startup and never mutated afterwards, so it can be shared
    between workers without locking.
    """

    def __init__(self, templates: Iterable[CommandTemplate] = ()):
        entries: dict[str, CommandTemplate] = {}
        for tmpl in templates:
            entries[tmpl.name] = tmpl  # last one wins
        self._entries = MappingProxyType(entries)

    def lookup(self, name: str) -> CommandTemplate:
        tmpl = self._entries.get(name)
        if tmpl is None:
            raise UnknownExecutor(name)
        return tmpl

    def names(self) -> list[str]:
        return sorted(self._entries)

    def __iter__(self):
        return iter(self._entries[name] for name in self.names())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __repr__(self) -> str:
        return f"CommandRegistry({self.names()})"


def _template_from_entry(name: str, entry) -> CommandTemplate:
    if isinstance(entry, str):
        return CommandTemplate(name=name, template=entry)
    if not isinstance(entry, dict):
        raise ConfigError(f"Executor {name!r}: expected a string or object, got {type(entry).__name__}")

    description = entry.get("description") or ""
    if "template" in entry:
        template = entry["template"]
    elif "binary" in entry and "command" in entry:
        template = f"{entry['binary']} {entry['command']}"
    else:
        raise ConfigError(f"Executor {name!r}: needs either `template` or `binary` + `command`")

    if not isinstance(template, str):
        raise ConfigError(f"Executor {name!r}: template must be a string")
    return CommandTemplate(name=name, template=template, description=description)


def registry_from_mapping(data: dict) -> CommandRegistry:
    """Build a registry from parsed config data.

    Accepts `{"executors": {name: template_or_object}}` or
    `{"executors": [{"name": ..., "template": ...}, ...]}`.
    """
    if not isinstance(data, dict):
        raise ConfigError("Executor config must be a JSON object")

    executors = data.get("executors", {})
    templates: list[CommandTemplate] = []

    if isinstance(executors, dict):
        for name, entry in executors.items():
            templates.append(_template_from_entry(name, entry))
    elif isinstance(executors, list):
        for i, entry in enumerate(executors):
            if not isinstance(entry, dict) or not entry.get("name"):
                raise ConfigError(f"Executor #{i}: missing `name`")
            templates.append(_template_from_entry(entry["name"], entry))
    else:
        raise ConfigError("`executors` must be an object or a list")

    return CommandRegistry(templates)


def load_registry(path: str | Path) -> CommandRegistry:
    """Load the executor registry from a JSON file."""
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Executors file not found: {path}")
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise ConfigError(f"Executors file {path} is not valid JSON: {e}")
    return registry_from_mapping(data)
