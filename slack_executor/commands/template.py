"""Renders a command template with the payload from a chat message."""

import re

from slack_executor.errors import TemplateError


PLACEHOLDER_NAME = "payload"

_TAG_RE = re.compile(r"\{\{(.*?)\}\}", re.DOTALL)


def count_placeholders(template: str) -> int:
    """Count `{{payload}}` placeholders, validating every `{{...}}` tag."""
    count = 0
    for match in _TAG_RE.finditer(template):
        name = match.group(1).strip()
        if name != PLACEHOLDER_NAME:
            raise TemplateError(f"Unknown placeholder {match.group(0)!r} (only {{{{payload}}}} is supported)")
        count += 1

    # Anything left over after removing the tags is an unbalanced brace pair
    leftover = _TAG_RE.sub("", template)
    if "{{" in leftover or "}}" in leftover:
        raise TemplateError(f"Unbalanced placeholder braces in template: {template!r}")
    return count


def render(template: str, payload: str) -> str:
    """Substitute the payload into the template.

    The payload is inserted verbatim; no shell quoting happens here. Quoting
    is up to whoever writes the template.
    """
    count = count_placeholders(template)
    if count != 1:
        raise TemplateError(f"Template must contain exactly one {{{{payload}}}} placeholder, found {count}")
    return _TAG_RE.sub(lambda _: payload, template)
