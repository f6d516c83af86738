"""Parses chat messages into command requests.

A command message carries a fenced block:

    ```
    # executor: psql
    select 1;
    ```

Lines starting with `#` are directives (`# key: value`); every other line is
payload, concatenated as-is.
"""

from slack_executor.commands.command import CommandRequest
from slack_executor.errors import DirectiveSyntaxError, NoCodeBlock, UnrecognizedDirective


FENCE = "```"


def extract_code_block(raw_text: str) -> str:
    """Return the text between the first fence and the next one after it."""
    start = raw_text.find(FENCE)
    if start == -1:
        raise NoCodeBlock()
    start += len(FENCE)
    end = raw_text.find(FENCE, start)
    if end == -1:
        raise NoCodeBlock()
    return raw_text[start:end]


def _parse_directive(line: str) -> tuple[str, str]:
    body = line[1:].strip()
    parts = body.split(":")
    if len(parts) < 2:
        raise DirectiveSyntaxError(body)
    value = parts.pop().strip()
    key = parts.pop().strip()
    return key, value


def _check_directive_syntax(raw_text: str):
    for line in (raw.strip() for raw in raw_text.splitlines()):
        if line.startswith("#"):
            _parse_directive(line)


def extract_request(raw_text: str) -> CommandRequest:
    """Extract an executor name and payload from a chat message.

    Without a complete fenced block the message is not a command, but a
    malformed `#` directive anywhere in it is still reported as such.
    """
    try:
        block = extract_code_block(raw_text)
    except NoCodeBlock:
        _check_directive_syntax(raw_text)
        raise

    name = ""
    payload_parts = []
    for line in (raw.strip() for raw in block.splitlines()):
        if not line.startswith("#"):
            payload_parts.append(line)
            continue

        key, value = _parse_directive(line)
        if key == "executor":
            name = value
        else:
            raise UnrecognizedDirective(key)

    return CommandRequest(name=name, payload="".join(payload_parts))
