"""Exception types for the executor bot."""


class ExecutorBotError(Exception):
    """Base class for all executor bot errors."""


class ConfigError(ExecutorBotError):
    """Configuration is missing or malformed."""


# --- Transport-fatal ---

class AuthError(ExecutorBotError):
    """Slack refused to hand out a Socket Mode endpoint."""


class TransportError(ExecutorBotError):
    """The websocket failed in a way we can't recover from."""


class FrameParseError(ExecutorBotError):
    """A frame did not match any known Socket Mode shape."""


# --- Directive / payload ---

class ParseError(ExecutorBotError):
    """A chat message could not be turned into a command request."""


class NoCodeBlock(ParseError):
    def __init__(self):
        super().__init__("No fenced code block found in message")


class DirectiveSyntaxError(ParseError):
    def __init__(self, line: str):
        self.line = line
        super().__init__(f"Invalid directive line: {line!r} (expected `# key: value`)")


class UnrecognizedDirective(ParseError):
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Unrecognized directive: {key!r}")


# --- Resolution ---

class ResolutionError(ExecutorBotError):
    """The requested executor could not be resolved."""


class NoAvailableExecutors(ResolutionError):
    def __init__(self):
        super().__init__("No executors are configured")


class UnknownExecutor(ResolutionError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Executor not found: {name!r}")


class TemplateError(ExecutorBotError):
    """A command template could not be rendered."""


class PostError(ExecutorBotError):
    """Posting a reply to Slack failed."""
