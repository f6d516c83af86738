"""Formats execution results and errors as Slack messages."""

from slack_executor.commands.command import ExecutionResult
from slack_executor.commands.registry import CommandRegistry
from slack_executor.errors import NoAvailableExecutors, UnknownExecutor


# Slack truncates messages above ~40k chars; keep well under it
MAX_OUTPUT_CHARS = 3500


def _truncate(text: str, limit: int = MAX_OUTPUT_CHARS) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "\n... (output truncated)"


def _code_block(text: str) -> str:
    # A literal fence inside the output would close our block early
    return "```\n" + text.replace("```", "` ` `") + "\n```"


def format_result(name: str, result: ExecutionResult) -> str:
    """Build the reply for a finished execution."""
    if result.ok:
        output = result.stdout.rstrip() or "(no output)"
        return f"✅ `{name}` finished\n{_code_block(_truncate(output))}"

    lines = [f"❌ `{name}` failed: {result.error}"]
    output = result.stderr.rstrip() or result.stdout.rstrip()
    if output:
        lines.append(_code_block(_truncate(output)))
    return "\n".join(lines)


def format_error(error: Exception, registry: CommandRegistry | None = None) -> str:
    """Build a diagnostic reply for an error raised before execution."""
    if isinstance(error, NoAvailableExecutors):
        return "❌ No executors are configured on this bot."
    if isinstance(error, UnknownExecutor):
        if not error.name:
            message = "❌ Missing `# executor: <name>` directive."
        else:
            message = f"❌ Executor `{error.name}` not found."
        if registry is not None and len(registry):
            available = ", ".join(f"`{name}`" for name in registry.names())
            message += f"\nAvailable executors: {available}"
        return message
    return f"❌ {error}"
