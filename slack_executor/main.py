import asyncio
import sys

from dotenv import load_dotenv

load_dotenv(override=True)

from slack_executor.commands import extract_request, load_registry, run
from slack_executor.commands.registry import CommandRegistry
from slack_executor.commands.reply import format_error
from slack_executor.config import Settings
from slack_executor.errors import ConfigError, ExecutorBotError, ParseError
from slack_executor.slack import SlackConnectionProvider, SlackPoster
from slack_executor.socket import Dispatcher


def print_executor_status(registry: CommandRegistry):
    """Print which executors are configured."""
    print(f"🔧 Executors ({len(registry)}):", flush=True)
    if not len(registry):
        print("  ⚠ None configured - every command will be rejected", flush=True)
    for tmpl in registry:
        line = f"  ✓ {tmpl.name}: {tmpl.template}"
        if tmpl.description:
            line += f"  ({tmpl.description})"
        print(line, flush=True)


async def cmd_listen(settings: Settings, registry: CommandRegistry):
    """Connect to Socket Mode and dispatch events until the socket closes."""
    settings.require_tokens()
    dispatcher = Dispatcher(
        registry,
        SlackConnectionProvider(settings.app_token),
        SlackPoster(settings.bot_token),
        workers=settings.workers,
        timeout=settings.timeout,
        allowed_users=settings.allowed_users,
        debug_frames=settings.debug_frames,
    )
    print("🚀 Slack executor starting...", flush=True)
    print(f"   Workers: {settings.workers or 'sequential'} | Timeout: {settings.timeout or 'none'}", flush=True)
    if settings.allowed_users:
        print(f"   Allowed users: {', '.join(sorted(settings.allowed_users))}", flush=True)
    await dispatcher.run()
    print("👋 Shutting down...", flush=True)


async def cmd_run(settings: Settings, registry: CommandRegistry, text: str) -> int:
    """Parse and execute a message locally, printing the output."""
    try:
        request = extract_request(text)
    except ParseError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 2

    try:
        result = await run(request, registry, timeout=settings.timeout)
    except ExecutorBotError as e:
        print(format_error(e, registry), file=sys.stderr)
        return 2

    sys.stdout.write(result.stdout)
    if result.stderr:
        sys.stderr.write(result.stderr)
    if not result.ok:
        print(f"❌ {result.error}", file=sys.stderr)
        return result.exit_status or 1
    return 0


def main():
    import argparse

    parser = argparse.ArgumentParser(description="Run pre-configured shell commands from Slack messages")
    parser.add_argument("--executors", "-e", help="Path to the executors JSON file (default: $EXECUTORS_FILE or ./executors.json)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("listen", help="Connect to Slack Socket Mode and execute incoming commands")

    run_parser = subparsers.add_parser("run", help="Execute a command message locally (reads stdin if --text is omitted)")
    run_parser.add_argument("--text", "-t", help="Message text containing a fenced ``` block")

    subparsers.add_parser("executors", help="List configured executors")

    args = parser.parse_args()

    try:
        settings = Settings.from_env()
        registry = load_registry(args.executors or settings.executors_file)
    except ConfigError as e:
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(2)

    if args.command == "executors":
        print_executor_status(registry)
    elif args.command == "run":
        text = args.text if args.text is not None else sys.stdin.read()
        sys.exit(asyncio.run(cmd_run(settings, registry, text)))
    elif args.command == "listen":
        print_executor_status(registry)
        try:
            asyncio.run(cmd_listen(settings, registry))
        except KeyboardInterrupt:
            print("\n👋 Interrupted", flush=True)
        except ExecutorBotError as e:
            print(f"❌ {e}", file=sys.stderr)
            sys.exit(1)


if __name__ == "__main__":
    main()
