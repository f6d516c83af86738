"""Settings loaded from the environment (and .env via python-dotenv)."""

import os
from dataclasses import dataclass, field

from slack_executor.errors import ConfigError


DEFAULT_EXECUTORS_FILE = "./executors.json"
DEFAULT_WORKERS = 4

_TRUTHY = {"1", "true", "yes", "on"}


def parse_user_list(raw: str) -> frozenset[str]:
    """Parse a comma-separated list of Slack user IDs."""
    return frozenset(u.strip() for u in raw.split(",") if u.strip())


@dataclass(frozen=True)
class Settings:
    app_token: str = ""  # xapp-... (Socket Mode)
    bot_token: str = ""  # xoxb-... (chat.postMessage)
    executors_file: str = DEFAULT_EXECUTORS_FILE
    workers: int = DEFAULT_WORKERS
    timeout: float | None = None
    allowed_users: frozenset[str] = field(default_factory=frozenset)
    debug_frames: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        workers_raw = os.getenv("EXECUTOR_WORKERS", str(DEFAULT_WORKERS))
        try:
            workers = int(workers_raw)
        except ValueError:
            raise ConfigError(f"EXECUTOR_WORKERS must be an integer, got {workers_raw!r}")
        if workers < 0:
            raise ConfigError("EXECUTOR_WORKERS must be >= 0")

        timeout = None
        timeout_raw = os.getenv("EXECUTOR_TIMEOUT", "").strip()
        if timeout_raw:
            try:
                timeout = float(timeout_raw)
            except ValueError:
                raise ConfigError(f"EXECUTOR_TIMEOUT must be a number, got {timeout_raw!r}")

        return cls(
            app_token=os.getenv("SLACK_APP_TOKEN", ""),
            bot_token=os.getenv("SLACK_BOT_TOKEN", ""),
            executors_file=os.getenv("EXECUTORS_FILE", DEFAULT_EXECUTORS_FILE),
            workers=workers,
            timeout=timeout,
            allowed_users=parse_user_list(os.getenv("SLACK_ALLOWED_USERS", "")),
            debug_frames=os.getenv("SLACK_DEBUG_FRAMES", "").strip().lower() in _TRUTHY,
        )

    def require_tokens(self):
        """Raise ConfigError unless both Slack tokens are set."""
        missing = [
            name for name, value in (
                ("SLACK_APP_TOKEN", self.app_token),
                ("SLACK_BOT_TOKEN", self.bot_token),
            ) if not value
        ]
        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")
