"""Run pre-configured shell commands from Slack messages."""

__version__ = "0.1.0"
