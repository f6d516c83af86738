"""Shared utilities for reply threading."""


def get_reply_target(ts: str | None, thread_ts: str | None) -> str | None:
    """Determine which message our reply should be threaded under.

    Args:
        ts: Timestamp of the message containing the command
        thread_ts: Timestamp of the thread root, if the message is in a thread

    Returns:
        The thread_ts to reply with, or None to post at channel level

    Logic:
        - If the command was posted inside a thread: reply in that thread
        - Otherwise: start a new thread under the command message
    """
    if thread_ts:
        return thread_ts
    return ts or None
