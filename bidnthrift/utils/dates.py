"""Timestamp helpers: canonical ISO-8601 parsing and chat display formatting."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone


class TimestampError(ValueError):
    """Raised when timestamps are malformed."""


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    if not value:
        raise TimestampError("timestamp missing")
    try:
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        dt = datetime.fromisoformat(value)
    except ValueError as exc:  # pragma: no cover - delegated to datetime
        raise TimestampError("timestamp is not ISO-8601 compatible") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_chat_time(timestamp: str | None, now: datetime | None = None) -> str:
    """Render a message timestamp the way the chat list shows it.

    Same day gives ``HH:MM``, the previous day ``Yesterday``, anything within
    the last week the weekday name and older messages ``Mon D``.
    """
    if not timestamp:
        return ""
    message_time = parse_timestamp(timestamp)
    ref = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    if message_time.date() == ref.date():
        return message_time.strftime("%H:%M")
    if message_time.date() == (ref - timedelta(days=1)).date():
        return "Yesterday"
    if message_time > ref - timedelta(days=7):
        return message_time.strftime("%A")
    return f"{message_time.strftime('%b')} {message_time.day}"
