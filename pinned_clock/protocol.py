"""
Bot API Protocol Module
=======================

Decoding of the Telegram Bot API JSON envelope and the few result
objects the clock needs, plus time helpers and message rendering.

ENVELOPE FORMAT:
  {"ok": bool, "result": <object>, "description": <str, on errors>}

RESULTS USED:
  getChat          -> {"pinned_message": {"message_id": int}, ...}
  editMessageText  -> {"edit_date": int, ...}   (Unix seconds)

All decoders raise ValueError on malformed payloads.
"""

import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional


# =================
# CONSTANTS
# =================

PARSE_MODE = "MarkdownV2"

MESSAGE_TEMPLATE = "怎么都 {year}/{month}/{day} {hour}:{minute:02d}:{second:02d} 了"

# Characters that must be backslash-escaped in MarkdownV2 text
_MARKDOWN_RESERVED = re.compile(r"([_*\[\]()~`>#+\-=|{}.!\\])")


# ===================
# UTILITY FUNCTIONS
# ===================

def utc_now() -> datetime:
    """Current wall-clock time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def monotonic() -> float:
    """Monotonic clock in seconds (for measuring durations)."""
    return time.monotonic()


def align_to_second(dt: datetime) -> datetime:
    """Drop the sub-second part of a datetime."""
    return dt.replace(microsecond=0)


def escape_markdown(text: str) -> str:
    return _MARKDOWN_RESERVED.sub(r"\\\1", text)


def format_message(dt: datetime) -> str:
    """Render the display text for a (zone-converted) datetime."""
    return escape_markdown(MESSAGE_TEMPLATE.format(
        year=dt.year,
        month=dt.month,
        day=dt.day,
        hour=dt.hour,
        minute=dt.minute,
        second=dt.second,
    ))


def signed_delta(a: float, b: float) -> str:
    """Format a - b as a sign plus magnitude in milliseconds."""
    sign = "+" if a >= b else "-"
    return f"{sign}{abs(a - b) * 1000:.3f}ms"


# =================
# DATA CLASSES
# =================

@dataclass
class ApiResponse:
    """Bot API envelope."""

    ok: bool
    result: Optional[Any] = None
    description: Optional[str] = None

    @classmethod
    def decode(cls, data: Any) -> 'ApiResponse':
        if not isinstance(data, dict):
            raise ValueError(f"Expected JSON object, got {type(data).__name__}")
        if not isinstance(data.get("ok"), bool):
            raise ValueError("Envelope has no boolean 'ok' field")
        return cls(
            ok=data["ok"],
            result=data.get("result"),
            description=data.get("description"),
        )


@dataclass
class Chat:
    """The part of a getChat result we need."""

    pinned_message_id: Optional[int] = None

    @classmethod
    def decode(cls, data: Any) -> 'Chat':
        if not isinstance(data, dict):
            raise ValueError("Chat result is not an object")
        pinned = data.get("pinned_message")
        message_id = None
        if pinned is not None:
            if not isinstance(pinned, dict) or not isinstance(pinned.get("message_id"), int):
                raise ValueError("pinned_message has no integer message_id")
            message_id = pinned["message_id"]
        return cls(pinned_message_id=message_id)


@dataclass
class EditedMessage:
    """editMessageText result; edit_date is when the server committed the edit."""

    edit_date: int

    @classmethod
    def decode(cls, data: Any) -> 'EditedMessage':
        if not isinstance(data, dict):
            raise ValueError("Edit result is not an object")
        edit_date = data.get("edit_date")
        # bool is an int subclass; reject it explicitly
        if not isinstance(edit_date, int) or isinstance(edit_date, bool):
            raise ValueError("Edit result has no integer edit_date")
        return cls(edit_date=edit_date)


@dataclass
class EditOutcome:
    """Timing record of one successful edit.

    sent_at, completed_at and parsed_at are monotonic seconds;
    received_at is the wall-clock instant the response headers arrived.
    """

    sent_at: float
    completed_at: float
    parsed_at: float
    received_at: datetime
    date_header: Optional[str]
    edit_date: int

    @property
    def rtt(self) -> float:
        return self.completed_at - self.sent_at

    @property
    def parse_time(self) -> float:
        return self.parsed_at - self.sent_at
