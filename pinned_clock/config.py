"""
Configuration
=============

Parses the whitespace-separated config blob:

    123456:AAE...        bot token (any token containing ':'), one or more
    #@my_channel         target chat (required)
    T+8                  display UTC offset in hours (optional)

Anything else is ignored.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta, timezone, tzinfo
from typing import Optional

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Config blob is unusable."""


@dataclass(frozen=True)
class Config:
    tokens: tuple
    chat_id: str
    utc_offset_hours: Optional[int] = None

    def timezone(self) -> Optional[tzinfo]:
        """Fixed display zone, or None for the host local zone.

        The local zone is resolved per conversion so DST changes apply.
        """
        if self.utc_offset_hours is None:
            return None
        return timezone(timedelta(hours=self.utc_offset_hours))


def _parse_offset(word: str) -> int:
    try:
        hours = int(word[1:])
    except ValueError:
        raise ConfigError(f"Bad timezone offset: {word!r}") from None
    if not -24 < hours < 24:
        raise ConfigError(f"Timezone offset out of range: {word!r}")
    return hours


def parse_config(text: str) -> Config:
    """Parse a config blob.

    Raises:
        ConfigError: no chat id, no tokens, or a malformed T offset.
    """
    chat_id = ""
    offset: Optional[int] = None
    tokens = []

    for word in text.split():
        if word.startswith("#"):
            chat_id = word[1:]
        elif word.startswith("T"):
            offset = _parse_offset(word)
        elif ":" in word:
            tokens.append(word)

    if not chat_id:
        raise ConfigError("No chat ID (#...)")
    if not tokens:
        raise ConfigError("No bot token (<id>:<secret>)")

    logger.debug(f"Config: {len(tokens)} token(s), chat={chat_id}, offset={offset}")
    return Config(tokens=tuple(tokens), chat_id=chat_id, utc_offset_hours=offset)


def load_config(path: str) -> Config:
    """Read and parse a config file. OSError propagates."""
    with open(path, "r", encoding="utf-8") as f:
        return parse_config(f.read())
