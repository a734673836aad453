"""
Pinned Clock Package
====================

Keeps a Telegram chat's pinned message showing the current time,
timing each edit so the server commits it on the second boundary.

Modules:
    protocol     - Bot API envelope decoding, time helpers, message text
    config       - Config blob parsing
    client       - aiohttp Bot API client and round-robin endpoint pool
    stats        - EWMA round-trip-time estimator
    server_time  - Server clock readings classifier
    controller   - PI controller for the send-early lead time
    sync_loop    - Per-second edit scheduling loop
"""

from .protocol import (
    ApiResponse,
    Chat,
    EditedMessage,
    EditOutcome,
    align_to_second,
    format_message,
    utc_now,
)
from .config import Config, ConfigError, load_config, parse_config
from .client import ApiError, BotClient, Endpoint, EndpointPool
from .stats import RttEstimator
from .server_time import Reading, SecondWindow, classify_from_epoch, classify_from_text, correction
from .controller import OffsetController
from .sync_loop import LoopSettings, LoopState, SyncLoop

__all__ = [
    "ApiResponse",
    "Chat",
    "EditedMessage",
    "EditOutcome",
    "align_to_second",
    "format_message",
    "utc_now",
    "Config",
    "ConfigError",
    "load_config",
    "parse_config",
    "ApiError",
    "BotClient",
    "Endpoint",
    "EndpointPool",
    "RttEstimator",
    "Reading",
    "SecondWindow",
    "classify_from_epoch",
    "classify_from_text",
    "correction",
    "OffsetController",
    "LoopSettings",
    "LoopState",
    "SyncLoop",
]
