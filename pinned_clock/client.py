"""
Bot API Client
==============

Thin aiohttp wrapper around the two Bot API calls the clock makes,
recording the timestamps the sync loop needs, plus the round-robin
pool of bot endpoints the edits are spread over.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

import aiohttp

from .protocol import (
    ApiResponse,
    Chat,
    EditedMessage,
    EditOutcome,
    PARSE_MODE,
    monotonic,
    utc_now,
)

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.telegram.org"
DEFAULT_TIMEOUT = 10.0


class ApiError(Exception):
    """A Bot API call failed (transport, HTTP status, body or ok=false)."""


# ---- Endpoints ---------------------------------------------------------------

@dataclass(frozen=True)
class Endpoint:
    """One bot token bound to an API base URL."""

    token: str = field(repr=False)
    api_url: str = DEFAULT_API_URL

    @property
    def bot_id(self) -> str:
        """Public half of the token, safe to log."""
        return self.token.split(":", 1)[0]

    def url(self, method: str) -> str:
        return f"{self.api_url.rstrip('/')}/bot{self.token}/{method}"

    def redact(self, text: str) -> str:
        """Mask the token wherever it appears in text."""
        return text.replace(self.token, f"{self.bot_id}:***")

    def __repr__(self) -> str:
        return f"Endpoint(bot={self.bot_id}:***)"


class EndpointPool:
    """Round-robin dispenser over a fixed, non-empty set of endpoints.

    Args:
        endpoints: Endpoints in dispatch order.
    """

    def __init__(self, endpoints: Sequence[Endpoint]):
        if not endpoints:
            raise ValueError("EndpointPool needs at least one endpoint")
        self._endpoints: tuple[Endpoint, ...] = tuple(endpoints)
        self.cursor: int = 0

    @classmethod
    def from_tokens(cls, tokens: Sequence[str], api_url: str = DEFAULT_API_URL) -> 'EndpointPool':
        return cls([Endpoint(token=t, api_url=api_url) for t in tokens])

    def next_endpoint(self) -> Endpoint:
        endpoint = self._endpoints[self.cursor]
        self.cursor = (self.cursor + 1) % len(self._endpoints)
        return endpoint

    def __len__(self) -> int:
        return len(self._endpoints)

    def __getitem__(self, index: int) -> Endpoint:
        return self._endpoints[index]


# ---- Client ------------------------------------------------------------------

class BotClient:
    """Bot API HTTP client.

    Args:
        timeout: Total per-request timeout in seconds.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    async def connect(self):
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)

    async def close(self):
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> 'BotClient':
        await self.connect()
        return self

    async def __aexit__(self, *exc):
        await self.close()

    # ---- API calls -----------------------------------------------------------

    async def get_chat(self, endpoint: Endpoint, chat_id: str) -> Chat:
        """Fetch a chat; used once at startup to find the pinned message."""
        result, _ = await self._call(endpoint, "getChat", {"chat_id": chat_id})
        try:
            chat = Chat.decode(result)
        except ValueError as e:
            raise ApiError(f"getChat: {e}") from e
        logger.debug(f"getChat: {chat}")
        return chat

    async def resolve_pinned_message(self, endpoint: Endpoint, chat_id: str) -> int:
        """Message id of the chat's pinned message.

        Raises:
            ApiError: if the call fails or nothing is pinned.
        """
        chat = await self.get_chat(endpoint, chat_id)
        if chat.pinned_message_id is None:
            raise ApiError(f"Chat {chat_id} has no pinned message")
        return chat.pinned_message_id

    async def edit_message_text(
        self,
        endpoint: Endpoint,
        chat_id: str,
        message_id: int,
        text: str,
    ) -> EditOutcome:
        """Edit the message and return its timing record."""
        params = {
            "chat_id": chat_id,
            "message_id": str(message_id),
            "text": text,
            "parse_mode": PARSE_MODE,
        }
        result, meta = await self._call(endpoint, "editMessageText", params)
        try:
            edited = EditedMessage.decode(result)
        except ValueError as e:
            raise ApiError(f"editMessageText: {e}") from e
        logger.debug(f"editMessageText: {edited}")
        return EditOutcome(edit_date=edited.edit_date, **meta)

    # ---- Transport -----------------------------------------------------------

    async def _call(
        self,
        endpoint: Endpoint,
        method: str,
        params: dict[str, str],
    ) -> tuple[Any, dict[str, Any]]:
        """Issue one GET and unwrap the envelope.

        Returns:
            Tuple of (result, timing metadata for EditOutcome).
        """
        if self._session is None:
            raise ApiError("Client is not connected")

        sent_at = monotonic()
        try:
            async with self._session.get(endpoint.url(method), params=params) as resp:
                completed_at = monotonic()
                received_at = utc_now()
                if not 200 <= resp.status < 300:
                    body = await resp.text(errors="replace")
                    logger.error(f"{method} response {resp.status}: {body}")
                    raise ApiError(f"{method} failed with status {resp.status}")

                date_header = resp.headers.get("Date")
                logger.debug(f"{method} response {resp.status} Date: {date_header}")
                payload = await resp.json(content_type=None)
                parsed_at = monotonic()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ApiError(f"{method} transport error: {endpoint.redact(repr(e))}") from e
        except ValueError as e:
            raise ApiError(f"{method} returned malformed JSON: {e}") from e

        try:
            envelope = ApiResponse.decode(payload)
        except ValueError as e:
            raise ApiError(f"{method}: {e}") from e
        logger.debug(f"{method} body: {envelope}")

        if not envelope.ok:
            raise ApiError(f"{method} not ok: {envelope.description}")
        if envelope.result is None:
            raise ApiError(f"{method} returned no result")

        meta = {
            "sent_at": sent_at,
            "completed_at": completed_at,
            "parsed_at": parsed_at,
            "received_at": received_at,
            "date_header": date_header,
        }
        return envelope.result, meta
