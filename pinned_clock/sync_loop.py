"""
Synchronization Loop
====================

Edits the pinned message once per second, sending each edit early by a
learned fraction of the RTT so the server commits it right at the
second boundary the text shows.

Per tick:
  1. edit the message for ``target`` through the next pool endpoint
  2. on success, classify the server time readings, correct the
     controller and feed the RTT estimator
  3. advance ``target`` by one tick, realigning if real time overtook it
  4. sleep until ``target - lead``
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from enum import Enum
from typing import Awaitable, Callable, Optional

from .client import ApiError, EndpointPool
from .controller import DEFAULT_INITIAL, DEFAULT_KI, DEFAULT_KP, OffsetController
from .protocol import EditOutcome, align_to_second, format_message, signed_delta, utc_now
from .server_time import (
    Reading,
    SecondWindow,
    classify_from_epoch,
    classify_from_text,
    correction,
)
from .stats import DEFAULT_ALPHA, RttEstimator

logger = logging.getLogger(__name__)


class LoopState(Enum):
    STEADY = "steady"
    ERROR_RECOVERY = "error_recovery"
    DRIFT_RECOVERY = "drift_recovery"


@dataclass(frozen=True)
class LoopSettings:
    """Tuning constants for the loop, estimator and controller."""

    alpha: float = DEFAULT_ALPHA
    kp: float = DEFAULT_KP
    ki: float = DEFAULT_KI
    initial_ratio: float = DEFAULT_INITIAL
    tick: timedelta = timedelta(seconds=1)


class SyncLoop:
    """Keeps one message showing the current time.

    Args:
        client:     Object with an async ``edit_message_text`` (a BotClient).
        pool:       Endpoints to spread the edits over.
        chat_id:    Target chat.
        message_id: Message to keep editing.
        tz:         Zone the displayed time is rendered in; None for the
                    host local zone, looked up on every tick.
        settings:   Loop tuning constants.
        now:        Wall clock returning aware UTC datetimes.
        sleep:      Coroutine function used to wait between ticks.
    """

    def __init__(
        self,
        client,
        pool: EndpointPool,
        chat_id: str,
        message_id: int,
        tz: Optional[tzinfo],
        settings: Optional[LoopSettings] = None,
        now: Callable[[], datetime] = utc_now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.pool = pool
        self.chat_id = chat_id
        self.message_id = message_id
        self.tz = tz
        self.settings = settings or LoopSettings()
        self._now = now
        self._sleep = sleep

        self.estimator = RttEstimator(alpha=self.settings.alpha)
        self.controller = OffsetController(
            initial=self.settings.initial_ratio,
            kp=self.settings.kp,
            ki=self.settings.ki,
        )
        self.state = LoopState.STEADY
        self.target: datetime = align_to_second(self._now())

    async def run(self):
        """Tick forever."""
        logger.info(f"Sync loop started at {self.target} with {len(self.pool)} endpoint(s)")
        while True:
            await self.tick()

    async def tick(self):
        """Send one edit, update the model and wait for the next send instant."""
        window = SecondWindow.for_target(self.target)
        text = format_message(self._local(self.target))
        endpoint = self.pool.next_endpoint()

        try:
            outcome = await self.client.edit_message_text(
                endpoint, self.chat_id, self.message_id, text
            )
        except ApiError as e:
            now = self._now()
            logger.error(f"Edit failed: {e}")
            self.state = LoopState.ERROR_RECOVERY
            lead = self.controller.apply(self.estimator.average())
        else:
            now = self._now()
            logger.debug(f"Sent: {text}")
            lead = self._on_success(outcome, window)
            self.state = LoopState.STEADY

        self._advance(now)

        until = self.target - timedelta(seconds=lead)
        logger.debug(f"Next: {self._local(self.target)} - {lead * 1000:.3f}ms")
        delay = (until - self._now()).total_seconds()
        if delay >= 0:
            logger.debug(f"Sleeping for {delay * 1000:.3f}ms")
            await self._sleep(delay)
        else:
            logger.warning(f"Can't keep up! Is the server overloaded? Running {-delay * 1000:.3f}ms behind")

    def _on_success(self, outcome: EditOutcome, window: SecondWindow) -> float:
        """Feed one successful edit into the model; returns the next lead time."""
        epoch_reading = Reading.INCONCLUSIVE
        header_reading = Reading.INCONCLUSIVE

        # Without a prior RTT sample the send instant was a guess; don't judge it.
        if not self.estimator.is_empty():
            epoch_reading = classify_from_epoch(outcome.edit_date, window)
            header_reading = classify_from_text(outcome.date_header, window)
            error = correction(epoch_reading, header_reading)
            if error is not None:
                self.controller.update(error)

        rtt = outcome.rtt
        previous = self.estimator.average()
        self.estimator.push(rtt)
        avg = self.estimator.average()
        lead = self.controller.apply(avg)

        t0 = (outcome.received_at - self.target).total_seconds()
        logger.info(
            f"rtt={rtt * 1000:.3f}ms {self.estimator} err={signed_delta(previous, rtt)} "
            f"t0={signed_delta(t0, 0.0)} t1={outcome.parse_time * 1000:.3f}ms "
            f"off={lead * 1000:.3f}ms rr={self.pool.cursor} {self.controller} "
            f"S={epoch_reading}{header_reading}"
        )
        return lead

    def _local(self, dt: datetime) -> datetime:
        if self.tz is None:
            return dt.astimezone()
        return dt.astimezone(self.tz)

    def _advance(self, now: datetime):
        """Move target one tick on, realigning to real time if we fell behind."""
        self.target += self.settings.tick
        if self.target < now:
            logger.warning(f"Too slow: {self.target} < {now}")
            self.target = align_to_second(now) + self.settings.tick
            self.state = LoopState.DRIFT_RECOVERY
