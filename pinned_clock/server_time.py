"""
Server-Time Classifier
======================

Classifies two independent one-second-resolution server clock readings
against the second the current edit is meant to land in:

  - the response ``Date`` header (e.g. "Mon, 19 Oct 2026 10:31:05 GMT")
  - the ``edit_date`` Unix timestamp confirming the edit

Neither reading alone says much; only when both agree does the loop
correct the controller.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class Reading(Enum):
    """Where the server committed the edit relative to the target second."""
    BEFORE = "-"
    AT_OR_AFTER = "+"
    INCONCLUSIVE = "0"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SecondWindow:
    """The target second and the one before it, both in [0, 59]."""

    sec_before: int
    sec_target: int

    @classmethod
    def for_second(cls, second: int) -> 'SecondWindow':
        return cls(sec_before=(second - 1) % 60, sec_target=second)

    @classmethod
    def for_target(cls, target: datetime) -> 'SecondWindow':
        return cls.for_second(target.second)


def classify_from_text(text: Optional[str], window: SecondWindow) -> Reading:
    """Classify a textual HTTP date by its ":SS " seconds field."""
    if text is None:
        return Reading.INCONCLUSIVE
    if f":{window.sec_before:02d} " in text:
        return Reading.BEFORE
    if f":{window.sec_target:02d} " in text:
        return Reading.AT_OR_AFTER
    return Reading.INCONCLUSIVE


def classify_from_epoch(epoch: Optional[int], window: SecondWindow) -> Reading:
    """Classify a Unix timestamp (seconds) by its seconds-of-minute."""
    if epoch is None:
        return Reading.INCONCLUSIVE
    sec = epoch % 60
    if sec == window.sec_before:
        return Reading.BEFORE
    if sec == window.sec_target:
        return Reading.AT_OR_AFTER
    return Reading.INCONCLUSIVE


def correction(epoch_reading: Reading, header_reading: Reading) -> Optional[float]:
    """Controller error for a pair of readings, or None to leave it alone.

    The Date header is stamped after the edit is committed, so an
    edit_date in the second before with a header at the target second is
    fine, while the mirrored case means the server clocks disagree.
    """
    if epoch_reading is Reading.BEFORE and header_reading is Reading.BEFORE:
        return -1.0
    if epoch_reading is Reading.AT_OR_AFTER and header_reading is Reading.AT_OR_AFTER:
        return 1.0
    if epoch_reading is Reading.BEFORE and header_reading is Reading.AT_OR_AFTER:
        return None
    if epoch_reading is Reading.AT_OR_AFTER and header_reading is Reading.BEFORE:
        logger.error("Server Date is earlier than edit_date!")
        return None
    logger.warning(f"Unexpected server time {epoch_reading}{header_reading} (too slow?)")
    return None
