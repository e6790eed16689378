# Overview: Tracking code and delivery estimate generation.

"""
Both values are randomized per order and intentionally unseeded in
production. Callers may pass their own random.Random and clock so tests get
deterministic results.

UNIQUENESS: The timestamp + 5 base-36 characters make collisions improbable,
not impossible. The unique index on orders.tracking_code is the real
guarantee; a collision surfaces as ConflictError from the insert.
"""

from __future__ import annotations

import random
import re
import string
from datetime import date, datetime, timedelta
from typing import Callable

from giftshop.time_utils import utcnow


SUFFIX_ALPHABET = string.digits + string.ascii_uppercase
SUFFIX_LENGTH = 5

DELIVERY_MIN_DAYS = 3
DELIVERY_MAX_DAYS = 5

Clock = Callable[[], datetime]

# Module-level source used when callers don't inject one
default_rng: random.Random = random.SystemRandom()


def _epoch_millis(moment: datetime) -> int:
    epoch = datetime(1970, 1, 1)
    return int((moment.replace(tzinfo=None) - epoch).total_seconds() * 1000)


def generate_tracking_code(
    prefix: str,
    *,
    rng: random.Random | None = None,
    clock: Clock | None = None,
) -> str:
    """
    Brand prefix + millisecond timestamp + random uppercase alphanumerics.

    Example: PINKIES1718000000000K3Z9Q
    """
    rng = rng or default_rng
    now = (clock or utcnow)()
    suffix = "".join(rng.choice(SUFFIX_ALPHABET) for _ in range(SUFFIX_LENGTH))
    return f"{prefix}{_epoch_millis(now)}{suffix}"


def tracking_code_pattern(prefix: str) -> re.Pattern:
    return re.compile(rf"^{re.escape(prefix)}\d+[0-9A-Z]{{{SUFFIX_LENGTH}}}$")


def estimate_delivery(
    created: date | datetime,
    *,
    rng: random.Random | None = None,
) -> date:
    """Creation date plus 3-5 calendar days (no business-day logic)."""
    rng = rng or default_rng
    if isinstance(created, datetime):
        created = created.date()
    offset = rng.randint(DELIVERY_MIN_DAYS, DELIVERY_MAX_DAYS)
    return created + timedelta(days=offset)
