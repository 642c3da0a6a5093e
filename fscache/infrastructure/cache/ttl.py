"""TTL resolution.

A TTL is given either as a number of seconds, as a relative time expression
('2 hours', '+1 day 30 minutes', '90s', '3 days ago', 'tomorrow') or as an
absolute date/time string. It is resolved to an absolute expiration
timestamp once, at write time.
"""

import datetime
import logging
import re
import time
from dataclasses import dataclass
from typing import Callable, Optional, Union

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from fscache.domain.exceptions import ConfigError
from fscache.domain.interfaces.cache import TTLSpec
from fscache.domain.models.common import CallRecord

logger = logging.getLogger(__name__)

_UNIT_SECONDS = {
    "s": 1, "sec": 1, "secs": 1, "second": 1, "seconds": 1,
    "m": 60, "min": 60, "mins": 60, "minute": 60, "minutes": 60,
    "h": 3600, "hr": 3600, "hrs": 3600, "hour": 3600, "hours": 3600,
    "d": 86400, "day": 86400, "days": 86400,
    "w": 604800, "week": 604800, "weeks": 604800,
    "fortnight": 1209600, "fortnights": 1209600,
}
# Calendar units have no fixed length in seconds.
_CALENDAR_UNITS = {
    "month": "months", "months": "months",
    "year": "years", "years": "years",
}

_TERM = re.compile(r"([+-]?\s*\d+)\s*([a-z]+)")
# Terms are separated by exactly one space after normalization, so each
# character has one way to match and malformed input fails in linear time.
_RELATIVE = re.compile(r"^[+-]?\d+ ?[a-z]+(?: [+-]?\d+ ?[a-z]+)*(?: ago)?$")
_SECONDS_ONLY = re.compile(r"^[+-]?\d+$")


def resolve_expiry(ttl: TTLSpec, now: Optional[float] = None) -> float:
    """Resolves a TTL specification to an absolute Unix timestamp.

    Args:
        ttl: Seconds from now, or a time expression.
        now: Reference time; defaults to the current wall clock.

    Returns:
        The expiration timestamp. It may lie in the past, e.g. for '0' or
        '1 hour ago'.

    Raises:
        ConfigError: If ``ttl`` is not a number or a parseable expression.
    """
    now = time.time() if now is None else now
    if isinstance(ttl, bool):
        raise ConfigError(f"Invalid TTL {ttl!r}: expected seconds or a time expression")
    if isinstance(ttl, (int, float)):
        return now + ttl
    if not isinstance(ttl, str):
        raise ConfigError(f"Invalid TTL type {type(ttl).__name__}: expected int or str")

    text = " ".join(ttl.strip().lower().split())
    if not text:
        raise ConfigError("Invalid TTL: empty time expression")
    if _SECONDS_ONLY.match(text):
        return now + int(text)
    if text == "now":
        return now

    reference = datetime.datetime.fromtimestamp(now)
    if text in ("today", "midnight"):
        return _midnight(reference).timestamp()
    if text == "tomorrow":
        return (_midnight(reference) + datetime.timedelta(days=1)).timestamp()
    if _RELATIVE.match(text):
        return _resolve_relative(text, now)

    try:
        moment = date_parser.parse(ttl)
    except (ValueError, OverflowError) as e:
        raise ConfigError(f"Cannot parse TTL expression '{ttl}': {e}") from e
    if moment.tzinfo is None:
        return moment.timestamp()  # naive values are local time
    return moment.astimezone(datetime.timezone.utc).timestamp()


def _midnight(moment: datetime.datetime) -> datetime.datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def _resolve_relative(text: str, now: float) -> float:
    sign = -1 if text.endswith("ago") else 1
    seconds = 0
    calendar = relativedelta()
    for amount_text, unit in _TERM.findall(text):
        amount = sign * int(amount_text.replace(" ", ""))
        if unit in _UNIT_SECONDS:
            seconds += amount * _UNIT_SECONDS[unit]
        elif unit in _CALENDAR_UNITS:
            calendar += relativedelta(**{_CALENDAR_UNITS[unit]: amount})
        else:
            raise ConfigError(f"Unknown time unit '{unit}' in TTL expression '{text}'")
    if not calendar:
        return now + seconds
    moment = datetime.datetime.fromtimestamp(now) + calendar
    return moment.timestamp() + seconds


# --- Proxy cache control ---

@dataclass(frozen=True)
class FixedTTL:
    """Caches every result for the same TTL."""
    ttl: TTLSpec

    def __post_init__(self):
        # Reject a malformed TTL now, not after the first real call ran.
        resolve_expiry(self.ttl)

    def for_call(self, record: CallRecord) -> Optional[TTLSpec]:
        return _positive_or_none(self.ttl)


@dataclass(frozen=True)
class ComputedTTL:
    """Computes the TTL of each result from its call record.

    The policy returns seconds (or a time expression); zero, a negative number
    or None means the result is not cached.
    """
    policy: Callable[[CallRecord], Optional[TTLSpec]]

    def for_call(self, record: CallRecord) -> Optional[TTLSpec]:
        ttl = self.policy(record)
        logger.debug(f"TTL policy returned {ttl!r} for {record.method}")
        return _positive_or_none(ttl)


CacheControl = Union[FixedTTL, ComputedTTL]


def as_cache_control(value: Union[CacheControl, TTLSpec, Callable[[CallRecord], Optional[TTLSpec]]]) -> CacheControl:
    """Coerces an int, a time expression or a policy callable to a cache control variant."""
    if isinstance(value, (FixedTTL, ComputedTTL)):
        return value
    if isinstance(value, bool):
        raise ConfigError(f"Invalid cache control {value!r}")
    if isinstance(value, (int, float, str)):
        return FixedTTL(value)
    if callable(value):
        return ComputedTTL(value)
    raise ConfigError(f"Invalid cache control of type {type(value).__name__}")


def _positive_or_none(ttl: Optional[TTLSpec]) -> Optional[TTLSpec]:
    if ttl is None:
        return None
    if isinstance(ttl, bool):
        raise ConfigError(f"Invalid TTL {ttl!r}: expected seconds or a time expression")
    if isinstance(ttl, (int, float)) and ttl <= 0:
        return None
    return ttl
