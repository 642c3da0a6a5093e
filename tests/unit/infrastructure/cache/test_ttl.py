import datetime
import time

import pytest
from dateutil.relativedelta import relativedelta

from fscache.domain.exceptions import ConfigError
from fscache.domain.models.common import CallRecord
from fscache.infrastructure.cache.ttl import ComputedTTL, FixedTTL, as_cache_control, resolve_expiry

NOW = 1_700_000_000.0


@pytest.mark.parametrize("ttl, offset", [
    (5, 5),
    (0, 0),
    (-10, -10),
    ("120", 120),
    ("2 hours", 7200),
    (" 2 Hours ", 7200),
    ("+30 minutes", 1800),
    ("1 day 2 hours", 93600),
    ("90s", 90),
    ("1 week", 604800),
    ("3 days ago", -259200),
    ("now", 0),
])
def test_resolve_expiry_relative(ttl, offset):
    assert resolve_expiry(ttl, now=NOW) == NOW + offset


def test_resolve_expiry_calendar_units():
    expected = (datetime.datetime.fromtimestamp(NOW) + relativedelta(months=1)).timestamp()
    assert resolve_expiry("1 month", now=NOW) == expected


def test_resolve_expiry_tomorrow_is_next_midnight():
    expiry = resolve_expiry("tomorrow", now=NOW)
    moment = datetime.datetime.fromtimestamp(expiry)
    assert expiry > NOW
    assert (moment.hour, moment.minute, moment.second) == (0, 0, 0)


def test_resolve_expiry_absolute_date():
    expected = datetime.datetime(2030, 1, 1, tzinfo=datetime.timezone.utc).timestamp()
    assert resolve_expiry("2030-01-01T00:00:00+00:00", now=NOW) == expected


def test_resolve_expiry_uses_wall_clock_by_default(mocker):
    mocker.patch("fscache.infrastructure.cache.ttl.time.time", return_value=NOW)
    assert resolve_expiry(10) == NOW + 10


@pytest.mark.parametrize("ttl", ["", "   ", "soon-ish", "5 parsecs", True, [1], None])
def test_resolve_expiry_rejects_malformed_ttl(ttl):
    with pytest.raises(ConfigError):
        resolve_expiry(ttl, now=NOW)


def _record(result=None):
    return CallRecord(target=None, method="fetch", arguments=(), result=result)


def test_fixed_ttl():
    assert FixedTTL(10).for_call(_record()) == 10
    assert FixedTTL("2 hours").for_call(_record()) == "2 hours"
    assert FixedTTL(0).for_call(_record()) is None
    assert FixedTTL(-1).for_call(_record()) is None


def test_computed_ttl_uses_call_record():
    control = ComputedTTL(lambda record: record.result["max_age"])
    assert control.for_call(_record({"max_age": 30})) == 30
    assert control.for_call(_record({"max_age": 0})) is None
    assert control.for_call(_record({"max_age": None})) is None


def test_computed_ttl_rejects_boolean():
    with pytest.raises(ConfigError):
        ComputedTTL(lambda record: True).for_call(_record())


def test_as_cache_control_coercion():
    policy = lambda record: 5  # noqa: E731
    assert as_cache_control(60) == FixedTTL(60)
    assert as_cache_control("1 hour") == FixedTTL("1 hour")
    assert as_cache_control(policy) == ComputedTTL(policy)
    fixed = FixedTTL(1)
    assert as_cache_control(fixed) is fixed
    with pytest.raises(ConfigError):
        as_cache_control(False)
    with pytest.raises(ConfigError):
        as_cache_control(object())


def test_resolve_expiry_rejects_long_malformed_expression_quickly():
    start = time.perf_counter()
    with pytest.raises(ConfigError):
        resolve_expiry("1h " * 40 + "!", now=NOW)
    assert time.perf_counter() - start < 1.0


def test_resolve_expiry_accepts_many_terms():
    assert resolve_expiry("1h " * 40 + "ago", now=NOW) == NOW - 40 * 3600


@pytest.mark.parametrize("ttl", ["not a ttl", "5 parsecs", True])
def test_fixed_ttl_is_validated_on_creation(ttl):
    with pytest.raises(ConfigError):
        FixedTTL(ttl)
    with pytest.raises(ConfigError):
        as_cache_control(ttl)
