# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Wall-clock helpers for lease expiry.

All timestamps are naive UTC datetimes truncated to milliseconds, which is
what MongoDB stores for a BSON date. Participants must keep their clocks
synchronised (NTP); nothing here can detect skew.
"""

from datetime import datetime, timedelta, timezone
from typing import Tuple, Union

from mongolock.util.exceptions import InvalidLeaseError

Duration = Union[timedelta, int, float]


def _truncate_to_millis(value: datetime) -> datetime:
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def to_timedelta(ttl: Duration) -> timedelta:
    """Normalize a lease duration given as a timedelta or a number of seconds.

    Raises:
        InvalidLeaseError: If the duration is not strictly positive or does
            not fit in a timedelta (NaN, infinity, out of range).
    """
    if isinstance(ttl, timedelta):
        delta = ttl
    elif isinstance(ttl, (int, float)) and not isinstance(ttl, bool):
        try:
            delta = timedelta(seconds=ttl)
        except (ValueError, OverflowError) as e:
            raise InvalidLeaseError(ttl) from e
    else:
        raise InvalidLeaseError(ttl)
    if delta <= timedelta(0):
        raise InvalidLeaseError(ttl)
    return delta


def utcnow() -> datetime:
    """Current UTC time at BSON date precision."""
    return _truncate_to_millis(datetime.now(timezone.utc).replace(tzinfo=None))


def now_and_expires_at(ttl: Duration) -> Tuple[datetime, datetime]:
    """Return ``(now, now + ttl)`` from a single clock read.

    Args:
        ttl: Lease duration, a timedelta or seconds.

    Returns:
        Tuple of (now, expires_at), both at millisecond precision.

    Raises:
        InvalidLeaseError: If ``ttl`` is invalid or ends past ``datetime.max``.
    """
    delta = to_timedelta(ttl)
    now = utcnow()
    try:
        expires_at = now + delta
    except OverflowError as e:
        raise InvalidLeaseError(ttl) from e
    return now, _truncate_to_millis(expires_at)
