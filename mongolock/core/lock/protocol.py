# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Acquisition and lease steps shared by the blocking and asyncio handles.

Nothing here talks to a store. The blocking and async front ends call a
store method (plainly or awaited) between these steps, so both run the same
algorithm.
"""

from datetime import datetime
from typing import Optional

from mongolock.client.log import logger
from mongolock.core.lock.utils import new_owner_token
from mongolock.core.storage.provider import UpsertResult
from mongolock.util.clock import Duration, now_and_expires_at, utcnow
from mongolock.util.exceptions import LockedException


class AcquireAttempt:
    """One try at taking a lock: a fresh owner token and a lease window.

    Args:
        key: The lock identifier.
        ttl: Lease duration, a timedelta or seconds.

    Raises:
        InvalidLeaseError: If ``ttl`` is not positive.
    """

    def __init__(self, key: str, ttl: Duration):
        self.key = key
        self.ttl = ttl
        self.now, self.expires_at = now_and_expires_at(ttl)
        self.owner = new_owner_token()

    @property
    def upsert_args(self):
        """Positional arguments of ``conditional_upsert``."""
        return self.key, self.owner, self.now, self.expires_at

    def succeeded(self, result: Optional[UpsertResult]) -> bool:
        """Classify the upsert outcome.

        Args:
            result: The store's answer, or None when the write collided with
                a live record (``StoreConflictError``).
        """
        if result is None:
            logger.debug(f"Lock `{self.key}` is held (concurrent write)")
            return False
        if not result.acquired:
            logger.debug(f"Lock `{self.key}` is held")
            return False
        logger.debug(f"Lock `{self.key}` acquired until {self.expires_at.isoformat()}")
        return True


class LeaseState:
    """State transitions of an acquired lease, mixed into the lock handles.

    Expects ``key``, ``owner``, ``ttl``, ``expires_at`` and ``acquired``
    attributes on the handle.
    """

    @property
    def expired(self) -> bool:
        """Whether the lease has run out according to the local clock."""
        return self.expires_at <= utcnow()

    def _finish_release(self, deleted: int) -> bool:
        # Only reached once the delete returned; a raising store leaves the handle held
        self.acquired = False
        logger.debug(f"Lock `{self.key}` released (record removed: {deleted == 1})")
        return deleted == 1

    def _begin_renew(self, ttl: Optional[Duration]) -> datetime:
        if not self.acquired:
            raise LockedException(self.key)
        _, expires_at = now_and_expires_at(self.ttl if ttl is None else ttl)
        return expires_at

    def _finish_renew(self, renewed: bool, expires_at: datetime) -> None:
        if not renewed:
            self.acquired = False
            raise LockedException(self.key)
        self.expires_at = expires_at

    def __repr__(self):
        state = "acquired" if self.acquired else "released"
        return f"{self.__class__.__name__}(key={self.key!r}, {state}, expires_at={self.expires_at.isoformat()})"
