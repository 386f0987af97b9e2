# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Distributed mutex lock on a blocking store.
"""

from datetime import datetime
from typing import Optional

from mongolock.core.lock.base import BaseLock
from mongolock.core.lock.protocol import AcquireAttempt, LeaseState
from mongolock.core.storage import LockStore, as_store
from mongolock.util.clock import Duration
from mongolock.util.exceptions import (LockedException, StoreConflictError,
                                       UnsupportedStoreError)


class Lock(LeaseState, BaseLock):
    """Handle of an acquired lock.

    Instances are returned by :func:`try_acquire` and :func:`acquire`; do not
    build them directly.

    Example:
        >>> lock = try_acquire(store, "my-key", 30)
        >>> if lock is not None:
        ...     with lock:
        ...         # Critical section
        ...         pass

    Args:
        store: The store holding the lock record.
        key: The lock identifier.
        owner: The acquisition token written with the record.
        ttl: The lease duration.
        expires_at: Expiry of the current lease.
    """

    def __init__(self, store: LockStore, key: str, owner: str, ttl: Duration, expires_at: datetime):
        super().__init__(key, ttl)
        self.store = store
        self.owner = owner
        self.expires_at = expires_at
        self.acquired = True

    def release(self) -> bool:
        """Release the lock.

        The delete is conditioned on this handle's owner token, so a handle
        whose lease expired cannot remove a newer holder's record.

        Returns:
            bool: True if the record was removed.
        """
        if not self.acquired:
            return False
        return self._finish_release(self.store.conditional_delete(self.key, self.owner))

    def refresh_lock(self, ttl: Optional[Duration] = None) -> None:
        """Extend the lease to ``ttl`` (default: the acquisition ttl) from now.

        Raises:
            LockedException: If the record is gone or owned by someone else.
        """
        expires_at = self._begin_renew(ttl)
        self._finish_renew(self.store.renew(self.key, self.owner, expires_at), expires_at)


def _as_blocking_store(store) -> LockStore:
    store = as_store(store)
    if not isinstance(store, LockStore):
        raise UnsupportedStoreError(store)
    return store


def try_acquire(store, key: str, ttl: Duration) -> Optional[Lock]:
    """Tries to acquire the lock with the given key.

    A single atomic upsert either creates the record, takes over a stale
    one, or leaves a live one alone. Never waits and never retries.

    Args:
        store: A lock store, a pymongo client or collection, or a redis client.
        key: The lock identifier.
        ttl: Lease duration, a timedelta or seconds.

    Returns:
        The lock handle, or None if the lock is held by someone else.

    Raises:
        LockStoreError: On any store failure other than contention.
        InvalidLeaseError: If ``ttl`` is not positive.
    """
    store = _as_blocking_store(store)
    attempt = AcquireAttempt(key, ttl)
    try:
        result = store.conditional_upsert(*attempt.upsert_args)
    except StoreConflictError:
        result = None
    if not attempt.succeeded(result):
        return None
    return Lock(store, key, attempt.owner, ttl, attempt.expires_at)


def acquire(store, key: str, ttl: Duration) -> Lock:
    """Acquire the lock or fail immediately.

    Raises:
        LockedException: If the lock is held by someone else.
    """
    lock = try_acquire(store, key, ttl)
    if lock is None:
        raise LockedException(key)
    return lock
