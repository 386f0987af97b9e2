# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Distributed mutex lock on an asyncio store.

Same protocol as :mod:`mongolock.core.lock.lock`, awaited.
"""

import asyncio
from datetime import datetime
from typing import Optional, Set

from mongolock.client.log import logger
from mongolock.core.lock.protocol import AcquireAttempt, LeaseState
from mongolock.core.storage import AsyncLockStore, as_store
from mongolock.util.clock import Duration
from mongolock.util.exceptions import (LockedException, StoreConflictError,
                                       UnsupportedStoreError)

# Releases scheduled from __del__, kept alive until they finish
_PENDING_RELEASES: Set[asyncio.Task] = set()


async def _discard_release(store: AsyncLockStore, key: str, owner: str) -> None:
    try:
        await store.conditional_delete(key, owner)
    except Exception as e:
        logger.warning(f"Automatic release of lock `{key}` failed: {e}")


class AsyncLock(LeaseState):
    """Handle of a lock acquired with :func:`try_acquire_async`.

    Example:
        >>> lock = await try_acquire_async(store, "my-key", 30)
        >>> if lock is not None:
        ...     async with lock:
        ...         # Critical section
        ...         pass

    Dropping the handle while it is held schedules the release on the
    running event loop. Without a running loop the lease is left to expire.
    """

    def __init__(self, store: AsyncLockStore, key: str, owner: str, ttl: Duration, expires_at: datetime):
        self.store = store
        self.key = key
        self.owner = owner
        self.ttl = ttl
        self.expires_at = expires_at
        self.acquired = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.release_quietly()

    def __del__(self):
        if not getattr(self, "acquired", False):
            return
        self.acquired = False
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"Lock `{self.key}` dropped outside an event loop; it expires at {self.expires_at}")
            return
        task = loop.create_task(_discard_release(self.store, self.key, self.owner))
        _PENDING_RELEASES.add(task)
        task.add_done_callback(_PENDING_RELEASES.discard)

    async def release(self) -> bool:
        """Release the lock.

        Returns:
            bool: True if the record was removed, False if this handle was
            already released or the record is no longer ours.
        """
        if not self.acquired:
            return False
        return self._finish_release(await self.store.conditional_delete(self.key, self.owner))

    async def release_quietly(self) -> bool:
        try:
            return await self.release()
        except Exception as e:
            logger.warning(f"Automatic release of lock `{self.key}` failed: {e}")
            return False

    async def refresh_lock(self, ttl: Optional[Duration] = None) -> None:
        """Extend the lease, see :meth:`mongolock.Lock.refresh_lock`."""
        expires_at = self._begin_renew(ttl)
        self._finish_renew(await self.store.renew(self.key, self.owner, expires_at), expires_at)


def _as_async_store(store) -> AsyncLockStore:
    store = as_store(store)
    if not isinstance(store, AsyncLockStore):
        raise UnsupportedStoreError(store)
    return store


async def try_acquire_async(store, key: str, ttl: Duration) -> Optional[AsyncLock]:
    """Tries to acquire the lock with the given key.

    Args:
        store: An async lock store, or a pymongo ``AsyncMongoClient`` or
            ``AsyncCollection``.
        key: The lock identifier.
        ttl: Lease duration, a timedelta or seconds.

    Returns:
        The lock handle, or None if the lock is held by someone else.

    Raises:
        LockStoreError: On any store failure other than contention.
    """
    store = _as_async_store(store)
    attempt = AcquireAttempt(key, ttl)
    try:
        result = await store.conditional_upsert(*attempt.upsert_args)
    except StoreConflictError:
        result = None
    if not attempt.succeeded(result):
        return None
    return AsyncLock(store, key, attempt.owner, ttl, attempt.expires_at)


async def acquire_async(store, key: str, ttl: Duration) -> AsyncLock:
    """Acquire the lock or fail immediately.

    Raises:
        LockedException: If the lock is held by someone else.
    """
    lock = await try_acquire_async(store, key, ttl)
    if lock is None:
        raise LockedException(key)
    return lock
