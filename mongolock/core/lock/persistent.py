# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Persistent lock that auto-refreshes to maintain lock validity.
"""

import atexit
import threading
from datetime import timedelta
from typing import Callable, Optional

import mongolock.constants
from mongolock.client.log import logger
from mongolock.core.lock.base import BaseLock
from mongolock.core.lock.lock import Lock, acquire
from mongolock.util.clock import Duration, to_timedelta
from mongolock.util.exceptions import (InvalidLeaseError, LockedException,
                                       LockStoreError)


class PersistentLock(BaseLock):
    """Lock whose lease is renewed by a background thread.

    Use it for work that may outlive a single lease. Acquisition fails fast
    like :func:`mongolock.acquire`.

    Example:
        From machine 1:
        >>> lock = PersistentLock(store, "nightly-report")  # Works

        From machine 2:
        >>> lock = PersistentLock(store, "nightly-report")  # Raises LockedException

        The lease is renewed every ``update_interval`` seconds and stays
        valid for ``ttl`` seconds after the last renewal.

    Args:
        store: A lock store, a pymongo client or collection, or a redis client.
        key: The lock identifier.
        ttl: Lease duration (default: DEFAULT_LOCK_TTL).
        lock_lost_callback: Called if the lock is lost after acquiring.
        update_interval: Seconds between renewals (default: LOCK_UPDATE_INTERVAL).
            Must be shorter than ``ttl``.

    Raises:
        LockedException: If the key is already locked by a different owner.
        InvalidLeaseError: If ``update_interval`` is not shorter than ``ttl``.
    """

    def __init__(
        self,
        store,
        key: str,
        ttl: Optional[Duration] = None,
        lock_lost_callback: Optional[Callable] = None,
        update_interval: Optional[float] = None,
    ):
        ttl = mongolock.constants.DEFAULT_LOCK_TTL if ttl is None else ttl
        super().__init__(key, ttl)
        self.lock_lost_callback = lock_lost_callback
        self.update_interval = (
            mongolock.constants.LOCK_UPDATE_INTERVAL if update_interval is None else update_interval
        )
        if not timedelta(0) < timedelta(seconds=self.update_interval) < to_timedelta(ttl):
            raise InvalidLeaseError(
                ttl, f"update_interval ({self.update_interval!r}s) must be positive and shorter than ttl ({ttl!r})."
            )
        self._thread_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread = None
        self.lock: Lock = acquire(store, key, ttl)
        self.acquired = True
        self._thread = threading.Thread(target=self._lock_loop, name=f"mongolock-refresh-{key}", daemon=True)
        self._thread.start()
        atexit.register(self.release)

    def release(self) -> bool:
        """Release the lock and stop the refresh thread.

        If the store call fails the lock stays held and keeps being renewed,
        so the release can be retried.
        """
        with self._thread_lock:
            if not self.acquired:
                return False
            released = self.lock.release()
            self.acquired = False
            self._stop.set()
        atexit.unregister(self.release)
        return released

    def refresh_lock(self, ttl: Optional[Duration] = None) -> None:
        """Refresh the underlying lock.

        Raises:
            LockedException: If the lock is no longer held.
        """
        if not self.acquired:
            raise LockedException(self.key)
        self.lock.refresh_lock(ttl)

    def _lock_loop(self):
        """Background thread that periodically refreshes the lock."""
        while not self._stop.wait(self.update_interval):
            with self._thread_lock:
                if not self.acquired:
                    return
                try:
                    self.lock.refresh_lock()
                    continue
                except LockedException:
                    self.acquired = False
                except LockStoreError as e:
                    # The lease may still be valid; try again next interval.
                    logger.warning(f"Renewal of lock `{self.key}` failed: {e}")
                    continue
            self._on_lock_lost()
            return

    def _on_lock_lost(self):
        atexit.unregister(self.release)
        logger.warning(f"Lock `{self.key}` was lost")
        if self.lock_lost_callback:
            self.lock_lost_callback()
