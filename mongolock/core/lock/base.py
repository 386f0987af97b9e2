# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Abstract base class for lock handles.
"""

from abc import ABC, abstractmethod
from typing import Optional

from mongolock.client.log import logger
from mongolock.util.clock import Duration


class BaseLock(ABC):
    """Abstract base class for lock handles.

    A handle exists only once its lock has been acquired. It owns the
    intent to hold the lock, not the stored record, which may expire or be
    reclaimed independently. Leaving a ``with`` block or dropping the last
    reference releases the lock; errors raised by that implicit release are
    logged and discarded.

    Subclasses must implement release() and refresh_lock() methods.

    Attributes:
        key: The lock identifier.
        ttl: The lease duration used on acquisition and renewal.
        acquired: Whether the lock is currently held.
    """

    def __init__(self, key: str, ttl: Duration):
        """Initialize the lock handle.

        Args:
            key: The lock identifier.
            ttl: The lease duration.
        """
        self.key = key
        self.ttl = ttl
        self.acquired = False

    def __enter__(self):
        """Context manager entry - the lock is already held."""
        return self

    def __exit__(self, *args, **kwargs):
        """Context manager exit - releases the lock, discarding errors."""
        self.release_quietly()

    def __del__(self):
        # __init__ may not have run to completion
        if getattr(self, "acquired", False):
            self.release_quietly()

    def release_quietly(self) -> bool:
        """Release the lock, logging instead of raising on failure."""
        try:
            return self.release()
        except Exception as e:
            logger.warning(f"Automatic release of lock `{self.key}` failed: {e}")
            return False

    @abstractmethod
    def release(self) -> bool:
        """Release the lock.

        Returns:
            bool: True if a stored record was removed. False, with no store
            call, when the handle was already released.

        Raises:
            LockStoreError: If the store cannot be reached.
        """
        pass

    @abstractmethod
    def refresh_lock(self, ttl: Optional[Duration] = None) -> None:
        """Refresh/extend the lease.

        Raises:
            LockedException: If the lock is no longer held by this handle.
        """
        pass
