# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin


class MongoLockError(Exception):
    """Base class for all errors raised by mongolock."""


class LockedException(MongoLockError):
    def __init__(self, key=None, message=None):
        self.key = key
        if message is None:
            if key is None:
                message = "The lock is held by another owner."
            else:
                message = f"Lock `{key}` is held by another owner."
        super().__init__(message)


class LockStoreError(MongoLockError):
    """The backing store failed to execute a lock operation.

    The driver exception is chained as ``__cause__``.
    """

    def __init__(self, operation, key=None, message=None):
        self.operation = operation
        self.key = key
        if message is None:
            message = f"Lock store failed during `{operation}`"
            if key is not None:
                message += f" for key `{key}`"
        super().__init__(message)


class StoreConflictError(LockStoreError):
    """A write was rejected by the store's uniqueness constraint on the lock key."""

    def __init__(self, key=None):
        super().__init__(
            "conditional_upsert",
            key,
            f"Lock `{key}` was written concurrently by another owner.",
        )


class InvalidLeaseError(MongoLockError, ValueError):
    def __init__(self, ttl, message=None):
        self.ttl = ttl
        if message is None:
            message = f"Lease duration must be a positive, finite duration, got {ttl!r}."
        super().__init__(message)


class UnsupportedStoreError(MongoLockError, TypeError):
    def __init__(self, store):
        super().__init__(
            f"Cannot build a lock store from {type(store).__name__}. "
            "Pass a LockStore, a pymongo client or collection, or a redis client."
        )
