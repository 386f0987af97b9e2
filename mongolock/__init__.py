# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Distributed mutually exclusive locks in MongoDB.

Usage:

    >>> import mongolock
    >>> from pymongo import MongoClient
    >>> client = MongoClient("mongodb://localhost")
    >>> # The collection needs a TTL index for housekeeping.
    >>> mongolock.prepare_database(client)
    >>> lock = mongolock.try_acquire(client, "my-key", 30)
    >>> if lock is not None:
    ...     with lock:
    ...         print("Lock acquired.")
    ...     # The lock is released when the block exits.

Leases are compared against wall-clock time, so make sure NTP clients on
every participating host are configured properly.
"""

__version__ = "0.3.0"

from mongolock import constants
from mongolock.core.lock import (AsyncLock, BaseLock, Lock, PersistentLock,
                                 acquire, acquire_async, get_lock_key,
                                 prepare, prepare_database,
                                 prepare_database_async, try_acquire,
                                 try_acquire_async)
from mongolock.core.storage import (AsyncLockStore, AsyncMemoryStore,
                                    AsyncMongoStore, LockRecord, LockStore,
                                    MemoryStore, MongoStore, RedisStore,
                                    UpsertResult, as_store, create_store)
from mongolock.util.exceptions import (InvalidLeaseError, LockedException,
                                       LockStoreError, MongoLockError,
                                       StoreConflictError,
                                       UnsupportedStoreError)

__all__ = [
    "AsyncLock",
    "AsyncLockStore",
    "AsyncMemoryStore",
    "AsyncMongoStore",
    "BaseLock",
    "InvalidLeaseError",
    "Lock",
    "LockRecord",
    "LockStore",
    "LockStoreError",
    "LockedException",
    "MemoryStore",
    "MongoLockError",
    "MongoStore",
    "PersistentLock",
    "RedisStore",
    "StoreConflictError",
    "UnsupportedStoreError",
    "UpsertResult",
    "acquire",
    "acquire_async",
    "as_store",
    "constants",
    "create_store",
    "get_lock_key",
    "prepare",
    "prepare_database",
    "prepare_database_async",
    "try_acquire",
    "try_acquire_async",
]
