# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

from typing import Optional, Union

import redis
from pymongo import AsyncMongoClient, MongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.collection import Collection

import mongolock.constants
from mongolock.core.storage.memory import AsyncMemoryStore, MemoryStore
from mongolock.core.storage.mongo import MongoStore, lock_collection
from mongolock.core.storage.mongo_async import AsyncMongoStore
from mongolock.core.storage.provider import (AsyncLockStore, LockRecord,
                                             LockStore, UpsertResult)
from mongolock.core.storage.redis_store import RedisStore
from mongolock.util.exceptions import UnsupportedStoreError


def as_store(store) -> Union[LockStore, AsyncLockStore]:
    """Wrap a client or collection in the matching lock store.

    Lock stores are returned unchanged.

    Raises:
        UnsupportedStoreError: If nothing matches.
    """
    if isinstance(store, (LockStore, AsyncLockStore)):
        return store
    if isinstance(store, MongoClient):
        return MongoStore.from_client(store)
    if isinstance(store, Collection):
        return MongoStore(store)
    if isinstance(store, AsyncMongoClient):
        return AsyncMongoStore.from_client(store)
    if isinstance(store, AsyncCollection):
        return AsyncMongoStore(store)
    if isinstance(store, redis.Redis):
        return RedisStore(store)
    raise UnsupportedStoreError(store)


def create_store(store_type: Optional[str] = None, uri: Optional[str] = None, redis_client=None) -> LockStore:
    """Factory function to create a lock store based on configuration.

    Args:
        store_type: "mongo", "redis" or "memory". Uses config default if None.
        uri: MongoDB connection string. Uses config default if None.
        redis_client: Redis client instance, created from config if None.

    Returns:
        A blocking lock store.

    Raises:
        ValueError: If the store type is unknown.
    """
    if store_type is None:
        store_type = getattr(mongolock.constants, "LOCK_STORE_TYPE", "mongo")

    if store_type == "mongo":
        return MongoStore.from_uri(uri or mongolock.constants.MONGO_LOCK_URI)
    if store_type == "redis":
        if redis_client is None:
            redis_client = redis.Redis(
                host=getattr(mongolock.constants, "REDIS_LOCK_HOST", "localhost"),
                port=getattr(mongolock.constants, "REDIS_LOCK_PORT", 6379),
                db=getattr(mongolock.constants, "REDIS_LOCK_DB", 0),
                password=getattr(mongolock.constants, "REDIS_LOCK_PASSWORD", None),
            )
        return RedisStore(redis_client)
    if store_type == "memory":
        return MemoryStore()
    raise ValueError(f"Unknown lock store type: {store_type!r}")


__all__ = [
    "AsyncLockStore",
    "AsyncMemoryStore",
    "AsyncMongoStore",
    "LockRecord",
    "LockStore",
    "MemoryStore",
    "MongoStore",
    "RedisStore",
    "UpsertResult",
    "as_store",
    "create_store",
    "lock_collection",
]
