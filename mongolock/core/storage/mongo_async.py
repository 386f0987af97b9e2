# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
MongoDB-backed lock store for asyncio, on pymongo's native async client.
"""

from datetime import datetime
from typing import Optional

from pymongo import AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import PyMongoError

from mongolock.constants import COLLECTION_NAME, DEFAULT_DB_NAME, KEY_FIELD
from mongolock.core.storage.provider import AsyncLockStore, LockRecord, UpsertResult
from mongolock.core.storage.queries import (EXPIRY_INDEX_KEYS,
                                            EXPIRY_INDEX_OPTIONS,
                                            acquire_filter, acquire_update,
                                            is_duplicate_key, owner_filter,
                                            record_from_document,
                                            renew_update, upsert_outcome)
from mongolock.util.exceptions import LockStoreError, StoreConflictError


class AsyncMongoStore(AsyncLockStore):
    """Lock store on a pymongo ``AsyncCollection``.

    Example:
        >>> client = AsyncMongoClient("mongodb://localhost")
        >>> store = AsyncMongoStore.from_client(client)
        >>> await store.ensure_expiry_index()
    """

    def __init__(self, collection: AsyncCollection):
        self.collection = collection

    @classmethod
    def from_client(cls, client: AsyncMongoClient, collection_name: str = COLLECTION_NAME) -> "AsyncMongoStore":
        database = client.get_default_database(default=DEFAULT_DB_NAME)
        return cls(database[collection_name])

    async def conditional_upsert(self, key: str, owner: str, now: datetime, expires_at: datetime) -> UpsertResult:
        try:
            result = await self.collection.update_one(
                acquire_filter(key, now),
                acquire_update(key, owner, expires_at),
                upsert=True,
            )
        except PyMongoError as e:
            if is_duplicate_key(e):
                raise StoreConflictError(key) from e
            raise LockStoreError("conditional_upsert", key) from e
        return upsert_outcome(result)

    async def conditional_delete(self, key: str, owner: str) -> int:
        try:
            result = await self.collection.delete_one(owner_filter(key, owner))
        except PyMongoError as e:
            raise LockStoreError("conditional_delete", key) from e
        return result.deleted_count

    async def renew(self, key: str, owner: str, expires_at: datetime) -> bool:
        try:
            result = await self.collection.update_one(owner_filter(key, owner), renew_update(expires_at))
        except PyMongoError as e:
            raise LockStoreError("renew", key) from e
        return result.matched_count == 1

    async def ensure_expiry_index(self) -> None:
        try:
            await self.collection.create_index(EXPIRY_INDEX_KEYS, **EXPIRY_INDEX_OPTIONS)
        except PyMongoError as e:
            raise LockStoreError("ensure_expiry_index") from e

    async def get_record(self, key: str) -> Optional[LockRecord]:
        try:
            document = await self.collection.find_one({KEY_FIELD: key})
        except PyMongoError as e:
            raise LockStoreError("get_record", key) from e
        return record_from_document(document)

    def __repr__(self):
        return f"{self.__class__.__name__}({self.collection.full_name!r})"
