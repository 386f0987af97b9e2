# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
MongoDB-backed lock store.
"""

from datetime import datetime
from typing import Optional

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from mongolock.constants import COLLECTION_NAME, DEFAULT_DB_NAME, KEY_FIELD
from mongolock.core.storage.provider import LockRecord, LockStore, UpsertResult
from mongolock.core.storage.queries import (EXPIRY_INDEX_KEYS,
                                            EXPIRY_INDEX_OPTIONS,
                                            acquire_filter, acquire_update,
                                            is_duplicate_key, owner_filter,
                                            record_from_document,
                                            renew_update, upsert_outcome)
from mongolock.util.exceptions import LockStoreError, StoreConflictError


def lock_collection(client: MongoClient, collection_name: str = COLLECTION_NAME) -> Collection:
    """Return the lock collection of the client's default database.

    Falls back to the ``mongo-lock`` database when the connection string
    names none.
    """
    database = client.get_default_database(default=DEFAULT_DB_NAME)
    return database[collection_name]


class MongoStore(LockStore):
    """Lock store on a pymongo collection.

    Example:
        >>> client = MongoClient("mongodb://localhost")
        >>> store = MongoStore.from_client(client)
        >>> store.ensure_expiry_index()

    Args:
        collection: The collection holding one document per lock key.
    """

    def __init__(self, collection: Collection):
        self.collection = collection

    @classmethod
    def from_client(cls, client: MongoClient, collection_name: str = COLLECTION_NAME) -> "MongoStore":
        return cls(lock_collection(client, collection_name))

    @classmethod
    def from_uri(cls, uri: str, collection_name: str = COLLECTION_NAME, **client_kwargs) -> "MongoStore":
        return cls.from_client(MongoClient(uri, **client_kwargs), collection_name)

    def conditional_upsert(self, key: str, owner: str, now: datetime, expires_at: datetime) -> UpsertResult:
        try:
            result = self.collection.update_one(
                acquire_filter(key, now),
                acquire_update(key, owner, expires_at),
                upsert=True,
            )
        except PyMongoError as e:
            if is_duplicate_key(e):
                raise StoreConflictError(key) from e
            raise LockStoreError("conditional_upsert", key) from e
        return upsert_outcome(result)

    def conditional_delete(self, key: str, owner: str) -> int:
        try:
            result = self.collection.delete_one(owner_filter(key, owner))
        except PyMongoError as e:
            raise LockStoreError("conditional_delete", key) from e
        return result.deleted_count

    def renew(self, key: str, owner: str, expires_at: datetime) -> bool:
        try:
            result = self.collection.update_one(owner_filter(key, owner), renew_update(expires_at))
        except PyMongoError as e:
            raise LockStoreError("renew", key) from e
        # matched, not modified: renewing within the same millisecond changes nothing
        return result.matched_count == 1

    def ensure_expiry_index(self) -> None:
        try:
            self.collection.create_index(EXPIRY_INDEX_KEYS, **EXPIRY_INDEX_OPTIONS)
        except PyMongoError as e:
            raise LockStoreError("ensure_expiry_index") from e

    def get_record(self, key: str) -> Optional[LockRecord]:
        try:
            document = self.collection.find_one({KEY_FIELD: key})
        except PyMongoError as e:
            raise LockStoreError("get_record", key) from e
        return record_from_document(document)

    def __repr__(self):
        return f"{self.__class__.__name__}({self.collection.full_name!r})"
