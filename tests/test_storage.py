# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Tests for the lock stores, the store factory and database preparation.
"""

from datetime import timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest
from pymongo import MongoClient
from pymongo.errors import (AutoReconnect, DuplicateKeyError,
                            OperationFailure)
from redis.exceptions import ConnectionError as RedisConnectionError

import mongolock
from mongolock.core.storage import (AsyncMemoryStore, MemoryStore, MongoStore,
                                    RedisStore, as_store, create_store)
from mongolock.core.storage.queries import (acquire_filter, acquire_update,
                                            is_duplicate_key,
                                            record_from_document)
from mongolock.util.clock import now_and_expires_at
from mongolock.util.exceptions import (LockStoreError, StoreConflictError,
                                       UnsupportedStoreError)


@pytest.fixture
def collection():
    return MagicMock(name="collection")


# ============================================================================
# MongoStore against a mocked collection
# ============================================================================

class TestMongoStore:
    """Tests for the MongoDB adapter without a server."""

    def test_upsert_filter_and_update(self, collection):
        collection.update_one.return_value = MagicMock(upserted_id="k", modified_count=0)
        store = MongoStore(collection)
        now, expires_at = now_and_expires_at(5)

        result = store.conditional_upsert("k", "owner-1", now, expires_at)

        assert result.inserted and not result.modified
        collection.update_one.assert_called_once_with(
            {"_id": "k", "expiresAt": {"$lte": now}},
            {"$set": {"expiresAt": expires_at, "owner": "owner-1"}, "$setOnInsert": {"_id": "k"}},
            upsert=True,
        )

    def test_stale_record_modified(self, collection):
        collection.update_one.return_value = MagicMock(upserted_id=None, modified_count=1)
        result = MongoStore(collection).conditional_upsert("k", "o", *now_and_expires_at(5))
        assert result.modified and result.acquired

    def test_nothing_written(self, collection):
        collection.update_one.return_value = MagicMock(upserted_id=None, modified_count=0)
        result = MongoStore(collection).conditional_upsert("k", "o", *now_and_expires_at(5))
        assert not result.acquired

    def test_duplicate_key_is_conflict(self, collection):
        collection.update_one.side_effect = DuplicateKeyError("E11000 duplicate key error", code=11000)
        with pytest.raises(StoreConflictError) as excinfo:
            MongoStore(collection).conditional_upsert("k", "o", *now_and_expires_at(5))
        assert isinstance(excinfo.value.__cause__, DuplicateKeyError)

    def test_conflict_means_not_acquired(self, collection):
        collection.update_one.side_effect = DuplicateKeyError("E11000 duplicate key error", code=11000)
        assert mongolock.try_acquire(MongoStore(collection), "k", 5) is None

    @pytest.mark.parametrize("error", [
        OperationFailure("not authorized", code=13),
        AutoReconnect("connection closed"),
    ])
    def test_other_errors_propagate(self, collection, error):
        collection.update_one.side_effect = error
        with pytest.raises(LockStoreError) as excinfo:
            mongolock.try_acquire(MongoStore(collection), "k", 5)
        assert not isinstance(excinfo.value, StoreConflictError)
        assert excinfo.value.__cause__ is error

    def test_conditional_delete(self, collection):
        collection.delete_one.return_value = MagicMock(deleted_count=1)
        assert MongoStore(collection).conditional_delete("k", "o") == 1
        collection.delete_one.assert_called_once_with({"_id": "k", "owner": "o"})

    def test_delete_failure_wrapped(self, collection):
        collection.delete_one.side_effect = AutoReconnect("connection closed")
        with pytest.raises(LockStoreError):
            MongoStore(collection).conditional_delete("k", "o")

    def test_renew_uses_matched_count(self, collection):
        collection.update_one.return_value = MagicMock(matched_count=1, modified_count=0)
        _, expires_at = now_and_expires_at(5)
        assert MongoStore(collection).renew("k", "o", expires_at) is True
        collection.update_one.assert_called_once_with(
            {"_id": "k", "owner": "o"}, {"$set": {"expiresAt": expires_at}}
        )

    def test_ensure_expiry_index(self, collection):
        MongoStore(collection).ensure_expiry_index()
        collection.create_index.assert_called_once_with([("expiresAt", 1)], expireAfterSeconds=0)

    def test_get_record(self, collection):
        now, expires_at = now_and_expires_at(5)
        collection.find_one.return_value = {"_id": "k", "owner": "o", "expiresAt": expires_at}
        record = MongoStore(collection).get_record("k")
        assert record.key == "k"
        assert record.owner == "o"
        assert record.expires_at == expires_at
        assert not record.is_stale(now)


class TestQueries:
    """Tests for the shared MongoDB query builders."""

    def test_acquire_filter_matches_only_stale(self):
        now, _ = now_and_expires_at(1)
        assert acquire_filter("k", now) == {"_id": "k", "expiresAt": {"$lte": now}}

    def test_acquire_update_sets_key_on_insert(self):
        _, expires_at = now_and_expires_at(1)
        update = acquire_update("k", "o", expires_at)
        assert update["$setOnInsert"] == {"_id": "k"}
        assert update["$set"]["owner"] == "o"

    def test_is_duplicate_key(self):
        assert is_duplicate_key(DuplicateKeyError("dup", code=11000))
        assert is_duplicate_key(OperationFailure("dup", code=11000))
        assert not is_duplicate_key(OperationFailure("other", code=2))
        assert not is_duplicate_key(AutoReconnect("down"))

    def test_record_from_aware_document(self):
        _, expires_at = now_and_expires_at(1)
        aware = expires_at.replace(tzinfo=timezone.utc)
        record = record_from_document({"_id": "k", "expiresAt": aware})
        assert record.expires_at == expires_at
        assert record.owner is None
        assert record_from_document(None) is None


# ============================================================================
# RedisStore against a mocked client
# ============================================================================

class TestRedisStoreMocked:
    """Tests for the Redis adapter without a server."""

    def test_upsert_uses_set_nx_px(self):
        client = MagicMock()
        client.set.return_value = True
        now, expires_at = now_and_expires_at(timedelta(milliseconds=2500))

        result = RedisStore(client).conditional_upsert("k", "o", now, expires_at)

        assert result.inserted
        client.set.assert_called_once_with("mongolock:k", "o", nx=True, px=2500)

    def test_live_key_not_acquired(self):
        client = MagicMock()
        client.set.return_value = None
        assert mongolock.try_acquire(RedisStore(client), "k", 5) is None

    def test_delete_runs_release_script(self):
        client = MagicMock()
        client.register_script.return_value = MagicMock(return_value=1)
        store = RedisStore(client)
        assert store.conditional_delete("k", "o") == 1
        client.register_script.return_value.assert_called_once_with(keys=["mongolock:k"], args=["o"])

    def test_errors_wrapped(self):
        client = MagicMock()
        client.set.side_effect = RedisConnectionError("refused")
        with pytest.raises(LockStoreError):
            mongolock.try_acquire(RedisStore(client), "k", 5)

    def test_ensure_expiry_index_is_noop(self):
        client = MagicMock()
        RedisStore(client).ensure_expiry_index()
        assert client.method_calls == []


# ============================================================================
# MemoryStore
# ============================================================================

class TestMemoryStore:
    """Tests for MemoryStore semantics."""

    def test_live_record_conflicts(self, memory_store):
        now, expires_at = now_and_expires_at(5)
        assert memory_store.conditional_upsert("k", "a", now, expires_at).inserted
        with pytest.raises(StoreConflictError):
            memory_store.conditional_upsert("k", "b", now, expires_at)

    def test_stale_record_taken_over(self, memory_store):
        now, expires_at = now_and_expires_at(5)
        memory_store.conditional_upsert("k", "a", now, expires_at)
        result = memory_store.conditional_upsert("k", "b", expires_at, expires_at + timedelta(seconds=5))
        assert result.modified
        assert memory_store.get_record("k").owner == "b"

    def test_delete_checks_owner(self, memory_store):
        memory_store.conditional_upsert("k", "a", *now_and_expires_at(5))
        assert memory_store.conditional_delete("k", "b") == 0
        assert memory_store.conditional_delete("k", "a") == 1
        assert memory_store.conditional_delete("k", "a") == 0

    def test_purge_requires_expiry_index(self, memory_store):
        now, expires_at = now_and_expires_at(1)
        memory_store.conditional_upsert("old", "a", now, expires_at)
        memory_store.conditional_upsert("new", "a", now, expires_at + timedelta(seconds=60))
        later = expires_at + timedelta(seconds=1)

        assert memory_store.purge_expired(later) == 0
        memory_store.ensure_expiry_index()
        assert memory_store.purge_expired(later) == 1
        assert memory_store.get_record("old") is None
        assert memory_store.get_record("new") is not None
        assert len(memory_store) == 1


# ============================================================================
# Database preparation
# ============================================================================

class TestPrepareDatabase:
    """Tests for prepare_database."""

    def test_prepare_is_idempotent(self, memory_store):
        mongolock.prepare_database(memory_store)
        mongolock.prepare_database(memory_store)
        assert memory_store.expiry_index

    def test_prepare_alias(self):
        assert mongolock.prepare is mongolock.prepare_database

    def test_prepare_rejects_async_store(self):
        with pytest.raises(UnsupportedStoreError):
            mongolock.prepare_database(AsyncMemoryStore())

    def test_prepare_on_mongo(self, mongo_store):
        mongolock.prepare_database(mongo_store)
        mongolock.prepare_database(mongo_store)
        indexes = mongo_store.collection.index_information()
        assert indexes["expiresAt_1"]["expireAfterSeconds"] == 0

    def test_prepare_on_mongo_client(self, mongo_client):
        mongolock.prepare_database(mongo_client)
        indexes = mongo_client["mongo-lock"]["locks"].index_information()
        assert "expiresAt_1" in indexes

    def test_prepare_on_redis(self, redis_store):
        mongolock.prepare_database(redis_store)


# ============================================================================
# Store factory
# ============================================================================

class TestStoreFactory:
    """Tests for as_store and create_store."""

    def test_store_passthrough(self, memory_store):
        assert as_store(memory_store) is memory_store

    def test_client_uses_default_database(self):
        client = MongoClient("mongodb://localhost:27017", connect=False)
        store = as_store(client)
        assert isinstance(store, MongoStore)
        assert store.collection.full_name == "mongo-lock.locks"
        client.close()

    def test_client_uses_uri_database(self):
        client = MongoClient("mongodb://localhost:27017/app", connect=False)
        assert as_store(client).collection.full_name == "app.locks"
        client.close()

    def test_collection_wrapped(self):
        client = MongoClient("mongodb://localhost:27017", connect=False)
        collection = client["db"]["my_locks"]
        assert as_store(collection).collection is collection
        client.close()

    def test_unsupported(self):
        with pytest.raises(UnsupportedStoreError):
            as_store("mongodb://localhost")

    def test_create_memory_store(self):
        assert isinstance(create_store("memory"), MemoryStore)

    def test_create_store_default(self):
        with patch('mongolock.constants.LOCK_STORE_TYPE', 'memory'):
            assert isinstance(create_store(), MemoryStore)

    def test_create_redis_store(self):
        client = MagicMock()
        store = create_store("redis", redis_client=client)
        assert isinstance(store, RedisStore)
        assert store.redis_client is client

    def test_create_mongo_store(self):
        store = create_store("mongo", uri="mongodb://localhost:27017/jobs")
        assert isinstance(store, MongoStore)
        assert store.collection.full_name == "jobs.locks"
        store.collection.database.client.close()

    def test_create_unknown(self):
        with pytest.raises(ValueError):
            create_store("etcd")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
