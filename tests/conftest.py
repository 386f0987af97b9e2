# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

import os
import uuid

import pytest

from mongolock.core.storage import (AsyncMemoryStore, MemoryStore, MongoStore,
                                    RedisStore)
from tests.utils import gen_random_key

MONGO_TEST_URI = os.getenv("MONGOLOCK_TEST_URI", "mongodb://localhost:27017")
MONGO_TEST_DB = "mongolock-test"


@pytest.fixture
def key():
    return gen_random_key()


@pytest.fixture
def memory_store():
    """Create an in-process MemoryStore."""
    return MemoryStore()


@pytest.fixture
def async_memory_store():
    return AsyncMemoryStore()


@pytest.fixture
def mongo_client():
    """Create a MongoDB client, skip if MongoDB is not available."""
    try:
        from pymongo import MongoClient
        client = MongoClient(MONGO_TEST_URI, serverSelectionTimeoutMS=500)
        client.admin.command("ping")
    except Exception:
        pytest.skip("MongoDB is not available")
    yield client
    client.close()


@pytest.fixture
def mongo_store(mongo_client):
    """A MongoStore on a throwaway collection."""
    collection = mongo_client[MONGO_TEST_DB][f"locks_{uuid.uuid4().hex[:8]}"]
    yield MongoStore(collection)
    collection.drop()


@pytest.fixture
def redis_client():
    """Create a Redis client, skip if Redis is not available."""
    try:
        import redis
        client = redis.Redis(host='localhost', port=6379, db=15)
        # Test connection
        client.ping()
    except Exception:
        pytest.skip("Redis is not available")
    yield client
    # Cleanup: delete all test keys
    for test_key in client.scan_iter("mongolock:test_*"):
        client.delete(test_key)


@pytest.fixture
def redis_store(redis_client):
    return RedisStore(redis_client)


@pytest.fixture(params=["memory", "mongo", "redis"])
def store(request):
    """Every blocking backend; live servers are skipped when unreachable."""
    return request.getfixturevalue(f"{request.param}_store")
