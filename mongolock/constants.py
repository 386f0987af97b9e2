# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

import os

# Storage layout
COLLECTION_NAME = "locks"
DEFAULT_DB_NAME = "mongo-lock"
KEY_FIELD = "_id"
EXPIRES_AT_FIELD = "expiresAt"
OWNER_FIELD = "owner"

# MongoDB write error raised when an upsert collides with an existing _id
DUPLICATE_KEY_ERROR_CODE = 11000

# Lease settings, in seconds
DEFAULT_LOCK_TTL = float(os.getenv("MONGOLOCK_TTL", "30"))
LOCK_UPDATE_INTERVAL = float(os.getenv("MONGOLOCK_UPDATE_INTERVAL", "10"))

# Backend selection for create_store(): "mongo", "redis" or "memory"
LOCK_STORE_TYPE = os.getenv("MONGOLOCK_STORE", "mongo")

MONGO_LOCK_URI = os.getenv("MONGOLOCK_URI", "mongodb://localhost:27017")

REDIS_LOCK_HOST = os.getenv("MONGOLOCK_REDIS_HOST", "localhost")
REDIS_LOCK_PORT = int(os.getenv("MONGOLOCK_REDIS_PORT", "6379"))
REDIS_LOCK_DB = int(os.getenv("MONGOLOCK_REDIS_DB", "0"))
REDIS_LOCK_PASSWORD = os.getenv("MONGOLOCK_REDIS_PASSWORD")
REDIS_LOCK_PREFIX = "mongolock:"
