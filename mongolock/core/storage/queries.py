# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
MongoDB filters and updates for the lock protocol.

Shared by the blocking and the asyncio collection adapters so that both
issue exactly the same writes and classify results the same way.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from mongolock.constants import (DUPLICATE_KEY_ERROR_CODE, EXPIRES_AT_FIELD,
                                 KEY_FIELD, OWNER_FIELD)
from mongolock.core.storage.provider import LockRecord, UpsertResult

EXPIRY_INDEX_KEYS = [(EXPIRES_AT_FIELD, ASCENDING)]
EXPIRY_INDEX_OPTIONS = {"expireAfterSeconds": 0}


def acquire_filter(key: str, now: datetime) -> Dict[str, Any]:
    # Matches only a stale record; a missing record falls through to the upsert.
    return {KEY_FIELD: key, EXPIRES_AT_FIELD: {"$lte": now}}


def acquire_update(key: str, owner: str, expires_at: datetime) -> Dict[str, Any]:
    return {
        "$set": {EXPIRES_AT_FIELD: expires_at, OWNER_FIELD: owner},
        "$setOnInsert": {KEY_FIELD: key},
    }


def owner_filter(key: str, owner: str) -> Dict[str, Any]:
    return {KEY_FIELD: key, OWNER_FIELD: owner}


def renew_update(expires_at: datetime) -> Dict[str, Any]:
    return {"$set": {EXPIRES_AT_FIELD: expires_at}}


def upsert_outcome(result) -> UpsertResult:
    """Translate a pymongo ``UpdateResult`` into an :class:`UpsertResult`."""
    return UpsertResult(
        inserted=result.upserted_id is not None,
        modified=result.modified_count == 1,
    )


def is_duplicate_key(error: PyMongoError) -> bool:
    if isinstance(error, DuplicateKeyError):
        return True
    return getattr(error, "code", None) == DUPLICATE_KEY_ERROR_CODE


def record_from_document(document: Optional[Dict[str, Any]]) -> Optional[LockRecord]:
    if document is None:
        return None
    expires_at = document[EXPIRES_AT_FIELD]
    if expires_at.tzinfo is not None:
        # tz_aware clients hand back aware datetimes
        expires_at = expires_at.astimezone(timezone.utc).replace(tzinfo=None)
    return LockRecord(
        key=document[KEY_FIELD],
        owner=document.get(OWNER_FIELD),
        expires_at=expires_at,
    )
