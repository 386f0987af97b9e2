# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

import threading
from datetime import datetime
from typing import Dict, Optional

from mongolock.core.storage.provider import (AsyncLockStore, LockRecord,
                                             LockStore, UpsertResult)
from mongolock.util.clock import utcnow
from mongolock.util.exceptions import StoreConflictError


class MemoryStore(LockStore):
    """Store class keeping lock records in process memory.

    Behaves like the MongoDB collection: a live record makes the upsert
    collide on the key and raise ``StoreConflictError``. Only processes
    sharing this object are coordinated, so it suits tests and
    single-process deployments.
    """

    def __init__(self):
        self.dict: Dict[str, LockRecord] = {}
        self.expiry_index = False
        self._mutex = threading.Lock()

    def conditional_upsert(self, key: str, owner: str, now: datetime, expires_at: datetime) -> UpsertResult:
        with self._mutex:
            record = self.dict.get(key)
            if record is None:
                self.dict[key] = LockRecord(key, owner, expires_at)
                return UpsertResult(inserted=True)
            if record.is_stale(now):
                self.dict[key] = LockRecord(key, owner, expires_at)
                return UpsertResult(modified=True)
            raise StoreConflictError(key)

    def conditional_delete(self, key: str, owner: str) -> int:
        with self._mutex:
            record = self.dict.get(key)
            if record is None or record.owner != owner:
                return 0
            del self.dict[key]
            return 1

    def renew(self, key: str, owner: str, expires_at: datetime) -> bool:
        with self._mutex:
            record = self.dict.get(key)
            if record is None or record.owner != owner:
                return False
            self.dict[key] = LockRecord(key, owner, expires_at)
            return True

    def ensure_expiry_index(self) -> None:
        self.expiry_index = True

    def get_record(self, key: str) -> Optional[LockRecord]:
        with self._mutex:
            return self.dict.get(key)

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Sweep stale records, the in-memory counterpart of a TTL monitor pass.

        A no-op until ``ensure_expiry_index`` has been called.

        Returns:
            int: Number of records removed.
        """
        if not self.expiry_index:
            return 0
        now = now or utcnow()
        with self._mutex:
            stale = [key for key, record in self.dict.items() if record.is_stale(now)]
            for key in stale:
                del self.dict[key]
        return len(stale)

    def __len__(self):
        return len(self.dict)


class AsyncMemoryStore(AsyncLockStore):
    """Coroutine wrapper around a :class:`MemoryStore`."""

    def __init__(self, store: Optional[MemoryStore] = None):
        self.store = store if store is not None else MemoryStore()

    async def conditional_upsert(self, key: str, owner: str, now: datetime, expires_at: datetime) -> UpsertResult:
        return self.store.conditional_upsert(key, owner, now, expires_at)

    async def conditional_delete(self, key: str, owner: str) -> int:
        return self.store.conditional_delete(key, owner)

    async def renew(self, key: str, owner: str, expires_at: datetime) -> bool:
        return self.store.renew(key, owner, expires_at)

    async def ensure_expiry_index(self) -> None:
        self.store.ensure_expiry_index()

    async def get_record(self, key: str) -> Optional[LockRecord]:
        return self.store.get_record(key)
