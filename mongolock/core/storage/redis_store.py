# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Redis-backed lock store.
"""

from datetime import datetime, timedelta
from typing import Optional

from redis.exceptions import RedisError

from mongolock.constants import REDIS_LOCK_PREFIX
from mongolock.core.storage.provider import LockRecord, LockStore, UpsertResult
from mongolock.util.clock import utcnow
from mongolock.util.exceptions import LockStoreError

# Lua script for atomic release - only delete if we own the lock
RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""

# Lua script for atomic refresh - only extend if we own the lock
REFRESH_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("pexpire", KEYS[1], ARGV[2])
else
    return 0
end
"""


def _millis(start: datetime, end: datetime) -> int:
    return max(1, int((end - start) / timedelta(milliseconds=1)))


class RedisStore(LockStore):
    """Lock store on a Redis server.

    Acquisition uses SET with NX and PX, so Redis itself drops a key once its
    lease runs out and a stale record is never observed. Release and renewal
    run as Lua scripts that compare the owner token first.

    Example:
        >>> import redis
        >>> client = redis.Redis(host='localhost', port=6379, db=0)
        >>> store = RedisStore(client)

    Args:
        redis_client: A Redis client instance.
        prefix: Prefix for the lock keys (default: "mongolock:").
    """

    def __init__(self, redis_client, prefix: str = REDIS_LOCK_PREFIX):
        self.redis_client = redis_client
        self.prefix = prefix
        self._release_script = None
        self._refresh_script = None

    def _lock_key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def _get_release_script(self):
        """Get or register the release Lua script."""
        if self._release_script is None:
            self._release_script = self.redis_client.register_script(RELEASE_SCRIPT)
        return self._release_script

    def _get_refresh_script(self):
        """Get or register the refresh Lua script."""
        if self._refresh_script is None:
            self._refresh_script = self.redis_client.register_script(REFRESH_SCRIPT)
        return self._refresh_script

    def conditional_upsert(self, key: str, owner: str, now: datetime, expires_at: datetime) -> UpsertResult:
        try:
            result = self.redis_client.set(
                self._lock_key(key),
                owner,
                nx=True,  # Only set if not exists
                px=_millis(now, expires_at),  # Expiration in milliseconds
            )
        except RedisError as e:
            raise LockStoreError("conditional_upsert", key) from e
        return UpsertResult(inserted=bool(result))

    def conditional_delete(self, key: str, owner: str) -> int:
        try:
            deleted = self._get_release_script()(keys=[self._lock_key(key)], args=[owner])
        except RedisError as e:
            raise LockStoreError("conditional_delete", key) from e
        return int(deleted)

    def renew(self, key: str, owner: str, expires_at: datetime) -> bool:
        try:
            result = self._get_refresh_script()(
                keys=[self._lock_key(key)],
                args=[owner, _millis(utcnow(), expires_at)],
            )
        except RedisError as e:
            raise LockStoreError("renew", key) from e
        return bool(result)

    def ensure_expiry_index(self) -> None:
        # Keys carry their own PX expiry.
        return None

    def get_record(self, key: str) -> Optional[LockRecord]:
        lock_key = self._lock_key(key)
        try:
            pipe = self.redis_client.pipeline()
            pipe.get(lock_key)
            pipe.pttl(lock_key)
            value, ttl_ms = pipe.execute()
        except RedisError as e:
            raise LockStoreError("get_record", key) from e
        if value is None:
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        expires_at = utcnow() + timedelta(milliseconds=max(ttl_ms, 0))
        return LockRecord(key=key, owner=value, expires_at=expires_at)

    def __repr__(self):
        return f"{self.__class__.__name__}(prefix={self.prefix!r})"
