# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Lock module for mongolock.

Provides lock handles for blocking and asyncio stores, plus a persistent
lock that renews its lease in the background.
"""

from mongolock.core.lock.async_lock import (AsyncLock, acquire_async,
                                            try_acquire_async)
from mongolock.core.lock.base import BaseLock
from mongolock.core.lock.lock import Lock, acquire, try_acquire
from mongolock.core.lock.persistent import PersistentLock
from mongolock.core.lock.utils import (get_lock_key, new_owner_token,
                                       prepare, prepare_database,
                                       prepare_database_async)

__all__ = [
    "AsyncLock",
    "BaseLock",
    "Lock",
    "PersistentLock",
    "acquire",
    "acquire_async",
    "get_lock_key",
    "new_owner_token",
    "prepare",
    "prepare_database",
    "prepare_database_async",
    "try_acquire",
    "try_acquire_async",
]
