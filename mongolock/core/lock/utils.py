# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Utility functions for lock owners and database preparation.
"""

import uuid
from os import getpid

from mongolock.client.log import logger
from mongolock.core.storage import AsyncLockStore, LockStore, as_store
from mongolock.util.exceptions import UnsupportedStoreError


def new_owner_token() -> str:
    """Mint a token unique to one acquisition.

    Returns:
        Token made of node ID, process ID and a random UUID.
    """
    return f"{uuid.getnode()}:{getpid()}:{uuid.uuid4().hex}"


def get_lock_key(*parts: str) -> str:
    """Join name parts into a lock key, e.g. ("billing", "invoice-42")."""
    if not parts or not all(parts):
        raise ValueError("Lock key parts must be non-empty strings.")
    return ":".join(parts)


def prepare_database(store) -> None:
    """Prepares the store to hold locks.

    Creates a TTL index so that expired records are removed eventually.
    Locks do not rely on this index, since MongoDB may remove documents with
    significant delay; a stale record is reclaimed by the next acquirer
    either way. Safe to call on every start.

    Args:
        store: A lock store, a pymongo client or collection, or a redis client.
    """
    store = as_store(store)
    if not isinstance(store, LockStore):
        raise UnsupportedStoreError(store)
    store.ensure_expiry_index()
    logger.debug(f"Expiry index ensured on {store!r}")


async def prepare_database_async(store) -> None:
    """Coroutine counterpart of :func:`prepare_database`."""
    store = as_store(store)
    if not isinstance(store, AsyncLockStore):
        raise UnsupportedStoreError(store)
    await store.ensure_expiry_index()
    logger.debug(f"Expiry index ensured on {store!r}")


prepare = prepare_database
