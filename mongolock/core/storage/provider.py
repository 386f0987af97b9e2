# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class UpsertResult:
    """Outcome of a conditional upsert.

    Attributes:
        inserted: A new lock record was created.
        modified: An existing stale record was taken over.
    """

    inserted: bool = False
    modified: bool = False

    @property
    def acquired(self) -> bool:
        return self.inserted or self.modified


@dataclass(frozen=True)
class LockRecord:
    key: str
    owner: Optional[str]
    expires_at: datetime

    def is_stale(self, now: datetime) -> bool:
        return self.expires_at <= now


class LockStore(ABC):
    """Atomic primitives a backing store must offer to host locks.

    Every method is a single round-trip that the store applies atomically.
    Implementations wrap driver failures in ``LockStoreError`` and report a
    uniqueness violation on the lock key as ``StoreConflictError``.
    """

    @abstractmethod
    def conditional_upsert(self, key: str, owner: str, now: datetime, expires_at: datetime) -> UpsertResult:
        """Take the lock record for ``key`` if it is missing or stale.

        Args:
            key (str): The lock identifier.
            owner (str): Token of the acquisition attempt.
            now (datetime): Records expiring at or before this are stale.
            expires_at (datetime): New lease expiry.

        Returns:
            UpsertResult: Whether a record was inserted or a stale one modified.

        Raises:
            StoreConflictError: If a concurrent writer holds the key.
            LockStoreError: On any other store failure.
        """

    @abstractmethod
    def conditional_delete(self, key: str, owner: str) -> int:
        """Delete the record for ``key`` if it belongs to ``owner``.

        Returns:
            int: Number of records removed, 0 or 1.
        """

    @abstractmethod
    def renew(self, key: str, owner: str, expires_at: datetime) -> bool:
        """Move the expiry of the record owned by ``owner``.

        Returns:
            bool: False if the record is gone or belongs to someone else.
        """

    @abstractmethod
    def ensure_expiry_index(self) -> None:
        """Idempotently ask the store to purge records once they expire."""

    @abstractmethod
    def get_record(self, key: str) -> Optional[LockRecord]:
        """Read the current record for ``key``, stale or not."""


class AsyncLockStore(ABC):
    """Coroutine flavour of :class:`LockStore` with identical semantics."""

    @abstractmethod
    async def conditional_upsert(self, key: str, owner: str, now: datetime, expires_at: datetime) -> UpsertResult:
        pass

    @abstractmethod
    async def conditional_delete(self, key: str, owner: str) -> int:
        pass

    @abstractmethod
    async def renew(self, key: str, owner: str, expires_at: datetime) -> bool:
        pass

    @abstractmethod
    async def ensure_expiry_index(self) -> None:
        pass

    @abstractmethod
    async def get_record(self, key: str) -> Optional[LockRecord]:
        pass
