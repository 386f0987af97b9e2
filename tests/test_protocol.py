# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Tests for the acquisition and lease steps shared by both lock handles.
"""

from datetime import timedelta

import pytest

from mongolock import AsyncLock, Lock
from mongolock.core.lock.protocol import AcquireAttempt, LeaseState
from mongolock.core.storage import UpsertResult
from mongolock.util.exceptions import InvalidLeaseError, LockedException
from tests.utils import gen_random_key


class TestAcquireAttempt:
    """Tests for AcquireAttempt."""

    def test_attempt_fields(self):
        key = gen_random_key()
        attempt = AcquireAttempt(key, timedelta(seconds=5))
        assert attempt.expires_at - attempt.now == timedelta(seconds=5)
        assert attempt.upsert_args == (key, attempt.owner, attempt.now, attempt.expires_at)

    def test_each_attempt_has_its_own_owner(self):
        assert AcquireAttempt("k", 5).owner != AcquireAttempt("k", 5).owner

    def test_invalid_ttl(self):
        with pytest.raises(InvalidLeaseError):
            AcquireAttempt("k", 0)

    @pytest.mark.parametrize("result, expected", [
        (UpsertResult(inserted=True), True),
        (UpsertResult(modified=True), True),
        (UpsertResult(), False),
        (None, False),
    ])
    def test_outcome(self, result, expected):
        assert AcquireAttempt("k", 5).succeeded(result) is expected


class _Lease(LeaseState):
    def __init__(self):
        attempt = AcquireAttempt("k", 5)
        self.key = attempt.key
        self.owner = attempt.owner
        self.ttl = attempt.ttl
        self.expires_at = attempt.expires_at
        self.acquired = True


class TestLeaseState:
    """Tests for the handle state transitions."""

    def test_both_handles_share_state_logic(self):
        assert issubclass(Lock, LeaseState)
        assert issubclass(AsyncLock, LeaseState)

    def test_release_transition(self):
        lease = _Lease()
        assert lease._finish_release(1) is True
        assert not lease.acquired

    def test_release_of_foreign_record(self):
        lease = _Lease()
        assert lease._finish_release(0) is False
        assert not lease.acquired

    def test_renew_transitions(self):
        lease = _Lease()
        expires_at = lease._begin_renew(timedelta(seconds=60))
        assert expires_at > lease.expires_at
        lease._finish_renew(True, expires_at)
        assert lease.expires_at == expires_at
        assert lease.acquired

        with pytest.raises(LockedException):
            lease._finish_renew(False, expires_at)
        assert not lease.acquired
        with pytest.raises(LockedException):
            lease._begin_renew(None)

    def test_repr(self):
        lease = _Lease()
        assert "acquired" in repr(lease)
        lease.acquired = False
        assert "released" in repr(lease)
