# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

import uuid

from mongolock.core.storage import MemoryStore
from mongolock.util.exceptions import LockStoreError


def gen_random_key():
    """Random lock key; the `test_` prefix lets fixtures clean up after it."""
    return f"test_{uuid.uuid4().hex}"


class FlakyStore(MemoryStore):
    """MemoryStore whose deletes can be made to fail."""

    def __init__(self):
        super().__init__()
        self.fail_delete = False
        self.delete_calls = 0

    def conditional_delete(self, key, owner):
        self.delete_calls += 1
        if self.fail_delete:
            raise LockStoreError("conditional_delete", key)
        return super().conditional_delete(key, owner)
