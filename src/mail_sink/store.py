# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Bounded, newest-first, in-memory message store.

The SMTP controller runs its own event loop in a background thread while
HTTP requests are served on uvicorn's loop, so the store guards every read
and write with a single ``threading.Lock``. An insertion (prepend plus
eviction) happens entirely under the lock; readers never see the store
above capacity.

Example::

    store = MessageStore()
    store.insert(record)
    latest = store.list_all()[0]
"""

from __future__ import annotations

import threading
from collections import deque

from .logger import get_logger
from .models import MAX_MESSAGES, MessageRecord

logger = get_logger("MessageStore")


class MessageStore:
    """Fixed-capacity collection of :class:`MessageRecord`, newest first.

    Attributes:
        capacity: Maximum number of records retained.
    """

    def __init__(self, capacity: int = MAX_MESSAGES):
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._messages: deque[MessageRecord] = deque()
        self._lock = threading.Lock()

    def insert(self, record: MessageRecord) -> int:
        """Prepend ``record`` and drop the oldest entries beyond capacity.

        Returns:
            Number of records evicted.
        """
        evicted = 0
        with self._lock:
            self._messages.appendleft(record)
            while len(self._messages) > self.capacity:
                self._messages.pop()
                evicted += 1
        if evicted:
            logger.debug(f"Evicted {evicted} oldest message(s)")
        return evicted

    def list_all(self) -> list[MessageRecord]:
        """Snapshot of the current contents, newest first."""
        with self._lock:
            return list(self._messages)

    def clear(self) -> int:
        """Remove every record; returns how many were removed."""
        with self._lock:
            removed = len(self._messages)
            self._messages.clear()
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)
