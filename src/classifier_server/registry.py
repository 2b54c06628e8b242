"""Ownership of live classifier instances keyed by identifier."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .classifiers import Classifier
from .errors import ClassifierBusyError, UnknownIdentifierError
from .types import ClassifierState

LOGGER = logging.getLogger(__name__)


@dataclass(eq=False)
class ClassifierEntry:
    """A registered classifier together with its lifecycle bookkeeping."""

    identifier: str
    class_type: str
    classifier: Classifier
    state: ClassifierState = ClassifierState.UNTRAINED
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class ClassifierRegistry:
    """Thread-safe identifier to classifier mapping.

    The registry lock is held only while the map itself is read or changed.
    Work on an individual classifier is serialised through the entry lock
    handed out by :meth:`acquire`, so unrelated identifiers never wait on
    each other.
    """

    def __init__(self) -> None:
        self._entries: OrderedDict[str, ClassifierEntry] = OrderedDict()
        self._lock = threading.Lock()

    def create(
        self,
        identifier: str,
        classifier: Classifier,
        class_type: str,
        *,
        state: ClassifierState = ClassifierState.UNTRAINED,
    ) -> ClassifierEntry:
        """Register ``classifier`` under ``identifier``, replacing any prior entry."""

        entry = ClassifierEntry(
            identifier=identifier,
            class_type=class_type,
            classifier=classifier,
            state=state,
        )
        with self._lock:
            previous = self._entries.pop(identifier, None)
            self._entries[identifier] = entry
        if previous is not None:
            LOGGER.warning(
                "Classifier '%s' already exists (%s); overwriting with %s",
                identifier,
                previous.class_type,
                class_type,
            )
        return entry

    def lookup(self, identifier: str) -> ClassifierEntry | None:
        with self._lock:
            return self._entries.get(identifier)

    def erase(self, identifier: str) -> bool:
        with self._lock:
            return self._entries.pop(identifier, None) is not None

    @contextmanager
    def acquire(
        self,
        identifier: str,
        timeout: float | None = None,
    ) -> Iterator[ClassifierEntry]:
        """Yield the live entry for ``identifier`` with its lock held.

        ``timeout`` is the longest wait for a busy entry in seconds; ``None``
        waits indefinitely. If the entry is replaced while waiting, the
        replacement is acquired instead.
        """

        entry = self._acquire_current(identifier, timeout)
        try:
            yield entry
        finally:
            entry.lock.release()

    def identifiers(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def entries(self) -> list[ClassifierEntry]:
        with self._lock:
            return list(self._entries.values())

    def clear(self) -> None:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        if count:
            LOGGER.info("Released %s classifier(s)", count)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, identifier: object) -> bool:
        with self._lock:
            return identifier in self._entries

    def _acquire_current(self, identifier: str, timeout: float | None) -> ClassifierEntry:
        while True:
            entry = self.lookup(identifier)
            if entry is None:
                raise UnknownIdentifierError(identifier)
            if timeout is None:
                acquired = entry.lock.acquire()
            else:
                acquired = entry.lock.acquire(timeout=max(timeout, 0.0))
            if not acquired:
                raise ClassifierBusyError(identifier, timeout)
            if self.lookup(identifier) is entry:
                return entry
            entry.lock.release()
            LOGGER.debug("Classifier '%s' was replaced while waiting; retrying", identifier)


__all__ = ["ClassifierEntry", "ClassifierRegistry"]
