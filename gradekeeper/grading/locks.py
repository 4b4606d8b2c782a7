from __future__ import annotations

import contextlib
import threading
import typing as t

from gradekeeper.model import CourseID


class CourseLocks(object):
    """One writer per course within this process.

    Cross-process exclusion comes from the ``SELECT ... FOR UPDATE`` on the
    course row taken inside the same critical section.
    """

    def __init__(self) -> None:
        self._locks: dict[CourseID, threading.RLock] = {}
        self._registry = threading.Lock()

    def _lock_for(self, course_id: CourseID) -> threading.RLock:
        with self._registry:
            lock = self._locks.get(course_id)
            if lock is None:
                lock = self._locks[course_id] = threading.RLock()
            return lock

    @contextlib.contextmanager
    def hold(self, course_id: CourseID) -> t.Iterator[None]:
        with self._lock_for(course_id):
            yield
