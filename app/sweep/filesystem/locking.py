"""Mutual exclusion over filesystem subtrees.

Concurrent cleanups acquire the path they are about to mutate. Two
holders never overlap: a path blocks while any ancestor, descendant or
the path itself is held by another thread.
"""

import os
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import PurePath


class TreeLock:
    """Lock keyed on directory trees rather than single paths.

    Example:
        >>> lock = TreeLock()
        >>> with lock.hold("/src/project/target"):
        ...     shutil.rmtree("/src/project/target")
    """

    def __init__(self) -> None:
        self._held: list[PurePath] = []
        self._condition = threading.Condition()

    @property
    def held(self) -> list[str]:
        """Paths currently held."""
        with self._condition:
            return [str(p) for p in self._held]

    @contextmanager
    def hold(self, path: str) -> Iterator[None]:
        """Hold ``path`` for the duration of the block.

        Args:
            path: File or directory about to be mutated.
        """
        target = PurePath(os.path.abspath(path))
        with self._condition:
            while any(_overlaps(target, other) for other in self._held):
                self._condition.wait()
            self._held.append(target)
        try:
            yield
        finally:
            with self._condition:
                self._held.remove(target)
                self._condition.notify_all()


def _overlaps(a: PurePath, b: PurePath) -> bool:
    return a.is_relative_to(b) or b.is_relative_to(a)
