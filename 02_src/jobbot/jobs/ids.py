"""Job identifier generation."""

import time
from typing import Callable


class JobIdGenerator:
    """Millisecond-clock job ids, strictly increasing within the process.

    Two ``run`` commands in the same millisecond get consecutive ids instead
    of the same one. Collisions across processes are still possible and are
    rejected by the registry as duplicates.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._last = 0

    def next_id(self) -> int:
        candidate = int(self._clock() * 1000)
        if candidate <= self._last:
            candidate = self._last + 1
        self._last = candidate
        return candidate
