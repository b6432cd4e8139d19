"""Wall-clock access, injectable so waits can be simulated in tests."""

import time


class SystemClock:
    """Real clock: epoch seconds and blocking sleep."""

    def now(self) -> float:
        return time.time()

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)
