"""Wall-clock source for cooldown bookkeeping and position timestamps.

Everything that needs "now" takes a clock callable defaulting to
:func:`now_ms`, so tests can substitute simulated time.
"""

import time
from typing import Callable

Clock = Callable[[], int]


def now_ms() -> int:
    """Current time as integer epoch milliseconds."""
    return time.time_ns() // 1_000_000
