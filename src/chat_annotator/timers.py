from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable
from typing import Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


Scheduler = Callable[[float, Callable[[], None]], TimerHandle]


def schedule_later(delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
    """Run ``callback`` once after a delay.

    Inside a running event loop the callback runs on the loop; otherwise it runs
    on a daemon timer thread.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        timer = threading.Timer(delay_seconds, callback)
        timer.daemon = True
        timer.start()
        return timer
    return loop.call_later(delay_seconds, callback)
