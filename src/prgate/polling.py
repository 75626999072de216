from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class PollOutcome(Generic[T]):
    value: Optional[T]
    attempts: int
    done: bool = False
    timed_out: bool = False
    cancelled: bool = False


def poll_until(
    fetch: Callable[[], T],
    is_done: Callable[[T], bool],
    *,
    timeout_seconds: float,
    interval_seconds: float,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
    cancel: Optional[threading.Event] = None,
    on_attempt: Optional[Callable[[int, T, float], None]] = None,
) -> PollOutcome[T]:
    """
    Call ``fetch`` every ``interval_seconds`` until ``is_done`` accepts its
    result or the deadline passes.

    The deadline is computed once on entry. Exceptions from ``fetch``
    propagate. The injected ``sleep`` always runs between attempts and
    ``cancel`` is checked after it; with the default ``time.sleep`` the wait
    is ``cancel.wait`` instead, so setting the event ends the loop promptly.
    """
    deadline = clock() + timeout_seconds
    attempts = 0
    last: Optional[T] = None

    while clock() < deadline:
        if cancel is not None and cancel.is_set():
            return PollOutcome(value=last, attempts=attempts, cancelled=True)

        attempts += 1
        last = fetch()
        if on_attempt:
            on_attempt(attempts, last, max(0.0, deadline - clock()))
        if is_done(last):
            return PollOutcome(value=last, attempts=attempts, done=True)

        if cancel is not None and sleep is time.sleep:
            woken = cancel.wait(interval_seconds)
        else:
            sleep(interval_seconds)
            woken = cancel is not None and cancel.is_set()
        if woken:
            return PollOutcome(value=last, attempts=attempts, cancelled=True)

    return PollOutcome(value=last, attempts=attempts, timed_out=True)
