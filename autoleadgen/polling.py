import asyncio, time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from autoleadgen.errors import AutomationTimeout

T = TypeVar("T")


@dataclass(frozen=True)
class PollPolicy:
    timeout_s: float = 30.0
    interval_s: float = 0.5
    settle_s: float = 0.0


async def wait_until(check: Callable[[], Awaitable[Optional[T]]],
                     policy: PollPolicy = PollPolicy(),
                     what: str = "condition") -> T:
    """Poll ``check`` until it returns a truthy value or the policy times out.

    Returns the first truthy value. Exceptions raised by ``check`` propagate.
    A zero interval still yields to the loop between attempts.
    """
    deadline = time.monotonic() + policy.timeout_s
    while True:
        result = await check()
        if result:
            if policy.settle_s > 0:
                await asyncio.sleep(policy.settle_s)
            return result
        if time.monotonic() >= deadline:
            raise AutomationTimeout(f"Timed out waiting for {what}")
        await asyncio.sleep(policy.interval_s)


async def poll_attempts(check: Callable[[], Awaitable[Optional[T]]],
                        attempts: int,
                        interval_s: float,
                        what: str = "condition") -> T:
    """Like ``wait_until`` but bounded by attempt count rather than wall time."""
    for attempt in range(attempts):
        result = await check()
        if result:
            return result
        if attempt + 1 < attempts:
            await asyncio.sleep(interval_s)
    raise AutomationTimeout(f"{what} did not appear")
