"""
chains/fanout.py - Parallel fan-out of one call across many providers.

Contract:
- One task per provider, all racing a single shared deadline.
- collect_outcomes() returns one outcome per input provider, by position;
  run_parallel() keys them by name (last write wins on duplicate names).
  Empty input creates no tasks.
- Providers that did not finish before the deadline (or before
  cancel_event is set) get a failed outcome with CallCancelledError.
  Their tasks are cancelled and any late result is discarded.
- A call that raises is recorded as a failed outcome; the fan-out itself
  never fails.

Outcomes are stored in a pre-sized slot list indexed by provider position.
Only the collector writes slots, each exactly once.
"""

import asyncio
import time
from typing import Awaitable, Callable, Sequence

from core.exceptions import CallCancelledError
from core.logging import get_logger
from core.models import Provider, RequestOutcome

logger = get_logger(__name__)

ProviderCall = Callable[[Provider], Awaitable[RequestOutcome]]


def _discard_late_result(task: asyncio.Task) -> None:
    """Retrieve the result of an abandoned task so it is never reported."""
    if not task.cancelled():
        task.exception()


def _outcome_from_task(task: asyncio.Task, provider: Provider, elapsed_ms: int) -> RequestOutcome:
    if task.cancelled():
        return RequestOutcome.failed(
            CallCancelledError(
                f"call to {provider.name} cancelled",
                details={"provider": provider.name},
            ),
            elapsed_ms=elapsed_ms,
        )
    error = task.exception()
    if error is not None:
        logger.warning(
            f"Call for {provider.name} raised instead of returning an outcome",
            extra={"context": {"provider": provider.name, "error": repr(error)}},
        )
        return RequestOutcome.failed(error, elapsed_ms=elapsed_ms)
    return task.result()


async def collect_outcomes(
    providers: Sequence[Provider],
    timeout: float,
    call: ProviderCall,
    cancel_event: asyncio.Event | None = None,
) -> list[RequestOutcome]:
    """
    Run call(provider) for every provider concurrently.

    Args:
        providers: Providers to query
        timeout: Shared deadline in seconds, measured from now
        call: Coroutine function returning a RequestOutcome
        cancel_event: Optional external cancellation signal

    Returns:
        One RequestOutcome per provider, in input order
    """
    if not providers:
        return []

    loop = asyncio.get_running_loop()
    start = time.monotonic()
    deadline = loop.time() + timeout

    slots: list[RequestOutcome | None] = [None] * len(providers)
    tasks = [asyncio.ensure_future(call(p)) for p in providers]
    index_of = {task: i for i, task in enumerate(tasks)}

    stop_waiter = asyncio.ensure_future(cancel_event.wait()) if cancel_event else None
    pending = set(tasks)
    reason = "deadline exceeded"

    try:
        while pending:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            waiting = pending | {stop_waiter} if stop_waiter else pending
            done, _ = await asyncio.wait(
                waiting, timeout=remaining, return_when=asyncio.FIRST_COMPLETED
            )
            for task in done:
                if task is stop_waiter:
                    continue
                i = index_of[task]
                elapsed_ms = int((time.monotonic() - start) * 1000)
                slots[i] = _outcome_from_task(task, providers[i], elapsed_ms)
                pending.discard(task)
            if stop_waiter is not None and stop_waiter.done():
                reason = "cancelled"
                break
    finally:
        if stop_waiter is not None and not stop_waiter.done():
            stop_waiter.cancel()
        for task in pending:
            task.add_done_callback(_discard_late_result)
            task.cancel()

    elapsed_ms = int((time.monotonic() - start) * 1000)
    for task in pending:
        i = index_of[task]
        slots[i] = RequestOutcome.failed(
            CallCancelledError(
                f"call to {providers[i].name} {reason}",
                details={"provider": providers[i].name, "timeout": timeout},
            ),
            elapsed_ms=elapsed_ms,
        )

    if pending:
        logger.debug(
            f"{len(pending)}/{len(providers)} calls abandoned: {reason}",
            extra={"context": {"abandoned": [providers[index_of[t]].name for t in pending]}},
        )

    return slots


async def run_parallel(
    providers: Sequence[Provider],
    timeout: float,
    call: ProviderCall,
    cancel_event: asyncio.Event | None = None,
) -> dict[str, RequestOutcome]:
    """
    Same as collect_outcomes(), keyed by provider name.

    Names should be unique; on duplicates the last provider wins.
    """
    outcomes = await collect_outcomes(providers, timeout, call, cancel_event)
    return {provider.name: outcome for provider, outcome in zip(providers, outcomes)}
