"""
Async executor for blocking Algorand operations.

Runs synchronous algosdk calls (send_raw_transaction, wait_for_confirmation)
in a thread pool to avoid blocking the asyncio event loop. A confirmation
wait holds its thread for several rounds, so every group in flight needs a
thread of its own: the SubmissionCoordinator reserves one worker per
concurrent submission before it starts.
"""
import asyncio
import functools
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

# Shared executor for blocking operations
_executor: ThreadPoolExecutor | None = None
_executor_workers = 0
_DEFAULT_WORKERS = 4


def get_executor(min_workers: int | None = None) -> ThreadPoolExecutor:
    """
    Return the shared pool, creating it on first use.

    With min_workers, a smaller existing pool is replaced by one of that
    size. Calls already running on the old pool finish there.
    """
    global _executor, _executor_workers
    if _executor is not None and (min_workers is None or _executor_workers >= min_workers):
        return _executor

    workers = min_workers or _DEFAULT_WORKERS
    if _executor is not None:
        _executor.shutdown(wait=False)
        logger.info(f"Growing thread pool executor {_executor_workers} -> {workers} workers")
    _executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="algo_")
    _executor_workers = workers
    logger.info(f"Thread pool executor initialized (max_workers={workers})")
    return _executor


def pool_size() -> int:
    """Worker count of the current pool, 0 if none is running."""
    return _executor_workers if _executor is not None else 0


T = TypeVar("T")


async def run_blocking(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """
    Run a blocking (synchronous) function in the thread pool.

    Use for: algod submission and wait_for_confirmation.
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        get_executor(),
        functools.partial(func, *args, **kwargs),
    )


def shutdown_executor() -> None:
    """Shutdown the thread pool at the end of a batch."""
    global _executor, _executor_workers
    if _executor:
        _executor.shutdown(wait=True)
        _executor = None
        _executor_workers = 0
        logger.info("Thread pool executor shutdown")
