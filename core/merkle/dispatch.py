"""
Hash Dispatch
Concurrent execution of independent hash calls with an all-or-nothing barrier.

Every call's inputs are fixed before dispatch and every result lands in the
slot of its input, so completion order never affects the output. map()
returns only after every call in the batch has finished, which is the
level barrier the tree builder relies on.
"""
from __future__ import annotations

import logging
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import Callable, Optional, Sequence, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")


class HashDispatcher:
    """
    Runs batches of hash calls, at most max_concurrency at a time.

    With max_concurrency == 1 calls run inline on the caller's thread and
    no pool is created.

    Usage:
        with HashDispatcher(max_concurrency=16) as dispatcher:
            parents = dispatcher.map(provider.hash2, pairs)
    """

    def __init__(self, max_concurrency: int = 1) -> None:
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self.max_concurrency = max_concurrency
        self._executor: Optional[ThreadPoolExecutor] = None

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_concurrency,
                thread_name_prefix="shadowdrop-hash",
            )
        return self._executor

    def map(self, fn: Callable[..., T], arg_list: Sequence[tuple]) -> list[T]:
        """
        Call fn(*args) for every args tuple and return results in input order.

        Raises:
            The exception of the lowest-indexed failed call. Calls not yet
            started are cancelled; running calls are waited for before the
            exception propagates.
        """
        if not arg_list:
            return []

        if self.max_concurrency == 1 or len(arg_list) == 1:
            return [fn(*args) for args in arg_list]

        executor = self._get_executor()
        futures: list[Future] = [executor.submit(fn, *args) for args in arg_list]
        _, pending = wait(futures, return_when=FIRST_EXCEPTION)

        if pending:
            for future in pending:
                future.cancel()
            # Let in-flight calls settle so nothing outlives the failed batch
            wait(pending)

        for future in futures:
            if not future.cancelled() and future.exception() is not None:
                logger.debug(f"Aborting batch of {len(arg_list)} hash calls after failure")
                raise future.exception()

        return [future.result() for future in futures]

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True, cancel_futures=True)
            self._executor = None

    def __enter__(self) -> "HashDispatcher":
        return self

    def __exit__(self, *args) -> None:
        self.close()


__all__ = ["HashDispatcher"]
