from __future__ import annotations

import logging
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Callable, Dict, Iterable, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_WORKERS = 8


def run_ordered(
    items: Iterable[T],
    worker: Callable[[int, T], R],
    *,
    workers: int = DEFAULT_WORKERS,
    on_done: Optional[Callable[[int, R], None]] = None,
) -> List[R]:
    """Run worker(index, item) over items with at most `workers` calls in flight.

    Tasks are admitted in input order through a sliding window. Results come
    back in input order; on_done sees them in completion order.
    """
    pending = list(enumerate(items))
    workers = max(1, int(workers))
    results: List[R] = []
    buffered: Dict[int, R] = {}
    in_flight: Dict[Future, int] = {}
    next_item = 0

    ex = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="fetch")
    try:
        while next_item < len(pending) or in_flight:
            while next_item < len(pending) and len(in_flight) < workers:
                idx, item = pending[next_item]
                in_flight[ex.submit(worker, idx, item)] = idx
                next_item += 1
            done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
            for fut in done:
                idx = in_flight.pop(fut)
                result = fut.result()
                buffered[idx] = result
                if on_done:
                    on_done(idx, result)
            while len(results) in buffered:
                results.append(buffered.pop(len(results)))
    except BaseException:
        # Ctrl+C or a failing worker: drop queued work, leave running fetches behind
        logger.debug("abandoning %d in-flight task(s)", len(in_flight))
        ex.shutdown(wait=False, cancel_futures=True)
        raise
    ex.shutdown(wait=True)
    return results
