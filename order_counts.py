"""Per-product order counters kept in the Firebase Realtime Database."""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional, Protocol

from config import ORDER_COUNT_WORKERS

logger = logging.getLogger(__name__)


class OrderCountStore(Protocol):
    def increment_order_count(self, product_id: int, amount: int = 1) -> Optional[Future]: ...

    def get_order_count(self, product_id: int) -> int: ...


def _as_count(value) -> Optional[int]:
    # RTDB hands back plain JSON; bools are not counts
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


class FirebaseOrderCountStore:
    """
    Counters live at ``products/<productId>/orderCount``.

    Increments are dispatched to a thread pool and never awaited by the caller;
    each one runs as an RTDB transaction so concurrent clients don't lose updates.
    """

    def __init__(self, root_ref=None, executor: Optional[ThreadPoolExecutor] = None) -> None:
        if root_ref is None:
            from firebase_util import get_db_ref
            root_ref = get_db_ref()
        self.root_ref = root_ref
        self.executor = executor or ThreadPoolExecutor(
            max_workers=ORDER_COUNT_WORKERS, thread_name_prefix="order-count"
        )

    def _counter_ref(self, product_id: int):
        return self.root_ref.child("products").child(str(product_id)).child("orderCount")

    def _run_increment(self, product_id: int, amount: int) -> int:
        def update(current):
            return (_as_count(current) or 0) + amount

        return self._counter_ref(product_id).transaction(update)

    def increment_order_count(self, product_id: int, amount: int = 1) -> Optional[Future]:
        try:
            future = self.executor.submit(self._run_increment, product_id, amount)
        except RuntimeError as e:
            # pool already shut down
            logger.error(f"Error updating order count for product {product_id}: {e}")
            return None

        def log_result(done: Future) -> None:
            error = done.exception()
            if error is not None:
                logger.error(f"Error updating order count for product {product_id}: {error}")
            else:
                logger.debug(f"Order count for product {product_id} is now {done.result()}")

        future.add_done_callback(log_result)
        return future

    def get_order_count(self, product_id: int) -> int:
        count = _as_count(self._counter_ref(product_id).get())
        return count if count is not None else 0

    def watch_order_count(self, product_id: int, callback: Callable[[int], None]):
        """
        Push every new integer count to ``callback`` until ``close()`` is called
        on the returned registration.
        """
        def on_event(event) -> None:
            count = _as_count(event.data)
            if count is not None:
                callback(count)

        return self._counter_ref(product_id).listen(on_event)

    def shutdown(self, wait: bool = True) -> None:
        self.executor.shutdown(wait=wait)
