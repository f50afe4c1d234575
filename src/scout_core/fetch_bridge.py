import asyncio
import concurrent.futures
import logging
import queue
import threading
import time
from collections.abc import Callable
from enum import Enum
from typing import Any

from .constants import ACCEPTED_FILE_TYPE, FETCH_TIMEOUT, POLL_INTERVAL, PUMP_QUEUE_SIZE
from .exceptions import ExternalAPIError, FetchTimeoutError, InternalTaskError, ScoutException
from .steam_web import WorkshopClient

logger = logging.getLogger(__name__)


class FetchState(Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    INTERNAL_ERROR = "internal_error"


TERMINAL_STATES = frozenset({FetchState.COMPLETED, FetchState.FAILED, FetchState.TIMED_OUT, FetchState.INTERNAL_ERROR})


class BlockingFetchBridge:
    """
    Runs one batched workshop query against a callback-driven client without
    blocking the event loop.

    The client only delivers its completion when pumped (run_callbacks), and
    pumps must never overlap. A dedicated worker thread issues the query and
    polls for the result, asking the event loop for a pump on every
    iteration; the event loop performs exactly one pump per signal it
    receives. The worker owns the hard timeout.

    A bridge performs a single fetch: IDLE -> FETCHING -> one terminal state.
    """

    def __init__(
        self,
        client: WorkshopClient,
        timeout: float = FETCH_TIMEOUT,
        poll_interval: float = POLL_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        accepted_file_type: str = ACCEPTED_FILE_TYPE,
    ):
        self.client = client
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.accepted_file_type = accepted_file_type
        self.state = FetchState.IDLE
        self.pumps = 0
        self._clock = clock
        self._sleep = sleep

    async def fetch(self, item_ids: list[int]) -> list[dict[str, Any]]:
        if self.state is not FetchState.IDLE:
            raise RuntimeError(f"Bridge already used (state: {self.state.value})")
        self.state = FetchState.FETCHING

        loop = asyncio.get_running_loop()
        signals: asyncio.Queue[None] = asyncio.Queue(maxsize=PUMP_QUEUE_SIZE)
        abandoned = threading.Event()

        def offer_signal():
            try:
                signals.put_nowait(None)
            except asyncio.QueueFull:
                pass  # a pending signal already covers this one

        def request_pump():
            loop.call_soon_threadsafe(offer_signal)

        executor = concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="workshop-fetch")
        worker = loop.run_in_executor(executor, self._poll, list(item_ids), request_pump, abandoned)
        logger.debug(f"Fetching {len(item_ids)} workshop item(s)")
        try:
            items = await self._pump_until_done(signals, worker)
        except asyncio.CancelledError:
            logger.debug("Workshop fetch cancelled by the caller")
            self.state = FetchState.INTERNAL_ERROR
            raise
        finally:
            # Lets the worker leave its loop; a late completion is never read
            abandoned.set()
            executor.shutdown(wait=False)

        return self._accept(items)

    async def _pump_until_done(self, signals: asyncio.Queue, worker: asyncio.Future) -> list[dict | None]:
        next_signal = asyncio.ensure_future(signals.get())
        try:
            while True:
                done, _ = await asyncio.wait({next_signal, worker}, return_when=asyncio.FIRST_COMPLETED)
                if worker in done:
                    return self._settle(worker)
                self._pump()
                next_signal = asyncio.ensure_future(signals.get())
        finally:
            next_signal.cancel()

    def _pump(self):
        self.pumps += 1
        try:
            self.client.run_callbacks()
        except ScoutException:
            self.state = FetchState.FAILED
            raise
        except Exception as e:
            self.state = FetchState.FAILED
            raise ExternalAPIError(f"Failed to run Steam callbacks: {e}") from e

    def _settle(self, worker: asyncio.Future) -> list[dict | None]:
        try:
            items = worker.result()
        except FetchTimeoutError:
            self.state = FetchState.TIMED_OUT
            raise
        except ExternalAPIError:
            self.state = FetchState.FAILED
            raise
        except (Exception, asyncio.CancelledError) as e:
            self.state = FetchState.INTERNAL_ERROR
            raise InternalTaskError(e) from e
        self.state = FetchState.COMPLETED
        return items

    def _poll(self, item_ids: list[int], request_pump: Callable[[], None], abandoned: threading.Event):
        """Worker thread body. Never touches the event loop except through request_pump."""
        results: queue.SimpleQueue = queue.SimpleQueue()

        def on_complete(items, error):
            results.put((items, error))

        self.client.query_items(item_ids, True, on_complete)

        started = self._clock()
        while not abandoned.is_set():
            request_pump()
            try:
                items, error = results.get_nowait()
            except queue.Empty:
                pass
            else:
                if error is not None:
                    raise ExternalAPIError(error)
                return items

            if self._clock() - started >= self.timeout:
                raise FetchTimeoutError(self.timeout)
            self._sleep(self.poll_interval)
        return None

    def _accept(self, items: list[dict | None]) -> list[dict[str, Any]]:
        accepted = [item for item in items if item is not None and item.get("file_type") == self.accepted_file_type]
        skipped = len(items) - len(accepted)
        if skipped:
            logger.debug(f"Discarded {skipped} missing or non-{self.accepted_file_type} item(s)")
        return accepted
