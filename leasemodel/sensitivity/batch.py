from __future__ import annotations
import logging
import queue
import threading
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional, Sequence, Tuple

from leasemodel.assumptions.model import ResolvedInput
from leasemodel.config.env import EngineConfig, get_engine_config
from leasemodel.errors import EngineError
from leasemodel.sensitivity.analyzer import SensitivityCancelled, SensitivityResult, run_request
from leasemodel.sensitivity.request import SensitivityRequest

logger = logging.getLogger(__name__)

FINAL_STATUSES = ("completed", "cancelled", "failed")


@dataclass
class Batch:
    id: str
    baseline: ResolvedInput
    requests: Tuple[SensitivityRequest, ...]
    status: str = "queued"  # queued|running|completed|cancelled|failed
    events: List[Dict[str, Any]] = field(default_factory=list)
    results: List[SensitivityResult] = field(default_factory=list)
    error: Optional[str] = None
    cancel_requested: threading.Event = field(default_factory=threading.Event, repr=False)
    finished: threading.Event = field(default_factory=threading.Event, repr=False)

    @property
    def done(self) -> bool:
        return self.status in FINAL_STATUSES


class BatchRegistry:
    """Batches by id, with the oldest finished ones evicted past `max_finished`.

    Queued and running batches are never evicted. A caller already holding a
    Batch keeps a usable object after eviction; only lookups by id stop.
    """

    def __init__(self, max_finished: int = 100):
        self.max_finished = max_finished
        self._batches: Dict[str, Batch] = {}
        self._finished_order: Deque[str] = deque()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._batches)

    def create(self, baseline: ResolvedInput, requests: Sequence[SensitivityRequest]) -> Batch:
        batch = Batch(id=f"b_{uuid.uuid4().hex[:8]}", baseline=baseline, requests=tuple(requests))
        with self._lock:
            self._batches[batch.id] = batch
        return batch

    def get(self, bid: str) -> Optional[Batch]:
        with self._lock:
            return self._batches.get(bid)

    def set_status(self, batch: Batch, status: str, error: Optional[str] = None):
        with self._lock:
            was_done = batch.done
            batch.status = status
            batch.error = error
            if was_done or status not in FINAL_STATUSES or batch.id not in self._batches:
                return
            self._finished_order.append(batch.id)
            while len(self._finished_order) > self.max_finished:
                evicted = self._finished_order.popleft()
                self._batches.pop(evicted, None)
                logger.debug("evicted finished batch %s", evicted)

    def discard(self, bid: str) -> bool:
        """Forget a finished batch. False when unknown or still queued/running."""
        with self._lock:
            batch = self._batches.get(bid)
            if batch is None or not batch.done:
                return False
            del self._batches[bid]
            if bid in self._finished_order:
                self._finished_order.remove(bid)
            return True


REGISTRY = BatchRegistry(get_engine_config().max_finished_batches)

_JOB_Q: "queue.Queue[str]" = queue.Queue(maxsize=100)
_workers: List[threading.Thread] = []
_workers_lock = threading.Lock()


def _event(batch: Batch, stage: str, message: str):
    batch.events.append({"stage": stage, "message": message, "ts": time.time()})


def _finish(batch: Batch, status: str, error: Optional[str] = None):
    REGISTRY.set_status(batch, status, error)
    batch.finished.set()


def execute(batch: Batch, config: Optional[EngineConfig] = None):
    """Run every request of `batch` in order, honouring cancellation between runs."""
    if batch.done:
        return
    if batch.cancel_requested.is_set():
        _event(batch, "Cancel", "Cancelled before start")
        _finish(batch, "cancelled")
        return
    REGISTRY.set_status(batch, "running")
    logger.info("batch %s running %d request(s)", batch.id, len(batch.requests))
    _event(batch, "Start", f"Running {len(batch.requests)} sensitivity request(s)")
    try:
        for req in batch.requests:
            if batch.cancel_requested.is_set():
                raise SensitivityCancelled(f"cancelled before {req.variable.value}")
            _event(batch, "Run", f"{req.variable.value} ±{req.range_percent}% on {req.metric.value}")
            result = run_request(batch.baseline, req, config, cancelled=batch.cancel_requested)
            batch.results.append(result)
    except SensitivityCancelled as e:
        logger.warning("batch %s cancelled after %d result(s)", batch.id, len(batch.results))
        _event(batch, "Cancel", str(e))
        _finish(batch, "cancelled")
        return
    except EngineError as e:
        logger.error("batch %s failed: %s", batch.id, e)
        _event(batch, "Error", str(e))
        _finish(batch, "failed", str(e))
        return
    logger.info("batch %s completed", batch.id)
    _event(batch, "Done", "Batch completed")
    _finish(batch, "completed")


def _worker_loop(worker_id: int = 0):  # pragma: no cover (exercised via submit/wait)
    config = get_engine_config()
    while True:
        bid = _JOB_Q.get()
        try:
            batch = REGISTRY.get(bid)
            if batch is None:
                continue
            try:
                execute(batch, config)
            except Exception as e:
                # an unexpected defect must not kill the worker thread
                logger.exception("worker %d: batch %s crashed", worker_id, bid)
                _event(batch, "Error", str(e))
                _finish(batch, "failed", str(e))
        finally:
            _JOB_Q.task_done()


def _ensure_workers():
    with _workers_lock:
        if _workers:
            return
        for i in range(get_engine_config().batch_workers):
            t = threading.Thread(target=_worker_loop, kwargs={"worker_id": i}, daemon=True)
            t.start()
            _workers.append(t)


def submit(baseline: ResolvedInput, requests: Sequence[SensitivityRequest]) -> str:
    """Queue a batch for the background workers and return its id."""
    batch = REGISTRY.create(baseline, requests)
    _ensure_workers()
    _JOB_Q.put(batch.id)
    return batch.id


def get(batch_id: str) -> Optional[Batch]:
    return REGISTRY.get(batch_id)


def cancel(batch_id: str) -> bool:
    """Request cancellation. False when the batch is unknown or already finished.

    A running batch stops before its next perturbation run; the run in
    progress is allowed to finish.
    """
    batch = REGISTRY.get(batch_id)
    if batch is None or batch.done:
        return False
    batch.cancel_requested.set()
    _event(batch, "Cancel", "Cancellation requested")
    return True


def wait(batch_id: str, timeout: Optional[float] = None) -> Optional[Batch]:
    batch = REGISTRY.get(batch_id)
    if batch is None:
        return None
    batch.finished.wait(timeout)
    return batch


def discard(batch_id: str) -> bool:
    return REGISTRY.discard(batch_id)
