"""Single-writer request queue bound to one document-owning thread."""

from __future__ import annotations

import logging
import queue
import threading
import time
import uuid
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any, Callable, Dict


logger = logging.getLogger("proschedules.queue")

_STOP = object()


@dataclass
class DocumentRequest:
    name: str
    fn: Callable[..., Any]
    args: tuple = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)
    future: Future = field(default_factory=Future)
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))


class DocumentQueue:
    """Runs submitted requests one at a time, in submission order.

    Every read and write against the host document goes through here, so a
    request always observes the state left by the requests submitted before
    it. A started request runs to completion; callers get its outcome through
    the returned future, which completes exactly once.
    """

    def __init__(self, name: str = "document") -> None:
        self._name = name
        self._requests: "queue.Queue[Any]" = queue.Queue()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._closed = False

    def start(self) -> None:
        with self._lock:
            self._start_locked()

    def _start_locked(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self._run, name=f"{self._name}-writer", daemon=True)
        self._thread.start()

    def submit(self, name: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        request = DocumentRequest(name=name, fn=fn, args=args, kwargs=kwargs)
        # enqueue under the lock so no request can land behind the stop marker
        with self._lock:
            if self._closed:
                raise RuntimeError("Document queue is closed")
            self._start_locked()
            self._requests.put(request)
        return request.future

    def call(self, name: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        return self.submit(name, fn, *args, **kwargs).result()

    def pending(self) -> int:
        return self._requests.qsize()

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            thread = self._thread
        self._requests.put(_STOP)
        if wait and thread is not None:
            thread.join()

    def _run(self) -> None:
        while True:
            request = self._requests.get()
            if request is _STOP:
                return
            if not request.future.set_running_or_notify_cancel():
                continue
            start = time.perf_counter()
            try:
                result = request.fn(*request.args, **request.kwargs)
            except Exception as exc:
                logger.warning("document_request_failed name=%s request_id=%s error=%s", request.name, request.request_id, exc)
                request.future.set_exception(exc)
            else:
                request.future.set_result(result)
            logger.info(
                "document_request name=%s request_id=%s ms=%.1f",
                request.name,
                request.request_id,
                (time.perf_counter() - start) * 1000,
            )
