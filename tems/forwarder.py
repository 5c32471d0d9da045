# tems/forwarder.py
import logging
import threading
import time
from typing import Optional

import requests

from .config import Config
from .schemas import ForwardEnvelope
from .store import MetricStore

logger = logging.getLogger(__name__)

HEADERS = {"Content-Type": "application/json"}


def next_deadline(deadline: float, now: float, interval: float) -> float:
    """
    Next fixed-rate tick after `deadline`. Ticks missed while a send was
    running are dropped rather than fired back to back.
    """
    deadline += interval
    if deadline <= now:
        missed = (now - deadline) // interval + 1
        deadline += missed * interval
    return deadline


class Forwarder:
    """
    Pushes the whole store to the upstream collector (TEPS) once per interval.

    Delivery is best effort: a failed POST is logged and dropped, and the
    next tick sends a fresh snapshot. Sends never overlap.
    """

    def __init__(self, store: MetricStore, config: Config, session: Optional[requests.Session] = None):
        self.store = store
        self.config = config
        self.session = session or requests.Session()
        self._send_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def build_envelope(self) -> ForwardEnvelope:
        agents = list(self.store.snapshot().values())
        return ForwardEnvelope(
            tems_name=self.config.tems_name,
            timestamp=int(time.time()),
            agents=agents,
        )

    def tick(self) -> Optional[int]:
        """Send one snapshot. Returns the upstream status code, or None if the request failed."""
        with self._send_lock:
            body = self.build_envelope().model_dump_json()
            try:
                r = self.session.post(
                    self.config.teps_url,
                    data=body,
                    headers=HEADERS,
                    timeout=self.config.forward_timeout,
                )
            except requests.RequestException as e:
                logger.warning("forward to %s failed: %s", self.config.teps_url, e)
                return None
            if not r.ok:
                logger.warning("forward to %s rejected: HTTP %s", self.config.teps_url, r.status_code)
            else:
                logger.debug("forwarded snapshot to %s: HTTP %s", self.config.teps_url, r.status_code)
            return r.status_code

    def _run(self):
        interval = self.config.interval
        deadline = time.monotonic() + interval
        while not self._stop.wait(max(0.0, deadline - time.monotonic())):
            try:
                self.tick()
            except Exception:
                logger.exception("forwarder tick failed")
            deadline = next_deadline(deadline, time.monotonic(), interval)

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="tems-forwarder", daemon=True)
        self._thread.start()
        logger.info("forwarding to %s every %ss", self.config.teps_url, self.config.interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
