"""
Periodic poll of the manifest URL.

One worker thread runs ticks at a fixed rate. Ticks never overlap: a tick that
overruns its period delays the next one, and any deadlines it missed collapse
into a single tick that runs as soon as it finishes.
"""
from enum import Enum
import logging
import threading
import time

from manifest_viewer.manifest import fetch_manifest, has_changed

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_MS = 2000
DEFAULT_FETCH_TIMEOUT_MS = 1500


class TickOutcome(Enum):
    SKIPPED = "skipped"
    FETCH_FAILED = "fetch_failed"
    UNCHANGED = "unchanged"
    RECONCILED = "reconciled"
    ERROR = "error"


def validate_timing(poll_interval_ms, fetch_timeout_ms):
    if poll_interval_ms <= 0:
        raise ValueError(f"poll interval must be positive, got {poll_interval_ms} ms")
    if fetch_timeout_ms <= 0:
        raise ValueError(f"fetch timeout must be positive, got {fetch_timeout_ms} ms")
    if fetch_timeout_ms >= poll_interval_ms:
        raise ValueError(
            f"fetch timeout ({fetch_timeout_ms} ms) must be shorter than the poll interval ({poll_interval_ms} ms)"
        )


class PollScheduler:
    def __init__(self, state, reconciler, poll_interval_ms=DEFAULT_POLL_INTERVAL_MS,
                 fetch_timeout_ms=DEFAULT_FETCH_TIMEOUT_MS, fetcher=fetch_manifest,
                 on_status=None, clock=time.monotonic):
        validate_timing(poll_interval_ms, fetch_timeout_ms)
        self.state = state
        self.reconciler = reconciler
        self.poll_interval_ms = poll_interval_ms
        self.fetch_timeout_ms = fetch_timeout_ms
        self.fetcher = fetcher
        self.on_status = on_status
        self._clock = clock
        self._lifecycle_lock = threading.Lock()
        self._tick_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._stop_event.set()
        self._thread = None
        self._last_status = None

    @property
    def is_running(self):
        return not self._stop_event.is_set()

    def start(self):
        """Starts polling; the first tick fires immediately. Returns False if already running."""
        with self._lifecycle_lock:
            if not self._stop_event.is_set():
                logger.warning("Poll scheduler already running")
                return False
            # each run gets its own event so a worker still finishing a tick
            # from a previous run keeps seeing itself as stopped
            stop_event = threading.Event()
            self._stop_event = stop_event
            self._thread = threading.Thread(
                target=self._run, args=(stop_event,), name="manifest-poll", daemon=True
            )
            self._thread.start()
        logger.info(f"Listening for manifest changes every {self.poll_interval_ms} ms")
        return True

    def stop(self, wait=False, timeout=None):
        """
        Stops polling. No tick starts after this returns; a tick already in
        progress is left to finish (and is waited for when wait=True).
        """
        with self._lifecycle_lock:
            was_running = not self._stop_event.is_set()
            self._stop_event.set()
            thread = self._thread
        if was_running:
            logger.info("Stopped listening for manifest changes")
            self._report("Stopped listening for manifest changes")
        if wait and thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def _run(self, stop_event):
        interval = self.poll_interval_ms / 1000.0
        next_deadline = self._clock()
        while True:
            delay = next_deadline - self._clock()
            if delay > 0 and stop_event.wait(delay):
                break
            if self._run_tick(stop_event) is None:
                break
            next_deadline += interval
            now = self._clock()
            if next_deadline < now:
                logger.debug(f"Poll tick overran its period by {now - next_deadline:.3f}s")
                next_deadline = now
        logger.debug("Poll worker exiting")

    def run_once(self):
        """Runs one fetch/compare/reconcile tick on the calling thread."""
        return self._run_tick(None)

    def _run_tick(self, stop_event):
        # returns None without ticking if stop_event was set while waiting for
        # a previous worker's tick to finish
        with self._tick_lock:
            if stop_event is not None:
                with self._lifecycle_lock:
                    if stop_event.is_set():
                        return None
            try:
                return self._tick()
            except Exception as e:
                logger.error(f"Unexpected error during poll tick: {e}", exc_info=True)
                self._report(f"Poll error: {e}")
                return TickOutcome.ERROR

    def _tick(self):
        url = self.state.get_url()
        if not url:
            self._report("Waiting for a manifest URL")
            return TickOutcome.SKIPPED

        result = self.fetcher(url, self.fetch_timeout_ms / 1000.0)
        if not result.ok:
            logger.warning(result.error)
            self._report(f"Fetch failed: {result.error}")
            return TickOutcome.FETCH_FAILED

        manifest = result.manifest
        changed, new_fingerprint = has_changed(manifest, self.state.get_fingerprint())
        if not changed:
            logger.debug(f"Manifest unchanged (first line {new_fingerprint!r})")
            return TickOutcome.UNCHANGED

        logger.info(f"Manifest change detected, new first line {new_fingerprint!r}; reloading {len(manifest)} images")
        report = self.reconciler.reconcile(manifest)
        # only after the reload was issued, so an interrupted reload is retried next tick
        self.state.set_fingerprint(new_fingerprint)
        if report.failed:
            self._report(f"Loaded {report.opened} images ({len(report.failed)} failed)")
        else:
            self._report(f"Loaded {report.opened} images")
        return TickOutcome.RECONCILED

    def _report(self, message):
        if self.on_status is None or message == self._last_status:
            return
        self._last_status = message
        try:
            self.on_status(message)
        except Exception as e:
            logger.warning(f"Status callback failed: {e}")
