import logging
import threading

logger = logging.getLogger(__name__)


class Gallery:
    """
    The set of currently displayed images.

    Written by the poll thread (close_all/add) and read by the render loop
    (snapshot). Every mutation bumps the version so the renderer knows when to
    rebuild its surfaces. Images are never closed here; the renderer may still
    hold a snapshot that refers to them.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entries = []
        self._version = 0

    def close_all(self):
        with self._lock:
            count = len(self._entries)
            self._entries = []
            self._version += 1
        if count:
            logger.info(f"Closed {count} displayed images")

    def add(self, locator, image):
        with self._lock:
            self._entries.append((locator, image))
            self._version += 1

    def snapshot(self):
        """Returns (version, [(locator, image), ...]) as of now."""
        with self._lock:
            return self._version, list(self._entries)

    def locators(self):
        with self._lock:
            return [locator for locator, _ in self._entries]

    def __len__(self):
        with self._lock:
            return len(self._entries)
