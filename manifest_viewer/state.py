import logging
import threading

logger = logging.getLogger(__name__)


class ConfigState:
    """Manifest URL and accepted fingerprint shared by the poll loop and the config editor."""

    def __init__(self, url="", fingerprint=""):
        self._lock = threading.Lock()
        self._url = url or ""
        self._fingerprint = fingerprint or ""

    def get_url(self):
        with self._lock:
            return self._url

    def set_url(self, url):
        """Store a new manifest URL. Returns True if the value changed."""
        url = url or ""
        with self._lock:
            changed = url != self._url
            self._url = url
        if changed:
            logger.info(f"Manifest URL set to: {url!r}")
        return changed

    def get_fingerprint(self):
        with self._lock:
            return self._fingerprint

    def set_fingerprint(self, fingerprint):
        with self._lock:
            self._fingerprint = fingerprint or ""
