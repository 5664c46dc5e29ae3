import logging
import os
import threading

from manifest_viewer.settings import ConfigError, read_manifest_url

logger = logging.getLogger(__name__)


class ConfigWatcher:
    """
    Applies edits of manifest_url in the config file to a running viewer.

    The file is polled for a new modification time; only ConfigState.set_url
    is ever called from this thread.
    """

    def __init__(self, config_path, state, interval_s=1.0):
        self.config_path = config_path
        self.state = state
        self.interval_s = interval_s
        self._stop_event = threading.Event()
        self._thread = None
        self._last_mtime_ns = None

    def prime(self):
        """Records the current file state so the first poll only reacts to later edits."""
        self._last_mtime_ns = self._mtime_ns()

    def _mtime_ns(self):
        try:
            return os.stat(self.config_path).st_mtime_ns
        except OSError:
            return None

    def check(self):
        """Re-reads the URL if the file changed. Returns True if the state's URL changed."""
        mtime_ns = self._mtime_ns()
        if mtime_ns == self._last_mtime_ns:
            return False
        self._last_mtime_ns = mtime_ns
        try:
            url = read_manifest_url(self.config_path)
        except ConfigError as e:
            logger.warning(f"Ignoring unreadable configuration edit: {e}")
            return False
        return self.state.set_url(url)

    def start(self):
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="config-watch", daemon=True)
        self._thread.start()
        logger.info(f"Watching {self.config_path} for manifest URL edits")

    def stop(self):
        self._stop_event.set()

    def _run(self):
        while not self._stop_event.wait(self.interval_s):
            try:
                self.check()
            except Exception as e:
                logger.error(f"Unexpected error checking configuration file: {e}")
