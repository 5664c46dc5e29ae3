"""
Shared pytest fixtures and fakes for the viewer tests.

The fakes record every call into one shared list so tests can assert the
relative order of close_all and open calls.
"""
import threading

import pytest
from PIL import Image

from manifest_viewer.loader import LoadResult
from manifest_viewer.manifest import FetchResult, Manifest


def ok(*lines):
    return FetchResult(ok=True, manifest=Manifest(lines=tuple(lines)))


def failed(error="Connection error fetching manifest"):
    return FetchResult(ok=False, error=error)


class FakeDisplay:
    def __init__(self, calls):
        self.calls = calls

    def close_all(self):
        self.calls.append(("close_all",))


class FakeLoader:
    def __init__(self, calls, failing=(), raising=()):
        self.calls = calls
        self.failing = set(failing)
        self.raising = set(raising)

    def open(self, locator):
        self.calls.append(("open", locator))
        if locator in self.raising:
            raise RuntimeError(f"decoder crashed on {locator}")
        if locator in self.failing:
            return LoadResult(ok=False, error=f"cannot open {locator}")
        return LoadResult(ok=True)


class ScriptedFetcher:
    """Returns the queued results in order, repeating the last one forever."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []
        self._lock = threading.Lock()

    def __call__(self, url, timeout):
        with self._lock:
            self.calls.append((url, timeout))
            if len(self.results) > 1:
                return self.results.pop(0)
            return self.results[0]

    @property
    def call_count(self):
        with self._lock:
            return len(self.calls)


@pytest.fixture
def calls():
    return []


@pytest.fixture
def display(calls):
    return FakeDisplay(calls)


@pytest.fixture
def loader(calls):
    return FakeLoader(calls)


@pytest.fixture
def make_png(tmp_path):
    """Writes a solid-colour image to tmp_path and returns its path."""
    def _make(name="image.png", size=(40, 30), mode="RGB", color=(200, 10, 10)):
        path = tmp_path / name
        Image.new(mode, size, color).save(path)
        return path
    return _make
