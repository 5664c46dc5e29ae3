"""Poll a remote list of image locations and keep the displayed images in sync with it."""
from manifest_viewer.gallery import Gallery
from manifest_viewer.loader import ImageLoader, LoadResult
from manifest_viewer.manifest import FetchResult, Manifest, fetch_manifest, has_changed, parse_manifest
from manifest_viewer.reconcile import ReconcileReport, Reconciler
from manifest_viewer.scheduler import PollScheduler, TickOutcome
from manifest_viewer.state import ConfigState

__version__ = "0.1.0"

__all__ = [
    "ConfigState",
    "FetchResult",
    "Gallery",
    "ImageLoader",
    "LoadResult",
    "Manifest",
    "PollScheduler",
    "ReconcileReport",
    "Reconciler",
    "TickOutcome",
    "fetch_manifest",
    "has_changed",
    "parse_manifest",
]
