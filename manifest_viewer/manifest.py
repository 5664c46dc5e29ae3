"""
Fetching and fingerprinting of the image manifest.

A manifest is a plain-text resource listing one image locator per line. The
first line doubles as a cheap identity for the whole list: when it differs
from the one last accepted, the displayed images are replaced.
"""
from dataclasses import dataclass, field
import logging
import time
from typing import Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.exceptions import LocationValueError
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT_S = 1.5
MAX_MANIFEST_BYTES = 256 * 1024


@dataclass(frozen=True)
class Manifest:
    lines: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def fingerprint(self):
        return self.lines[0] if self.lines else ""

    def __len__(self):
        return len(self.lines)

    def __iter__(self):
        return iter(self.lines)


@dataclass(frozen=True)
class FetchResult:
    ok: bool
    manifest: Optional[Manifest] = None
    error: Optional[str] = None


def parse_manifest(text):
    """Splits manifest text into lines, dropping only the empty line after a final newline."""
    return Manifest(lines=tuple(text.splitlines()))


def has_changed(manifest, stored_fingerprint):
    """Returns (changed, new_fingerprint) for a freshly fetched manifest."""
    new_fingerprint = manifest.fingerprint
    return new_fingerprint != (stored_fingerprint or ""), new_fingerprint


def get_requests_session(retries=3):
    """Creates a requests session with retry logic."""
    session = requests.Session()
    retry_strategy = Retry(
        total=retries,
        backoff_factor=1,
        status_forcelist=[500, 502, 503, 504]
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


class ManifestTooLarge(Exception):
    pass


def _decode_body(response, body):
    # requests falls back to ISO-8859-1 for text/* without a charset
    content_type = response.headers.get('Content-Type', '')
    encoding = response.encoding if 'charset' in content_type.lower() else None
    return body.decode(encoding or 'utf-8', errors='replace')


def _read_body(response, deadline):
    """
    Reads a streamed response body, giving up once `deadline` (monotonic) passes.

    The requests timeout only bounds each socket operation, so a server that
    trickles bytes could otherwise hold the tick forever. Reads are one byte at
    a time (served from the socket buffer) and the socket timeout is clamped to
    the time left, so no single read can outlive the deadline.
    """
    sock = getattr(getattr(response.raw, 'connection', None), 'sock', None)
    chunks = response.iter_content(chunk_size=1)
    body = bytearray()
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise requests.exceptions.Timeout(f"manifest not received within the fetch timeout ({len(body)} bytes read)")
        if sock is not None:
            sock.settimeout(remaining)
        try:
            chunk = next(chunks)
        except StopIteration:
            break
        except requests.exceptions.ConnectionError as e:
            # urllib3's read timeout surfaces from iter_content as a ConnectionError
            if time.monotonic() >= deadline:
                raise requests.exceptions.Timeout(f"manifest not received within the fetch timeout: {e}") from e
            raise
        body += chunk
        if len(body) > MAX_MANIFEST_BYTES:
            raise ManifestTooLarge(f"manifest exceeds {MAX_MANIFEST_BYTES} bytes")
    return bytes(body)


def fetch_manifest(url, timeout=DEFAULT_FETCH_TIMEOUT_S, session=None):
    """
    Fetches the manifest at url within `timeout` seconds overall.
    Never raises; failures come back as FetchResult.error.
    """
    deadline = time.monotonic() + timeout
    # no transport retries here, the next poll tick is the retry
    own_session = session is None
    if own_session:
        session = get_requests_session(retries=0)
    try:
        # connect and headers get half the budget each, the body whatever is left
        response = session.get(url, timeout=(timeout / 2, timeout / 2), stream=True,
                               headers={'Cache-Control': 'no-store'})
        try:
            response.raise_for_status()
            text = _decode_body(response, _read_body(response, deadline))
        finally:
            response.close()
        manifest = parse_manifest(text)
        logger.debug(f"Fetched manifest from {url}: {len(manifest)} lines")
        return FetchResult(ok=True, manifest=manifest)
    except requests.exceptions.HTTPError as e:
        return FetchResult(ok=False, error=f"HTTP error fetching manifest {url}: {e.response.status_code} {e.response.reason}")
    except requests.exceptions.ConnectionError as e:
        return FetchResult(ok=False, error=f"Connection error fetching manifest {url}: {e}")
    except requests.exceptions.Timeout as e:
        return FetchResult(ok=False, error=f"Timeout fetching manifest {url}: {e}")
    except requests.exceptions.RequestException as e:
        return FetchResult(ok=False, error=f"Error fetching manifest {url}: {e}")
    except ManifestTooLarge as e:
        return FetchResult(ok=False, error=f"Rejected manifest {url}: {e}")
    except (UnicodeDecodeError, LookupError) as e:
        return FetchResult(ok=False, error=f"Error decoding manifest {url}: {e}")
    except (LocationValueError, ValueError) as e:
        # urllib3 rejects some malformed hosts with a bare ValueError subclass
        return FetchResult(ok=False, error=f"Invalid manifest URL {url}: {e}")
    finally:
        if own_session:
            session.close()
