"""Resolves manifest entries (URLs or local paths) into Pillow images on the gallery."""
from dataclasses import dataclass
from io import BytesIO
import logging
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

import requests
from PIL import Image, UnidentifiedImageError

from manifest_viewer.manifest import get_requests_session

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_TIMEOUT_S = 15
DEFAULT_MAX_SIZE = (1920, 1080)


@dataclass(frozen=True)
class LoadResult:
    ok: bool
    error: Optional[str] = None


def to_display_mode(image):
    """Flattens any Pillow mode onto RGB, compositing alpha over black."""
    if image.mode == 'RGB':
        return image
    if image.mode in ('RGBA', 'LA') or (image.mode == 'P' and 'transparency' in image.info):
        rgba = image.convert('RGBA')
        rgb_image = Image.new('RGB', rgba.size, (0, 0, 0))
        rgb_image.paste(rgba, (0, 0), mask=rgba.split()[3])
        return rgb_image
    return image.convert('RGB')


def fit_within(image, max_width, max_height):
    """Scales image down (never up) to fit inside max_width x max_height, keeping aspect ratio."""
    img_width, img_height = image.size
    if img_width <= max_width and img_height <= max_height:
        return image
    scale_factor = min(max_width / img_width, max_height / img_height)
    new_width = max(1, int(img_width * scale_factor))
    new_height = max(1, int(img_height * scale_factor))
    logger.debug(f"Scaling image from {img_width}x{img_height} to {new_width}x{new_height}")
    return image.resize((new_width, new_height), Image.LANCZOS)


class ImageLoader:
    """Opens manifest entries as images on a Gallery."""

    def __init__(self, gallery, timeout=DEFAULT_IMAGE_TIMEOUT_S, max_size=DEFAULT_MAX_SIZE, session=None):
        self.gallery = gallery
        self.timeout = timeout
        self.max_size = max_size
        self._session = session

    @property
    def session(self):
        if self._session is None:
            self._session = get_requests_session()
        return self._session

    def open(self, locator):
        if not locator or not locator.strip():
            return LoadResult(ok=False, error="Empty image locator")
        try:
            image = self._read(locator.strip())
            image.load()
            if image.width == 0 or image.height == 0:
                return LoadResult(ok=False, error=f"Image has zero dimension: {locator}")
            image = fit_within(to_display_mode(image), *self.max_size)
        except requests.exceptions.HTTPError as e:
            return LoadResult(ok=False, error=f"HTTP error fetching image {locator}: {e.response.status_code} {e.response.reason}")
        except requests.exceptions.RequestException as e:
            return LoadResult(ok=False, error=f"Error fetching image {locator}: {e}")
        except (UnidentifiedImageError, Image.DecompressionBombError) as e:
            return LoadResult(ok=False, error=f"Not a recognised image {locator}: {e}")
        except OSError as e:
            return LoadResult(ok=False, error=f"Error reading image {locator}: {e}")
        self.gallery.add(locator, image)
        logger.info(f"Opened image {locator} ({image.width}x{image.height})")
        return LoadResult(ok=True)

    def _read(self, locator):
        parsed = urlparse(locator)
        scheme = parsed.scheme.lower()
        if scheme in ('http', 'https'):
            response = self.session.get(locator, timeout=self.timeout, headers={'Cache-Control': 'no-store'})
            try:
                response.raise_for_status()
                return Image.open(BytesIO(response.content))
            finally:
                response.close()
        if scheme == 'file':
            return Image.open(Path(unquote(parsed.path)))
        # anything else, including Windows drive letters, is treated as a path
        return Image.open(Path(locator).expanduser())

    def close(self):
        if self._session is not None:
            self._session.close()
            self._session = None
