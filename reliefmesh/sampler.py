"""Raster decoding and square-grid resampling.

The pipeline works on a fixed ``resolution x resolution`` RGBA grid.
Source images are stretched onto that grid with a bilinear filter, the
same way a canvas ``drawImage`` into a square target behaves.
"""

import base64
import binascii
import io
import logging
import pathlib
from typing import Union

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from .errors import DecodeError

logger = logging.getLogger(__name__)

ImageSource = Union[str, pathlib.Path, bytes, Image.Image, np.ndarray]


def _decode_data_url(url: str) -> bytes:
    header, sep, payload = url.partition(',')
    if not sep:
        raise DecodeError("Malformed data URL: missing ',' separator")
    try:
        if header.endswith(';base64'):
            return base64.b64decode(payload, validate=True)
        return payload.encode('latin-1')
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Malformed data URL payload: {e}") from e


def load_image(source: ImageSource) -> Image.Image:
    """Decode an image from a path, raw bytes, or a ``data:`` URL."""
    if isinstance(source, Image.Image):
        return source
    if isinstance(source, np.ndarray):
        return _array_to_image(source)

    if isinstance(source, str) and source.startswith('data:'):
        source = _decode_data_url(source)

    try:
        if isinstance(source, bytes):
            img = Image.open(io.BytesIO(source))
        else:
            img = Image.open(pathlib.Path(source))
        img.load()
    except FileNotFoundError as e:
        raise DecodeError(f"Image file not found: {source}") from e
    except Image.DecompressionBombError as e:
        raise DecodeError(f"Image is too large to decode safely: {e}") from e
    except (UnidentifiedImageError, OSError) as e:
        raise DecodeError(f"Could not decode image: {e}") from e

    logger.debug(f"Decoded {img.format} image {img.size[0]}x{img.size[1]} "
                 f"mode={img.mode}")
    # orientation tag applied the way a browser draws it
    return ImageOps.exif_transpose(img)


def _to_eight_bit(img: Image.Image) -> Image.Image:
    """Rescale wide grayscale modes (I;16*, I, F) to an 8-bit ``L`` image.

    Pillow's own ``convert`` clips these instead of scaling, which turns a
    16-bit depth map nearly white.
    """
    if not (img.mode.startswith('I') or img.mode == 'F'):
        return img

    arr = np.asarray(img).astype(np.float64)
    arr = np.nan_to_num(arr, nan=0.0, posinf=0.0, neginf=0.0)
    arr = np.clip(arr, 0.0, None)
    peak = float(arr.max()) if arr.size else 0.0
    if img.mode.startswith('I;16') or peak <= 65535.0:
        scale = 65535.0
    else:
        scale = peak
    if img.mode == 'F' and peak <= 1.0:
        scale = 1.0
    eight = np.clip(np.rint(arr / scale * 255.0), 0, 255).astype(np.uint8)
    logger.debug(f"Rescaled {img.mode} image to 8 bits (scale {scale:g})")
    return Image.fromarray(eight)


def _array_to_image(arr: np.ndarray) -> Image.Image:
    """Wrap a (h, w), (h, w, 3) or (h, w, 4) array as an RGBA image."""
    if arr.ndim not in (2, 3) or (arr.ndim == 3 and arr.shape[2] not in (3, 4)):
        raise DecodeError(f"Unsupported raster shape {arr.shape}; "
                          f"expected (h, w), (h, w, 3) or (h, w, 4)")
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise DecodeError(f"Source image has zero area ({arr.shape[1]}x{arr.shape[0]})")

    if arr.dtype != np.uint8:
        arr = np.nan_to_num(arr.astype(np.float64), nan=0.0, posinf=255.0, neginf=0.0)
        arr = np.clip(np.rint(arr), 0, 255).astype(np.uint8)

    if arr.ndim == 2:
        return Image.fromarray(arr).convert('RGBA')
    return Image.fromarray(np.ascontiguousarray(arr)).convert('RGBA')


def sample_raster(image: ImageSource, resolution: int) -> np.ndarray:
    """Resample *image* to a ``(resolution, resolution, 4)`` uint8 RGBA grid.

    Raises ``DecodeError`` if the source has zero area or cannot be read.
    """
    img = load_image(image)
    width, height = img.size
    if width <= 0 or height <= 0:
        raise DecodeError(f"Source image has zero area ({width}x{height})")

    rgba = _to_eight_bit(img).convert('RGBA')
    if rgba.size != (resolution, resolution):
        rgba = rgba.resize((resolution, resolution), Image.Resampling.BILINEAR)

    samples = np.asarray(rgba, dtype=np.uint8).copy()
    # a canvas reads fully transparent pixels back as black
    samples[samples[..., 3] == 0, :3] = 0
    logger.info(f"Sampled {width}x{height} image onto "
                f"{resolution}x{resolution} grid")
    return samples
