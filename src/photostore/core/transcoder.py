"""Pillow-backed re-encoding of captured images into bounded JPEG renditions.

Source images from a camera can be far larger than anything the gallery
displays.  Rather than decoding the full frame and resizing precisely, the
transcoder picks a power-of-two shrink factor from the header dimensions
alone and lets the decoder skip pixels while reading (``Image.draft`` for
JPEG sources).  The result is "shrink to fit, at least as large as the
bound", which keeps peak memory proportional to the output rather than the
input.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Tuple

from PIL import Image, ImageOps

from ..errors import DecodeError, EncodeError

LOGGER = logging.getLogger(__name__)


def compute_sample_size(width: int, height: int, max_width: int, max_height: int) -> int:
    """Return the power-of-two factor used to decode a ``width`` x ``height`` image.

    The factor keeps doubling while both halved dimensions, divided by the
    factor, still reach the requested bounds.  Images already within the
    bounds are decoded at full size.
    """

    sample_size = 1
    if height > max_height or width > max_width:
        half_height = height // 2
        half_width = width // 2
        while half_height // sample_size >= max_height and half_width // sample_size >= max_width:
            sample_size *= 2
    return sample_size


def _decode(source: Path, max_width: int, max_height: int) -> Image.Image:
    try:
        image = Image.open(source)
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise DecodeError(f"Failed to open image {source}: {exc}") from exc

    try:
        width, height = image.size
        factor = compute_sample_size(width, height, max_width, max_height)
        target = (max(1, width // factor), max(1, height // factor))

        # JPEG decoders can scale by 1/2, 1/4 or 1/8 while reading, which
        # avoids materialising the full-resolution frame.
        if factor > 1 and image.format == "JPEG" and image.mode in ("RGB", "L"):
            image.draft(image.mode, target)
        image.load()

        remaining = min(image.width // target[0], image.height // target[1])
        if remaining > 1:
            image = image.reduce(remaining)

        image = ImageOps.exif_transpose(image)
        if image.mode not in ("RGB", "L"):
            image = image.convert("RGB")
        return image
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as exc:
        image.close()
        raise DecodeError(f"Failed to decode image {source}: {exc}") from exc


def _encode(image: Image.Image, dest: Path, quality: int) -> None:
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        with dest.open("wb") as handle:
            image.save(handle, format="JPEG", quality=quality, optimize=True)
            handle.flush()
            os.fsync(handle.fileno())
    except (OSError, ValueError) as exc:
        try:
            dest.unlink()
        except FileNotFoundError:
            pass
        except OSError as cleanup_exc:
            LOGGER.warning("Failed to remove partial rendition %s: %s", dest, cleanup_exc)
        raise EncodeError(f"Failed to write rendition {dest}: {exc}") from exc


def transcode(
    source: Path,
    dest: Path,
    *,
    quality: int,
    max_width: int,
    max_height: int,
) -> Tuple[int, int]:
    """Decode *source* at a reduced resolution and write it to *dest* as JPEG.

    Parameters
    ----------
    source:
        Image readable by Pillow.
    dest:
        Output file; its parent directory is created when missing.
    quality:
        JPEG quality between 0 and 100.
    max_width, max_height:
        Bounds used to derive the decode factor (see
        :func:`compute_sample_size`).

    Returns
    -------
    tuple
        The ``(width, height)`` of the written rendition.

    Raises
    ------
    DecodeError
        When *source* cannot be opened or decoded.
    EncodeError
        When *dest* cannot be written.  No partial file is left behind.
    """

    if not 0 <= quality <= 100:
        raise ValueError(f"JPEG quality must be between 0 and 100, got {quality}")
    if max_width <= 0 or max_height <= 0:
        raise ValueError("Rendition bounds must be positive")

    image = _decode(Path(source), max_width, max_height)
    try:
        _encode(image, Path(dest), quality)
        return image.size
    finally:
        image.close()


__all__ = ["compute_sample_size", "transcode"]
