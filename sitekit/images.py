"""Lossy PNG compression with Pillow."""

from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from PIL import Image, ImageChops, ImageStat

PNG_SUFFIX = ".png"


@dataclass
class CompressedImage:
    data: bytes
    quality: float
    accepted: bool


def _palette_size(max_quality: float) -> int:
    return max(2, min(256, round(256 * max_quality)))


def _measure_quality(original: Image.Image, quantized: Image.Image) -> float:
    """Score in [0, 1]; 1 means the quantized pixels equal the original ones."""

    difference = ImageChops.difference(original, quantized.convert(original.mode))
    channel_means = ImageStat.Stat(difference).mean
    return 1.0 - (sum(channel_means) / len(channel_means)) / 255.0


def compress_png(source: bytes, quality: Tuple[float, float]) -> CompressedImage:
    """Quantize a PNG to a palette image with metadata stripped.

    ``accepted`` is False when the measured quality drops under the lower
    bound of ``quality``; callers keep the original bytes in that case.
    """

    low, high = quality
    with Image.open(io.BytesIO(source)) as opened:
        opened.load()
        mode = "RGBA" if "A" in opened.getbands() or "transparency" in opened.info else "RGB"
        original = opened.convert(mode)

    method = Image.Quantize.FASTOCTREE if mode == "RGBA" else Image.Quantize.MEDIANCUT
    quantized = original.quantize(colors=_palette_size(high), method=method)
    score = _measure_quality(original, quantized)

    buffer = io.BytesIO()
    # A fresh image carries no text chunks, EXIF or ICC profile.
    quantized.save(buffer, format="PNG", optimize=True)
    return CompressedImage(data=buffer.getvalue(), quality=score, accepted=score >= low)


def is_png(path: Path) -> bool:
    return path.suffix.lower() == PNG_SUFFIX


__all__ = ["CompressedImage", "PNG_SUFFIX", "compress_png", "is_png"]
