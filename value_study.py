#!/usr/bin/env python3
"""Value study pipeline: grayscale extraction, tone LUT, LUT application."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)

VALUE_PRESETS = (3, 5, 9)
DEFAULT_LEVELS = 5
CONTRAST_RANGE = (-100, 100)
LUMA_WEIGHTS = (0.299, 0.587, 0.114)  # ITU-R BT.601
DEFAULT_EXPORT_NAME = "value-study.png"
ICON_SIZE = 64


def round_half_up(x):
    """Round to nearest integer, .5 going up (np.rint would round to even)."""
    return np.floor(np.asarray(x, dtype=np.float64) + 0.5)


def contrast_factor(contrast: float) -> float:
    # 259 - contrast stays positive over the whole [-100, 100] range
    return (259 * (contrast + 255)) / (255 * (259 - contrast))


def apply_contrast(value, contrast: float):
    """Scale distance from mid-gray and clamp to 0-255."""
    result = contrast_factor(contrast) * (np.asarray(value, dtype=np.float64) - 128) + 128
    return np.clip(result, 0, 255)


def quantization_step(levels: int) -> float:
    if levels < 2:
        raise ValueError(f"levels must be >= 2, got {levels}")
    return 255 / (levels - 1)


def quantize(value, levels: int):
    """Snap 0-255 values onto `levels` evenly spaced tones (0 and 255 included)."""
    step = quantization_step(levels)
    tones = round_half_up(round_half_up(np.asarray(value, dtype=np.float64) / step) * step)
    return np.clip(tones, 0, 255)


@dataclass(frozen=True)
class StudyParams:
    """Snapshot of the two user controls."""
    levels: int = DEFAULT_LEVELS
    contrast: int = 0

    def validate(self, strict: bool = True) -> "StudyParams":
        if strict and self.levels not in VALUE_PRESETS:
            raise ValueError(f"levels must be one of {VALUE_PRESETS}, got {self.levels}")
        if self.levels < 2:
            raise ValueError(f"levels must be >= 2, got {self.levels}")
        lo, hi = CONTRAST_RANGE
        if not lo <= self.contrast <= hi:
            raise ValueError(f"contrast must be in [{lo}, {hi}], got {self.contrast}")
        return self


def _rgba_array(rgba, width: int, height: int) -> np.ndarray:
    """View any RGBA buffer (flat bytes, list or HxWx4 array) as uint8 (H, W, 4)."""
    if isinstance(rgba, (bytes, bytearray, memoryview)):
        arr = np.frombuffer(rgba, dtype=np.uint8)
    else:
        arr = np.asarray(rgba, dtype=np.uint8)
    if arr.size != width * height * 4:
        raise ValueError(
            f"RGBA buffer has {arr.size} samples, expected {width}x{height}x4 = {width * height * 4}"
        )
    return arr.reshape(height, width, 4)


def _plane(buf, width: int, height: int, name: str) -> np.ndarray:
    arr = np.asarray(buf, dtype=np.uint8)
    if arr.size != width * height:
        raise ValueError(f"{name} buffer has {arr.size} samples, expected {width}x{height}")
    return arr.reshape(height, width)


def extract_grayscale(rgba, width: int, height: int) -> np.ndarray:
    """BT.601 luma of each pixel as uint8 (H, W). Alpha is ignored."""
    arr = _rgba_array(rgba, width, height)
    rgb = arr.astype(np.float64)
    wr, wg, wb = LUMA_WEIGHTS
    # left-to-right sum, matches the scalar formula on .5 ties
    luma = wr * rgb[:, :, 0] + wg * rgb[:, :, 1] + wb * rgb[:, :, 2]
    return np.clip(round_half_up(luma), 0, 255).astype(np.uint8)


def extract_alpha(rgba, width: int, height: int) -> np.ndarray:
    """Copy of the alpha channel, taken before any transform touches the pixels."""
    return _rgba_array(rgba, width, height)[:, :, 3].copy()


def build_lut(levels: int, contrast: int = 0) -> np.ndarray:
    """
    Map every input gray value 0-255 to its final quantized tone.

    contrast == 0 keeps the input values as-is before quantizing, so an
    untouched slider never goes through the float contrast curve.
    """
    values = np.arange(256, dtype=np.float64)
    if contrast != 0:
        values = apply_contrast(values, contrast)
    lut = quantize(values, levels).astype(np.uint8)
    logger.debug("Built LUT levels=%d contrast=%d tones=%s", levels, contrast, np.unique(lut).tolist())
    return lut


def _check_lut(lut) -> np.ndarray:
    lut = np.asarray(lut, dtype=np.uint8)
    if lut.shape != (256,):
        raise ValueError(f"LUT must have 256 entries, got shape {lut.shape}")
    return lut


def apply_opaque(gray, lut, width: int, height: int) -> np.ndarray:
    """Look up every gray sample; RGB = tone, alpha = 255. Returns uint8 (H, W, 4)."""
    tones = _check_lut(lut)[_plane(gray, width, height, "grayscale")]
    out = np.empty((height, width, 4), dtype=np.uint8)
    out[:, :, :3] = tones[:, :, None]
    out[:, :, 3] = 255
    return out


def apply_preserving_alpha(gray, lut, alpha, width: int, height: int) -> np.ndarray:
    """Same as apply_opaque but alpha comes from a separately captured plane."""
    out = apply_opaque(gray, lut, width, height)
    out[:, :, 3] = _plane(alpha, width, height, "alpha")
    return out


apply_lut = apply_opaque


def create_value_study(rgba, width: int, height: int, params: StudyParams = StudyParams()) -> np.ndarray:
    """One-shot conversion of an RGBA buffer, keeping its transparency."""
    alpha = extract_alpha(rgba, width, height)
    gray = extract_grayscale(rgba, width, height)
    lut = build_lut(params.levels, params.contrast)
    return apply_preserving_alpha(gray, lut, alpha, width, height)


def rgba_from_image(img: Image.Image) -> tuple[np.ndarray, int, int]:
    """Decoded Pillow image -> (uint8 (H, W, 4), width, height)."""
    arr = np.array(img.convert("RGBA"))
    return arr, img.width, img.height


def image_from_rgba(arr: np.ndarray) -> Image.Image:
    return Image.fromarray(np.ascontiguousarray(arr, dtype=np.uint8))  # (H, W, 4) uint8 -> RGBA


def study_filename(stem: str | None, params: StudyParams) -> str:
    if not stem:
        return DEFAULT_EXPORT_NAME
    suffix = f"_values{params.levels}"
    if params.contrast:
        suffix += f"_c{params.contrast}"
    return f"{stem}{suffix}.png"


@dataclass(frozen=True)
class ValueStudySession:
    """
    Per-image cache: grayscale and alpha planes are computed once on load and
    reused for every parameter change. Load a new image -> build a new session.
    """
    gray: np.ndarray
    alpha: np.ndarray
    width: int
    height: int

    @classmethod
    def from_rgba(cls, rgba, width: int, height: int) -> "ValueStudySession":
        gray = extract_grayscale(rgba, width, height)
        alpha = extract_alpha(rgba, width, height)
        gray.flags.writeable = False
        alpha.flags.writeable = False
        logger.debug("Loaded %dx%d image into session", width, height)
        return cls(gray=gray, alpha=alpha, width=width, height=height)

    @classmethod
    def from_pil(cls, img: Image.Image) -> "ValueStudySession":
        return cls.from_rgba(*rgba_from_image(img))

    @classmethod
    def thumbnail(cls, img: Image.Image, size: int = ICON_SIZE) -> "ValueStudySession":
        """Session for a small RGBA copy of `img`, e.g. the window icon."""
        icon = img.convert("RGBA")
        icon.thumbnail((size, size), Image.Resampling.LANCZOS)
        return cls.from_pil(icon)

    def render(self, params: StudyParams, preserve_alpha: bool = False) -> np.ndarray:
        lut = build_lut(params.levels, params.contrast)
        if preserve_alpha:
            return apply_preserving_alpha(self.gray, lut, self.alpha, self.width, self.height)
        return apply_opaque(self.gray, lut, self.width, self.height)

    def render_image(self, params: StudyParams, preserve_alpha: bool = False) -> Image.Image:
        return image_from_rgba(self.render(params, preserve_alpha))
