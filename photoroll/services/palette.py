from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import List, NamedTuple, Optional

import numpy as np
from PIL import Image

from photoroll.services.config import PipelineConfig
from photoroll.services.encoders import ENCODERS
from photoroll.services.errors import PreviewTooLarge


logger = logging.getLogger(__name__)

TINY_PREVIEW_PREFIX = "data:image/webp;base64,"


class PaletteEntry(NamedTuple):
	r: int
	g: int
	b: int


@dataclass(frozen=True)
class ColorAnalysis:
	palette: List[PaletteEntry]
	tiny_preview: Optional[str]


def _sample(img: Image.Image, step: int, wanted: int) -> np.ndarray:
	pixels = np.asarray(img.convert("RGB"), dtype=np.uint8).reshape(-1, 3)
	# small images are read in full so every color gets a chance
	if len(pixels) < step * wanted:
		return pixels
	return pixels[::step]


def dominant_palette(img: Image.Image, config: PipelineConfig) -> List[PaletteEntry]:
	"""
	Bucket sampled pixels by their top bits per channel and return the mean color of the
	most populated buckets. Equal counts keep the bucket that was seen first. Always returns
	exactly config.palette_size entries, cycling when there are fewer buckets.
	"""
	n = config.palette_size
	samples = _sample(img, config.palette_sample_step, n)
	bits = config.palette_bucket_bits
	q = (samples >> (8 - bits)).astype(np.int64)
	keys = (q[:, 0] << (2 * bits)) | (q[:, 1] << bits) | q[:, 2]
	_, first_index, inverse, counts = np.unique(keys, return_index=True, return_inverse=True, return_counts=True)
	inverse = inverse.reshape(-1)
	sums = np.stack([np.bincount(inverse, weights=samples[:, c], minlength=len(counts)) for c in range(3)], axis=1)
	means = np.clip(np.rint(sums / counts[:, np.newaxis]), 0, 255).astype(np.int64)
	order = np.lexsort((first_index, -counts))
	ranked = [PaletteEntry(*(int(v) for v in means[i])) for i in order[:n]]
	return [ranked[i % len(ranked)] for i in range(n)]


def make_tiny_preview(img: Image.Image, config: PipelineConfig) -> str:
	thumb = img.copy()
	size = config.tiny_preview_max_dimension
	thumb.thumbnail((size, size), Image.Resampling.LANCZOS)
	preview_config = config.model_copy(update={"webp_quality": config.tiny_preview_quality})
	data = ENCODERS["webp"].encode(thumb, preview_config)
	if len(data) > config.tiny_preview_max_bytes:
		raise PreviewTooLarge(len(data), config.tiny_preview_max_bytes)
	return TINY_PREVIEW_PREFIX + base64.b64encode(data).decode("ascii")


def analyze_colors(img: Image.Image, config: PipelineConfig) -> ColorAnalysis:
	palette = dominant_palette(img, config)
	try:
		preview: Optional[str] = make_tiny_preview(img, config)
	except PreviewTooLarge as e:
		logger.warning("Omitting tiny preview: %s", e)
		preview = None
	return ColorAnalysis(palette=palette, tiny_preview=preview)
