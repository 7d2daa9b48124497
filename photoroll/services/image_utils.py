from __future__ import annotations

from dataclasses import replace
from typing import Dict, Optional, Tuple

from PIL import Image

from photoroll.services.decoder import SourceImage
from photoroll.services.metadata import MetadataRecord


# EXIF orientation code -> transpose that makes the buffer upright
_ORIENTATION_TRANSPOSE: Dict[int, Image.Transpose] = {
	2: Image.Transpose.FLIP_LEFT_RIGHT,
	3: Image.Transpose.ROTATE_180,
	4: Image.Transpose.FLIP_TOP_BOTTOM,
	5: Image.Transpose.TRANSPOSE,
	6: Image.Transpose.ROTATE_270,
	7: Image.Transpose.TRANSVERSE,
	8: Image.Transpose.ROTATE_90,
}


def apply_exif_orientation(img: Image.Image, orientation: Optional[int]) -> Image.Image:
	op = _ORIENTATION_TRANSPOSE.get(orientation) if orientation is not None else None
	if op is None:
		return img.copy()
	return img.transpose(op)


def normalize_orientation(source: SourceImage, metadata: MetadataRecord) -> Tuple[SourceImage, MetadataRecord]:
	upright = apply_exif_orientation(source.image, metadata.orientation)
	return replace(source, image=upright), replace(metadata, orientation=1)


def resize_to_width(img: Image.Image, width: int) -> Image.Image:
	if width == img.width:
		return img.copy()
	height = max(1, round(img.height * width / img.width))
	return img.resize((width, height), Image.Resampling.LANCZOS)
