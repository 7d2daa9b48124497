from __future__ import annotations

import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Optional

from PIL import Image, UnidentifiedImageError

from photoroll.services.errors import CorruptInput, UnsupportedFormat


logger = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
JPEG_SOI = b"\xff\xd8\xff"

MIME_TYPES = {"jpeg": "image/jpeg", "png": "image/png", "webp": "image/webp"}
EXTENSIONS = {"jpeg": "jpg", "png": "png", "webp": "webp"}

_DECLARED_ALIASES = {
	"jpeg": "jpeg",
	"jpg": "jpeg",
	"image/jpeg": "jpeg",
	"image/jpg": "jpeg",
	"image/pjpeg": "jpeg",
	"png": "png",
	"image/png": "png",
	"image/x-png": "png",
}


@dataclass(frozen=True)
class SourceImage:
	image: Image.Image
	format: str
	exif: Optional[bytes] = None

	@property
	def width(self) -> int:
		return self.image.width

	@property
	def height(self) -> int:
		return self.image.height

	@property
	def mime_type(self) -> str:
		return MIME_TYPES[self.format]


def sniff_format(data: bytes) -> Optional[str]:
	if data.startswith(PNG_SIGNATURE):
		return "png"
	if data.startswith(JPEG_SOI):
		return "jpeg"
	return None


def _describe(data: bytes) -> str:
	# best effort name for the error message only
	try:
		with Image.open(BytesIO(data)) as img:
			return (img.format or "unknown").lower()
	except Exception:
		return "unknown"


def _to_rgb(img: Image.Image) -> Image.Image:
	if img.mode == "RGB":
		return img
	if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
		rgba = img.convert("RGBA")
		flat = Image.new("RGB", rgba.size, (255, 255, 255))
		flat.paste(rgba, mask=rgba.getchannel("A"))
		return flat
	if img.mode.startswith("I;16") or img.mode == "I":
		# 16-bit grayscale PNG: scale down to 8 bits before widening to RGB
		img = img.convert("I").point(lambda v: v * (1 / 256)).convert("L")
	return img.convert("RGB")


def decode(data: bytes, declared_format: Optional[str] = None) -> SourceImage:
	if declared_format is not None and declared_format.lower() not in _DECLARED_ALIASES:
		raise UnsupportedFormat(declared_format)
	fmt = sniff_format(data)
	if fmt is None:
		raise UnsupportedFormat(_describe(data))
	try:
		img = Image.open(BytesIO(data), formats=[fmt.upper()])
		img.load()
	except (UnidentifiedImageError, OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
		raise CorruptInput(f"could not decode {fmt}: {e}") from e
	exif = img.info.get("exif")
	rgb = _to_rgb(img)
	logger.debug("Decoded %s %dx%d (mode %s)", fmt, rgb.width, rgb.height, img.mode)
	return SourceImage(image=rgb, format=fmt, exif=exif)
