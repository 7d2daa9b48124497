from __future__ import annotations

from io import BytesIO
from typing import Dict, Protocol, Tuple

from PIL import Image

from photoroll.services.config import PipelineConfig
from photoroll.services.errors import EncodeError


class Encoder(Protocol):
	format: str

	def encode(self, img: Image.Image, config: PipelineConfig) -> bytes:
		...


def _save(img: Image.Image, format_name: str, **params) -> bytes:
	buf = BytesIO()
	try:
		img.save(buf, format=format_name, **params)
	except (OSError, ValueError, KeyError) as e:
		raise EncodeError(format_name.lower(), str(e) or type(e).__name__) from e
	data = buf.getvalue()
	if not data:
		raise EncodeError(format_name.lower(), "codec produced no output")
	return data


class PngEncoder:
	format = "png"

	def encode(self, img: Image.Image, config: PipelineConfig) -> bytes:
		try:
			palette = img.quantize(colors=config.png_max_colors, method=Image.Quantize.MEDIANCUT)
			quantized = img.quantize(palette=palette, dither=Image.Dither.FLOYDSTEINBERG)
		except (OSError, ValueError) as e:
			raise EncodeError(self.format, str(e)) from e
		return _save(quantized, "PNG", optimize=True, compress_level=9)


class JpegEncoder:
	format = "jpeg"

	def encode(self, img: Image.Image, config: PipelineConfig) -> bytes:
		return _save(
			img,
			"JPEG",
			quality=config.jpeg_quality,
			progressive=True,
			optimize=True,
			subsampling="4:2:0",
		)


class WebpEncoder:
	format = "webp"

	def encode(self, img: Image.Image, config: PipelineConfig) -> bytes:
		return _save(img, "WEBP", quality=config.webp_quality, method=6)


ENCODERS: Dict[str, Encoder] = {
	"png": PngEncoder(),
	"jpeg": JpegEncoder(),
	"webp": WebpEncoder(),
}

# source codec -> output formats, the source's own codec first
OUTPUT_FORMATS: Dict[str, Tuple[str, ...]] = {
	"jpeg": ("jpeg", "webp"),
	"png": ("png",),
}


def formats_for(source_format: str) -> Tuple[str, ...]:
	return OUTPUT_FORMATS[source_format]
