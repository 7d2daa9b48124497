"""
Shared fixtures: in-memory JPEG/PNG/GIF inputs, with EXIF written by piexif.
"""

from __future__ import annotations

from io import BytesIO
from typing import Any, Dict, Optional, Tuple

import numpy as np
import piexif
import pytest
from PIL import Image

from photoroll.services.config import PipelineConfig


def gradient_image(width: int, height: int) -> Image.Image:
	x = np.linspace(0, 255, width, dtype=np.float32)
	y = np.linspace(0, 255, height, dtype=np.float32)
	r = np.tile(x, (height, 1))
	g = np.tile(y[:, np.newaxis], (1, width))
	b = (r + g) / 2
	arr = np.stack([r, g, b], axis=2).astype(np.uint8)
	return Image.fromarray(arr, mode="RGB")


def noise_image(width: int, height: int, seed: int = 7) -> Image.Image:
	rng = np.random.default_rng(seed)
	arr = rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)
	return Image.fromarray(arr, mode="RGB")


def exif_bytes(
	exif: Optional[Dict[int, Any]] = None,
	zeroth: Optional[Dict[int, Any]] = None,
	gps: Optional[Dict[int, Any]] = None,
) -> bytes:
	return piexif.dump({"0th": zeroth or {}, "Exif": exif or {}, "GPS": gps or {}, "1st": {}, "thumbnail": None})


def jpeg_bytes(img: Image.Image, exif: Optional[bytes] = None, quality: int = 90) -> bytes:
	buf = BytesIO()
	params: Dict[str, Any] = {"quality": quality}
	if exif is not None:
		params["exif"] = exif
	img.save(buf, format="JPEG", **params)
	return buf.getvalue()


def png_bytes(img: Image.Image, exif: Optional[bytes] = None) -> bytes:
	buf = BytesIO()
	if exif is not None:
		img.save(buf, format="PNG", exif=exif)
	else:
		img.save(buf, format="PNG")
	return buf.getvalue()


CAMERA_EXIF = {
	piexif.ExifIFD.ISOSpeedRatings: 100,
	piexif.ExifIFD.FNumber: (10, 1),
	piexif.ExifIFD.ExposureTime: (1, 320),
	piexif.ExifIFD.FocalLength: (50, 1),
}

GPS_EXIF = {
	piexif.GPSIFD.GPSLatitudeRef: b"N",
	piexif.GPSIFD.GPSLatitude: ((52, 1), (30, 1), (0, 1)),
	piexif.GPSIFD.GPSLongitudeRef: b"W",
	piexif.GPSIFD.GPSLongitude: ((13, 1), (24, 1), (36, 1)),
	piexif.GPSIFD.GPSAltitudeRef: 1,
	piexif.GPSIFD.GPSAltitude: (100, 1),
}


@pytest.fixture
def config() -> PipelineConfig:
	return PipelineConfig(max_workers=2)


@pytest.fixture
def camera_jpeg() -> bytes:
	"""300x200 JPEG with camera and GPS tags, orientation 1."""
	exif = exif_bytes(exif=CAMERA_EXIF, zeroth={piexif.ImageIFD.Orientation: 1}, gps=GPS_EXIF)
	return jpeg_bytes(gradient_image(300, 200), exif=exif)


@pytest.fixture
def rotated_jpeg() -> bytes:
	"""300x200 stored pixels that must be rotated 90 degrees clockwise (orientation 6)."""
	exif = exif_bytes(zeroth={piexif.ImageIFD.Orientation: 6})
	return jpeg_bytes(gradient_image(300, 200), exif=exif)


@pytest.fixture
def malformed_jpeg() -> bytes:
	"""Valid JPEG whose FNumber rational has a zero denominator."""
	tags = dict(CAMERA_EXIF)
	tags[piexif.ExifIFD.FNumber] = (10, 0)
	return jpeg_bytes(gradient_image(300, 200), exif=exif_bytes(exif=tags))


@pytest.fixture
def plain_png() -> bytes:
	return png_bytes(gradient_image(800, 600))


@pytest.fixture
def gif_bytes() -> bytes:
	buf = BytesIO()
	Image.new("RGB", (16, 16), (255, 0, 0)).save(buf, format="GIF")
	return buf.getvalue()


def solid(size: Tuple[int, int], color: Tuple[int, int, int]) -> Image.Image:
	return Image.new("RGB", size, color)
