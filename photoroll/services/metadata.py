from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from fractions import Fraction
from io import BytesIO
from typing import Any, Callable, Dict, Optional, TypeVar

import piexif
from PIL import Image

from photoroll.services.errors import MetadataExtractionWarning


logger = logging.getLogger(__name__)

T = TypeVar("T")

# APEX shutter values are logarithmic; clamp the derived exposure to sane camera denominators
APEX_MAX_DENOMINATOR = 8000


@dataclass(frozen=True)
class GeoLocation:
	latitude: float
	longitude: float
	altitude: float = 0.0


@dataclass(frozen=True)
class MetadataRecord:
	width: Optional[int] = None
	height: Optional[int] = None
	aperture: Optional[float] = None
	focal_length: Optional[float] = None
	iso: Optional[int] = None
	shutter_speed: Optional[Fraction] = None
	geo: Optional[GeoLocation] = None
	orientation: Optional[int] = None


def _rational(x: Any) -> Fraction:
	if isinstance(x, tuple) and len(x) == 2:
		num, den = x
		if not den:
			raise ValueError(f"zero denominator in {x!r}")
		return Fraction(int(num), int(den))
	if isinstance(x, int) and not isinstance(x, bool):
		return Fraction(x)
	raise TypeError(f"not a rational: {x!r}")


def _rational_to_float(x: Any) -> float:
	return float(_rational(x))


def _apex_to_time(apex: Any) -> Fraction:
	# ShutterSpeedValue is a signed rational: Tv = -log2(t)
	seconds = 2.0 ** (-float(_rational(apex)))
	return Fraction(seconds).limit_denominator(APEX_MAX_DENOMINATOR)


def _to_int(v: Any) -> int:
	if isinstance(v, (list, tuple)):
		if not v:
			raise ValueError("empty sequence")
		v = v[0]
	if isinstance(v, bytes):
		v = v.decode("ascii").strip()
	return int(v)


def _ref(v: Any) -> str:
	if isinstance(v, bytes):
		v = v.decode("ascii", errors="ignore")
	return str(v).strip("\x00 ").upper()


def _dms_to_degrees(dms: Any, ref: Any, negative: str) -> float:
	if not isinstance(dms, tuple) or len(dms) != 3:
		raise TypeError(f"not a degree/minute/second triple: {dms!r}")
	d, m, s = (_rational(part) for part in dms)
	value = float(d + m / 60 + s / 3600)
	return -value if _ref(ref) == negative else value


def _altitude(gps: Dict[int, Any]) -> Optional[float]:
	alt = gps.get(piexif.GPSIFD.GPSAltitude)
	if alt is None:
		return None
	altitude = _rational_to_float(alt)
	# ref 1 means below sea level
	if _to_int(gps.get(piexif.GPSIFD.GPSAltitudeRef, 0)) == 1:
		altitude = -altitude
	return altitude


def _geo(gps: Dict[int, Any]) -> Optional[GeoLocation]:
	lat = gps.get(piexif.GPSIFD.GPSLatitude)
	lon = gps.get(piexif.GPSIFD.GPSLongitude)
	if lat is None or lon is None:
		return None
	latitude = _dms_to_degrees(lat, gps.get(piexif.GPSIFD.GPSLatitudeRef, b"N"), "S")
	longitude = _dms_to_degrees(lon, gps.get(piexif.GPSIFD.GPSLongitudeRef, b"E"), "W")
	altitude = _tag("GPSAltitude", lambda: _altitude(gps))
	return GeoLocation(latitude=latitude, longitude=longitude, altitude=altitude or 0.0)


def _shutter_speed(exif: Dict[int, Any]) -> Optional[Fraction]:
	exposure = exif.get(piexif.ExifIFD.ExposureTime)
	speed = None if exposure is None else _tag("ExposureTime", lambda: _rational(exposure))
	if speed is not None:
		return speed
	apex = exif.get(piexif.ExifIFD.ShutterSpeedValue)
	if apex is None:
		return None
	return _tag("ShutterSpeedValue", lambda: _apex_to_time(apex))


def _orientation(zeroth: Dict[int, Any]) -> Optional[int]:
	raw = zeroth.get(piexif.ImageIFD.Orientation)
	if raw is None:
		return None
	o = _to_int(raw)
	if not 1 <= o <= 8:
		raise ValueError(f"orientation out of range: {o}")
	return o


def _tag(name: str, parse: Callable[[], Optional[T]]) -> Optional[T]:
	try:
		return parse()
	except (TypeError, ValueError, ArithmeticError, UnicodeDecodeError, OverflowError) as e:
		msg = f"skipping malformed EXIF tag {name}: {e}"
		logger.warning(msg)
		warnings.warn(msg, MetadataExtractionWarning, stacklevel=2)
		return None


def _exif_block(data: bytes) -> Optional[Any]:
	if data[:2] == b"\xff\xd8":
		return data
	try:
		with Image.open(BytesIO(data)) as img:
			return img.info.get("exif")
	except Exception as e:
		logger.debug("No readable container header: %s", e)
		return None


def _dimensions(data: bytes) -> tuple:
	try:
		with Image.open(BytesIO(data)) as img:
			return img.size
	except Exception:
		return (None, None)


def extract_metadata(data: bytes) -> MetadataRecord:
	width, height = _dimensions(data)
	block = _exif_block(data)
	if not block:
		return MetadataRecord(width=width, height=height)
	try:
		ex = piexif.load(block)
	except Exception as e:
		msg = f"unreadable EXIF block: {e}"
		logger.warning(msg)
		warnings.warn(msg, MetadataExtractionWarning, stacklevel=2)
		return MetadataRecord(width=width, height=height)

	exif = ex.get("Exif") or {}
	zeroth = ex.get("0th") or {}
	gps = ex.get("GPS") or {}

	def _optional_float(tag: int) -> Optional[float]:
		v = exif.get(tag)
		return None if v is None else _rational_to_float(v)

	def _iso() -> Optional[int]:
		v = exif.get(piexif.ExifIFD.ISOSpeedRatings)
		return None if v is None else _to_int(v)

	return MetadataRecord(
		width=width,
		height=height,
		aperture=_tag("FNumber", lambda: _optional_float(piexif.ExifIFD.FNumber)),
		focal_length=_tag("FocalLength", lambda: _optional_float(piexif.ExifIFD.FocalLength)),
		iso=_tag("ISOSpeedRatings", _iso),
		shutter_speed=_shutter_speed(exif),
		geo=_tag("GPSInfo", lambda: _geo(gps)),
		orientation=_tag("Orientation", lambda: _orientation(zeroth)),
	)
