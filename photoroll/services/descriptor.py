from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from photoroll.services.decoder import MIME_TYPES, SourceImage
from photoroll.services.metadata import MetadataRecord
from photoroll.services.naming import Namer, extension_for
from photoroll.services.orchestrator import EncodedVariant
from photoroll.services.palette import ColorAnalysis


class PaletteColor(BaseModel):
	r: int = Field(ge=0, le=255)
	g: int = Field(ge=0, le=255)
	b: int = Field(ge=0, le=255)


class Geo(BaseModel):
	latitude: float
	longitude: float
	altitude: float = 0.0


class SrcsetEntry(BaseModel):
	src: str
	width: int


class SourceGroup(BaseModel):
	type: str
	original: bool = False
	srcset: List[SrcsetEntry] = Field(default_factory=list)


class ImageDescriptor(BaseModel):
	width: int
	height: int
	aperture: Optional[float] = None
	focal_length: Optional[float] = None
	iso: Optional[int] = None
	# exact exposure time as [numerator, denominator]
	shutter_speed: Optional[Tuple[int, int]] = None
	geo: Optional[Geo] = None
	palette: List[PaletteColor] = Field(default_factory=list)
	tiny_preview: Optional[str] = None
	source: List[SourceGroup] = Field(default_factory=list)

	def to_json(self, **kwargs) -> str:
		return self.model_dump_json(**kwargs)

	@classmethod
	def from_json(cls, data: str) -> "ImageDescriptor":
		return cls.model_validate_json(data)


def assemble_descriptor(
	source: SourceImage,
	metadata: MetadataRecord,
	colors: ColorAnalysis,
	groups: Dict[str, List[EncodedVariant]],
	hash_prefix: str,
	name: str,
	namer: Namer,
) -> ImageDescriptor:
	shutter = metadata.shutter_speed
	geo = metadata.geo
	return ImageDescriptor(
		width=source.width,
		height=source.height,
		aperture=metadata.aperture,
		focal_length=metadata.focal_length,
		iso=metadata.iso,
		shutter_speed=None if shutter is None else (shutter.numerator, shutter.denominator),
		geo=None if geo is None else Geo(latitude=geo.latitude, longitude=geo.longitude, altitude=geo.altitude),
		palette=[PaletteColor(r=c.r, g=c.g, b=c.b) for c in colors.palette],
		tiny_preview=colors.tiny_preview,
		source=[
			SourceGroup(
				type=MIME_TYPES[fmt],
				original=fmt == source.format,
				srcset=[
					SrcsetEntry(src=namer(hash_prefix, name, v.width, extension_for(fmt)), width=v.width)
					for v in variants
				],
			)
			for fmt, variants in groups.items()
		],
	)
