from __future__ import annotations

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PipelineConfig(BaseModel):
	model_config = ConfigDict(frozen=True)

	palette_size: int = Field(10, ge=1, le=64)
	palette_sample_step: int = Field(10, ge=1)
	palette_bucket_bits: int = Field(4, ge=1, le=8)
	tiny_preview_max_dimension: int = Field(48, ge=1, le=256)
	tiny_preview_quality: int = Field(20, ge=1, le=100)
	tiny_preview_max_bytes: int = Field(4096, ge=64)
	png_max_colors: int = Field(256, ge=2, le=256)
	jpeg_quality: int = Field(82, ge=1, le=100)
	webp_quality: int = Field(75, ge=1, le=100)
	variant_width_ladder: Tuple[int, ...] = (2000, 1000)
	min_variant_width: int = Field(200, ge=1)
	max_variants: int = Field(3, ge=1, le=3)
	hash_prefix_bytes: int = Field(6, ge=2, le=32)
	max_workers: Optional[int] = Field(None, ge=1)

	@field_validator("variant_width_ladder")
	@classmethod
	def _ladder_descending(cls, v: Tuple[int, ...]) -> Tuple[int, ...]:
		if any(w <= 0 for w in v):
			raise ValueError("ladder widths must be positive")
		if any(a <= b for a, b in zip(v, v[1:])):
			raise ValueError("ladder widths must be strictly descending")
		return v


class Settings(BaseSettings):
	model_config = SettingsConfigDict(
		env_file=".env",
		env_file_encoding="utf-8",
		env_prefix="PHOTOROLL_",
		case_sensitive=False,
		extra="ignore",
	)

	log_level: str = "INFO"
	# S3 user metadata key carrying the callback URL; objects without it are ignored
	callback_marker_key: str = "imgroll-cb"
	# replaces the bucket host in generated URLs, e.g. a CDN domain
	public_host: Optional[str] = None
	callback_timeout: float = 30.0
	max_workers: Optional[int] = None

	def pipeline_config(self, **overrides) -> PipelineConfig:
		if self.max_workers is not None:
			overrides.setdefault("max_workers", self.max_workers)
		return PipelineConfig(**overrides)
