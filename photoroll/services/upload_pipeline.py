from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from photoroll.services.config import PipelineConfig
from photoroll.services.decoder import MIME_TYPES, decode
from photoroll.services.descriptor import ImageDescriptor, assemble_descriptor
from photoroll.services.encoders import formats_for
from photoroll.services.image_utils import normalize_orientation
from photoroll.services.metadata import extract_metadata
from photoroll.services.naming import Namer, content_hash, extension_for, object_name
from photoroll.services.orchestrator import encode_variants
from photoroll.services.palette import analyze_colors
from photoroll.services.variants import plan_variants


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutputFile:
	name: str
	content_type: str
	data: bytes


@dataclass(frozen=True)
class PipelineResult:
	descriptor: ImageDescriptor
	files: List[OutputFile] = field(default_factory=list)


def run_pipeline(
	data: bytes,
	name: str,
	config: Optional[PipelineConfig] = None,
	namer: Namer = object_name,
	declared_format: Optional[str] = None,
) -> PipelineResult:
	"""
	Turn one uploaded photo into a descriptor plus the encoded variant files.

	Files are keyed by object_name(); namer only decides what the descriptor's srcset
	entries point at. Any UnsupportedFormat, CorruptInput or EncodeError propagates and
	no result is produced.
	"""
	config = config or PipelineConfig()

	# 1) Decode and read metadata (independent of each other)
	source = decode(data, declared_format)
	metadata = extract_metadata(data)
	logger.info("Processing %s: %s %dx%d", name, source.format, source.width, source.height)
	if metadata.width is not None and (metadata.width, metadata.height) != (source.width, source.height):
		# decoder dimensions win
		logger.warning("Header says %sx%s, decoded %dx%d", metadata.width, metadata.height, source.width, source.height)

	# 2) Upright the pixels
	source, metadata = normalize_orientation(source, metadata)

	# 3) Plan widths and derive palette/preview from the upright buffer
	plan = plan_variants(source.width, config)
	logger.info("Variant plan: %s", [v.width for v in plan])
	colors = analyze_colors(source.image, config)
	hash_prefix = content_hash(data, config.hash_prefix_bytes)

	# 4) Fan out the encodes; the only concurrent step
	formats = formats_for(source.format)
	groups = encode_variants(source.image, plan, formats, config)

	# 5) Assemble
	descriptor = assemble_descriptor(source, metadata, colors, groups, hash_prefix, name, namer)
	files = [
		OutputFile(
			name=object_name(hash_prefix, name, v.width, extension_for(fmt)),
			content_type=MIME_TYPES[fmt],
			data=v.data,
		)
		for fmt, variants in groups.items()
		for v in variants
	]
	logger.info("Finished %s: %d files, %d bytes", name, len(files), sum(len(f.data) for f in files))
	return PipelineResult(descriptor=descriptor, files=files)
