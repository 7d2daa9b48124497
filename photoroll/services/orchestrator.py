from __future__ import annotations

import logging
import os
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

from PIL import Image

from photoroll.services.config import PipelineConfig
from photoroll.services.encoders import ENCODERS, Encoder
from photoroll.services.image_utils import resize_to_width
from photoroll.services.variants import VariantPlan, VariantWidth


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EncodeJob:
	format: str
	variant: VariantWidth


@dataclass(frozen=True)
class EncodedVariant:
	format: str
	width: int
	height: int
	data: bytes
	is_original: bool = False

	@property
	def size(self) -> int:
		return len(self.data)


def build_jobs(plan: VariantPlan, formats: Sequence[str]) -> List[EncodeJob]:
	return [EncodeJob(fmt, variant) for fmt in formats for variant in plan]


def worker_count(config: PipelineConfig, jobs: int) -> int:
	limit = config.max_workers or os.cpu_count() or 1
	return max(1, min(limit, jobs))


def run_job(job: EncodeJob, img: Image.Image, config: PipelineConfig, encoders: Mapping[str, Encoder]) -> EncodedVariant:
	# each job resizes its own copy; the source is only read
	resized = resize_to_width(img, job.variant.width)
	data = encoders[job.format].encode(resized, config)
	logger.debug("Encoded %s at %dpx: %d bytes", job.format, resized.width, len(data))
	return EncodedVariant(
		format=job.format,
		width=resized.width,
		height=resized.height,
		data=data,
		is_original=job.variant.is_original,
	)


def group_by_format(results: Sequence[EncodedVariant], formats: Sequence[str]) -> Dict[str, List[EncodedVariant]]:
	groups: Dict[str, List[EncodedVariant]] = {fmt: [] for fmt in formats}
	for r in results:
		groups[r.format].append(r)
	for variants in groups.values():
		variants.sort(key=lambda v: v.width, reverse=True)
	return groups


def encode_variants(
	img: Image.Image,
	plan: VariantPlan,
	formats: Sequence[str],
	config: PipelineConfig,
	encoders: Optional[Mapping[str, Encoder]] = None,
) -> Dict[str, List[EncodedVariant]]:
	"""
	Encode every (format, width) pair on a bounded thread pool.

	Results are placed by job index and regrouped per format, widest first, so the output
	does not depend on completion order. The first failing job cancels whatever has not
	started yet and its exception propagates; nothing partial is returned.
	"""
	encoders = ENCODERS if encoders is None else encoders
	jobs = build_jobs(plan, formats)
	if not jobs:
		return {fmt: [] for fmt in formats}
	workers = worker_count(config, len(jobs))
	logger.info("Encoding %d variants with %d workers", len(jobs), workers)

	results: List[Optional[EncodedVariant]] = [None] * len(jobs)
	with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="photoroll-encode") as executor:
		futures: Dict[Future, int] = {
			executor.submit(run_job, job, img, config, encoders): i for i, job in enumerate(jobs)
		}
		try:
			for future in as_completed(futures):
				results[futures[future]] = future.result()
		except BaseException:
			for f in futures:
				f.cancel()
			raise

	return group_by_format([r for r in results if r is not None], formats)
