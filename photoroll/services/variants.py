from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from photoroll.services.config import PipelineConfig


@dataclass(frozen=True)
class VariantWidth:
	width: int
	is_original: bool = False


VariantPlan = Tuple[VariantWidth, ...]


def plan_variants(width: int, config: PipelineConfig) -> VariantPlan:
	plan = [VariantWidth(width, is_original=True)]
	ladder = config.variant_width_ladder
	if not ladder or width <= ladder[0]:
		return tuple(plan)
	for w in ladder:
		if len(plan) >= config.max_variants:
			break
		if w < config.min_variant_width:
			break
		if w < plan[-1].width:
			plan.append(VariantWidth(w))
	return tuple(plan)
