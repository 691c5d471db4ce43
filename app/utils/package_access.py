"""Package-tier gating for chapter materials.

Secure content and progress both go through ``materials_visible_to`` so that
what a learner can open and what counts towards progress never disagree.
"""
from typing import Iterable, List, Optional

from app.core.constants import PACKAGE_TIER_RANK, PackageTierEnum


def tier_rank(tier: Optional[str]) -> int:
    """Rank of a tier; missing or unknown tiers rank as basic."""
    if tier is None:
        return PACKAGE_TIER_RANK[PackageTierEnum.BASIC]
    return PACKAGE_TIER_RANK.get(tier, PACKAGE_TIER_RANK[PackageTierEnum.BASIC])


def is_material_visible(material, package_tier: Optional[str]) -> bool:
    return tier_rank(package_tier) >= tier_rank(material.min_package_tier)


def materials_visible_to(materials: Iterable, package_tier: Optional[str]) -> List:
    return [m for m in materials if is_material_visible(m, package_tier)]
