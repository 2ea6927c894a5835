"""Deduplication and ranking of candidate products."""

from __future__ import annotations

from functools import cmp_to_key
from typing import Iterable, List, Set, Tuple

from models.product import CandidateProduct

DEFAULT_COMMISSION_TOLERANCE = 0.01


def deduplicate(candidates: Iterable[CandidateProduct]) -> List[CandidateProduct]:
    """Keep the first candidate seen for each normalised ``(brand, name)`` key.

    Later duplicates are dropped even when they are cheaper or pay a higher
    commission.
    """

    seen: Set[Tuple[str, str]] = set()
    unique: List[CandidateProduct] = []
    for candidate in candidates:
        key = candidate.dedup_key
        if key in seen:
            continue
        seen.add(key)
        unique.append(candidate)
    return unique


def compare_candidates(
    left: CandidateProduct, right: CandidateProduct, tolerance: float = DEFAULT_COMMISSION_TOLERANCE
) -> int:
    """Negative when ``left`` ranks first: higher commission, then lower price."""

    commission_diff = right.commission_rate - left.commission_rate
    if abs(commission_diff) > tolerance:
        return 1 if commission_diff > 0 else -1
    if left.price < right.price:
        return -1
    if left.price > right.price:
        return 1
    return 0


def rank(
    candidates: Iterable[CandidateProduct], tolerance: float = DEFAULT_COMMISSION_TOLERANCE
) -> List[CandidateProduct]:
    """Deduplicate then order candidates; equal candidates keep input order."""

    unique = deduplicate(candidates)
    return sorted(unique, key=cmp_to_key(lambda a, b: compare_candidates(a, b, tolerance)))


__all__ = ["DEFAULT_COMMISSION_TOLERANCE", "compare_candidates", "deduplicate", "rank"]
