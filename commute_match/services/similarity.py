"""
Similarity primitives used by the hybrid scorer.

Every function here is total: empty, missing or mismatched input yields 0
instead of an exception.
"""

import math
from typing import Iterable, List, Optional, Sequence

from commute_match.services.commute_time import Segment, segments_duration


def time_overlap_minutes(segments_a: List[Segment], segments_b: List[Segment]) -> int:
    """Minutes shared by two segment lists."""
    overlap = 0
    for start_a, end_a in segments_a:
        for start_b, end_b in segments_b:
            overlap += max(0, min(end_a, end_b) - max(start_a, start_b))
    return overlap


def time_overlap_ratio(segments_a: List[Segment], segments_b: List[Segment]) -> float:
    """
    Overlap divided by the longer of the two total durations, clamped to [0, 1].

    The denominator is at least 1 so two empty windows give 0.
    """
    overlap = time_overlap_minutes(segments_a, segments_b)
    denominator = max(segments_duration(segments_a), segments_duration(segments_b), 1)
    return min(1.0, overlap / denominator)


def _normalized_set(values: Optional[Iterable[str]]) -> set:
    if not values:
        return set()
    return {str(v).strip().lower() for v in values if v is not None and str(v).strip()}


def jaccard_similarity(a: Optional[Iterable[str]], b: Optional[Iterable[str]]) -> float:
    """Case-insensitive Jaccard index; 0 when both sets are empty."""
    set_a = _normalized_set(a)
    set_b = _normalized_set(b)
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)


def normalize_profession(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def profession_match(a: Optional[str], b: Optional[str]) -> int:
    """1 when normalised professions are equal. Two empty professions also match."""
    return 1 if normalize_profession(a) == normalize_profession(b) else 0


def cosine_similarity(vec_a: Optional[Sequence[float]], vec_b: Optional[Sequence[float]]) -> float:
    """Cosine similarity; 0 for empty, mismatched-length or zero-norm vectors."""
    if vec_a is None or vec_b is None:
        return 0.0
    if len(vec_a) == 0 or len(vec_a) != len(vec_b):
        return 0.0

    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(vec_a, vec_b):
        x = float(x)
        y = float(y)
        dot += x * y
        norm_a += x * x
        norm_b += y * y

    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (math.sqrt(norm_a) * math.sqrt(norm_b))
