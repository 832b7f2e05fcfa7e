"""Byte-level distinction score between two rendered snapshots."""

from __future__ import annotations

from dataclasses import dataclass


def difference_score(first: bytes, second: bytes) -> int:
    """Return how strongly two snapshot buffers differ.

    Buffers of different lengths score the absolute length difference without
    any byte comparison. Equal-length buffers score the number of positions
    whose bytes differ.
    """
    if len(first) != len(second):
        return abs(len(first) - len(second))
    return sum(1 for left, right in zip(first, second) if left != right)


@dataclass(frozen=True, slots=True)
class DifferenceScorer:
    """Score snapshot pairs and decide whether they are visually distinct."""

    pixel_threshold: int = 50

    def __post_init__(self) -> None:
        if self.pixel_threshold < 0:
            raise ValueError("pixel_threshold must be non-negative")

    def score(self, first: bytes, second: bytes) -> int:
        return difference_score(first, second)

    def is_distinct(self, score: int) -> bool:
        return score > self.pixel_threshold


__all__ = ["DifferenceScorer", "difference_score"]
