"""
Near-duplicate clustering over perceptual hashes.

Every unordered pair is compared (exact O(n^2)); pairs within the Hamming
threshold are merged with a disjoint-set, so groups follow transitive
connectivity rather than full pairwise proximity.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

from errors import InvalidArgumentError
from image_phash import hamming


class _DSU:
    def __init__(self, n: int) -> None:
        self.p = list(range(n))
        self.r = [0] * n

    def find(self, x: int) -> int:
        while self.p[x] != x:
            self.p[x] = self.p[self.p[x]]
            x = self.p[x]
        return x

    def union(self, a: int, b: int) -> None:
        ra, rb = self.find(a), self.find(b)
        if ra == rb:
            return
        if self.r[ra] < self.r[rb]:
            ra, rb = rb, ra
        self.p[rb] = ra
        if self.r[ra] == self.r[rb]:
            self.r[ra] += 1


def cluster_by_phash(hashes: Sequence[int], threshold: int = 10) -> List[List[int]]:
    """
    Group hash indices whose Hamming distance chains stay within `threshold`.

    Returns every group (singletons included), members ascending, groups
    ordered by their smallest member.

    Raises:
        InvalidArgumentError: if threshold is negative.
    """
    if threshold < 0:
        raise InvalidArgumentError(f"threshold must be >= 0, got {threshold}")
    n = len(hashes)
    if n == 0:
        return []

    dsu = _DSU(n)
    for i in range(n):
        for j in range(i + 1, n):
            if hamming(hashes[i], hashes[j]) <= threshold:
                dsu.union(i, j)

    by_root: Dict[int, List[int]] = {}
    for idx in range(n):
        by_root.setdefault(dsu.find(idx), []).append(idx)

    # indices were appended in ascending order, so each group is already sorted
    return sorted(by_root.values(), key=lambda grp: grp[0])


def similar_groups(hashes: Sequence[int], threshold: int = 10) -> List[List[int]]:
    """Only the groups with at least two members."""
    return [grp for grp in cluster_by_phash(hashes, threshold) if len(grp) >= 2]
