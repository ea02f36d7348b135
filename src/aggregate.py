"""
Classification aggregator: analyzed items -> overlapping category snapshot.

Categories:
- duplicate: both ends of a zero-distance pair inside a cluster
- similar:   both ends of a 0 < distance <= threshold pair, minus duplicates
- blur:      items flagged blurry upstream
- screenshot / video: caller-declared tag only
- other:     everything not in the five categories above
- all:       every analyzed item

Pure function of its input; re-running it on the same items yields an equal
snapshot.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, List, Sequence, Set, Tuple

from cluster import cluster_by_phash
from image_phash import hamming
from models import AnalyzedItem, CategorySummary, ClassificationSnapshot


def _summary(items: Sequence[AnalyzedItem], idx: Iterable[int]) -> CategorySummary:
    members = [items[i] for i in sorted(idx)]
    return CategorySummary(
        count=len(members),
        size=sum(it.size for it in members),
        names=tuple(it.name for it in members),
    )


def classify(
    items: Sequence[AnalyzedItem], *, phash_threshold: int
) -> ClassificationSnapshot:
    """Recompute the full snapshot from scratch over `items` (order = index)."""
    if not items:
        return ClassificationSnapshot.empty()

    hashes = [it.phash for it in items]
    clusters = cluster_by_phash(hashes, threshold=phash_threshold)

    duplicate: Set[int] = set()
    similar: Set[int] = set()
    groups: List[List[int]] = []

    for members in clusters:
        if len(members) < 2:
            continue
        for pos, a in enumerate(members):
            for b in members[pos + 1 :]:
                dist = hamming(hashes[a], hashes[b])
                if dist == 0:
                    duplicate.update((a, b))
                elif dist <= phash_threshold:
                    similar.update((a, b))
        groups.append(members)

    similar -= duplicate

    n = len(items)
    blur = {i for i in range(n) if items[i].is_blurry}
    screenshot = {i for i in range(n) if items[i].tag == "screenshot"}
    video = {i for i in range(n) if items[i].tag == "video"}
    tagged = duplicate | similar | blur | screenshot | video
    other = set(range(n)) - tagged

    grouped = list(items)
    for gid, members in enumerate(groups):
        for i in members:
            grouped[i] = replace(grouped[i], group_id=gid)

    group_names: Tuple[Tuple[str, ...], ...] = tuple(
        tuple(items[i].name for i in members) for members in groups
    )

    return ClassificationSnapshot(
        all=_summary(items, range(n)),
        duplicate=_summary(items, duplicate),
        similar=_summary(items, similar),
        blur=_summary(items, blur),
        screenshot=_summary(items, screenshot),
        video=_summary(items, video),
        other=_summary(items, other),
        groups=group_names,
        items=tuple(grouped),
    )
