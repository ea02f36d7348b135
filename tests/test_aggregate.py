from __future__ import annotations

import random
from typing import List, Optional

from aggregate import classify
from models import CATEGORY_KEYS, AnalyzedItem, MediaTag


def _items(
    hashes: List[int],
    *,
    blurry: Optional[List[bool]] = None,
    tags: Optional[List[MediaTag]] = None,
) -> List[AnalyzedItem]:
    out = []
    for i, h in enumerate(hashes):
        out.append(
            AnalyzedItem(
                name=f"img{i}",
                phash=h,
                variance=1000.0,
                is_blurry=blurry[i] if blurry else False,
                index=i,
                tag=tags[i] if tags else "image",
                size=100 + i,
            )
        )
    return out


def test_empty_input_gives_empty_categories() -> None:
    snap = classify([], phash_threshold=10)
    payload = snap.to_dict()
    assert list(payload) == list(CATEGORY_KEYS)
    for key in CATEGORY_KEYS:
        assert payload[key] == {"count": 0, "size": 0, "list": []}


def test_duplicates_are_removed_from_similar() -> None:
    # img0 == img1, img2 one bit away from both, img3 far away
    snap = classify(_items([0b0, 0b0, 0b1, 0xFFFF_0000]), phash_threshold=2)
    assert snap.duplicate.names == ("img0", "img1")
    assert snap.similar.names == ("img2",)
    assert snap.other.names == ("img3",)
    assert snap.all.count == 4
    assert snap.all.size == 100 + 101 + 102 + 103
    assert snap.duplicate.size == 201


def test_chained_members_each_tagged_by_their_own_pairs() -> None:
    # 0b00 - 0b01 - 0b11 chain with threshold 1: the ends are 2 apart but each
    # is within the threshold of the middle, so all three are tagged similar
    snap = classify(_items([0b00, 0b01, 0b11]), phash_threshold=1)
    assert snap.groups == (("img0", "img1", "img2"),)
    assert snap.similar.names == ("img0", "img1", "img2")
    assert snap.duplicate.count == 0


def test_blur_and_declared_tags() -> None:
    items = _items(
        [0x0, 0xF0F0, 0xFF00FF, 0x0F0F0F0F],
        blurry=[False, True, False, False],
        tags=["image", "image", "screenshot", "video"],
    )
    snap = classify(items, phash_threshold=0)
    assert snap.blur.names == ("img1",)
    assert snap.screenshot.names == ("img2",)
    assert snap.video.names == ("img3",)
    assert snap.other.names == ("img0",)
    assert snap.groups == ()


def test_categories_overlap_but_other_is_complement() -> None:
    items = _items([0x0, 0x0, 0xFFFF], blurry=[True, False, False], tags=["image", "video", "image"])
    snap = classify(items, phash_threshold=3)
    assert snap.duplicate.names == ("img0", "img1")
    assert snap.blur.names == ("img0",)
    assert snap.video.names == ("img1",)
    assert snap.other.names == ("img2",)


def test_lists_follow_accumulation_order() -> None:
    items = _items([0x5, 0xFFFF_FFFF, 0x5, 0x5])
    items = [
        AnalyzedItem(name=n, phash=it.phash, variance=0.0, is_blurry=False, index=i, size=1)
        for i, (n, it) in enumerate(zip(["zeta", "alpha", "mid", "beta"], items))
    ]
    snap = classify(items, phash_threshold=1)
    assert snap.duplicate.names == ("zeta", "mid", "beta")
    assert snap.all.names == ("zeta", "alpha", "mid", "beta")


def test_group_ids_assigned_to_multi_member_groups() -> None:
    snap = classify(_items([0x0, 0xFFFF, 0x1, 0xFFFF]), phash_threshold=1)
    ids = [it.group_id for it in snap.items]
    assert ids == [0, 1, 0, 1]
    lone = classify(_items([0x0, 0xFFFF]), phash_threshold=1)
    assert [it.group_id for it in lone.items] == [-1, -1]


def test_aggregation_is_idempotent() -> None:
    items = _items([0x1, 0x3, 0x1, 0xF00], blurry=[False, True, False, False])
    first = classify(items, phash_threshold=2)
    second = classify(items, phash_threshold=2)
    assert first == second
    assert first.to_dict(include_groups=True) == second.to_dict(include_groups=True)


def test_exclusivity_law_on_random_inputs() -> None:
    rnd = random.Random(2024)
    for _ in range(25):
        n = rnd.randint(1, 25)
        base = rnd.getrandbits(64)
        hashes = [base ^ (1 << rnd.randrange(64)) if rnd.random() < 0.5 else rnd.getrandbits(64) for _ in range(n)]
        hashes += hashes[: rnd.randint(0, 3)]
        tags: List[MediaTag] = [rnd.choice(["image", "image", "screenshot", "video"]) for _ in hashes]
        blurry = [rnd.random() < 0.2 for _ in hashes]
        snap = classify(_items(hashes, blurry=blurry, tags=tags), phash_threshold=rnd.randint(0, 12))

        dup = set(snap.duplicate.names)
        assert not dup & set(snap.similar.names)
        tagged = dup | set(snap.similar.names) | set(snap.blur.names)
        tagged |= set(snap.screenshot.names) | set(snap.video.names)
        assert set(snap.other.names) == set(snap.all.names) - tagged
        assert snap.all.count == len(hashes)
        for key in CATEGORY_KEYS:
            cat = snap.category(key)
            assert cat.count == len(cat.names)
