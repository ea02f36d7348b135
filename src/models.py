"""
Value types shared by the aggregator, the engine and the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional, Tuple

MediaTag = Literal["image", "screenshot", "video"]

CATEGORY_KEYS: Tuple[str, ...] = (
    "all",
    "duplicate",
    "similar",
    "blur",
    "screenshot",
    "video",
    "other",
)


@dataclass
class MediaEntry:
    """
    One caller-supplied item: a name, its encoded bytes and a declared tag.

    `size` is captured at construction so it survives `release()`.
    """

    name: str
    data: Optional[bytes]
    tag: MediaTag = "image"
    size: int = field(init=False)

    def __post_init__(self) -> None:
        self.size = len(self.data) if self.data is not None else 0

    @property
    def released(self) -> bool:
        return self.data is None

    def release(self) -> None:
        self.data = None


@dataclass(frozen=True)
class AnalyzedItem:
    name: str
    phash: int
    variance: float
    is_blurry: bool
    index: int
    tag: MediaTag = "image"
    size: int = 0
    group_id: int = -1  # -1 unless part of a multi-member group


@dataclass(frozen=True)
class CategorySummary:
    count: int = 0
    size: int = 0
    names: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"count": self.count, "size": self.size, "list": list(self.names)}


_EMPTY = CategorySummary()


@dataclass(frozen=True)
class ClassificationSnapshot:
    """
    Point-in-time classification of everything processed so far.

    Categories overlap, except that `similar` never contains a `duplicate`
    member and `other` holds only items found in none of the other five
    non-`all` categories.
    """

    all: CategorySummary = _EMPTY
    duplicate: CategorySummary = _EMPTY
    similar: CategorySummary = _EMPTY
    blur: CategorySummary = _EMPTY
    screenshot: CategorySummary = _EMPTY
    video: CategorySummary = _EMPTY
    other: CategorySummary = _EMPTY
    groups: Tuple[Tuple[str, ...], ...] = ()
    items: Tuple[AnalyzedItem, ...] = ()

    @staticmethod
    def empty() -> "ClassificationSnapshot":
        return ClassificationSnapshot()

    def category(self, key: str) -> CategorySummary:
        if key not in CATEGORY_KEYS:
            raise KeyError(key)
        summary: CategorySummary = getattr(self, key)
        return summary

    def to_dict(self, *, include_groups: bool = False) -> Dict[str, Any]:
        """Wire shape: {category: {count, size, list}} for the seven categories."""
        payload: Dict[str, Any] = {k: self.category(k).to_dict() for k in CATEGORY_KEYS}
        if include_groups:
            payload["groups"] = [list(g) for g in self.groups]
        return payload
