"""Tag cloud with popularity classes for filtering live tables by tag."""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

# Default popularity classes, least to most popular
POPULARITY_LEVELS = (
    "notPopular",
    "notVeryPopular",
    "somewhatPopular",
    "popular",
    "veryPopular",
    "ultraPopular",
)


@dataclass(frozen=True)
class TagCount:
    """A tag and the number of rows carrying it."""

    label: str
    count: float

    @classmethod
    def coerce(cls, tag: Any) -> "TagCount":
        """Build from a TagCount, a (label, count) pair, or a wire mapping."""
        if isinstance(tag, TagCount):
            return tag
        if isinstance(tag, Mapping):
            label = tag["tag"] if "tag" in tag else tag["label"]
            return cls(str(label), tag["count"])
        label, count = tag
        return cls(str(label), count)


def build_popularity_map(
    tags: Iterable[Any],
    levels: Sequence[str] = POPULARITY_LEVELS,
) -> List[Tuple[float, str]]:
    """
    Split tag counts into popularity classes.

    The lower half of the levels covers [min, mean] and the upper half
    covers [mean, max], each in equal steps, so both the long tail of rare
    tags and the few very frequent tags stay distinguishable even when the
    distribution is skewed. With an odd number of levels the upper half
    gets the extra level.

    Args:
        tags: TagCount objects, (label, count) pairs or {"tag", "count"} dicts
        levels: Class labels, least popular first

    Returns:
        List of (upper_bound, label) pairs in ascending order; empty if
        there are no tags or no levels

    Examples:
        >>> build_popularity_map([("a", 1), ("b", 3)], ["low", "high"])
        [(2.0, 'low'), (3.0, 'high')]
    """
    counts = np.array([TagCount.coerce(t).count for t in tags], dtype=float)
    if counts.size == 0 or not levels:
        return []

    min_count = counts.min()
    max_count = counts.max()
    average = counts.sum() / counts.size

    lower_levels = len(levels) // 2
    upper_levels = len(levels) - lower_levels

    # linspace includes the start point, drop it to keep upper bounds only
    lower = np.linspace(min_count, average, lower_levels + 1)[1:]
    upper = np.linspace(average, max_count, upper_levels + 1)[1:]
    thresholds = np.concatenate([lower, upper])

    return [(float(t), label) for t, label in zip(thresholds, levels)]


def popularity_level(count: float, popularity_map: Sequence[Tuple[float, str]]) -> Optional[str]:
    """
    Get the popularity class of a tag count.

    Args:
        count: Tag count
        popularity_map: Result of build_popularity_map()

    Returns:
        Label of the first class whose upper bound is >= count, the last
        class if count exceeds every bound, or None for an empty map
    """
    if not popularity_map:
        return None
    thresholds = np.array([t for t, _ in popularity_map])
    index = int(np.searchsorted(thresholds, count, side="left"))
    index = min(index, len(popularity_map) - 1)
    return popularity_map[index][1]


@dataclass(frozen=True)
class TagCloudEntry:
    """Display state of one tag in the cloud."""

    label: str
    count: float
    level: Optional[str]
    selectable: bool
    selected: bool


class TagCloud:
    """
    Tag cloud driving tag-based filtering of a live table.

    The tag list and popularity classes are captured from the first
    response carrying tags; later responses only update which tags still
    match the current filters. Only matching tags can be newly selected.

    Example:
        cloud = TagCloud()
        cloud.update(response.tags, response.matching_tags)
        for entry in cloud.entries():
            print(entry.label, entry.level, entry.selectable)
    """

    def __init__(self, levels: Sequence[str] = POPULARITY_LEVELS):
        if not levels:
            raise ValueError("levels must contain at least one popularity class")
        self._levels = tuple(levels)
        self._tags: List[TagCount] = []
        self._popularity_map: List[Tuple[float, str]] = []
        self._matching: Dict[str, Any] = {}
        self._selected: List[str] = []

    @property
    def has_tags(self) -> bool:
        return bool(self._tags)

    @property
    def popularity_map(self) -> List[Tuple[float, str]]:
        return list(self._popularity_map)

    @property
    def selected(self) -> List[str]:
        """Selected tags in selection order."""
        return list(self._selected)

    def update(
        self,
        tags: Optional[Iterable[Any]],
        matching_tags: Optional[Mapping[str, Any]],
    ) -> None:
        """
        Apply the tag information of a row response.

        Args:
            tags: Tag cardinalities; only the first non-empty list is kept
            matching_tags: Tags matching the current filters
        """
        tags = [TagCount.coerce(t) for t in (tags or [])]
        if not self._tags and tags:
            self._tags = tags
            self._popularity_map = build_popularity_map(tags, self._levels)
        self._matching = dict(matching_tags or {})

    def is_selectable(self, label: str) -> bool:
        return label in self._matching

    def toggle(self, label: str) -> bool:
        """
        Select or deselect a tag.

        Args:
            label: Tag label

        Returns:
            True if the selection changed, False if the tag neither matches
            the current filters nor is already selected
        """
        if label in self._selected:
            self._selected.remove(label)
            return True
        if not self.is_selectable(label):
            return False
        self._selected.append(label)
        return True

    def entries(self) -> List[TagCloudEntry]:
        """Return display state for every tag, in server order."""
        return [
            TagCloudEntry(
                label=tag.label,
                count=tag.count,
                level=popularity_level(tag.count, self._popularity_map),
                selectable=self.is_selectable(tag.label),
                selected=tag.label in self._selected,
            )
            for tag in self._tags
        ]

    def __repr__(self) -> str:
        return (
            f"TagCloud(tags={len(self._tags)}, "
            f"matching={len(self._matching)}, selected={self._selected})"
        )
