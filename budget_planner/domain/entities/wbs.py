"""
WBS key helpers.

A WBS key is a dot-separated path of positive integers ("1", "1.2", "1.2.3").
Ordering is numeric per segment, so "1.2" sorts before "1.10".
"""
import re
from functools import cmp_to_key
from typing import Iterable, List, Optional, Tuple, TypeVar

T = TypeVar('T')

WBS_SEPARATOR = "."
WBS_MAX_LENGTH = 50
_WBS_PATTERN = re.compile(r"^[1-9]\d*(\.[1-9]\d*)*$")


def parse_wbs(wbs: str) -> Tuple[int, ...]:
    """Split a WBS key into integer segments; non-numeric segments become 0."""
    segments = []
    for part in (wbs or "").split(WBS_SEPARATOR):
        part = part.strip()
        segments.append(int(part) if part.isdigit() else 0)
    return tuple(segments)


def compare_wbs(a: str, b: str) -> int:
    """
    Compare two WBS keys segment by segment as integers.

    Returns a negative number when a sorts first, positive when b does,
    zero when equal. A missing segment counts as 0; when every segment
    ties, the shorter key comes first.
    """
    left, right = parse_wbs(a), parse_wbs(b)
    for i in range(max(len(left), len(right))):
        x = left[i] if i < len(left) else 0
        y = right[i] if i < len(right) else 0
        if x != y:
            return x - y
    return len(left) - len(right)


wbs_sort_key = cmp_to_key(compare_wbs)


def sort_by_wbs(items: Iterable[T], key=lambda item: item.wbs) -> List[T]:
    """Return items ordered by their WBS key."""
    return sorted(items, key=lambda item: wbs_sort_key(key(item)))


def is_valid_wbs(wbs: Optional[str]) -> bool:
    """True for dot-separated positive integers without blanks."""
    return bool(wbs) and _WBS_PATTERN.match(wbs) is not None


def parent_wbs(wbs: str) -> Optional[str]:
    """Drop the last segment: "1.2.3" -> "1.2"; root keys have no parent."""
    if WBS_SEPARATOR not in wbs:
        return None
    return wbs.rsplit(WBS_SEPARATOR, 1)[0]


def is_descendant(wbs: str, ancestor: str) -> bool:
    """True when wbs lies strictly below ancestor."""
    return wbs.startswith(ancestor + WBS_SEPARATOR)


def rebase_wbs(wbs: str, old_prefix: str, new_prefix: str) -> str:
    """Replace old_prefix with new_prefix on a key inside the old subtree."""
    if wbs == old_prefix:
        return new_prefix
    if not is_descendant(wbs, old_prefix):
        raise ValueError(f"WBS '{wbs}' is not under '{old_prefix}'")
    return new_prefix + wbs[len(old_prefix):]

