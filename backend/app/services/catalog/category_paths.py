"""
Rebuild human-readable category paths ("Attachments > Buckets > Smooth Buckets")
from a flat list of storefront categories.

BigCommerce only returns {id, name, parent_id} per category, and a product only
carries the ids it is assigned to. Some parents are hidden from the catalog API
(they exist in the storefront but not in /catalog/categories), so a small table
of known missing parents can bridge the gap.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence


PATH_SEPARATOR = " > "


@dataclass(frozen=True, slots=True)
class CategoryRecord:
    id: int
    name: str
    parent_id: Optional[int] = None


@dataclass(frozen=True, slots=True)
class MissingParent:
    name: str
    parent_id: Optional[int] = None


# parents seen on products but absent from the categories endpoint
DEFAULT_MISSING_PARENTS: Dict[int, MissingParent] = {
    129: MissingParent("Universal Quick Attach", 24),
    136: MissingParent("Mini Bobcat", 24),
    141: MissingParent("Smooth Buckets", 136),
    180: MissingParent("Excavator Attachments", None),
}

CATCH_ALL_NAMES = ("Shop All",)


def _as_record(item) -> CategoryRecord:
    if isinstance(item, CategoryRecord):
        return item
    if isinstance(item, Mapping):
        parent = item.get("parent_id")
        return CategoryRecord(
            id=int(item["id"]),
            name="" if item.get("name") is None else str(item.get("name")),
            parent_id=None if parent is None else int(parent),
        )
    raise TypeError(f"unsupported category record: {type(item)!r}")


class CategoryIndex:
    """Id-indexed categories plus the missing-parent fallback table."""

    def __init__(
        self,
        categories: Iterable,
        missing_parents: Optional[Mapping[int, MissingParent]] = None,
        catch_all_names: Sequence[str] = CATCH_ALL_NAMES,
    ) -> None:
        self._by_id: Dict[int, CategoryRecord] = {}
        for item in categories or []:
            rec = _as_record(item)
            self._by_id[rec.id] = rec
        self._missing = dict(DEFAULT_MISSING_PARENTS if missing_parents is None else missing_parents)
        self._catch_all = set(catch_all_names)

    def __contains__(self, category_id) -> bool:
        return category_id in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)

    def get(self, category_id: int) -> Optional[CategoryRecord]:
        return self._by_id.get(category_id)

    def path_segments(self, category_id: int) -> List[str]:
        """
        Walk parent links upward from category_id, root first.
        Stops at a root (parent None or 0), at a cycle, or at an unknown id
        that the fallback table cannot bridge (partial path).
        """
        segments: List[str] = []
        visited = set()
        current: Optional[int] = category_id
        while current and current not in visited:
            visited.add(current)
            rec = self._by_id.get(current)
            if rec is not None:
                segments.insert(0, rec.name)
                current = rec.parent_id
                continue
            fallback = self._missing.get(current)
            if fallback is None:
                break
            segments.insert(0, fallback.name)
            current = fallback.parent_id
        return segments

    def build_path(self, category_id: int) -> str:
        return PATH_SEPARATOR.join(self.path_segments(category_id))

    def best_path(self, candidate_ids: Iterable[int]) -> str:
        """
        Best path among a product's categories: catch-all buckets last,
        then deepest first; equal ranks keep their input order.
        Ids missing from the index are ignored. "" when nothing resolves.
        """
        ranked = []
        for cid in candidate_ids or []:
            rec = self._by_id.get(cid)
            if rec is None:
                continue
            segments = self.path_segments(cid)
            ranked.append((rec.name in self._catch_all, -len(segments), segments))
        if not ranked:
            return ""
        # sorted() is stable, so ties stay first-encountered
        ranked.sort(key=lambda item: (item[0], item[1]))
        return PATH_SEPARATOR.join(ranked[0][2])

    def all_paths(self) -> Dict[int, str]:
        return {cid: self.build_path(cid) for cid in self._by_id}


def build_best_category_path(
    categories: Iterable,
    candidate_ids: Iterable[int],
    missing_parents: Optional[Mapping[int, MissingParent]] = None,
) -> str:
    return CategoryIndex(categories, missing_parents).best_path(candidate_ids)
