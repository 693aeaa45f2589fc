"""Grocery label set and category table."""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

# Class names in detector channel order (YOLO grocery model, 32 classes)
DEFAULT_LABELS = [
    "daun_salam", "daging_sapi", "paprika", "kubis", "wortel", "kembang_kol",
    "ayam", "kacang_arab", "ketumbar", "mentimun", "telur", "terong", "ikan",
    "bawang_putih", "jahe", "cabai_hijau", "daun_bawang", "jeruk_kumquat",
    "lemon", "daging_kambing", "okra", "bawang_merah", "daging_babi", "kentang",
    "labu", "lobak", "garam", "udang", "cabai_kecil", "tahu", "tomat", "kunyit",
]

DEFAULT_CATEGORIES: dict[str, list[str]] = {
    "sayuran": [
        "daun_salam", "paprika", "kubis", "wortel", "kembang_kol", "mentimun",
        "terong", "cabai_hijau", "daun_bawang", "okra", "bawang_merah",
        "bawang_putih", "kentang", "labu", "lobak", "cabai_kecil", "tomat",
    ],
    "daging": ["daging_sapi", "ayam", "daging_kambing", "daging_babi"],
    "seafood": ["ikan", "udang"],
    "bumbu": ["ketumbar", "jahe", "kunyit", "garam"],
    "protein": ["tahu", "kacang_arab", "telur"],
    "buah": ["jeruk_kumquat", "lemon"],
}

OTHER_CATEGORY = "lainnya"


class CategoryMap(Mapping[str, frozenset[str]]):
    """Read-only table from category name to the item labels it groups.

    Built once and shared by reference. Lookup order follows the order the
    categories were given in, so a label listed under two categories resolves
    to the first one.
    """

    def __init__(
        self,
        categories: Mapping[str, Iterable[str]] | None = None,
        other: str = OTHER_CATEGORY,
    ) -> None:
        source = DEFAULT_CATEGORIES if categories is None else categories
        self._categories = MappingProxyType(
            {name: frozenset(items) for name, items in source.items()}
        )
        self.other = other

        self._by_label: dict[str, str] = {}
        for name, items in source.items():
            for item in items:
                self._by_label.setdefault(item, name)

    def __getitem__(self, name: str) -> frozenset[str]:
        return self._categories[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._categories)

    def __len__(self) -> int:
        return len(self._categories)

    def __repr__(self) -> str:
        return f"CategoryMap({list(self._categories)!r}, other={self.other!r})"

    def category_of(self, label: str) -> str:
        """Get the category for an item label, or the catch-all category."""
        return self._by_label.get(label, self.other)
