"""Tests for the label set and category table."""

import pytest

from grocersee.labels import DEFAULT_CATEGORIES, DEFAULT_LABELS, CategoryMap


class TestCategoryMap:
    """Tests for CategoryMap."""

    def test_every_label_has_a_category(self, category_map):
        for label in DEFAULT_LABELS:
            assert category_map.category_of(label) != category_map.other

    def test_known_labels(self, category_map):
        assert category_map.category_of("tomat") == "sayuran"
        assert category_map.category_of("ayam") == "daging"
        assert category_map.category_of("udang") == "seafood"
        assert category_map.category_of("kunyit") == "bumbu"
        assert category_map.category_of("tahu") == "protein"
        assert category_map.category_of("lemon") == "buah"

    def test_unknown_label(self, category_map):
        assert category_map.category_of("durian") == "lainnya"

    def test_mapping_interface(self, category_map):
        assert list(category_map) == list(DEFAULT_CATEGORIES)
        assert len(category_map) == 6
        assert "ayam" in category_map["daging"]

    def test_read_only(self, category_map):
        with pytest.raises(TypeError):
            category_map["daging"] = frozenset()

    def test_first_category_wins(self):
        categories = CategoryMap({"a": ["x"], "b": ["x", "y"]}, other="misc")

        assert categories.category_of("x") == "a"
        assert categories.category_of("y") == "b"
        assert categories.category_of("z") == "misc"

    def test_label_count(self):
        assert len(DEFAULT_LABELS) == 32
        assert len(set(DEFAULT_LABELS)) == 32
