"""
Tests for structured data normalization
"""

from datetime import date

from pagepixie.utils.structured_data import normalize_structured_data, stringify_structured_value


class TestNormalizeStructuredData:
    """Test normalization of model-produced structured data"""

    def test_drops_empty_values_and_trims(self):
        data = {
            "title": "  Capture Pipelines  ",
            "subtitle": "   ",
            "editor": None,
            "tags": [],
        }

        assert normalize_structured_data(data) == {"title": "Capture Pipelines"}

    def test_scalars_pass_through(self):
        published = date(2024, 5, 1)
        data = {"pages": 12, "rating": 4.5, "open_access": False, "published": published}

        assert normalize_structured_data(data) == data

    def test_nested_lists_are_flattened(self):
        """Test that nested arrays splice into their parent"""
        data = {"authors": [["Ada", "Grace"], " Alan ", None, ""]}

        assert normalize_structured_data(data) == {"authors": ["Ada", "Grace", "Alan"]}

    def test_nested_objects_become_text(self):
        """Test that nested objects render as "key: value" pairs"""
        data = {
            "nutrition": {"calories": 250, "protein": "12g", "notes": None},
            "ingredients": [{"item": "flour", "amount": "2 cups"}, "salt"],
        }

        assert normalize_structured_data(data) == {
            "nutrition": "calories: 250; protein: 12g",
            "ingredients": ["item: flour; amount: 2 cups", "salt"],
        }

    def test_non_mapping_input(self):
        """Test that anything other than a mapping yields an empty result"""
        assert normalize_structured_data(None) == {}
        assert normalize_structured_data(["a", "b"]) == {}
        assert normalize_structured_data("summary text") == {}

    def test_unusual_values_never_raise(self):
        class Unprintable:
            def __str__(self):
                raise RuntimeError("no text form")

        result = normalize_structured_data({"odd": Unprintable(), 3: "numeric key"})

        assert result == {"odd": "<Unprintable>", "3": "numeric key"}


class TestStringifyStructuredValue:
    """Test rendering values as display text"""

    def test_scalars(self):
        assert stringify_structured_value(None) == ""
        assert stringify_structured_value("  text ") == "text"
        assert stringify_structured_value(True) == "true"
        assert stringify_structured_value(False) == "false"
        assert stringify_structured_value(42) == "42"
        assert stringify_structured_value(date(2024, 1, 2)) == "2024-01-02"

    def test_collections(self):
        assert stringify_structured_value(["a", "", "b"]) == "a, b"
        assert stringify_structured_value({"k": "v", "n": [1, 2]}) == "k: v; n: 1, 2"
        assert stringify_structured_value([{"a": 1}, {"b": 2}]) == "a: 1, b: 2"


def nested_lists(depth, leaf="leaf"):
    value = leaf
    for _ in range(depth):
        value = [value]
    return value


def nested_mappings(depth, leaf="leaf"):
    value = leaf
    for _ in range(depth):
        value = {"k": value}
    return value


class TestDeeplyNestedValues:
    """Test that arbitrarily deep model output still renders as text"""

    def test_deep_lists_flatten_to_leaves(self):
        assert normalize_structured_data({"deep": nested_lists(1200)}) == {"deep": ["leaf"]}

    def test_deep_mappings_stringify(self):
        text = stringify_structured_value(nested_mappings(1200))

        assert text.startswith("k: k: ")
        assert text.endswith("leaf")

    def test_mixed_nesting_renders_without_placeholders(self):
        """Test that every normalized value stringifies to plain text"""
        value = "leaf"
        for level in range(1500):
            value = [value, level] if level % 2 else {"k": value, "level": level}

        normalized = normalize_structured_data({"deep": value, "shallow": {"a": [1, {"b": 2}]}})

        assert normalized["shallow"] == "a: 1, b: 2"
        for item in normalized.values():
            text = stringify_structured_value(item)
            assert text
            assert "{" not in text
            assert "[" not in text
            assert "<" not in text
            assert "leaf" in text
