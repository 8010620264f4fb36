from magicl10n.translation.utils import (
    build_json_from_pairs,
    flatten_json,
    is_nested,
    is_translatable,
    missing_keys,
    to_string_table,
)


def test_flatten_json_joins_nested_keys_with_dots():
    pairs = flatten_json({"home": {"title": "Hello", "menu": {"open": "Open"}}, "bye": "Bye"})
    assert pairs == [("home.title", "Hello"), ("home.menu.open", "Open"), ("bye", "Bye")]


def test_to_string_table_keeps_source_order_and_non_strings():
    table = to_string_table({"b": "B", "a": {"x": 1}, "c": None})
    assert list(table.items()) == [("b", "B"), ("a.x", 1), ("c", None)]


def test_is_nested():
    assert is_nested({"a": {"b": "c"}})
    assert not is_nested({"a.b": "c"})


def test_is_translatable_rejects_blank_and_non_string_values():
    assert is_translatable("key", "Text")
    assert not is_translatable("", "Text")
    assert not is_translatable("key", "   ")
    assert not is_translatable("key", 3)
    assert not is_translatable("key", None)


def test_build_json_from_pairs_rebuilds_nesting():
    pairs = flatten_json({"home": {"title": "Hello"}, "bye": "Bye"})
    assert build_json_from_pairs(pairs) == {"home": {"title": "Hello"}, "bye": "Bye"}


def test_missing_keys_ignores_untranslatable_base_values():
    base = {"a": "A", "b": "B", "c": 3, "d": "D"}
    target = {"a": "Á", "b": "  "}
    assert missing_keys(base, target) == ["b", "d"]
    assert missing_keys(base, None) == ["a", "b", "d"]
