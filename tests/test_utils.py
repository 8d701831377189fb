"""Dot-notation flattening and plugin path parsing."""

from sharex_sdk.utils import extract_plugin_uid, flatten, format_leaf


def _leaves(obj, path=()):
    for key, value in obj.items():
        if isinstance(value, dict):
            yield from _leaves(value, path + (key,))
        else:
            yield path + (key,), value


def test_flatten_nested_document():
    assert flatten({"profile": {"level": 2}}) == ["profile.level:2"]
    assert flatten({"a": 1, "b": {"c": "x", "d": {"e": True}}}) == ["a:1", "b.c:x", "b.d.e:true"]


def test_flatten_preserves_key_order():
    assert flatten({"z": 1, "a": 2, "m": {"y": 3, "b": 4}}) == ["z:1", "a:2", "m.y:3", "m.b:4"]


def test_flatten_entry_per_leaf_and_paths_address_values():
    doc = {"name": "ann", "stats": {"hp": 10, "pos": {"x": 1, "y": 2}}, "alive": False}
    entries = flatten(doc)
    assert len(entries) == len(list(_leaves(doc)))
    for entry, (path, value) in zip(entries, _leaves(doc)):
        key, _, rendered = entry.partition(":")
        node = doc
        for part in key.split("."):
            node = node[part]
        assert tuple(key.split(".")) == path
        assert node == value
        assert rendered == format_leaf(value)


def test_flatten_lists_are_leaves():
    assert flatten({"tags": ["a", "b"], "grid": {"row": [1, 2]}}) == ['tags:["a","b"]', "grid.row:[1,2]"]


def test_flatten_empty():
    assert flatten({}) == []
    assert flatten({"a": {}}) == []


def test_flatten_prefix():
    assert flatten({"level": 3}, "profile") == ["profile.level:3"]


def test_format_leaf():
    assert format_leaf(None) == "null"
    assert format_leaf(True) == "true"
    assert format_leaf(False) == "false"
    assert format_leaf(2.0) == "2"
    assert format_leaf(2.5) == "2.5"
    assert format_leaf(7) == "7"
    assert format_leaf("text:with colon") == "text:with colon"


def test_extract_plugin_uid():
    assert extract_plugin_uid("/SharexApp/my-plugin/index.html") == "my-plugin"
    assert extract_plugin_uid("/sharexapp/Other_App/") == "Other_App"
    assert extract_plugin_uid("/SharexApp/solo") == "solo"
    assert extract_plugin_uid("/somewhere/else") == ""
