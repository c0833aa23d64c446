from govdl.traverse import traverse_json


def test_single_key_top_level():
    assert traverse_json({"a": 1}, "a") == 1


def test_key_found_at_depth():
    data = {"outer": {"inner": [{"x": 0}, {"target": "found"}]}}
    assert traverse_json(data, "target") == "found"


def test_path_of_keys():
    data = {"wrap": {"media": {"deep": {"url": "https://example.com/v.mp4"}}}}
    assert traverse_json(data, ["media", "url"]) == "https://example.com/v.mp4"


def test_tuple_of_keys():
    data = {"a": {"b": 3}}
    assert traverse_json(data, ("a", "b")) == 3


def test_missing_key_gives_none():
    assert traverse_json({"a": {"b": 1}}, "zzz") is None


def test_empty_key_list_returns_data():
    data = {"a": 1}
    assert traverse_json(data, []) is data


def test_unsupported_key_type_gives_none():
    assert traverse_json({"1": "one"}, 1) is None


def test_direct_key_wins_even_when_path_fails():
    data = {"a": {"c": 1}, "other": {"a": {"b": 2}}}
    assert traverse_json(data, ["a", "b"]) is None


def test_falsy_values_are_returned():
    assert traverse_json({"flag": False}, "flag") is False
    assert traverse_json([{"n": 0}], "n") == 0


def test_list_search_skips_non_matching():
    data = [1, "x", {"a": None}, {"a": "value"}]
    assert traverse_json(data, "a") == "value"


def test_scalar_data_gives_none():
    assert traverse_json("text", "a") is None