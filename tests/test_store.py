from datetime import datetime, timezone

import pytest

from zimbuild.store import Item, ItemMeta, NotFound, SignInput, SignOutput, Store


def test_not_found_carries_message():
    err = NotFound("not found: abc")
    assert str(err) == "not found: abc"
    with pytest.raises(LookupError):
        raise err


def test_item_meta_defaults_to_empty():
    assert ItemMeta().meta == {}
    assert ItemMeta(meta={"a": "b"}).meta == {"a": "b"}


def test_store_is_abstract():
    with pytest.raises(TypeError):
        Store()


def test_sign_input_wire_keys():
    data = SignInput(method="PUT", name="k", metadata={"a": "b"}, content_length=3).to_dict()
    assert data == {
        "method": "PUT",
        "name": "k",
        "metadata": {"a": "b"},
        "content_len": 3,
    }


def test_sign_input_round_trip():
    original = SignInput(method="GET", name="key", metadata=None, content_length=0)
    assert SignInput.from_dict(original.to_dict()) == original


def test_sign_output_from_dict():
    out = SignOutput.from_dict({"url": "https://bucket.example.com/x", "headers": {"h": "v"}})
    assert out.url == "https://bucket.example.com/x"
    assert out.headers == {"h": "v"}
    assert SignOutput.from_dict(out.to_dict()) == out


def test_item_parses_timestamp():
    item = Item.from_dict(
        {
            "key": "k",
            "etag": "e",
            "size": 10,
            "last_modified": "2020-01-02T03:04:05Z",
        }
    )
    assert item.key == "k"
    assert item.size == 10
    assert item.last_modified == datetime(2020, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def test_item_zero_time_format():
    assert Item().to_dict()["last_modified"] == "0001-01-01T00:00:00Z"


def test_item_round_trip_with_fraction():
    item = Item(
        key="k",
        metadata={"x": "y"},
        version="v1",
        etag="tag",
        size=7,
        last_modified=datetime(2021, 5, 6, 7, 8, 9, 123000, tzinfo=timezone.utc),
    )
    assert Item.from_dict(item.to_dict()) == item


def test_item_rejects_bad_timestamp():
    with pytest.raises(ValueError):
        Item.from_dict({"last_modified": "yesterday"})