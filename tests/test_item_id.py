import pytest

from thumbq.core.errors import InvalidIdentifier
from thumbq.core.item_id import cache_key, parse_item_id

from conftest import ITEM_ID


def test_parse_valid_path_returns_id():
    assert parse_item_id(f"/thumb/{ITEM_ID}") == ITEM_ID


@pytest.mark.parametrize(
    "path",
    [
        "",
        "/",
        "/thumb/",
        f"/thumb/{ITEM_ID[:-1]}",
        f"/thumb/{ITEM_ID}0",
        f"/thumb/{ITEM_ID.upper()}",
        f"/thumb/{ITEM_ID}/",
        f"/thumb/{ITEM_ID}/extra",
        f"/thumbs/{ITEM_ID}",
        f"/{ITEM_ID}",
        f"thumb/{ITEM_ID}",
        f"/thumb/{ITEM_ID}\n",
        "/thumb/0123456789abcdef0123456789abcdeg",
    ],
)
def test_parse_rejects_anything_else(path):
    with pytest.raises(InvalidIdentifier):
        parse_item_id(path)


def test_matching_path_is_accepted_not_rejected():
    # A successful match must yield the id, never an error.
    item_id = "f" * 32
    assert parse_item_id(f"/thumb/{item_id}") == item_id


def test_cache_key_splits_prefix_into_directories():
    assert cache_key(ITEM_ID) == f"0/1/2/3/{ITEM_ID}.jpg"


def test_cache_key_is_distinct_per_id():
    other = "f" + ITEM_ID[1:]
    assert cache_key(other) != cache_key(ITEM_ID)
    assert cache_key(other).startswith("f/1/2/3/")
