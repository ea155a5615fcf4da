import pytest

from reviewkit.application.importer import parse_import_document, to_card_import
from reviewkit.domain.errors import ValidationError
from reviewkit.domain.models import CardImport


def test_parse_yaml_list():
    text = """
- front: hund
  back: dog
  tags: [animals]
- front: kat
  back: cat
"""
    entries = parse_import_document(text)
    assert len(entries) == 2
    assert entries[0]["tags"] == ["animals"]


def test_parse_json_mapping_with_cards():
    text = '{"cards": [{"front": "a", "back": "b", "deck_id": "deck-2"}]}'
    entries = parse_import_document(text)
    assert entries == [{"front": "a", "back": "b", "deck_id": "deck-2"}]


def test_parse_strips_bom():
    assert parse_import_document("\ufeff- {front: a, back: b}") == [{"front": "a", "back": "b"}]


def test_parse_rejects_duplicate_keys():
    with pytest.raises(ValidationError) as exc:
        parse_import_document("- front: a\n  front: b\n  back: c\n")
    assert "duplicate key" in str(exc.value)


@pytest.mark.parametrize("text", ["just a string", "cards: 3", "- [unclosed"])
def test_parse_rejects_non_lists(text):
    with pytest.raises(ValidationError):
        parse_import_document(text)


def test_to_card_import_normalizes_tags():
    item = to_card_import({"front": "a", "back": "b", "tags": "single"})
    assert item == CardImport(front="a", back="b", tags=("single",))


def test_to_card_import_passes_through_card_import():
    item = CardImport(front="a", back="b")
    assert to_card_import(item) is item


@pytest.mark.parametrize(
    "entry",
    [
        {"front": "a"},
        {"front": "", "back": "b"},
        {"front": "a", "back": 3},
        {"front": "a", "back": "b", "tags": {"x": 1}},
        {"front": "a", "back": "b", "deck_id": ["x"]},
        {"front": "a", "back": "b", "deck_id": {"name": "x"}},
        {"front": "a", "back": "b", "deck_id": ""},
        {"front": "a", "back": "b", "deck_id": 7},
        "not a mapping",
    ],
)
def test_to_card_import_rejects_bad_entries(entry):
    with pytest.raises(ValidationError):
        to_card_import(entry)


def test_to_card_import_keeps_deck_id():
    item = to_card_import({"front": "a", "back": "b", "deck_id": "deck-2"})
    assert item.deck_id == "deck-2"
