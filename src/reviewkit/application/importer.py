"""
Parsing of card import documents.

Accepts JSON or YAML (JSON is valid YAML), either a bare list of cards or a
mapping with a "cards" list. Each card needs "front" and "back"; "tags" and
"deck_id" are optional.
"""

import logging
from typing import Any

import yaml

from reviewkit.domain.errors import ValidationError
from reviewkit.domain.models import CardImport

logger = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """Safe YAML loader that forbids duplicate keys."""

    def construct_mapping(self, node, deep=False):
        seen = set()
        for key_node, _ in node.value:
            key = self.construct_object(key_node, deep=deep)
            if key in seen:
                raise yaml.constructor.ConstructorError(
                    None, None, f"found duplicate key '{key}'", key_node.start_mark
                )
            seen.add(key)
        return super().construct_mapping(node, deep)


def parse_import_document(text: str) -> list[Any]:
    """
    Load the raw card entries of an import document.

    Entries are returned unvalidated so that one bad entry can be reported
    on its own by the caller.

    Raises:
        ValidationError: If the document cannot be parsed or has no card list.
    """
    # Handle potential BOM (Byte Order Mark)
    text = text.lstrip("\ufeff")

    try:
        data = yaml.load(text, Loader=UniqueKeyLoader)
    except yaml.YAMLError as e:
        raise ValidationError("document", _excerpt(text), str(e)) from e

    if isinstance(data, dict):
        data = data.get("cards")
    if not isinstance(data, list):
        raise ValidationError("document", _excerpt(text), "expected a list of cards")

    logger.debug(f"Parsed import document with {len(data)} entries")
    return data


def to_card_import(entry: Any) -> CardImport:
    """
    Validate one raw entry.

    Raises:
        ValidationError: If the entry is not a mapping, lacks front/back text
            or names a deck with anything but a non-empty string.
    """
    if isinstance(entry, CardImport):
        item = entry
    elif isinstance(entry, dict):
        tags = entry.get("tags") or []
        if isinstance(tags, str):
            tags = [tags]
        if not isinstance(tags, list):
            raise ValidationError("tags", tags, "expected a list")
        item = CardImport(
            front=entry.get("front"),
            back=entry.get("back"),
            tags=tuple(str(t) for t in tags),
            deck_id=entry.get("deck_id"),
        )
    else:
        raise ValidationError("card", entry, "expected a mapping")

    deck_id = item.deck_id
    if deck_id is not None and (not isinstance(deck_id, str) or not deck_id.strip()):
        raise ValidationError("deck_id", deck_id, "must be a non-empty string")

    for name in ("front", "back"):
        value = getattr(item, name)
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(name, value, "must be a non-empty string")
    return item


def _excerpt(text: str, length: int = 40) -> str:
    return text if len(text) <= length else f"{text[:length]}..."
