"""
Town-area normalization.

The KEN_ALL town-area column is written for humans: it may enumerate several
sub-areas in parentheses, carry floor numbers for office towers, list
cadastral subdivisions (jiwari) or say nothing useful at all. Each handler
below recognises one of those shapes and returns the expanded
(town_area, town_area_kana) records, or None to let the next handler try.
The first handler that answers wins; a record no handler claims is returned
unchanged.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Tuple

from .models import Postcode
from .rules import (
    FLOOR,
    FLOOR_KANA,
    FLOOR_SEPARATOR,
    IGNORE,
    JIWARI,
    JIWARI_KANA,
    JIWARI_KANA_TRAILER,
    KEEP_IN_PARENTHESES,
    LIST_SEPARATOR,
    LIST_SEPARATOR_KANA,
    NOISE_IN_PARENTHESES,
    PARENTHESES,
    PARENTHESES_KANA,
    UNKNOWN_FLOOR,
    UNKNOWN_FLOOR_KANA,
)

TownPair = Tuple[str, str]
Handler = Callable[[Postcode], Optional[List[Postcode]]]


def _unwrap(pattern, text: str) -> str:
    return pattern.sub(r"\1", text)


def convert_ignore(record: Postcode) -> Optional[List[Postcode]]:
    """Boilerplate such as "以下に掲載がない場合" means no town area."""
    if not IGNORE.search(record.town_area):
        return None
    return [record.with_town_area("", "")]


def convert_floor(record: Postcode) -> Optional[List[Postcode]]:
    """
    "ＪＲタワー（１階）" -> "ＪＲタワー　１階".

    The unknown-floor marker is dropped entirely.
    """
    if not FLOOR.search(record.town_area):
        return None

    town_area = FLOOR.sub(FLOOR_SEPARATOR + r"\1", record.town_area)
    town_area = _unwrap(PARENTHESES, town_area).replace(UNKNOWN_FLOOR, "")

    town_area_kana = _unwrap(FLOOR_KANA, record.town_area_kana)
    town_area_kana = _unwrap(PARENTHESES_KANA, town_area_kana).replace(UNKNOWN_FLOOR_KANA, "")

    return [record.with_town_area(town_area, town_area_kana)]


def convert_jiwari(record: Postcode) -> Optional[List[Postcode]]:
    """Keep the name before the subdivision: 葛巻第４０地割～第４５地割 -> 葛巻."""
    if not JIWARI.search(record.town_area):
        return None

    town_area = JIWARI.sub(r"\1", record.town_area)
    # TODO: stop JIWARI_KANA before the ﾀﾞｲ prefix so the trailer strip can go
    town_area_kana = JIWARI_KANA_TRAILER.sub("", JIWARI_KANA.sub(r"\1", record.town_area_kana))
    return [record.with_town_area(town_area, town_area_kana)]


def convert_parentheses(record: Postcode) -> Optional[List[Postcode]]:
    """
    Expand a parenthesised enumeration into one record per item.

    The record with the parenthetical removed always comes first, followed by
    the original text with the parenthetical replaced by each useful item.
    """
    if not PARENTHESES.search(record.town_area):
        return None

    base = (
        PARENTHESES.sub("", record.town_area),
        PARENTHESES_KANA.sub("", record.town_area_kana),
    )

    expanded = [record.with_town_area(*base)]
    for item, item_kana in _items_in_parentheses(record, base):
        town_area = PARENTHESES.sub(lambda _: item, record.town_area)
        if item_kana:
            town_area_kana = PARENTHESES_KANA.sub(lambda _: item_kana, record.town_area_kana)
        else:
            # whole field, not substituted into the parenthesised kana
            town_area_kana = base[1]
        expanded.append(record.with_town_area(town_area, town_area_kana))
    return expanded


def _items_in_parentheses(record: Postcode, base: TownPair) -> List[TownPair]:
    items = _parenthesised(PARENTHESES, record.town_area).split(LIST_SEPARATOR)
    items_kana = _parenthesised(PARENTHESES_KANA, record.town_area_kana).split(LIST_SEPARATOR_KANA)

    pairs: List[TownPair] = []
    for index, item in enumerate(items):
        # kana enumerations are sometimes shorter than the kanji ones
        item_kana = items_kana[index] if index < len(items_kana) else ""
        if _is_wanted(item, base[0]):
            pairs.append((item, item_kana))
    return pairs


def _parenthesised(pattern, text: str) -> str:
    match = pattern.search(text)
    return match.group(1) if match else ""


def _is_wanted(item: str, base_town_area: str) -> bool:
    # would only repeat the base record
    if len(base_town_area) > 1 and item.startswith(base_town_area):
        return False
    if KEEP_IN_PARENTHESES.search(item):
        return True
    return not NOISE_IN_PARENTHESES.search(item)


HANDLERS: Tuple[Handler, ...] = (
    convert_ignore,
    convert_floor,
    convert_jiwari,
    convert_parentheses,
)


def normalize_town_area(record: Postcode, handlers: Tuple[Handler, ...] = HANDLERS) -> List[Postcode]:
    for handler in handlers:
        converted = handler(record)
        if converted is not None:
            return converted
    return [record]
