from __future__ import annotations

from typing import List, Optional, Sequence
from pydantic import BaseModel, ConfigDict, Field

from .rules import (
    CSV_FIELDS,
    UNCLOSED_PARENTHESES,
    UNCLOSED_PARENTHESES_KANA,
    UNQUOTED_FIELDS,
)


class MalformedRowError(ValueError):
    """A source row does not have exactly one value per KEN_ALL column."""


class Postcode(BaseModel):
    """
    One KEN_ALL row.

    https://www.post.japanpost.jp/zipcode/dl/readme.html

    Instances are immutable; the town-area helpers return new records.
    Equality is exact text equality over all 15 columns.
    """

    model_config = ConfigDict(frozen=True)

    area_code: str
    postcode5: str
    postcode: str
    prefecture_kana: str
    city_kana: str
    town_area_kana: str
    prefecture: str
    city: str
    town_area: str
    is_one_town_by_multi_postcode: str
    is_need_small_area_address: str
    is_chome: str
    is_multi_town_by_one_postcode: str
    updated: str
    update_reason: str

    @classmethod
    def from_row(cls, row: Sequence[str]) -> Postcode:
        if len(row) != len(CSV_FIELDS):
            raise MalformedRowError(
                f"expected {len(CSV_FIELDS)} columns, got {len(row)}: {list(row)!r}"
            )
        return cls(**dict(zip(CSV_FIELDS, row)))

    @property
    def area_group(self) -> str:
        """Leading 3 digits of the postcode."""
        return self.postcode[:3]

    def to_row(self) -> List[str]:
        return [getattr(self, name) for name in CSV_FIELDS]

    def to_csv(self) -> str:
        values = []
        for name, value in zip(CSV_FIELDS, self.to_row()):
            if name in UNQUOTED_FIELDS:
                values.append(value)
            else:
                values.append('"' + value.replace('"', '""') + '"')
        return ",".join(values)

    def is_unclosed_town_area(self) -> bool:
        return UNCLOSED_PARENTHESES.search(self.town_area) is not None

    def is_unclosed_town_area_kana(self) -> bool:
        return UNCLOSED_PARENTHESES_KANA.search(self.town_area_kana) is not None

    def with_town_area(self, town_area: str, town_area_kana: str) -> Postcode:
        return self.model_copy(
            update={"town_area": town_area, "town_area_kana": town_area_kana}
        )

    def merged_with(self, continuation: Postcode) -> Postcode:
        # kana sometimes closes its parenthesis a row earlier than kanji
        town_area_kana = self.town_area_kana
        if self.is_unclosed_town_area_kana():
            town_area_kana += continuation.town_area_kana
        return self.with_town_area(self.town_area + continuation.town_area, town_area_kana)


class ConvertedCsv(BaseModel):
    sha256: str
    encoding: str = Field(default="utf-8")
    content_b64: str


class ConversionSummary(BaseModel):
    rows_read: int = 0
    blank_rows_skipped: int = 0
    continuation_rows_merged: int = 0
    candidates: int = 0
    records_written: int = 0
    duplicates_suppressed: int = 0
    window_resets: int = 0
    pending_dropped: int = 0


class ConversionReport(BaseModel):
    summary: ConversionSummary
    source_encoding: Optional[str] = None


class ConvertResponse(BaseModel):
    converted_csv: ConvertedCsv
    report: ConversionReport

class HealthResponse(BaseModel):
    ok: bool = True
