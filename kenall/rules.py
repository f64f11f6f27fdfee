"""
Deterministic normalization rules.

Patterns for the KEN_ALL town-area field. Kanji text uses full-width
parentheses and list separators, kana text uses the half-width ones.
"""

import re

CSV_FIELDS = (
    "area_code",
    "postcode5",
    "postcode",
    "prefecture_kana",
    "city_kana",
    "town_area_kana",
    "prefecture",
    "city",
    "town_area",
    "is_one_town_by_multi_postcode",
    "is_need_small_area_address",
    "is_chome",
    "is_multi_town_by_one_postcode",
    "updated",
    "update_reason",
)

# The first column (JIS area code) is written bare, everything else quoted.
UNQUOTED_FIELDS = frozenset({"area_code"})

UNCLOSED_PARENTHESES = re.compile(r"（.*[^）]\Z")
UNCLOSED_PARENTHESES_KANA = re.compile(r"\(.*[^)]\Z")

IGNORE = re.compile(r"以下に掲載がない場合|[市町村]の次に.*がくる場合|[市町村]一円|^甲、乙")

FLOOR = re.compile(r"（([０-９]+階|地階・階層不明)）")
FLOOR_KANA = re.compile(r"\(([0-9]+ｶｲ|ﾁｶｲ･ｶｲｿｳﾌﾒｲ)\)")
FLOOR_SEPARATOR = "　"
UNKNOWN_FLOOR = "　地階・階層不明"
UNKNOWN_FLOOR_KANA = "ﾁｶｲ･ｶｲｿｳﾌﾒｲ"

JIWARI = re.compile(r"^([^０-９第（]+)第*[０-９]+地割[、～].*")
JIWARI_KANA = re.compile(r"^([^0-9(]+)[0-9]+ﾁﾜﾘ[､-].*")
# left over from the kana "ﾀﾞｲ" (第) prefix once the subdivision is cut
JIWARI_KANA_TRAILER = re.compile(r"ﾀﾞｲ$")

PARENTHESES = re.compile(r"（(.*)）")
PARENTHESES_KANA = re.compile(r"\((.*)\)")
LIST_SEPARATOR = "、"
LIST_SEPARATOR_KANA = "､"

KEEP_IN_PARENTHESES = re.compile(r"^[^～]*[０-９]+区")
NOISE_IN_PARENTHESES = re.compile(
    "|".join(
        [
            "[０-９]",
            "その他",
            "^丁目$",
            "^番地$",
            "成田国際空港内",
            "次のビルを除く",
            "^全域$",
            "地区$",
            "無番地",
            ".*・.*",
            "住宅$",
            "^[ヲクチマワ]$",
            "がくる場合$",
            "甲、乙",
            "○○屋敷",
            "バッカイ",
            "[東西]余川",
            "足助高等学校",
            "キョウワマチ",
            "^奥津川$",
            "乙を除く",
            "を含む",
            "番地のみ$",
            "^小川$",
        ]
    )
)

# Toyohashi (Aichi) hands out 440/441 codes out of order.
DEFAULT_INTERLEAVED_AREA_GROUPS = (("440", "441"),)

KEN_ALL_URL = "https://www.post.japanpost.jp/zipcode/dl/kogaki/zip/ken_all.zip"
SOURCE_ENCODING = "cp932"
TARGET_ENCODING = "utf-8"
NEWLINES = re.compile(r"\r\n|\r|\n")
