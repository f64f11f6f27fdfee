import pytest

from kenall.models import Postcode


def _row(postcode="0600000", town_area="", town_area_kana="", area_code="01101", update_reason="0"):
    return [
        area_code,
        postcode[:3] + "  ",
        postcode,
        "ﾎｯｶｲﾄﾞｳ",
        "ｻｯﾎﾟﾛｼﾁｭｳｵｳｸ",
        town_area_kana,
        "北海道",
        "札幌市中央区",
        town_area,
        "0",
        "0",
        "0",
        "0",
        "0",
        update_reason,
    ]


@pytest.fixture
def make_row():
    return _row


@pytest.fixture
def make_postcode():
    def build(*args, **kwargs):
        return Postcode.from_row(_row(*args, **kwargs))
    return build


# postcode, town area, kana; None is a blank line
SAMPLE_ROWS = [
    ("0600000", "以下に掲載がない場合", "ｲｶﾆｹｲｻｲｶﾞﾅｲﾊﾞｱｲ"),
    None,
    ("0600042", "大通西（１～１９丁目）", "ｵｵﾄﾞｵﾘﾆｼ(1-19ﾁｮｳﾒ)"),
    ("0600043", "山田（上町、", "ﾔﾏﾀﾞ(ｶﾐﾏﾁ､"),
    ("0600043", "下町）", "ｼﾓﾏﾁ)"),
    ("0600043", "山田（下町）", "ﾔﾏﾀﾞ(ｼﾓﾏﾁ)"),
    ("0640941", "旭ケ丘", "ｱｻﾋｶﾞｵｶ"),
]

EXPECTED_TOWN_AREAS = ["", "大通西", "山田", "山田上町", "山田下町", "旭ケ丘"]


@pytest.fixture
def sample_rows():
    return [[] if sample is None else _row(*sample) for sample in SAMPLE_ROWS]


@pytest.fixture
def ken_all_bytes(sample_rows):
    """Sample rows the way Japan Post ships them: quoted, cp932, CRLF."""
    lines = []
    for row in sample_rows:
        if not row:
            lines.append("")
            continue
        lines.append(row[0] + "," + ",".join('"' + value + '"' for value in row[1:]))
    return ("\r\n".join(lines) + "\r\n").encode("cp932")


@pytest.fixture
def ken_all_csv(tmp_path, ken_all_bytes):
    path = tmp_path / "KEN_ALL.CSV"
    path.write_bytes(ken_all_bytes)
    return path
