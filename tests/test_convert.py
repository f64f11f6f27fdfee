import base64
import csv
import hashlib

import pytest

from kenall import convert as convert_module
from kenall.convert import KenAllConverter, convert, convert_csv_bytes, convert_file, write_records
from kenall.models import MalformedRowError

from conftest import EXPECTED_TOWN_AREAS


def read_output(path):
    with open(path, encoding="utf-8", newline="") as fh:
        return list(csv.reader(fh))


def test_process_folds_rows_into_normalized_records(sample_rows):
    converter = KenAllConverter()

    records = list(converter.process(sample_rows))

    assert [r.town_area for r in records] == EXPECTED_TOWN_AREAS
    assert [r.postcode for r in records] == [
        "0600000", "0600042", "0600043", "0600043", "0600043", "0640941",
    ]
    assert converter.summary.model_dump() == {
        "rows_read": 7,
        "blank_rows_skipped": 1,
        "continuation_rows_merged": 1,
        "candidates": 8,
        "records_written": 6,
        "duplicates_suppressed": 2,
        "window_resets": 1,
        "pending_dropped": 0,
    }


def test_process_skips_rows_without_area_code(make_row):
    converter = KenAllConverter()
    rows = [[], [""], ["", "060  "], make_row("0600042", "大通西")]

    records = list(converter.process(rows))

    assert [r.town_area for r in records] == ["大通西"]
    assert converter.summary.blank_rows_skipped == 3


def test_process_drops_record_still_open_at_end(make_row):
    converter = KenAllConverter()
    rows = [make_row("0600042", "大通西"), make_row("0600043", "山田（上町、")]

    records = list(converter.process(rows))

    assert [r.town_area for r in records] == ["大通西"]
    assert converter.summary.pending_dropped == 1


def test_process_fails_on_malformed_row(make_row):
    converter = KenAllConverter()

    with pytest.raises(MalformedRowError):
        list(converter.process([make_row("0600042", "大通西")[:10]]))


def test_process_uses_configured_interleaved_groups(make_row):
    converter = KenAllConverter(interleaved_area_groups=[])
    rows = [make_row("4400001", "今橋町"), make_row("4410001", "西岩田"), make_row("4400001", "今橋町")]

    records = list(converter.process(rows))

    assert len(records) == 3
    assert converter.summary.window_resets == 2


def test_write_records(make_postcode, tmp_path):
    path = tmp_path / "out.csv"
    records = [make_postcode("0600042", "大通西"), make_postcode("0640941", "旭ケ丘")]

    with open(path, "w", encoding="utf-8", newline="") as out:
        assert write_records(records, out) == 2

    assert path.read_text(encoding="utf-8").splitlines() == [r.to_csv() for r in records]


def test_convert_file(ken_all_csv, tmp_path):
    output = tmp_path / "nested" / "ken_all_converted.csv"

    summary = convert_file(ken_all_csv, output, encoding="cp932")

    rows = read_output(output)
    assert [row[8] for row in rows] == EXPECTED_TOWN_AREAS
    assert rows[3][5] == "ﾔﾏﾀﾞｶﾐﾏﾁ"
    assert summary.records_written == len(rows)
    assert output.read_bytes().count(b"\r") == 0


def test_convert_from_local_source_keeps_source(ken_all_csv, tmp_path):
    output = tmp_path / "out.csv"

    convert(output_path=output, source_path=ken_all_csv)

    assert ken_all_csv.exists()
    assert [row[8] for row in read_output(output)] == EXPECTED_TOWN_AREAS


def test_convert_downloads_and_removes_extracted_file(monkeypatch, ken_all_bytes, tmp_path):
    extracted = tmp_path / "ken_all_work" / "KEN_ALL.CSV"
    extracted.parent.mkdir()
    extracted.write_bytes(ken_all_bytes)
    requested = []

    def fake_fetch(url=None):
        requested.append(url)
        return extracted

    monkeypatch.setattr(convert_module, "fetch_archive", fake_fetch)
    output = tmp_path / "out.csv"

    summary = convert(output_path=output, url="https://example.invalid/ken_all.zip")

    assert requested == ["https://example.invalid/ken_all.zip"]
    assert summary.records_written == len(EXPECTED_TOWN_AREAS)
    assert not extracted.exists()
    assert not extracted.parent.exists()


def test_convert_removes_extracted_file_on_failure(monkeypatch, tmp_path):
    extracted = tmp_path / "ken_all_work" / "KEN_ALL.CSV"
    extracted.parent.mkdir()
    extracted.write_bytes("01101,\"060  \"\r\n".encode("cp932"))
    monkeypatch.setattr(convert_module, "fetch_archive", lambda url=None: extracted)

    with pytest.raises(MalformedRowError):
        convert(output_path=tmp_path / "out.csv")

    assert not extracted.exists()
    assert not extracted.parent.exists()


def test_convert_csv_bytes_envelope(ken_all_bytes):
    result = convert_csv_bytes(ken_all_bytes, encoding="cp932")

    content = base64.b64decode(result["converted_csv"]["content_b64"])
    assert result["converted_csv"]["sha256"] == hashlib.sha256(content).hexdigest()
    assert result["converted_csv"]["encoding"] == "utf-8"
    assert result["report"]["source_encoding"] == "cp932"
    assert result["report"]["summary"]["records_written"] == len(EXPECTED_TOWN_AREAS)

    rows = list(csv.reader(content.decode("utf-8").splitlines()))
    assert [row[8] for row in rows] == EXPECTED_TOWN_AREAS


def test_convert_csv_bytes_rejects_undecodable_input():
    with pytest.raises(UnicodeDecodeError):
        convert_csv_bytes(b'01101,"\x81', encoding="cp932")


def test_convert_csv_bytes_detects_cp932(ken_all_bytes):
    result = convert_csv_bytes(ken_all_bytes, encoding="auto")

    assert result["report"]["source_encoding"] == "cp932"
    assert result["report"]["summary"]["records_written"] == len(EXPECTED_TOWN_AREAS)


def test_convert_csv_bytes_strips_utf8_bom(ken_all_bytes):
    raw = ken_all_bytes.decode("cp932").encode("utf-8-sig")

    result = convert_csv_bytes(raw, encoding="auto")

    assert result["report"]["source_encoding"] == "utf-8-sig"
    content = base64.b64decode(result["converted_csv"]["content_b64"]).decode("utf-8")
    rows = list(csv.reader(content.splitlines()))
    assert rows[0][0] == "01101"
    assert [row[8] for row in rows] == EXPECTED_TOWN_AREAS


def test_convert_file_detects_encoding(ken_all_csv, tmp_path):
    output = tmp_path / "out.csv"

    convert_file(ken_all_csv, output, encoding="auto")

    assert [row[8] for row in read_output(output)] == EXPECTED_TOWN_AREAS


def test_convert_file_detects_utf8_bom(ken_all_bytes, tmp_path):
    source = tmp_path / "KEN_ALL_UTF8.CSV"
    source.write_bytes(ken_all_bytes.decode("cp932").encode("utf-8-sig"))
    output = tmp_path / "out.csv"

    convert_file(source, output, encoding="auto")

    rows = read_output(output)
    assert rows[0][0] == "01101"
    assert "\ufeff" not in output.read_text(encoding="utf-8")
    assert [row[8] for row in rows] == EXPECTED_TOWN_AREAS
