import io

from kpi_engine.loader import load_dataset, load_into_slots, read_csv_frame
from kpi_engine.schema import DatasetSlots, InboundRecord, InventoryRecord


def _rows(text):
    return read_csv_frame(text).to_dict(orient="records")


def test_parse_skips_blank_lines_and_keeps_strings():
    text = "Late,Vendor Name,Units\nNo,A,010\n\nYes,B,5\n"
    rows = _rows(text)
    assert rows == [
        {"Late": "No", "Vendor Name": "A", "Units": "010"},
        {"Late": "Yes", "Vendor Name": "B", "Units": "5"},
    ]


def test_parse_skips_whitespace_only_lines():
    rows = _rows("A,B\n1,2\n   \n3,4\n")
    assert rows == [{"A": "1", "B": "2"}, {"A": "3", "B": "4"}]


def test_parse_tolerates_short_and_long_rows():
    text = "Product Group,Division\nShoes\nBags,Accessories,EXTRA\n"
    rows = _rows(text)
    assert len(rows) == 2
    assert rows[0]["Product Group"] == "Shoes"
    assert rows[0]["Division"] is None
    assert rows[1] == {"Product Group": "Bags", "Division": "Accessories"}


def test_parse_empty_text():
    assert _rows("") == []
    assert _rows("   \n") == []


def test_load_dataset_from_path(tmp_path):
    p = tmp_path / "inbound.csv"
    p.write_text("Late,Vendor Name,Units,Transit_Mode,Reason_Code\nNo,A,10,Ocean,\nYes,B,5,Air,Vendor_Delay\n")
    records, report = load_dataset(str(p), "inbound")
    assert records == [
        InboundRecord(late="No", vendor_name="A", units="10", transit_mode="Ocean", reason_code=None),
        InboundRecord(late="Yes", vendor_name="B", units="5", transit_mode="Air", reason_code="Vendor_Delay"),
    ]
    assert report["num_rows"] == 2
    assert report["num_columns"] == 5
    assert report["missing_columns"] == []
    assert report["_warnings"] == []


def test_load_dataset_reports_missing_columns_from_upload():
    upload = io.BytesIO(b"\xef\xbb\xbfProduct Group\nShoes\n")  # UTF-8 BOM
    records, report = load_dataset(upload, "inventory")
    assert records == [InventoryRecord(product_group="Shoes", division=None)]
    assert report["missing_columns"] == ["Division"]
    assert any("missing columns" in w for w in report["_warnings"])


def test_load_dataset_header_only():
    records, report = load_dataset(b"Units_Ordered,Units_Invoiced\n", "outbound")
    assert records == []
    assert report["num_rows"] == 0
    assert report["num_columns"] == 2
    assert "Channel" in report["missing_columns"]


def test_load_dataset_unreadable_path(tmp_path):
    records, report = load_dataset(str(tmp_path / "nope.csv"), "inbound")
    assert records == []
    assert report["_warnings"][0].startswith("Failed to read CSV")


INBOUND_CSV = b"Late,Vendor Name,Units,Transit_Mode,Reason_Code\nNo,A,10,Ocean,\n"


def test_load_into_slots_replaces_the_role_slot():
    slots, report = load_into_slots(DatasetSlots(), INBOUND_CSV, "inbound")
    assert report["read_error"] is None
    assert [r.vendor_name for r in slots.inbound] == ["A"]
    assert slots.outbound is None

    slots, _ = load_into_slots(slots, b"Late,Vendor Name,Units\nYes,B,1\nNo,C,2\n", "inbound")
    assert [r.vendor_name for r in slots.inbound] == ["B", "C"]


def test_failed_read_keeps_previous_slot():
    first, _ = load_into_slots(DatasetSlots(), INBOUND_CSV, "inbound")
    # not valid UTF-8
    after, report = load_into_slots(first, b"Late,Units\n\xff\xfe,1\n", "inbound")
    assert report["read_error"] is not None
    assert after is first
    assert [r.vendor_name for r in after.inbound] == ["A"]


def test_failed_read_leaves_empty_slot_empty(tmp_path):
    slots, report = load_into_slots(DatasetSlots(), str(tmp_path / "nope.csv"), "outbound")
    assert report["read_error"] is not None
    assert slots.outbound is None
    assert not slots.all_loaded
