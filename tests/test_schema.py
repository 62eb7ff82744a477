import pytest

from kpi_engine.schema import (
    DatasetSlots,
    fixed,
    InboundRecord,
    OutboundRecord,
    record_from_row,
    to_float,
    to_int,
)


@pytest.mark.parametrize("raw,expected", [
    ("42", 42), ("12.7", 12), (" 7 ", 7), ("", 0), (None, 0), ("abc", 0), ("nan", 0), ("inf", 0),
    # float() syntax: underscores and exponents are read in full
    ("1_000", 1000), ("1e3", 1000), ("-3.9", -3),
])
def test_to_int_is_lenient(raw, expected):
    assert to_int(raw) == expected


def test_to_float_defaults_to_zero():
    assert to_float("0.35") == pytest.approx(0.35)
    assert to_float("n/a") == 0.0
    assert to_float(None) == 0.0


def test_fixed_rounds_ties_up():
    assert fixed(2.5, 0) == "3"
    assert fixed(0.125, 2) == "0.13"
    assert fixed(1.005, 2) == "1.00"  # 1.005 is just below the tie in binary
    assert fixed(50, 2) == "50.00"


def test_fixed_never_prints_negative_zero():
    assert fixed(-0.0001, 2) == "0.00"
    assert fixed(-0.0, 1) == "0.0"
    assert fixed(-0.06, 1) == "-0.1"


def test_record_from_row_maps_columns_and_blanks():
    rec = record_from_row("inbound", {"Late": "No", "Vendor Name": "", "Units": "3", "Extra": "x"})
    assert rec == InboundRecord(late="No", vendor_name=None, units="3", transit_mode=None, reason_code=None)
    assert rec.on_time
    assert rec.units_value == 3


def test_record_from_row_rejects_unknown_role():
    with pytest.raises(ValueError):
        record_from_row("returns", {})


def test_outbound_revenue_uses_truncated_units():
    rec = OutboundRecord(units_invoiced="4.9", avg_price="2.5")
    assert rec.revenue == pytest.approx(10.0)


def test_slots_replace_is_non_destructive():
    empty = DatasetSlots()
    one = empty.replace("inbound", [InboundRecord(late="No")])
    assert empty.inbound is None
    assert len(one.inbound) == 1
    assert not one.all_loaded

    full = one.replace("outbound", []).replace("inventory", [])
    assert full.all_loaded
    assert full.row_counts() == {"inbound": 1, "outbound": 0, "inventory": 0}

    swapped = full.replace("inbound", [InboundRecord(late="Yes"), InboundRecord(late="No")])
    assert [r.late for r in swapped.inbound] == ["Yes", "No"]
    assert [r.late for r in full.inbound] == ["No"]


def test_slots_unknown_role():
    with pytest.raises(ValueError):
        DatasetSlots().replace("returns", [])
