import pytest

from kpi_engine.schema import InboundRecord, OutboundRecord, InventoryRecord


@pytest.fixture
def inbound():
    return [
        InboundRecord(late="No", vendor_name="Acme", units="100", transit_mode="Ocean", reason_code=None),
        InboundRecord(late="Yes", vendor_name="Acme", units="50", transit_mode="Air", reason_code="Port_Congestion"),
        InboundRecord(late="No", vendor_name="Bolt", units="30", transit_mode="Ocean", reason_code=None),
        InboundRecord(late="Yes", vendor_name="Crane", units="20", transit_mode="Truck", reason_code="Vendor_Delay"),
        InboundRecord(late="Yes", vendor_name="Crane", units="abc", transit_mode="Ocean", reason_code="Port_Congestion"),
        InboundRecord(late="No", vendor_name="Delta", units="10", transit_mode="Air", reason_code=None),
        InboundRecord(late="Yes", vendor_name=None, units="5", transit_mode=None, reason_code="Weather"),
    ]


@pytest.fixture
def outbound():
    return [
        OutboundRecord(units_ordered="100", units_invoiced="90", channel="Retail", avg_price="10", margin_pct="0.5"),
        OutboundRecord(units_ordered="10", units_invoiced="10", channel="Retail", avg_price="10", margin_pct="0.1"),
        OutboundRecord(units_ordered="200", units_invoiced="150", channel="Wholesale", avg_price="20", margin_pct="0.2"),
        OutboundRecord(units_ordered="50", units_invoiced=None, channel=None, avg_price="5", margin_pct="0.9"),
    ]


@pytest.fixture
def inventory():
    return [
        InventoryRecord(product_group="Shoes", division="Footwear"),
        InventoryRecord(product_group="Bags", division="Accessories"),
        InventoryRecord(product_group="Shoes", division="Footwear"),
        InventoryRecord(product_group=None, division="Apparel"),
    ]
