from __future__ import annotations
from dataclasses import dataclass, replace as _dc_replace
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Sequence, Union
import math

ROLES = ("inbound", "outbound", "inventory")

# CSV column -> record attribute, per role
INBOUND_COLUMNS = {
    "Late": "late",
    "Vendor Name": "vendor_name",
    "Units": "units",
    "Transit_Mode": "transit_mode",
    "Reason_Code": "reason_code",
}
OUTBOUND_COLUMNS = {
    "Units_Ordered": "units_ordered",
    "Units_Invoiced": "units_invoiced",
    "Channel": "channel",
    "Avg_Price": "avg_price",
    "Margin_Pct": "margin_pct",
}
INVENTORY_COLUMNS = {
    "Product Group": "product_group",
    "Division": "division",
}

# ----------------- numeric coercion helpers -----------------

def to_float(x: Optional[str], default: float = 0.0) -> float:
    """Coerce to finite float; default on None/blank/NaN/inf or conversion error."""
    if x is None:
        return default
    try:
        v = float(str(x).strip())
        return v if math.isfinite(v) else default
    except (TypeError, ValueError):
        return default

def to_int(x: Optional[str], default: int = 0) -> int:
    """Integer value truncated toward zero, e.g. '12.7' -> 12."""
    v = to_float(x, default=float(default))
    return int(v)

def fixed(x: float, places: int) -> str:
    """Fixed-point text; ties on the exact binary value round up. Never prints '-0.00'."""
    d = Decimal(x).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    if d == 0:
        d = abs(d)
    return format(d, "f")

def _clean(x: Any) -> Optional[str]:
    if x is None:
        return None
    if isinstance(x, float) and math.isnan(x):
        return None
    s = str(x)
    return s if s != "" else None

# ----------------- typed records -----------------

@dataclass(frozen=True)
class InboundRecord:
    late: Optional[str] = None
    vendor_name: Optional[str] = None
    units: Optional[str] = None
    transit_mode: Optional[str] = None
    reason_code: Optional[str] = None

    @property
    def on_time(self) -> bool:
        return self.late == "No"

    @property
    def units_value(self) -> int:
        return to_int(self.units)


@dataclass(frozen=True)
class OutboundRecord:
    units_ordered: Optional[str] = None
    units_invoiced: Optional[str] = None
    channel: Optional[str] = None
    avg_price: Optional[str] = None
    margin_pct: Optional[str] = None

    @property
    def ordered_value(self) -> int:
        return to_int(self.units_ordered)

    @property
    def invoiced_value(self) -> int:
        return to_int(self.units_invoiced)

    @property
    def price_value(self) -> float:
        return to_float(self.avg_price)

    @property
    def margin_value(self) -> float:
        return to_float(self.margin_pct)

    @property
    def revenue(self) -> float:
        return self.price_value * self.invoiced_value


@dataclass(frozen=True)
class InventoryRecord:
    product_group: Optional[str] = None
    division: Optional[str] = None


Record = Union[InboundRecord, OutboundRecord, InventoryRecord]

_ROLE_SCHEMA = {
    "inbound": (InboundRecord, INBOUND_COLUMNS),
    "outbound": (OutboundRecord, OUTBOUND_COLUMNS),
    "inventory": (InventoryRecord, INVENTORY_COLUMNS),
}

def columns_for(role: str) -> Dict[str, str]:
    if role not in _ROLE_SCHEMA:
        raise ValueError(f"Unknown dataset role '{role}'")
    return _ROLE_SCHEMA[role][1]

def record_from_row(role: str, row: Dict[str, Any]) -> Record:
    """Map one parsed CSV row onto the role's record; absent columns stay None."""
    cls, cols = _ROLE_SCHEMA.get(role, (None, None))
    if cls is None:
        raise ValueError(f"Unknown dataset role '{role}'")
    return cls(**{attr: _clean(row.get(col)) for col, attr in cols.items()})

def records_from_rows(role: str, rows: Sequence[Dict[str, Any]]) -> List[Record]:
    return [record_from_row(role, r) for r in rows]

# ----------------- dataset slots -----------------

@dataclass(frozen=True)
class DatasetSlots:
    """One optional dataset per role. Replacing a slot returns a new container."""
    inbound: Optional[List[InboundRecord]] = None
    outbound: Optional[List[OutboundRecord]] = None
    inventory: Optional[List[InventoryRecord]] = None

    def replace(self, role: str, records: Sequence[Record]) -> "DatasetSlots":
        if role not in ROLES:
            raise ValueError(f"Unknown dataset role '{role}'")
        return _dc_replace(self, **{role: list(records)})

    def get(self, role: str) -> Optional[List[Record]]:
        if role not in ROLES:
            raise ValueError(f"Unknown dataset role '{role}'")
        return getattr(self, role)

    @property
    def all_loaded(self) -> bool:
        return all(getattr(self, r) is not None for r in ROLES)

    def row_counts(self) -> Dict[str, Optional[int]]:
        return {r: (None if getattr(self, r) is None else len(getattr(self, r))) for r in ROLES}
