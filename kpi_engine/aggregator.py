"""
KPI aggregation over the Inbound, Outbound and Inventory datasets.

Every function here is pure: it takes record lists and returns plain dicts /
lists that `kpi_engine.reporter` renders. Percentages are carried as floats in
0..100; a rate whose denominator is zero is carried as None.
"""

from __future__ import annotations
from typing import Dict, Any, List, Optional, Sequence
import logging

from kpi_engine.schema import DatasetSlots, InboundRecord, OutboundRecord, InventoryRecord, fixed
from kpi_engine.reporter import build_kpi_report

logger = logging.getLogger(__name__)

TOP_N = 3

def _pct(num: float, den: float) -> Optional[float]:
    return (num / den) * 100 if den else None

def _ranked(items: List[Dict[str, Any]], key: str) -> List[Dict[str, Any]]:
    # sorted() is stable, so ties keep encounter order
    return sorted(items, key=lambda x: x[key], reverse=True)

# ----------------- inbound -----------------

def inbound_metrics(inbound: Sequence[InboundRecord]) -> Dict[str, Any]:
    total = len(inbound)
    on_time = sum(1 for r in inbound if r.on_time)
    on_time_pct = _pct(on_time, total)
    # late share is the complement of the *displayed* on-time rate
    late_pct = None if on_time_pct is None else 100 - float(fixed(on_time_pct, 2))
    return {
        "total": total,
        "on_time": on_time,
        "on_time_pct": on_time_pct,
        "late": total - on_time,
        "late_pct": late_pct,
    }

def vendor_ranking(inbound: Sequence[InboundRecord], top_n: int = TOP_N) -> List[Dict[str, Any]]:
    stats: Dict[str, Dict[str, int]] = {}
    for r in inbound:
        if not r.vendor_name:
            continue
        s = stats.setdefault(r.vendor_name, {"total": 0, "on_time": 0, "units": 0})
        s["total"] += 1
        if r.on_time:
            s["on_time"] += 1
        s["units"] += r.units_value

    rows = [
        {"vendor": v, "total": s["total"], "on_time": s["on_time"], "units": s["units"],
         "rate_pct": _pct(s["on_time"], s["total"])}
        for v, s in stats.items() if s["total"] > 0
    ]
    return _ranked(rows, "rate_pct")[:top_n]

def transit_breakdown(inbound: Sequence[InboundRecord]) -> List[Dict[str, Any]]:
    stats: Dict[str, Dict[str, int]] = {}
    for r in inbound:
        if not r.transit_mode:
            continue
        s = stats.setdefault(r.transit_mode, {"total": 0, "on_time": 0})
        s["total"] += 1
        if r.on_time:
            s["on_time"] += 1
    return [
        {"mode": m, "total": s["total"], "on_time": s["on_time"], "rate_pct": _pct(s["on_time"], s["total"])}
        for m, s in stats.items()
    ]

def delay_reasons(inbound: Sequence[InboundRecord], top_n: int = TOP_N) -> List[Dict[str, Any]]:
    counts: Dict[str, int] = {}
    for r in inbound:
        if r.reason_code:
            counts[r.reason_code] = counts.get(r.reason_code, 0) + 1
    total = len(inbound)
    rows = [{"reason": k, "count": c, "pct": _pct(c, total)} for k, c in counts.items()]
    return _ranked(rows, "count")[:top_n]

# ----------------- outbound -----------------

def outbound_metrics(outbound: Sequence[OutboundRecord]) -> Dict[str, Any]:
    ordered = sum(r.ordered_value for r in outbound)
    invoiced = sum(r.invoiced_value for r in outbound)
    return {
        "total_orders": len(outbound),
        "units_ordered": ordered,
        "units_invoiced": invoiced,
        "fulfillment_pct": _pct(invoiced, ordered),
    }

def channel_breakdown(outbound: Sequence[OutboundRecord]) -> List[Dict[str, Any]]:
    """Per-channel orders, invoiced units, revenue and the unweighted mean margin, by revenue desc."""
    stats: Dict[str, Dict[str, float]] = {}
    for r in outbound:
        if not r.channel:
            continue
        s = stats.setdefault(r.channel, {"orders": 0, "units": 0, "revenue": 0.0, "margin_sum": 0.0})
        s["orders"] += 1
        s["units"] += r.invoiced_value
        s["revenue"] += r.revenue
        s["margin_sum"] += r.margin_value

    rows = [
        {"channel": c, "orders": s["orders"], "units": s["units"], "revenue": s["revenue"],
         "avg_margin_pct": s["margin_sum"] / s["orders"] * 100}
        for c, s in stats.items() if s["orders"] > 0
    ]
    return _ranked(rows, "revenue")

# ----------------- inventory -----------------

def _group_counts(values: List[Optional[str]], total: int) -> List[Dict[str, Any]]:
    counts: Dict[str, int] = {}
    for v in values:
        if v:
            counts[v] = counts.get(v, 0) + 1
    return [{"name": k, "count": c, "pct": _pct(c, total)} for k, c in counts.items()]

def inventory_distribution(inventory: Sequence[InventoryRecord]) -> Dict[str, Any]:
    total = len(inventory)
    groups = _group_counts([r.product_group for r in inventory], total)
    return {
        "total_skus": total,
        "product_groups": _ranked(groups, "count"),
        "divisions": _group_counts([r.division for r in inventory], total),
    }

# ----------------- cross-dataset -----------------

def integrated_insights(inbound: Sequence[InboundRecord], outbound: Sequence[OutboundRecord]) -> Dict[str, Any]:
    total_revenue = sum(r.revenue for r in outbound)
    invoiced = sum(r.invoiced_value for r in outbound)
    weighted = sum(r.margin_value * r.invoiced_value for r in outbound)
    received = sum(r.units_value for r in inbound)
    return {
        "total_revenue": total_revenue,
        # unit-weighted; intentionally not the mean of the per-channel averages
        "weighted_margin_pct": _pct(weighted, invoiced),
        "inbound_units": received,
        "outbound_units": invoiced,
        "turnover_pct": _pct(invoiced, received),
    }

# ----------------- entry points -----------------

def compute_kpis(
    inbound: Sequence[InboundRecord],
    outbound: Sequence[OutboundRecord],
    inventory: Sequence[InventoryRecord],
) -> Dict[str, Any]:
    """
    Fold the three datasets into one KPI dict.

    Keys:
      - inbound: totals and on-time / late rates
      - vendors: top vendors by on-time rate
      - transit_modes: every transit mode, encounter order
      - delay_reasons: top reason codes by frequency
      - outbound: order and unit totals, fulfillment rate
      - channels: channel breakdown by revenue
      - inventory: SKU count, product group ranking, division split
      - integrated: revenue, weighted margin, unit flow and turnover
    """
    return {
        "inbound": inbound_metrics(inbound),
        "vendors": vendor_ranking(inbound),
        "transit_modes": transit_breakdown(inbound),
        "delay_reasons": delay_reasons(inbound),
        "outbound": outbound_metrics(outbound),
        "channels": channel_breakdown(outbound),
        "inventory": inventory_distribution(inventory),
        "integrated": integrated_insights(inbound, outbound),
    }

def generate_report(slots: DatasetSlots) -> Optional[str]:
    """Full KPI report, or None until all three datasets are loaded."""
    if not slots.all_loaded:
        return None
    kpis = compute_kpis(slots.inbound, slots.outbound, slots.inventory)
    logger.debug("KPI report recomputed for row counts %s", slots.row_counts())
    return build_kpi_report(kpis)
