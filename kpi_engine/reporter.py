from typing import Dict, Any, List, Optional, Tuple
import re

from kpi_engine.schema import fixed

RULE = "=" * 50
NA = "N/A"

def _pct(x: Optional[float], places: int) -> str:
    return NA if x is None else f"{fixed(x, places)}%"

def _millions(x: float) -> str:
    return f"${fixed(x / 1_000_000, 2)}M"

def _section(title: str) -> List[str]:
    return [title, RULE]

def build_kpi_report(kpis: Dict[str, Any]) -> str:
    inb = kpis.get("inbound", {})
    out = kpis.get("outbound", {})
    inv = kpis.get("inventory", {})
    integ = kpis.get("integrated", {})

    lines = ["=== COMPREHENSIVE SUPPLY CHAIN KPI SUMMARY ===", ""]

    # Inbound
    lines += _section("📦 INBOUND LOGISTICS (Vendor Performance)")
    lines += [
        f"Total Inbound Orders: {inb.get('total', 0)}",
        f"On-Time Delivery Rate: {_pct(inb.get('on_time_pct'), 2)}",
        f"Late Deliveries: {inb.get('late', 0)} ({_pct(inb.get('late_pct'), 2)})",
        "",
        "Top 3 Vendors by On-Time Performance:",
    ]
    for i, v in enumerate(kpis.get("vendors", []), start=1):
        lines.append(
            f"  {i}. {v['vendor']}: {_pct(v['rate_pct'], 1)} "
            f"({v['on_time']}/{v['total']} orders, {v['units']:,} units)"
        )
    lines += ["", "Transit Mode Performance:"]
    for m in kpis.get("transit_modes", []):
        lines.append(f"  - {m['mode']}: {_pct(m['rate_pct'], 1)} on-time ({m['on_time']}/{m['total']})")
    lines += ["", "Top 3 Delay Reasons:"]
    for i, r in enumerate(kpis.get("delay_reasons", []), start=1):
        label = r["reason"].replace("_", " ")
        lines.append(f"  {i}. {label}: {r['count']} orders ({_pct(r['pct'], 1)})")

    # Outbound
    lines += ["", ""]
    lines += _section("🚚 OUTBOUND FULFILLMENT (Customer Orders)")
    lines += [
        f"Total Orders: {out.get('total_orders', 0)}",
        f"Units Ordered: {out.get('units_ordered', 0):,}",
        f"Units Invoiced: {out.get('units_invoiced', 0):,}",
        f"Fulfillment Rate: {_pct(out.get('fulfillment_pct'), 2)}",
        "",
        "Channel Breakdown:",
    ]
    for c in kpis.get("channels", []):
        lines.append(
            f"  - {c['channel']}: {c['orders']} orders, {c['units']:,} units, "
            f"{_millions(c['revenue'])} revenue, {_pct(c['avg_margin_pct'], 1)} avg margin"
        )

    # Inventory
    lines += ["", ""]
    lines += _section("📊 INVENTORY & PRODUCT CATALOG")
    lines += [f"Total SKUs: {inv.get('total_skus', 0)}", "", "Product Group Distribution:"]
    for g in inv.get("product_groups", []):
        lines.append(f"  - {g['name']}: {g['count']} SKUs ({_pct(g['pct'], 1)})")
    lines += ["", "Division Split:"]
    for d in inv.get("divisions", []):
        lines.append(f"  - {d['name']}: {d['count']} SKUs ({_pct(d['pct'], 1)})")

    # Cross-dataset
    lines += ["", ""]
    lines += _section("🔗 INTEGRATED INSIGHTS")
    lines += [
        f"Total Revenue: {_millions(integ.get('total_revenue', 0.0))}",
        f"Weighted Avg Margin: {_pct(integ.get('weighted_margin_pct'), 2)}",
        f"Inbound Units Received: {integ.get('inbound_units', 0):,}",
        f"Outbound Units Shipped: {integ.get('outbound_units', 0):,}",
        f"Inventory Turnover Indicator: {_pct(integ.get('turnover_pct'), 1)}",
    ]
    return "\n".join(lines) + "\n"

# ----------------- model reply -> display blocks -----------------

_BOLD_HEADER = re.compile(r"^\*\*.*:\*\*")
_BULLET = re.compile(r"^[-•*]\s")
_NUMBERED = re.compile(r"^(\d+\.)\s")

def response_blocks(text: str) -> List[Tuple[str, str]]:
    """
    Split a model reply into (kind, text) blocks, one per line:
      header    '## Title'        -> 'Title'
      subheader '**Label:** ...'  -> bold markers stripped
      bullet    '- item'          -> 'item'
      numbered  '1. item'         -> '1. item'
      paragraph any other text
      spacer    blank line
    """
    blocks: List[Tuple[str, str]] = []
    for line in (text or "").split("\n"):
        s = line.strip()
        if s.startswith("##"):
            blocks.append(("header", re.sub(r"^##\s*", "", s).lstrip("#").strip()))
        elif _BOLD_HEADER.match(line):
            blocks.append(("subheader", line.replace("**", "")))
        elif _BULLET.match(s):
            blocks.append(("bullet", _BULLET.sub("", s, count=1)))
        elif _NUMBERED.match(s):
            m = _NUMBERED.match(s)
            blocks.append(("numbered", f"{m.group(1)} {s[m.end():]}"))
        elif s:
            blocks.append(("paragraph", line))
        else:
            blocks.append(("spacer", ""))
    return blocks
