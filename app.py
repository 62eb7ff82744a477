# --- Supply Chain KPI Analytics (complete app.py) ---
# Upload Inbound / Outbound / Inventory CSVs → KPI report → Ask a question → Answer
# Datasets live in session_state slots; the report is recomputed from the slots on every rerun.

import os
import logging

try:
    import streamlit as st
except ModuleNotFoundError:
    print("This application requires Streamlit to run. Install it with `pip install streamlit`.")
    raise

st.set_page_config(page_title="Supply Chain KPI Analytics", layout="wide")

# --- Secrets (keep API keys out of code) ---
try:
    if "anthropic" in st.secrets:
        for k, v in st.secrets["anthropic"].items():
            if isinstance(v, str):
                os.environ[f"ANTHROPIC_{k.upper()}"] = v
except FileNotFoundError:
    pass  # no secrets.toml locally

logging.basicConfig(
    level=os.getenv("KPI_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Engine imports come after secrets so module-level config sees them
from kpi_engine.schema import DatasetSlots
from kpi_engine.loader import load_into_slots
from kpi_engine.aggregator import generate_report
from kpi_engine.reporter import response_blocks
from kpi_engine.genai import ask_question, MissingInputError, MODEL_NAME

DATASETS = [
    ("inbound", "📦 Inbound Data", "Vendor deliveries"),
    ("outbound", "🚚 Outbound Data", "Customer orders"),
    ("inventory", "📊 Inventory Data", "Product catalog"),
]

st.session_state.setdefault("slots", DatasetSlots())
st.session_state.setdefault("file_ids", {})
st.session_state.setdefault("load_reports", {})
st.session_state.setdefault("loading", False)

# --- Header ---
st.title("📈 Supply Chain KPI Analytics")
st.caption(f"End-to-end supply chain intelligence powered by {MODEL_NAME}")

api_key = st.text_input(
    "🔑 Anthropic API Key",
    value=os.getenv("ANTHROPIC_API_KEY", ""),
    type="password",
    placeholder="sk-ant-...",
    key="api_key",
)

# ---------------- Uploads (replace a slot only when a new file arrives) ----------------
cols = st.columns(3)
for (role, title, hint), col in zip(DATASETS, cols):
    with col:
        st.markdown(f"#### {title}")
        up = st.file_uploader(f"Upload {role.capitalize()} CSV", type=["csv"], key=f"upload_{role}", help=hint)
        if up is not None and st.session_state["file_ids"].get(role) != up.file_id:
            st.session_state["slots"], report = load_into_slots(st.session_state["slots"], up, role)
            st.session_state["load_reports"][role] = report
            st.session_state["file_ids"][role] = up.file_id
            if report["read_error"] is not None:
                st.error(f"❌ Error reading {role} CSV: {report['read_error']}")
        loaded = st.session_state["slots"].get(role)
        if loaded is not None:
            st.success(f"✓ {len(loaded)} rows loaded")
        else:
            st.caption(hint)

reports = st.session_state["load_reports"]
if reports:
    with st.expander("✅ CSV Validation Report"):
        for role, rep in reports.items():
            miss = rep.get("missing_columns", [])
            if miss:
                st.warning(f"{role.capitalize()}: missing columns - {miss}")
            else:
                st.write(f"{role.capitalize()}: OK ({rep.get('num_rows', 0)} rows, {rep.get('num_columns', 0)} columns)")
            for w in rep.get("_warnings", []):
                if not miss or "missing columns" not in w:
                    st.caption(f"- {w}")

# ---------------- KPI report (pure function of the slots) ----------------
kpi_report = generate_report(st.session_state["slots"])

if kpi_report is None:
    st.info(
        "**Upload All Three Datasets to Begin**\n\n"
        "Please upload Inbound, Outbound, and Inventory CSV files to generate comprehensive supply chain insights."
    )
    st.stop()

st.subheader("🕒 Comprehensive KPI Dashboard")
st.code(kpi_report, language=None)
st.download_button(
    "Download KPI Summary",
    data=kpi_report.encode("utf-8"),
    file_name="supply_chain_kpi_summary.txt",
    mime="text/plain",
)

# ---------------- Ask a question ----------------
def render_answer(text: str):
    for kind, body in response_blocks(text):
        if kind == "header":
            st.markdown(f"### {body}")
        elif kind == "subheader":
            st.markdown(f"**{body}**")
        elif kind == "bullet":
            st.markdown(f"- {body}")
        elif kind == "numbered":
            st.markdown(body)
        elif kind == "paragraph":
            st.write(body)

st.subheader("💬 Ask a Question")
with st.form("qa_form", clear_on_submit=False):
    q = st.text_area(
        "Try: 'How do vendor delays impact our retail revenue?' or 'Which product groups have the best margins?'",
        key="qa_text",
        height=90,
    )
    submit_qa = st.form_submit_button("Get Answer", disabled=st.session_state["loading"])

if submit_qa:
    st.session_state["loading"] = True
    try:
        with st.spinner("Processing..."):
            result = ask_question(api_key, q, kpi_report)
        st.session_state["last_answer"] = result
    except MissingInputError as e:
        st.warning(str(e))
    finally:
        st.session_state["loading"] = False

result = st.session_state.get("last_answer")
if result is not None:
    st.markdown("#### Claude's Response")
    if result.ok:
        render_answer(result.answer)
    else:
        st.error(result.error)
