# app_streamlit.py

import html
import io
import logging

import streamlit as st

from engine import analyze
from ingest import PDF_MIME_TYPE, PypdfBackend
from models import SAFE_LEVEL
from scoring import risk_distribution, score_band
from workflow import Phase, ScanController, ScanState

logging.basicConfig(level=logging.INFO)

# ===========================
# Basic page config & styles
# ===========================

st.set_page_config(
    page_title="Contract Scanner – AI-Powered Legal Risk Detection",
    layout="wide",
)

CUSTOM_CSS = """
<style>
/* Main title */
.contract-title {
    font-size: 40px;
    font-weight: 700;
    margin-bottom: 0.1rem;
}

/* Subheading under title */
.contract-subtitle {
    font-size: 13px;
    color: #6c757d;
    margin-bottom: 1.5rem;
}

/* Card styling for stat tiles and findings */
.ce-card {
    border-radius: 12px;
    padding: 1.2rem 1.5rem;
    border: 1px solid #e5e7eb;
    background: #ffffff;
    box-shadow: 0 1px 2px rgba(15, 23, 42, 0.04);
    margin-bottom: 0.8rem;
}

/* Risk level badges */
.badge-low {
    background-color: #fefce8;
    color: #a16207;
    border-radius: 999px;
    padding: 0.1rem 0.6rem;
    font-size: 12px;
    font-weight: 600;
}
.badge-medium {
    background-color: #fff7ed;
    color: #c2410c;
    border-radius: 999px;
    padding: 0.1rem 0.6rem;
    font-size: 12px;
    font-weight: 600;
}
.badge-high {
    background-color: #fef2f2;
    color: #b91c1c;
    border-radius: 999px;
    padding: 0.1rem 0.6rem;
    font-size: 12px;
    font-weight: 600;
}
.badge-safe {
    background-color: #ecfdf5;
    color: #166534;
    border-radius: 999px;
    padding: 0.1rem 0.6rem;
    font-size: 12px;
    font-weight: 600;
}

/* Score colours */
.score-safe { color: #22c55e; }
.score-caution { color: #f97316; }
.score-danger { color: #ef4444; }

/* Risk distribution bar */
.heatmap {
    display: flex;
    width: 100%;
    height: 12px;
    border-radius: 999px;
    overflow: hidden;
    background: #e2e8f0;
    margin-top: 0.5rem;
}
.heat-high { background: #ef4444; }
.heat-medium { background: #fb923c; }
.heat-low { background: #facc15; }

/* Section titles */
.section-title {
    font-size: 22px;
    font-weight: 700;
    margin-top: 1.5rem;
}

/* Small muted label */
.label-muted {
    font-size: 12px;
    color: #6b7280;
    text-transform: uppercase;
}
</style>
"""

st.markdown(CUSTOM_CSS, unsafe_allow_html=True)


# ===========================
# Session helpers
# ===========================

@st.cache_resource
def get_pdf_backend() -> PypdfBackend:
    return PypdfBackend().initialize()


if "scan_state" not in st.session_state:
    st.session_state.scan_state = ScanState()
    st.session_state.last_upload = None

state: ScanState = st.session_state.scan_state
controller = ScanController(state, analyzer=analyze, backend=get_pdf_backend())


# ===========================
# Visualisation helpers
# ===========================

def risk_badge(level: str) -> str:
    lvl = (level or "").lower()
    if lvl not in ("high", "medium", "low", "safe"):
        lvl = "medium"
    return f'<span class="badge-{lvl}">{html.escape(level)} Risk</span>'


def heatmap_html(distribution: dict) -> str:
    total = sum(distribution.values())
    if total == 0:
        return '<div class="heatmap"></div>'
    segments = "".join(
        f'<div class="heat-{level.lower()}" style="width:{count / total * 100:.1f}%"></div>'
        for level, count in distribution.items()
    )
    return f'<div class="heatmap">{segments}</div>'


def finding_card(finding) -> str:
    return f"""
<div class="ce-card">
  <div style="display:flex;justify-content:space-between;">
    {risk_badge(finding.level)}
    <span class="label-muted">{html.escape(finding.category)}</span>
  </div>
  <p style="font-style:italic;font-weight:600;border-left:2px solid #cbd5e1;padding-left:0.6rem;margin-top:0.6rem;">
    "{html.escape(finding.phrase)}"
  </p>
  <p style="font-size:13px;background:#fef2f2;color:#991b1b;padding:0.5rem;border-radius:6px;">
    {html.escape(finding.explanation)}
  </p>
  <p style="font-size:13px;background:#eff6ff;color:#1e3a8a;padding:0.5rem;border-radius:6px;">
    <strong>AI Simplified:</strong> {html.escape(finding.plainEnglish)}
  </p>
</div>
"""


# ===========================
# Report export helper
# ===========================

def build_markdown_report(scan: ScanState) -> str:
    dist = risk_distribution(scan.findings)
    lines = []

    lines.append(f"# Contract Scanner – {scan.document_title}\n")

    lines.append("## Safety Score\n")
    lines.append(f"- Safety score: **{scan.score}/100**")
    lines.append(f"- High: {dist['High']} · Medium: {dist['Medium']} · Low: {dist['Low']}\n")
    if scan.truncated:
        lines.append("_Only the beginning of this document was analysed._\n")

    lines.append("## Findings\n")
    if not scan.findings:
        lines.append("No risky clauses were found.\n")
    for item in scan.findings:
        lines.append(f"### {item.level} – {item.category}\n")
        lines.append(f"> {item.phrase}\n")
        lines.append(f"**Explanation:** {item.explanation}\n")
        lines.append(f"**Plain English:** {item.plainEnglish}\n")

    return "\n".join(lines)


# ===========================
# Main layout – header
# ===========================

st.markdown(
    """
<div class="contract-title">Contract<span style="color:#60a5fa;">Scanner</span></div>
<div class="contract-subtitle">
AI-Powered Legal Risk Detection · results should be verified by a qualified attorney.
</div>
""",
    unsafe_allow_html=True,
)

# ===========================
# Stat tiles
# ===========================

analyzing = state.phase == Phase.ANALYZING
distribution = risk_distribution(state.findings)

col1, col2, col3 = st.columns(3)

with col1:
    band = score_band(state.score)
    st.markdown(
        f"""<div class="ce-card"><div class="label-muted">Safety Score</div>
<h2 class="score-{band}" style="margin:0.2rem 0;">{state.score}/100</h2></div>""",
        unsafe_allow_html=True,
    )

with col2:
    st.markdown(
        f"""<div class="ce-card"><div class="label-muted">High Risks</div>
<h2 style="margin:0.2rem 0;">{distribution['High']}</h2></div>""",
        unsafe_allow_html=True,
    )

with col3:
    st.markdown(
        f"""<div class="ce-card"><div class="label-muted">Risk Distribution</div>
{heatmap_html(distribution)}
<div class="label-muted" style="display:flex;justify-content:space-between;margin-top:0.4rem;">
<span>High</span><span>Medium</span><span>Low</span></div></div>""",
        unsafe_allow_html=True,
    )

left, right = st.columns([7, 5])

# ===========================
# Contract input area
# ===========================

with left:
    uploaded = st.file_uploader(
        "Click to upload PDF or drag & drop",
        type=["pdf"],
        disabled=controller.is_busy,
    )
    if uploaded is not None:
        upload_key = (uploaded.name, uploaded.size)
        if upload_key != st.session_state.last_upload:
            st.session_state.last_upload = upload_key
            with st.spinner("Scanning PDF..."):
                controller.load_pdf(uploaded.name, uploaded.type or PDF_MIME_TYPE, uploaded.getvalue())
    if state.file_name:
        st.caption(f"✅ {state.file_name} loaded")

    controller.edit_title(st.text_input("Document title", value=state.document_title))
    controller.edit_text(
        st.text_area(
            "Contract text",
            value=state.document_text,
            height=420,
            placeholder="Paste legal contract here or upload a PDF above...",
        )
    )

    scan_clicked = st.button(
        "Scanning..." if analyzing else "Scan Contract",
        disabled=analyzing,
        type="primary",
    )

    if state.notice:
        st.info(state.notice)

# ===========================
# Run analysis
# ===========================

if scan_clicked:
    with right:
        with st.spinner("Consulting AI Legal Assistant..."):
            ran = controller.scan()
    if ran:
        st.rerun()

# ===========================
# Results panel
# ===========================

with right:
    header = "### 🔍 Detailed Analysis"
    if state.findings:
        header += f"  ·  {len(state.findings)} issues found"
    st.markdown(header)

    if state.phase == Phase.ANALYZING:
        st.info("Consulting AI Legal Assistant...")
    elif state.phase == Phase.FAILED:
        st.error("Analysis Failed")
        st.code(state.last_error or "", language="text")
    elif state.phase != Phase.READY or not state.findings:
        if state.phase == Phase.READY:
            st.markdown(risk_badge(SAFE_LEVEL), unsafe_allow_html=True)
            st.success("No risky clauses found.")
        else:
            st.markdown("**Ready to Scan**")
            st.caption('Click the "Scan Contract" button to begin.')
    else:
        if controller.is_stale:
            st.warning("The text was edited after this scan. Re-scan to refresh the results.")
        for finding in state.findings:
            st.markdown(finding_card(finding), unsafe_allow_html=True)

    if state.phase == Phase.READY:
        md_report = build_markdown_report(state)
        buffer = io.BytesIO(md_report.encode("utf-8"))
        st.download_button(
            label="Download Report (.md)",
            data=buffer,
            file_name="contract_scan_report.md",
            mime="text/markdown",
        )
